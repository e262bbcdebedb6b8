from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import as_aware, utcnow

if TYPE_CHECKING:
	from .course import Course
	from .user import User


class BatchType(str, PyEnum):
	STRUCTURED = "structured"
	CLASSROOM = "classroom"


class BatchStatus(str, PyEnum):
	DRAFT = "draft"
	OPEN = "open"
	IN_PROGRESS = "in_progress"
	COMPLETED = "completed"
	CANCELLED = "cancelled"


class InstructorRole(str, PyEnum):
	PRIMARY = "primary"
	INSTRUCTOR = "instructor"
	ASSISTANT = "assistant"


BATCH_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
	BatchStatus.DRAFT.value: frozenset({BatchStatus.OPEN.value, BatchStatus.CANCELLED.value}),
	BatchStatus.OPEN.value: frozenset(
		{BatchStatus.IN_PROGRESS.value, BatchStatus.DRAFT.value, BatchStatus.CANCELLED.value}
	),
	BatchStatus.IN_PROGRESS.value: frozenset({BatchStatus.COMPLETED.value, BatchStatus.CANCELLED.value}),
	BatchStatus.COMPLETED.value: frozenset(),
	BatchStatus.CANCELLED.value: frozenset(),
}


class Batch(Base):
	__tablename__ = "batches"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	instructor_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
	name: Mapped[str] = mapped_column(String(255), nullable=False)
	slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
	class_code: Mapped[str | None] = mapped_column(String(6), unique=True, index=True)
	description: Mapped[str | None] = mapped_column(Text)
	type: Mapped[str] = mapped_column(String(16), default=BatchType.STRUCTURED.value, nullable=False, index=True)
	start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	enrollment_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	enrollment_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	max_students: Mapped[int | None] = mapped_column(Integer)
	current_students: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	status: Mapped[str] = mapped_column(String(16), default=BatchStatus.DRAFT.value, nullable=False, index=True)
	is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	auto_approve: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	instructor: Mapped["User | None"] = relationship()
	course_links: Mapped[list["BatchCourse"]] = relationship(
		back_populates="batch", order_by="BatchCourse.order", cascade="all, delete-orphan"
	)
	instructor_links: Mapped[list["BatchInstructor"]] = relationship(
		back_populates="batch", cascade="all, delete-orphan"
	)

	@property
	def is_full(self) -> bool:
		return self.max_students is not None and self.current_students >= self.max_students

	@property
	def has_started(self) -> bool:
		start = as_aware(self.start_date)
		return start is not None and start <= utcnow()

	@property
	def has_ended(self) -> bool:
		end = as_aware(self.end_date)
		return end is not None and end < utcnow()

	@property
	def is_open_for_enrollment(self) -> bool:
		if self.status != BatchStatus.OPEN.value or self.is_full:
			return False
		now = utcnow()
		window_start = as_aware(self.enrollment_start_date)
		window_end = as_aware(self.enrollment_end_date)
		if window_start is not None and window_start > now:
			return False
		if window_end is not None and window_end < now:
			return False
		return True

	@property
	def available_seats(self) -> int | None:
		if self.max_students is None:
			return None
		return max(self.max_students - self.current_students, 0)

	def can_transition_to(self, status: str) -> bool:
		return status == self.status or status in BATCH_STATUS_TRANSITIONS.get(self.status, frozenset())


class BatchCourse(Base):
	__tablename__ = "batch_course"
	__table_args__ = (UniqueConstraint("batch_id", "course_id", name="uq_batch_course"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	batch_id: Mapped[int] = mapped_column(ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
	course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
	order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	is_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

	batch: Mapped[Batch] = relationship(back_populates="course_links")
	course: Mapped["Course"] = relationship()


class BatchInstructor(Base):
	__tablename__ = "batch_instructor"
	__table_args__ = (UniqueConstraint("batch_id", "user_id", name="uq_batch_instructor"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	batch_id: Mapped[int] = mapped_column(ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	role: Mapped[str] = mapped_column(String(16), default=InstructorRole.INSTRUCTOR.value, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

	batch: Mapped[Batch] = relationship(back_populates="instructor_links")
	user: Mapped["User"] = relationship()
