from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import as_aware, utcnow

if TYPE_CHECKING:
	from .batch import Batch
	from .user import User


class AssignmentType(str, PyEnum):
	ASSIGNMENT = "assignment"
	QUIZ = "quiz"
	PROJECT = "project"
	DISCUSSION = "discussion"


class SubmissionStatus(str, PyEnum):
	DRAFT = "draft"
	SUBMITTED = "submitted"
	LATE = "late"
	GRADED = "graded"


class Assignment(Base):
	__tablename__ = "assignments"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	batch_id: Mapped[int] = mapped_column(ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
	lesson_id: Mapped[int | None] = mapped_column(ForeignKey("lessons.id", ondelete="SET NULL"), index=True)
	title: Mapped[str] = mapped_column(String(255), nullable=False)
	description: Mapped[str | None] = mapped_column(Text)
	instructions: Mapped[str | None] = mapped_column(Text)
	type: Mapped[str] = mapped_column(String(16), default=AssignmentType.ASSIGNMENT.value, nullable=False)
	content: Mapped[dict | None] = mapped_column(JSON)
	due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
	available_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	max_points: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
	gradable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	allow_multiple_submissions: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	is_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	batch: Mapped["Batch"] = relationship()

	@property
	def is_overdue(self) -> bool:
		due = as_aware(self.due_date)
		return due is not None and due < utcnow()

	@property
	def is_available(self) -> bool:
		start = as_aware(self.available_from)
		return start is None or start <= utcnow()


class Submission(Base):
	__tablename__ = "submissions"
	__table_args__ = (UniqueConstraint("assignment_id", "user_id", name="uq_submissions_assignment_user"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	assignment_id: Mapped[int] = mapped_column(ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	content: Mapped[str | None] = mapped_column(Text)
	files: Mapped[list | None] = mapped_column(JSON)
	status: Mapped[str] = mapped_column(String(16), default=SubmissionStatus.DRAFT.value, nullable=False, index=True)
	points_awarded: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
	feedback: Mapped[str | None] = mapped_column(Text)
	submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	graded_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	assignment: Mapped[Assignment] = relationship()
	user: Mapped["User"] = relationship(foreign_keys=[user_id])

	@property
	def is_graded(self) -> bool:
		return self.status == SubmissionStatus.GRADED.value and self.points_awarded is not None

	def percentage_score(self, max_points: int) -> float | None:
		if self.points_awarded is None or not max_points:
			return None
		return round(float(self.points_awarded) / max_points * 100, 2)
