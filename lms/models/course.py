from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import utcnow

if TYPE_CHECKING:
	from .category import Category
	from .user import User


class CourseType(str, PyEnum):
	SELF_PACED = "self_paced"
	STRUCTURED = "structured"


class CourseLevel(str, PyEnum):
	BEGINNER = "beginner"
	INTERMEDIATE = "intermediate"
	ADVANCED = "advanced"
	ALL_LEVELS = "all_levels"


class CourseStatus(str, PyEnum):
	DRAFT = "draft"
	PENDING_REVIEW = "pending_review"
	PUBLISHED = "published"
	REJECTED = "rejected"
	ARCHIVED = "archived"


class LessonType(str, PyEnum):
	VIDEO = "video"
	TEXT = "text"
	QUIZ = "quiz"
	ASSIGNMENT = "assignment"


class Course(Base):
	__tablename__ = "courses"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	instructor_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"), index=True)
	title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
	slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
	subtitle: Mapped[str | None] = mapped_column(String(255))
	description: Mapped[str | None] = mapped_column(Text)
	thumbnail: Mapped[str | None] = mapped_column(String(512))
	preview_video: Mapped[str | None] = mapped_column(String(512))
	type: Mapped[str] = mapped_column(String(16), default=CourseType.SELF_PACED.value, nullable=False)
	level: Mapped[str] = mapped_column(String(16), default=CourseLevel.ALL_LEVELS.value, nullable=False)
	language: Mapped[str] = mapped_column(String(8), default="id", nullable=False)
	price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	discount_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
	requirements: Mapped[list | None] = mapped_column(JSON)
	outcomes: Mapped[list | None] = mapped_column(JSON)
	target_audience: Mapped[list | None] = mapped_column(JSON)
	status: Mapped[str] = mapped_column(String(16), default=CourseStatus.DRAFT.value, nullable=False, index=True)
	is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	total_duration: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	total_lessons: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	total_enrollments: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	average_rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=Decimal("0"), nullable=False)
	total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
	deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)

	instructor: Mapped["User"] = relationship()
	category: Mapped["Category | None"] = relationship()
	sections: Mapped[list["Section"]] = relationship(
		back_populates="course", order_by="Section.sort_order", cascade="all, delete-orphan"
	)

	@property
	def effective_price(self) -> Decimal:
		return self.discount_price if self.discount_price is not None else self.price

	@property
	def is_free(self) -> bool:
		return self.effective_price == 0

	@property
	def is_on_sale(self) -> bool:
		return self.discount_price is not None and self.discount_price < self.price

	@property
	def is_published(self) -> bool:
		return self.status == CourseStatus.PUBLISHED.value and self.deleted_at is None


class Section(Base):
	__tablename__ = "sections"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
	title: Mapped[str] = mapped_column(String(255), nullable=False)
	description: Mapped[str | None] = mapped_column(Text)
	sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	course: Mapped[Course] = relationship(back_populates="sections")
	lessons: Mapped[list["Lesson"]] = relationship(
		back_populates="section", order_by="Lesson.sort_order", cascade="all, delete-orphan"
	)


class Lesson(Base):
	__tablename__ = "lessons"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	section_id: Mapped[int] = mapped_column(ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
	title: Mapped[str] = mapped_column(String(255), nullable=False)
	type: Mapped[str] = mapped_column(String(16), default=LessonType.VIDEO.value, nullable=False)
	content: Mapped[str | None] = mapped_column(Text)
	video_url: Mapped[str | None] = mapped_column(String(512))
	video_provider: Mapped[str | None] = mapped_column(String(16))
	duration: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	is_free: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	section: Mapped[Section] = relationship(back_populates="lessons")
	attachments: Mapped[list["Attachment"]] = relationship(
		back_populates="lesson", order_by="Attachment.sort_order", cascade="all, delete-orphan"
	)


class Attachment(Base):
	__tablename__ = "attachments"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	lesson_id: Mapped[int] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
	title: Mapped[str] = mapped_column(String(255), nullable=False)
	file_path: Mapped[str] = mapped_column(String(512), nullable=False)
	file_name: Mapped[str] = mapped_column(String(255), nullable=False)
	file_type: Mapped[str | None] = mapped_column(String(128))
	file_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

	lesson: Mapped[Lesson] = relationship(back_populates="attachments")
