from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import utcnow

if TYPE_CHECKING:
	from .course import Course


class PathLevel(str, PyEnum):
	BEGINNER = "beginner"
	INTERMEDIATE = "intermediate"
	ADVANCED = "advanced"


class LearningPath(Base):
	__tablename__ = "learning_paths"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	title: Mapped[str] = mapped_column(String(255), nullable=False)
	slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
	description: Mapped[str | None] = mapped_column(Text)
	thumbnail: Mapped[str | None] = mapped_column(String(512))
	level: Mapped[str] = mapped_column(String(16), default=PathLevel.BEGINNER.value, nullable=False)
	estimated_hours: Mapped[int | None] = mapped_column(Integer)
	is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	items: Mapped[list["LearningPathItem"]] = relationship(
		back_populates="learning_path", order_by="LearningPathItem.sort_order", cascade="all, delete-orphan"
	)


class LearningPathItem(Base):
	__tablename__ = "learning_path_items"
	__table_args__ = (UniqueConstraint("learning_path_id", "course_id", name="uq_learning_path_items_path_course"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	learning_path_id: Mapped[int] = mapped_column(
		ForeignKey("learning_paths.id", ondelete="CASCADE"), nullable=False, index=True
	)
	course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
	step_number: Mapped[int] = mapped_column(Integer, nullable=False)
	step_title: Mapped[str | None] = mapped_column(String(255))
	step_description: Mapped[str | None] = mapped_column(Text)
	is_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

	learning_path: Mapped[LearningPath] = relationship(back_populates="items")
	course: Mapped["Course"] = relationship()
