from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base
from ..utils import utcnow


class GradeStatus(str, PyEnum):
	IN_PROGRESS = "in_progress"
	COMPLETED = "completed"
	WITHDREW = "withdrew"


LETTER_GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
	(90, "A"),
	(85, "A-"),
	(80, "B+"),
	(75, "B"),
	(70, "B-"),
	(65, "C+"),
	(60, "C"),
	(55, "C-"),
	(50, "D"),
)


def letter_grade(score: float) -> str:
	for threshold, letter in LETTER_GRADE_THRESHOLDS:
		if score >= threshold:
			return letter
	return "F"


class Grade(Base):
	__tablename__ = "grades"
	__table_args__ = (UniqueConstraint("batch_id", "user_id", name="uq_grades_batch_user"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	batch_id: Mapped[int] = mapped_column(ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	overall_score: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
	letter_grade: Mapped[str | None] = mapped_column(String(2))
	final_comment: Mapped[str | None] = mapped_column(Text)
	grade_breakdown: Mapped[dict | None] = mapped_column(JSON)
	status: Mapped[str] = mapped_column(String(16), default=GradeStatus.IN_PROGRESS.value, nullable=False)
	graded_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
	finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
