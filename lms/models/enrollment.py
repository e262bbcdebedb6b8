from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, Numeric, and_, or_
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import as_aware, utcnow

if TYPE_CHECKING:
	from .batch import Batch
	from .course import Course
	from .user import User


class Enrollment(Base):
	__tablename__ = "enrollments"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	course_id: Mapped[int | None] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), index=True)
	batch_id: Mapped[int | None] = mapped_column(ForeignKey("batches.id", ondelete="SET NULL"), index=True)
	order_item_id: Mapped[int | None] = mapped_column(ForeignKey("order_items.id", ondelete="SET NULL"), index=True)
	enrolled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	progress_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
	completed_lessons: Mapped[list | None] = mapped_column(JSON)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	user: Mapped["User"] = relationship()
	course: Mapped["Course | None"] = relationship()
	batch: Mapped["Batch | None"] = relationship()

	@property
	def is_expired(self) -> bool:
		expires = as_aware(self.expires_at)
		return expires is not None and expires <= utcnow()

	@property
	def is_active(self) -> bool:
		return self.enrolled_at is not None and not self.is_completed and not self.is_expired


def active_enrollment_clause(now: datetime | None = None):
	"""SQL counterpart of ``Enrollment.is_active``."""
	moment = now or utcnow()
	return and_(
		Enrollment.enrolled_at.is_not(None),
		Enrollment.is_completed.is_(False),
		or_(Enrollment.expires_at.is_(None), Enrollment.expires_at > moment),
	)
