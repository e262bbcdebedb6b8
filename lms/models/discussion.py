from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import utcnow

if TYPE_CHECKING:
	from .user import User


class DiscussionType(str, PyEnum):
	QUESTION = "question"
	DISCUSSION = "discussion"
	ANNOUNCEMENT = "announcement"


class Discussion(Base):
	__tablename__ = "discussions"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	batch_id: Mapped[int | None] = mapped_column(ForeignKey("batches.id", ondelete="CASCADE"), index=True)
	lesson_id: Mapped[int | None] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"), index=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	parent_id: Mapped[int | None] = mapped_column(ForeignKey("discussions.id", ondelete="CASCADE"), index=True)
	title: Mapped[str | None] = mapped_column(String(255))
	content: Mapped[str] = mapped_column(Text, nullable=False)
	type: Mapped[str] = mapped_column(String(16), default=DiscussionType.DISCUSSION.value, nullable=False)
	is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	is_approved: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	replies_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	views_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	upvotes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	user: Mapped["User"] = relationship()
