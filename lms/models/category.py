from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import utcnow


class Category(Base):
	__tablename__ = "categories"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	parent_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"), index=True)
	name: Mapped[str] = mapped_column(String(255), nullable=False)
	slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
	description: Mapped[str | None] = mapped_column(Text)
	icon: Mapped[str | None] = mapped_column(String(255))
	sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
	is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	children: Mapped[list["Category"]] = relationship(order_by="Category.sort_order")
