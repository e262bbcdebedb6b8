from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import utcnow

if TYPE_CHECKING:
	from .course import Course


class Cart(Base):
	__tablename__ = "carts"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
	subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	coupon_code: Mapped[str | None] = mapped_column(String(64))
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	items: Mapped[list["CartItem"]] = relationship(
		back_populates="cart", order_by="CartItem.id", cascade="all, delete-orphan"
	)

	def recalculate(self) -> None:
		self.subtotal = sum((item.price for item in self.items), Decimal("0"))
		self.total = self.subtotal - (self.discount or Decimal("0"))


class CartItem(Base):
	__tablename__ = "cart_items"
	__table_args__ = (UniqueConstraint("cart_id", "course_id", name="uq_cart_items_cart_course"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	cart_id: Mapped[int] = mapped_column(ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
	course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
	price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

	cart: Mapped[Cart] = relationship(back_populates="items")
	course: Mapped["Course"] = relationship()
