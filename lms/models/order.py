from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import utcnow

if TYPE_CHECKING:
	from .course import Course


class OrderStatusEnum(str, PyEnum):
	PENDING = "pending"
	PAID = "paid"
	FAILED = "failed"
	REFUNDED = "refunded"
	CANCELLED = "cancelled"


class PaymentStatusEnum(str, PyEnum):
	PENDING = "pending"
	SETTLEMENT = "settlement"
	CAPTURE = "capture"
	DENY = "deny"
	CANCEL = "cancel"
	EXPIRE = "expire"
	FAILURE = "failure"
	REFUND = "refund"
	PARTIAL_REFUND = "partial_refund"


SUCCESSFUL_PAYMENT_STATUSES = frozenset({PaymentStatusEnum.SETTLEMENT.value, PaymentStatusEnum.CAPTURE.value})
FAILED_PAYMENT_STATUSES = frozenset(
	{
		PaymentStatusEnum.DENY.value,
		PaymentStatusEnum.CANCEL.value,
		PaymentStatusEnum.EXPIRE.value,
		PaymentStatusEnum.FAILURE.value,
	}
)
REFUND_PAYMENT_STATUSES = frozenset({PaymentStatusEnum.REFUND.value, PaymentStatusEnum.PARTIAL_REFUND.value})


class Order(Base):
	__tablename__ = "orders"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
	order_number: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
	subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	currency: Mapped[str] = mapped_column(String(3), default="IDR", nullable=False)
	status: Mapped[str] = mapped_column(String(16), default=OrderStatusEnum.PENDING.value, nullable=False, index=True)
	payment_method: Mapped[str | None] = mapped_column(String(64))
	provider_payment_id: Mapped[str | None] = mapped_column(String(128), index=True)
	coupon_code: Mapped[str | None] = mapped_column(String(64))
	billing_name: Mapped[str | None] = mapped_column(String(255))
	billing_email: Mapped[str | None] = mapped_column(String(255))
	billing_phone: Mapped[str | None] = mapped_column(String(32))
	billing_address: Mapped[str | None] = mapped_column(String(512))
	paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	items: Mapped[list["OrderItem"]] = relationship(
		back_populates="order", order_by="OrderItem.id", cascade="all, delete-orphan"
	)
	payments: Mapped[list["Payment"]] = relationship(
		back_populates="order", order_by="Payment.id", cascade="all, delete-orphan"
	)

	@property
	def is_paid(self) -> bool:
		return self.status == OrderStatusEnum.PAID.value


class OrderItem(Base):
	__tablename__ = "order_items"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
	course_id: Mapped[int | None] = mapped_column(ForeignKey("courses.id", ondelete="SET NULL"), index=True)
	course_title: Mapped[str] = mapped_column(String(255), nullable=False)
	price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
	discount_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

	order: Mapped[Order] = relationship(back_populates="items")
	course: Mapped["Course | None"] = relationship()


class Payment(Base):
	__tablename__ = "payments"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
	transaction_id: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
	payment_gateway: Mapped[str] = mapped_column(String(32), default="unknown", nullable=False)
	payment_method: Mapped[str | None] = mapped_column(String(64))
	amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
	currency: Mapped[str] = mapped_column(String(3), default="IDR", nullable=False)
	status: Mapped[str] = mapped_column(String(16), default=PaymentStatusEnum.PENDING.value, nullable=False)
	gateway_response: Mapped[dict | None] = mapped_column(JSON)
	completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	order: Mapped[Order] = relationship(back_populates="payments")
