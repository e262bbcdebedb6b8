from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class OrderItemOut(BaseModel):
	id: int
	course_id: int | None = None
	course_title: str
	price: Decimal
	discount_price: Decimal | None = None

	model_config = {"from_attributes": True}


class PaymentOut(BaseModel):
	id: int
	transaction_id: str
	payment_gateway: str
	payment_method: str | None = None
	amount: Decimal
	status: str
	completed_at: datetime | None = None
	created_at: datetime

	model_config = {"from_attributes": True}


class OrderOut(BaseModel):
	id: int
	order_number: str
	status: str
	subtotal: Decimal
	discount: Decimal
	tax: Decimal
	total: Decimal
	currency: str
	billing_name: str | None = None
	billing_email: str | None = None
	paid_at: datetime | None = None
	created_at: datetime
	items: list[OrderItemOut]
	payments: list[PaymentOut]

	model_config = {"from_attributes": True}


class CheckoutOut(BaseModel):
	order: OrderOut
	payment_url: str | None = None


class BillingInfo(BaseModel):
	name: str | None = None
	email: str | None = None
	phone: str | None = None
	address: str | None = None


class ReceiptSummary(BaseModel):
	subtotal: Decimal
	discount: Decimal
	tax: Decimal
	total: Decimal
	paid_amount: Decimal
	due_amount: Decimal


class ReceiptOut(BaseModel):
	order_number: str
	status: str
	issued_at: datetime
	paid_at: datetime | None = None
	currency: str
	billing: BillingInfo
	items: list[OrderItemOut]
	payments: list[PaymentOut]
	summary: ReceiptSummary


class WebhookResult(BaseModel):
	status: str
	order_number: str
	order_status: str
	payment_status: str
