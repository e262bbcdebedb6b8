"""Payment gateway integration and the order/enrollment state machine driven by webhooks."""
from __future__ import annotations

import hashlib
import hmac
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from logging import getLogger
from typing import Any, Mapping

from fastapi import status
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool
from yookassa import Configuration, Payment as YooKassaPayment

from .. import events
from ..config import get_settings
from ..models import (
	FAILED_PAYMENT_STATUSES,
	REFUND_PAYMENT_STATUSES,
	SUCCESSFUL_PAYMENT_STATUSES,
	Course,
	Enrollment,
	Order,
	OrderStatusEnum,
	Payment,
	PaymentStatusEnum,
)
from ..utils import random_code, utcnow
from .errors import NotFoundError, ServiceError


logger = getLogger(__name__)

YOOKASSA_EVENT_STATUSES = {
	"payment.succeeded": PaymentStatusEnum.SETTLEMENT.value,
	"payment.waiting_for_capture": PaymentStatusEnum.PENDING.value,
	"payment.canceled": PaymentStatusEnum.CANCEL.value,
	"refund.succeeded": PaymentStatusEnum.REFUND.value,
}

FINAL_PAYMENT_STATUSES = SUCCESSFUL_PAYMENT_STATUSES | FAILED_PAYMENT_STATUSES | REFUND_PAYMENT_STATUSES


@dataclass
class PaymentNotification:
	transaction_id: str
	order_number: str
	transaction_status: str
	fraud_status: str = "accept"
	payment_type: str | None = None
	gross_amount: Decimal = Decimal("0")
	gateway: str = "unknown"
	raw: dict[str, Any] = field(default_factory=dict)


def detect_gateway(headers: Mapping[str, str], payload: Mapping[str, Any]) -> str:
	for header, value in headers.items():
		haystack = f"{header} {value}".lower()
		for name in ("midtrans", "stripe", "paypal", "yookassa"):
			if name in haystack:
				return name
	if "event" in payload and isinstance(payload.get("object"), dict):
		return "yookassa"
	if "va_numbers" in payload or "payment_type" in payload:
		return "midtrans"
	if payload.get("object") == "event":
		return "stripe"
	return "unknown"


def _to_decimal(value: Any) -> Decimal:
	if value in (None, ""):
		return Decimal("0")
	try:
		return Decimal(str(value))
	except InvalidOperation as exc:
		raise ServiceError("Invalid payment amount") from exc


def parse_notification(payload: Mapping[str, Any], headers: Mapping[str, str]) -> PaymentNotification:
	"""Normalise a generic (Midtrans-style) or YooKassa webhook body."""
	gateway = detect_gateway(headers, payload)
	obj = payload.get("object")
	if "event" in payload and isinstance(obj, dict):
		event = str(payload.get("event"))
		metadata = obj.get("metadata") or {}
		amount = (obj.get("amount") or {}).get("value")
		transaction_id = obj.get("id")
		order_number = metadata.get("order_number")
		if event.startswith("refund."):
			transaction_id = obj.get("payment_id") or transaction_id
		transaction_status = YOOKASSA_EVENT_STATUSES.get(event, str(obj.get("status") or ""))
		payment_method = (obj.get("payment_method") or {}).get("type")
		fraud_status = "accept"
	else:
		transaction_id = payload.get("transaction_id") or payload.get("id")
		order_number = payload.get("order_id")
		transaction_status = payload.get("transaction_status") or payload.get("status")
		fraud_status = payload.get("fraud_status") or "accept"
		payment_method = payload.get("payment_type")
		amount = payload.get("gross_amount", payload.get("amount"))

	if not transaction_id or not order_number or not transaction_status:
		raise ServiceError("Missing transaction_id, order_id or transaction status")

	return PaymentNotification(
		transaction_id=str(transaction_id),
		order_number=str(order_number),
		transaction_status=str(transaction_status).lower(),
		fraud_status=str(fraud_status).lower(),
		payment_type=payment_method,
		gross_amount=_to_decimal(amount),
		gateway=gateway,
		raw=dict(payload),
	)


def midtrans_signature(order_id: str, status_code: str, gross_amount: str, secret: str) -> str:
	return hashlib.sha512(f"{order_id}{status_code}{gross_amount}{secret}".encode("utf-8")).hexdigest()


def verify_webhook_signature(payload: Mapping[str, Any], headers: Mapping[str, str]) -> None:
	secret = get_settings().payment_webhook_secret
	if not secret:
		return
	if "event" in payload and isinstance(payload.get("object"), dict):
		token = headers.get("x-webhook-token") or ""
		if not hmac.compare_digest(token, secret):
			raise ServiceError("Invalid webhook token", status.HTTP_401_UNAUTHORIZED)
		return
	expected = midtrans_signature(
		str(payload.get("order_id", "")),
		str(payload.get("status_code", "")),
		str(payload.get("gross_amount", "")),
		secret,
	)
	if not hmac.compare_digest(str(payload.get("signature_key", "")), expected):
		raise ServiceError("Invalid webhook signature", status.HTTP_401_UNAUTHORIZED)


class PaymentWebhookService:
	def __init__(self, db: AsyncSession):
		self.db = db
		self._events: list[tuple[str, dict[str, Any]]] = []

	async def _record_payment(self, order: Order, notification: PaymentNotification) -> Payment:
		payment = await self.db.scalar(select(Payment).where(Payment.transaction_id == notification.transaction_id))
		if payment is None:
			payment = Payment(
				order_id=order.id,
				transaction_id=notification.transaction_id,
				payment_gateway=notification.gateway,
				payment_method=notification.payment_type,
				amount=notification.gross_amount,
				currency=order.currency,
				status=notification.transaction_status,
				gateway_response=notification.raw,
				completed_at=utcnow() if notification.transaction_status in FINAL_PAYMENT_STATUSES else None,
			)
			self.db.add(payment)
			return payment
		payment.status = notification.transaction_status
		payment.gateway_response = notification.raw
		if notification.transaction_status in FINAL_PAYMENT_STATUSES:
			payment.completed_at = utcnow()
		return payment

	async def _order_enrollments(self, order: Order) -> list[Enrollment]:
		item_ids = [item.id for item in order.items]
		if not item_ids:
			return []
		stmt = select(Enrollment).where(Enrollment.order_item_id.in_(item_ids))
		return list((await self.db.scalars(stmt)).all())

	async def _activate(self, order: Order) -> None:
		already_paid = order.is_paid
		order.status = OrderStatusEnum.PAID.value
		if order.paid_at is None:
			order.paid_at = utcnow()
		if already_paid:
			return

		now = utcnow()
		existing = {enrollment.order_item_id: enrollment for enrollment in await self._order_enrollments(order)}
		for item in order.items:
			if item.course_id is None:
				continue
			enrollment = existing.get(item.id)
			if enrollment is None:
				enrollment = await self.db.scalar(
					select(Enrollment).where(Enrollment.user_id == order.user_id, Enrollment.course_id == item.course_id)
				)
			if enrollment is None:
				enrollment = Enrollment(user_id=order.user_id, course_id=item.course_id, order_item_id=item.id)
				self.db.add(enrollment)
			if enrollment.is_active:
				continue
			enrollment.enrolled_at = now
			enrollment.expires_at = None
			enrollment.is_completed = False
			enrollment.completed_at = None
			enrollment.order_item_id = item.id
			await self.db.execute(
				update(Course)
				.where(Course.id == item.course_id)
				.values(total_enrollments=Course.total_enrollments + 1)
			)
			await self.db.flush()
			self._events.append(
				(
					events.ENROLLMENT_ACTIVATED,
					{"enrollment_id": enrollment.id, "user_id": order.user_id, "course_id": item.course_id},
				)
			)
		self._events.append(
			(events.ORDER_PAID, {"order_number": order.order_number, "user_id": order.user_id, "total": order.total})
		)
		logger.info("Order %s paid", order.order_number)

	async def _fail(self, order: Order) -> None:
		if order.is_paid:
			logger.warning("Ignoring failure notification for paid order %s", order.order_number)
			return
		order.status = OrderStatusEnum.FAILED.value
		item_ids = [item.id for item in order.items]
		if item_ids:
			await self.db.execute(
				delete(Enrollment).where(Enrollment.order_item_id.in_(item_ids), Enrollment.enrolled_at.is_(None))
			)
		self._events.append((events.ORDER_FAILED, {"order_number": order.order_number, "user_id": order.user_id}))
		logger.info("Order %s failed", order.order_number)

	async def _refund(self, order: Order) -> None:
		order.status = OrderStatusEnum.REFUNDED.value
		for enrollment in await self._order_enrollments(order):
			enrollment.enrolled_at = None
		self._events.append((events.ORDER_REFUNDED, {"order_number": order.order_number, "user_id": order.user_id}))
		logger.info("Order %s refunded", order.order_number)

	async def handle(self, notification: PaymentNotification) -> tuple[Order, Payment]:
		"""Apply one gateway notification to its order in a single transaction."""
		stmt = (
			select(Order)
			.where(Order.order_number == notification.order_number)
			.options(selectinload(Order.items))
			.with_for_update()
		)
		try:
			order = await self.db.scalar(stmt)
			if not order:
				raise NotFoundError("Order not found")

			payment = await self._record_payment(order, notification)
			state = notification.transaction_status
			if state in SUCCESSFUL_PAYMENT_STATUSES:
				if notification.fraud_status == "accept":
					await self._activate(order)
				else:
					await self._fail(order)
			elif state == PaymentStatusEnum.PENDING.value:
				if order.status == OrderStatusEnum.FAILED.value:
					order.status = OrderStatusEnum.PENDING.value
			elif state in FAILED_PAYMENT_STATUSES:
				await self._fail(order)
			elif state in REFUND_PAYMENT_STATUSES:
				await self._refund(order)
			else:
				logger.info("Unhandled payment status %s for order %s", state, order.order_number)
			await self.db.commit()
		except Exception:
			await self.db.rollback()
			raise

		await events.publish_events(self._events)
		self._events = []
		return order, payment


async def create_provider_payment(order: Order, base_url: str) -> tuple[str | None, str | None]:
	"""Create a YooKassa payment for the order.

	Returns ``(confirmation_url, provider_payment_id)``. Without YooKassa credentials
	the URL is the simulation endpoint, which only settles when simulation is enabled.
	"""
	settings = get_settings()
	if not settings.yookassa_shop_id or not settings.yookassa_secret_key:
		return f"{settings.api_prefix}/checkout/orders/{order.order_number}/simulate", None

	Configuration.account_id = settings.yookassa_shop_id
	Configuration.secret_key = settings.yookassa_secret_key

	public_url = (settings.public_base_url or base_url).rstrip("/")
	request = {
		"amount": {"value": f"{order.total:.2f}", "currency": order.currency},
		"confirmation": {"type": "redirect", "return_url": f"{public_url}/orders/{order.order_number}"},
		"capture": True,
		"description": f"Order {order.order_number}",
		"metadata": {"order_number": order.order_number, "user_id": order.user_id},
	}
	try:
		payment = await run_in_threadpool(YooKassaPayment.create, request, str(uuid.uuid4()))
	except Exception as exc:
		logger.exception("YooKassa payment creation failed for order %s", order.order_number)
		raise ServiceError(f"Payment provider error: {exc}", status.HTTP_502_BAD_GATEWAY) from exc

	return payment.confirmation.confirmation_url, payment.id


def simulated_settlement(order: Order) -> PaymentNotification:
	return PaymentNotification(
		transaction_id=f"SIM-{order.order_number}-{random_code(6)}",
		order_number=order.order_number,
		transaction_status=PaymentStatusEnum.SETTLEMENT.value,
		payment_type="simulation",
		gross_amount=order.total,
		gateway="simulation",
		raw={"simulated": True, "order_id": order.order_number},
	)
