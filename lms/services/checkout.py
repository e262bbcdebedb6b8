from __future__ import annotations

from decimal import Decimal
from logging import getLogger

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import get_settings
from ..models import SUCCESSFUL_PAYMENT_STATUSES, Enrollment, Order, OrderItem, OrderStatusEnum, User
from ..utils import paginate, random_code, unique_code, utcnow
from .cart import CartService
from .errors import NotFoundError, ValidationFailedError


logger = getLogger(__name__)

ORDER_HISTORY_PER_PAGE = 10


def _order_options():
	return (selectinload(Order.items), selectinload(Order.payments))


class CheckoutService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def _order_number(self) -> str:
		prefix = f"ORD-{utcnow():%Y%m%d}-"

		async def _exists(candidate: str) -> bool:
			return bool(await self.db.scalar(select(Order.id).where(Order.order_number == candidate)))

		return await unique_code(_exists, lambda: prefix + random_code(8))

	async def _ensure_enrollment(self, user_id: int, item: OrderItem) -> tuple[Enrollment, bool]:
		stmt = select(Enrollment).where(Enrollment.user_id == user_id, Enrollment.course_id == item.course_id)
		existing = await self.db.scalar(stmt)
		if existing:
			if not existing.is_active:
				existing.order_item_id = item.id
			return existing, False
		enrollment = Enrollment(user_id=user_id, course_id=item.course_id, order_item_id=item.id, enrolled_at=None)
		self.db.add(enrollment)
		return enrollment, True

	async def process(self, user: User) -> Order:
		"""Turn the user's cart into a pending order with pending enrollments, atomically."""
		carts = CartService(self.db)
		try:
			cart = await carts.get_cart(user.id, for_update=True)
			if not cart.items:
				raise ValidationFailedError("Your cart is empty.")

			errors = [
				f"Course '{item.course.title}' is no longer available."
				for item in cart.items
				if not item.course.is_published
			]
			if errors:
				raise ValidationFailedError("Some courses in your cart are not available.", errors=errors)

			for item in cart.items:
				current_price = item.course.effective_price
				if item.price != current_price:
					item.price = current_price
			cart.recalculate()

			order = Order(
				user_id=user.id,
				order_number=await self._order_number(),
				subtotal=cart.subtotal,
				discount=cart.discount,
				tax=Decimal("0"),
				total=cart.total,
				currency=get_settings().currency,
				status=OrderStatusEnum.PENDING.value,
				coupon_code=cart.coupon_code,
				billing_name=user.name,
				billing_email=user.email,
				billing_phone=user.profile.phone if user.profile else None,
				items=[],
				payments=[],
			)
			self.db.add(order)
			for cart_item in cart.items:
				order.items.append(
					OrderItem(
						course_id=cart_item.course_id,
						course_title=cart_item.course.title,
						price=cart_item.course.price,
						discount_price=cart_item.course.discount_price,
					)
				)
			await self.db.flush()

			for order_item in order.items:
				await self._ensure_enrollment(user.id, order_item)

			cart.items.clear()
			cart.coupon_code = None
			cart.discount = Decimal("0")
			cart.recalculate()
			await self.db.commit()
		except Exception:
			await self.db.rollback()
			raise

		logger.info("Order %s created for user %s (%s items)", order.order_number, user.id, len(order.items))
		return await self.get_order(user.id, order.order_number)

	async def get_order(self, user_id: int, order_number: str) -> Order:
		stmt = (
			select(Order)
			.where(Order.order_number == order_number, Order.user_id == user_id)
			.options(*_order_options())
			.execution_options(populate_existing=True)
		)
		order = await self.db.scalar(stmt)
		if not order:
			raise NotFoundError("Order not found")
		return order

	async def history(self, user_id: int, *, page: int = 1, per_page: int = ORDER_HISTORY_PER_PAGE) -> tuple[list[Order], int]:
		stmt = (
			select(Order)
			.where(Order.user_id == user_id)
			.options(*_order_options())
			.order_by(Order.created_at.desc(), Order.id.desc())
		)
		return await paginate(self.db, stmt, page=page, per_page=per_page)

	async def receipt(self, user_id: int, order_number: str) -> dict:
		order = await self.get_order(user_id, order_number)
		paid_amount = sum(
			(payment.amount for payment in order.payments if payment.status in SUCCESSFUL_PAYMENT_STATUSES),
			Decimal("0"),
		)
		return {
			"order_number": order.order_number,
			"status": order.status,
			"issued_at": order.created_at,
			"paid_at": order.paid_at,
			"currency": order.currency,
			"billing": {
				"name": order.billing_name,
				"email": order.billing_email,
				"phone": order.billing_phone,
				"address": order.billing_address,
			},
			"items": order.items,
			"payments": order.payments,
			"summary": {
				"subtotal": order.subtotal,
				"discount": order.discount,
				"tax": order.tax,
				"total": order.total,
				"paid_amount": paid_amount,
				"due_amount": order.total - paid_amount,
			},
		}
