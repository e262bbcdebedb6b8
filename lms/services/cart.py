from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Cart, CartItem, Course
from .catalog import published_courses
from .enrollments import get_active_course_enrollment
from .errors import NotFoundError, ValidationFailedError


class CartService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def get_cart(self, user_id: int, *, for_update: bool = False) -> Cart:
		"""Return the user's cart with items and courses, creating it on first use."""
		stmt = (
			select(Cart)
			.where(Cart.user_id == user_id)
			.options(selectinload(Cart.items).selectinload(CartItem.course))
			.execution_options(populate_existing=True)
		)
		if for_update:
			stmt = stmt.with_for_update()
		cart = await self.db.scalar(stmt)
		if cart is None:
			cart = Cart(user_id=user_id, items=[])
			self.db.add(cart)
			await self.db.commit()
		return cart

	async def _reload(self, user_id: int) -> Cart:
		return await self.get_cart(user_id)

	async def add(self, user_id: int, course_id: int) -> Cart:
		course = await self.db.scalar(published_courses().where(Course.id == course_id))
		if not course:
			raise NotFoundError("Course not found or not available")
		if await get_active_course_enrollment(self.db, user_id, course.id):
			raise ValidationFailedError("You are already enrolled in this course")
		cart = await self.get_cart(user_id)
		if any(item.course_id == course.id for item in cart.items):
			raise ValidationFailedError("Course already in cart")
		cart.items.append(CartItem(course_id=course.id, course=course, price=course.effective_price))
		cart.recalculate()
		await self.db.commit()
		return await self._reload(user_id)

	async def _item(self, cart: Cart, item_id: int) -> CartItem:
		item = next((i for i in cart.items if i.id == item_id), None)
		if item is None:
			raise NotFoundError("Cart item not found")
		return item

	async def remove(self, user_id: int, item_id: int) -> Cart:
		cart = await self.get_cart(user_id)
		item = await self._item(cart, item_id)
		cart.items.remove(item)
		cart.recalculate()
		await self.db.commit()
		return await self._reload(user_id)

	async def refresh_item(self, user_id: int, item_id: int) -> Cart:
		"""Re-snapshot the item price from its course."""
		cart = await self.get_cart(user_id)
		item = await self._item(cart, item_id)
		item.price = item.course.effective_price
		cart.recalculate()
		await self.db.commit()
		return await self._reload(user_id)

	async def clear(self, user_id: int) -> Cart:
		cart = await self.get_cart(user_id)
		cart.items.clear()
		cart.recalculate()
		await self.db.commit()
		return await self._reload(user_id)
