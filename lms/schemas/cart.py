from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel

from .course import CourseSummary


class AddToCartInput(BaseModel):
	course_id: int


class CartItemOut(BaseModel):
	id: int
	course_id: int
	price: Decimal
	course: CourseSummary

	model_config = {"from_attributes": True}


class CartOut(BaseModel):
	id: int
	items: list[CartItemOut]
	subtotal: Decimal
	discount: Decimal
	total: Decimal
	items_count: int


class CartSummary(BaseModel):
	items_count: int
	subtotal: Decimal
	discount: Decimal
	total: Decimal
