from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas.cart import AddToCartInput, CartOut, CartSummary
from ..security import get_current_user
from ..services.builders import build_cart
from ..services.cart import CartService
from ..services.errors import ServiceError, to_http_exception


router = APIRouter(prefix="/cart", tags=["cart"])


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.get("", response_model=CartOut)
async def show_cart(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> CartOut:
	return build_cart(await CartService(db).get_cart(current_user.id))


@router.post("", response_model=CartOut)
async def add_to_cart(
	data: AddToCartInput,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> CartOut:
	try:
		cart = await CartService(db).add(current_user.id, data.course_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_cart(cart)


@router.get("/summary", response_model=CartSummary)
async def cart_summary(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> CartSummary:
	cart = await CartService(db).get_cart(current_user.id)
	return CartSummary(items_count=len(cart.items), subtotal=cart.subtotal, discount=cart.discount, total=cart.total)


@router.put("/{item_id}", response_model=CartOut)
async def refresh_cart_item(
	item_id: int,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> CartOut:
	try:
		cart = await CartService(db).refresh_item(current_user.id, item_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_cart(cart)


@router.delete("/{item_id}", response_model=CartOut)
async def remove_cart_item(
	item_id: int,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> CartOut:
	try:
		cart = await CartService(db).remove(current_user.id, item_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_cart(cart)


@router.delete("", response_model=CartOut)
async def clear_cart(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> CartOut:
	return build_cart(await CartService(db).clear(current_user.id))
