from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..models import User
from ..schemas.common import Page
from ..schemas.order import CheckoutOut, OrderOut, ReceiptOut, WebhookResult
from ..security import get_current_user
from ..services.checkout import ORDER_HISTORY_PER_PAGE, CheckoutService
from ..services.errors import ServiceError, to_http_exception
from ..services.payments import PaymentWebhookService, create_provider_payment, simulated_settlement


router = APIRouter(prefix="/checkout", tags=["checkout"])


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.post("/process", response_model=CheckoutOut, status_code=status.HTTP_201_CREATED)
async def process_checkout(
	request: Request,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> CheckoutOut:
	service = CheckoutService(db)
	try:
		order = await service.process(current_user)
		payment_url, provider_payment_id = await create_provider_payment(order, str(request.base_url))
	except ServiceError as exc:
		raise _handle_error(exc)

	if provider_payment_id:
		order.provider_payment_id = provider_payment_id
		await db.commit()
	return CheckoutOut(order=OrderOut.model_validate(order), payment_url=payment_url)


@router.get("/orders", response_model=Page[OrderOut])
async def order_history(
	page: Annotated[int, Query(ge=1)] = 1,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> Page[OrderOut]:
	orders, total = await CheckoutService(db).history(current_user.id, page=page)
	return Page[OrderOut].build(
		[OrderOut.model_validate(order) for order in orders],
		page=page,
		per_page=ORDER_HISTORY_PER_PAGE,
		total=total,
	)


@router.get("/orders/{order_number}", response_model=OrderOut)
async def show_order(
	order_number: str,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> OrderOut:
	try:
		return await CheckoutService(db).get_order(current_user.id, order_number)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.get("/orders/{order_number}/receipt", response_model=ReceiptOut)
async def order_receipt(
	order_number: str,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> ReceiptOut:
	try:
		return await CheckoutService(db).receipt(current_user.id, order_number)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/orders/{order_number}/simulate", response_model=WebhookResult)
async def simulate_payment(
	order_number: str,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> WebhookResult:
	if not get_settings().payment_simulation_enabled:
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Payment simulation is disabled")
	try:
		order = await CheckoutService(db).get_order(current_user.id, order_number)
		order, payment = await PaymentWebhookService(db).handle(simulated_settlement(order))
	except ServiceError as exc:
		raise _handle_error(exc)
	return WebhookResult(
		status="ok", order_number=order.order_number, order_status=order.status, payment_status=payment.status
	)
