from __future__ import annotations

from logging import getLogger

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.order import WebhookResult
from ..services.errors import ServiceError, to_http_exception
from ..services.payments import PaymentWebhookService, parse_notification, verify_webhook_signature


logger = getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.post("/payment", response_model=WebhookResult)
async def payment_webhook(request: Request, db: AsyncSession = Depends(get_db)) -> WebhookResult:
	try:
		payload = await request.json()
	except ValueError:
		raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")
	if not isinstance(payload, dict):
		raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")

	headers = {key.lower(): value for key, value in request.headers.items()}
	try:
		verify_webhook_signature(payload, headers)
		notification = parse_notification(payload, headers)
		logger.info(
			"Payment webhook from %s: order %s status %s",
			notification.gateway,
			notification.order_number,
			notification.transaction_status,
		)
		order, payment = await PaymentWebhookService(db).handle(notification)
	except ServiceError as exc:
		raise _handle_error(exc)

	return WebhookResult(
		status="ok", order_number=order.order_number, order_status=order.status, payment_status=payment.status
	)
