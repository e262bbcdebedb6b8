"""Unit tests for webhook normalisation and signature checks."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest

from lms.config import get_settings
from lms.models import Order
from lms.services.errors import ServiceError
from lms.services.payments import (
	create_provider_payment,
	detect_gateway,
	midtrans_signature,
	parse_notification,
	verify_webhook_signature,
)


MIDTRANS_PAYLOAD = {
	"transaction_id": "trx-1",
	"order_id": "ORD-20240101-ABCDEFGH",
	"transaction_status": "settlement",
	"fraud_status": "accept",
	"payment_type": "bank_transfer",
	"gross_amount": "150000.00",
	"status_code": "200",
}

YOOKASSA_PAYLOAD = {
	"type": "notification",
	"event": "payment.succeeded",
	"object": {
		"id": "2d5b1b0e-000f-5000-9000-1d1f1b1e1a1a",
		"status": "succeeded",
		"amount": {"value": "990.00", "currency": "RUB"},
		"payment_method": {"type": "bank_card"},
		"metadata": {"order_number": "ORD-20240101-YOOKASSA"},
	},
}


def _settings_with_secret(secret):
	settings = get_settings().model_copy(update={"payment_webhook_secret": secret})
	return patch("lms.services.payments.get_settings", return_value=settings)


class TestDetectGateway:
	def test_header_names_the_gateway(self):
		assert detect_gateway({"user-agent": "Veritrans/Midtrans"}, {}) == "midtrans"

	def test_payload_shape_fallbacks(self):
		assert detect_gateway({}, YOOKASSA_PAYLOAD) == "yookassa"
		assert detect_gateway({}, {"payment_type": "qris"}) == "midtrans"
		assert detect_gateway({}, {"object": "event"}) == "stripe"
		assert detect_gateway({}, {"foo": "bar"}) == "unknown"


class TestParseNotification:
	def test_generic_payload(self):
		notification = parse_notification(MIDTRANS_PAYLOAD, {})

		assert notification.transaction_id == "trx-1"
		assert notification.order_number == "ORD-20240101-ABCDEFGH"
		assert notification.transaction_status == "settlement"
		assert notification.fraud_status == "accept"
		assert notification.gross_amount == Decimal("150000.00")
		assert notification.gateway == "midtrans"

	def test_yookassa_event_maps_to_settlement(self):
		notification = parse_notification(YOOKASSA_PAYLOAD, {})

		assert notification.transaction_status == "settlement"
		assert notification.order_number == "ORD-20240101-YOOKASSA"
		assert notification.payment_type == "bank_card"
		assert notification.gross_amount == Decimal("990.00")
		assert notification.gateway == "yookassa"

	def test_yookassa_refund_points_at_original_payment(self):
		payload = {
			"event": "refund.succeeded",
			"object": {
				"id": "refund-1",
				"payment_id": "payment-1",
				"amount": {"value": "990.00"},
				"metadata": {"order_number": "ORD-1"},
			},
		}

		notification = parse_notification(payload, {})

		assert notification.transaction_id == "payment-1"
		assert notification.transaction_status == "refund"

	def test_status_is_lowercased(self):
		notification = parse_notification({**MIDTRANS_PAYLOAD, "transaction_status": "SETTLEMENT"}, {})

		assert notification.transaction_status == "settlement"

	@pytest.mark.parametrize("missing", ["transaction_id", "order_id", "transaction_status"])
	def test_missing_fields_are_rejected(self, missing):
		payload = {key: value for key, value in MIDTRANS_PAYLOAD.items() if key != missing}

		with pytest.raises(ServiceError):
			parse_notification(payload, {})

	def test_bad_amount_is_rejected(self):
		with pytest.raises(ServiceError):
			parse_notification({**MIDTRANS_PAYLOAD, "gross_amount": "lots"}, {})


class TestWebhookSignature:
	def test_no_secret_accepts_everything(self):
		with _settings_with_secret(None):
			verify_webhook_signature(MIDTRANS_PAYLOAD, {})

	def test_valid_midtrans_signature(self):
		secret = "server-key"
		signature = midtrans_signature(
			MIDTRANS_PAYLOAD["order_id"], MIDTRANS_PAYLOAD["status_code"], MIDTRANS_PAYLOAD["gross_amount"], secret
		)

		with _settings_with_secret(secret):
			verify_webhook_signature({**MIDTRANS_PAYLOAD, "signature_key": signature}, {})

	def test_invalid_midtrans_signature(self):
		with _settings_with_secret("server-key"):
			with pytest.raises(ServiceError) as exc_info:
				verify_webhook_signature({**MIDTRANS_PAYLOAD, "signature_key": "forged"}, {})

		assert exc_info.value.status_code == 401

	def test_yookassa_token_header(self):
		with _settings_with_secret("hook-token"):
			verify_webhook_signature(YOOKASSA_PAYLOAD, {"x-webhook-token": "hook-token"})
			with pytest.raises(ServiceError):
				verify_webhook_signature(YOOKASSA_PAYLOAD, {"x-webhook-token": "wrong"})


class TestProviderPayment:
	@pytest.mark.parametrize("simulation", [True, False])
	async def test_simulation_url_without_provider(self, simulation):
		settings = get_settings().model_copy(
			update={"yookassa_shop_id": None, "yookassa_secret_key": None, "payment_simulation_enabled": simulation}
		)
		order = Order(order_number="ORD-20240101-ABCDEFGH", total=Decimal("150000"), currency="IDR", user_id=1)

		with patch("lms.services.payments.get_settings", lambda: settings):
			url, provider_id = await create_provider_payment(order, "http://testserver/")

		assert url == f"{settings.api_prefix}/checkout/orders/ORD-20240101-ABCDEFGH/simulate"
		assert provider_id is None
