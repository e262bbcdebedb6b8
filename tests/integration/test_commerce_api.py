"""Cart to order to payment to enrollment, over HTTP."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest

from lms.config import get_settings

from tests.conftest import auth_headers

API = "/api/v1"


@pytest.fixture
async def shopper(factory):
	instructor = await factory.user("instructor")
	course = await factory.course(instructor, title="Data Engineering")
	student = await factory.user()
	return student, course


async def _checkout(client, student, course) -> dict:
	headers = auth_headers(student)
	res = await client.post(f"{API}/cart", json={"course_id": course.id}, headers=headers)
	assert res.status_code == 200
	res = await client.post(f"{API}/checkout/process", headers=headers)
	assert res.status_code == 201
	return res.json()


class TestCart:
	async def test_add_and_summary(self, client, shopper):
		student, course = shopper
		headers = auth_headers(student)

		res = await client.post(f"{API}/cart", json={"course_id": course.id}, headers=headers)

		assert res.status_code == 200
		assert res.json()["items_count"] == 1
		summary = (await client.get(f"{API}/cart/summary", headers=headers)).json()
		assert Decimal(summary["total"]) == Decimal("150000")

	async def test_remove_and_clear(self, client, factory, shopper):
		student, course = shopper
		other = await factory.course(await factory.user("instructor"))
		headers = auth_headers(student)
		await client.post(f"{API}/cart", json={"course_id": course.id}, headers=headers)
		cart = (await client.post(f"{API}/cart", json={"course_id": other.id}, headers=headers)).json()

		item_id = cart["items"][0]["id"]
		res = await client.delete(f"{API}/cart/{item_id}", headers=headers)
		assert res.json()["items_count"] == 1

		res = await client.delete(f"{API}/cart", headers=headers)
		assert res.json()["items_count"] == 0

	async def test_unknown_course(self, client, shopper):
		student, _ = shopper

		res = await client.post(f"{API}/cart", json={"course_id": 9999}, headers=auth_headers(student))

		assert res.status_code == 404

	async def test_requires_login(self, client):
		res = await client.get(f"{API}/cart")

		assert res.status_code in (401, 403)


class TestCheckoutFlow:
	async def test_simulated_payment_enrolls(self, client, shopper):
		student, course = shopper
		checkout = await _checkout(client, student, course)
		order = checkout["order"]

		assert order["status"] == "pending"
		assert checkout["payment_url"].endswith(f"/checkout/orders/{order['order_number']}/simulate")

		res = await client.post(f"{API}/checkout/orders/{order['order_number']}/simulate", headers=auth_headers(student))
		assert res.status_code == 200
		assert res.json()["order_status"] == "paid"
		assert res.json()["payment_status"] == "settlement"

		check = await client.get(
			f"{API}/internal/enrollments/check", params={"user_id": student.id, "course_id": course.id}
		)
		assert check.status_code == 200
		assert check.json()["enrolled"] is True

		cart = (await client.get(f"{API}/cart", headers=auth_headers(student))).json()
		assert cart["items_count"] == 0

	async def test_order_history_and_receipt(self, client, shopper):
		student, course = shopper
		order = (await _checkout(client, student, course))["order"]
		headers = auth_headers(student)

		history = (await client.get(f"{API}/checkout/orders", headers=headers)).json()
		assert [o["order_number"] for o in history["data"]] == [order["order_number"]]

		receipt = await client.get(f"{API}/checkout/orders/{order['order_number']}/receipt", headers=headers)
		assert receipt.status_code == 200

	async def test_other_users_order_is_hidden(self, client, factory, shopper):
		student, course = shopper
		order = (await _checkout(client, student, course))["order"]
		intruder = await factory.user()

		res = await client.get(f"{API}/checkout/orders/{order['order_number']}", headers=auth_headers(intruder))

		assert res.status_code == 404

	async def test_empty_cart(self, client, shopper):
		student, _ = shopper

		res = await client.post(f"{API}/checkout/process", headers=auth_headers(student))

		assert res.status_code == 422


class TestPaymentWebhook:
	async def test_settlement_notification(self, client, shopper):
		student, course = shopper
		order = (await _checkout(client, student, course))["order"]

		res = await client.post(
			f"{API}/webhooks/payment",
			json={
				"transaction_id": "TRX-100",
				"order_id": order["order_number"],
				"transaction_status": "settlement",
				"payment_type": "bank_transfer",
				"gross_amount": order["total"],
			},
		)

		assert res.status_code == 200
		assert res.json()["order_status"] == "paid"

	async def test_yookassa_notification(self, client, shopper):
		student, course = shopper
		order = (await _checkout(client, student, course))["order"]

		res = await client.post(
			f"{API}/webhooks/payment",
			json={
				"event": "payment.canceled",
				"object": {
					"id": "yk-1",
					"status": "canceled",
					"amount": {"value": order["total"], "currency": "RUB"},
					"metadata": {"order_number": order["order_number"]},
				},
			},
		)

		assert res.status_code == 200
		assert res.json()["order_status"] == "failed"

	async def test_invalid_json(self, client):
		res = await client.post(
			f"{API}/webhooks/payment", content=b"{not json", headers={"Content-Type": "application/json"}
		)

		assert res.status_code == 400

	async def test_unknown_order(self, client):
		res = await client.post(
			f"{API}/webhooks/payment",
			json={"transaction_id": "T", "order_id": "ORD-NOPE", "transaction_status": "settlement"},
		)

		assert res.status_code == 404

	async def test_missing_fields(self, client):
		res = await client.post(f"{API}/webhooks/payment", json={"order_id": "ORD-1"})

		assert res.status_code == 400


class TestInternalEnrollmentCheck:
	def _settings(self):
		return get_settings().model_copy(update={"internal_token": "s3cret"})

	async def test_token_required_when_configured(self, client, shopper):
		student, course = shopper
		params = {"user_id": student.id, "course_id": course.id}

		with patch("lms.security.get_settings", self._settings):
			denied = await client.get(f"{API}/internal/enrollments/check", params=params)
			allowed = await client.get(
				f"{API}/internal/enrollments/check", params=params, headers={"X-Internal-Token": "s3cret"}
			)

		assert denied.status_code == 401
		assert allowed.status_code == 200
		assert allowed.json()["enrolled"] is False
