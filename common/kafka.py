from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from aiokafka import AIOKafkaProducer


class KafkaNotConfiguredError(RuntimeError):
	"""Raised when the Kafka broker URL is missing in service settings."""


def kafka_enabled(settings: object) -> bool:
	return bool(getattr(settings, "kafka_broker_url", None))


def _get_bootstrap_url(settings: object) -> str:
	broker = getattr(settings, "kafka_broker_url", None)
	if not broker:
		raise KafkaNotConfiguredError("Kafka is not configured (kafka_broker_url is empty).")
	return broker


def _json_serializer(value: Any) -> bytes:
	return json.dumps(value, default=str).encode("utf-8")


@asynccontextmanager
async def kafka_producer(settings: object, **kwargs: Any) -> AsyncIterator[AIOKafkaProducer]:
	"""
	Yield a started ``AIOKafkaProducer`` configured from service settings.

	Values are JSON-encoded unless a ``value_serializer`` is passed explicitly:

	```
	async with kafka_producer(settings) as producer:
	    await producer.send_and_wait("lms.order.paid", {"order_number": "..."})
	```
	"""
	kwargs.setdefault("value_serializer", _json_serializer)
	producer = AIOKafkaProducer(bootstrap_servers=_get_bootstrap_url(settings), **kwargs)
	await producer.start()
	try:
		yield producer
	finally:
		await producer.stop()
