"""Domain events published to Kafka when a broker is configured."""
from __future__ import annotations

from logging import getLogger
from typing import Any

from common import kafka_enabled, kafka_producer

from .config import get_settings
from .utils import utcnow


logger = getLogger(__name__)

ORDER_PAID = "order.paid"
ORDER_FAILED = "order.failed"
ORDER_REFUNDED = "order.refunded"
ENROLLMENT_ACTIVATED = "enrollment.activated"
BATCH_ENROLLMENT = "batch.enrollment"
CLASSROOM_JOINED = "classroom.joined"


def topic_name(event: str) -> str:
	return f"{get_settings().kafka_topic_prefix}.{event}"


async def publish_events(events: list[tuple[str, dict[str, Any]]]) -> None:
	"""Send events in one producer session; failures are logged, never raised."""
	settings = get_settings()
	if not events or not kafka_enabled(settings):
		return
	try:
		async with kafka_producer(settings) as producer:
			for event, payload in events:
				await producer.send_and_wait(
					topic_name(event),
					{"event": event, "occurred_at": utcnow().isoformat(), "data": payload},
				)
	except Exception:
		logger.exception("Failed to publish %d event(s) to Kafka", len(events))


async def publish_event(event: str, payload: dict[str, Any]) -> None:
	await publish_events([(event, payload)])
