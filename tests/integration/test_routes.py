from __future__ import annotations

import pytest
from fastapi.routing import APIRoute

from lms.main import app


def _routes() -> set[tuple[str, str]]:
	return {(method, route.path) for route in app.routes if isinstance(route, APIRoute) for method in route.methods}


@pytest.mark.parametrize(
	"method, path",
	[
		("POST", "/api/v1/auth/register"),
		("POST", "/api/v1/auth/refresh"),
		("GET", "/api/v1/courses/{slug}"),
		("POST", "/api/v1/checkout/process"),
		("POST", "/api/v1/webhooks/payment"),
		("POST", "/api/v1/student/batches/{batch_id}/enroll"),
		("POST", "/api/v1/classes/join"),
		("POST", "/api/v1/instructor/assignments/{assignment_id}/submissions/{submission_id}/grade"),
		("POST", "/api/v1/admin/courses/{course_id}/publish"),
		("POST", "/api/v1/admin/users/{user_id}/roles"),
		("GET", "/api/v1/internal/enrollments/check"),
	],
)
def test_route_registered(method, path):
	assert (method, path) in _routes()


async def test_health(client):
	res = await client.get("/healthz")

	assert res.status_code == 200
	assert res.json() == {"status": "ok", "checks": {"database": "ok", "storage": "ok"}}


async def test_metrics_disabled(client):
	res = await client.get("/metrics")

	assert res.status_code == 404
