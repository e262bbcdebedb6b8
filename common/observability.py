from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

HealthCheck = Callable[[AsyncSession | None], Awaitable[None] | None]

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Any) -> None:
	"""Configure root logging once from ``settings.log_level``."""
	level = getattr(settings, "log_level", "INFO")
	logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def configure_observability(
	app: FastAPI,
	*,
	settings: Any,
	get_db: Optional[Callable[[], AsyncSession]] = None,
	extra_checks: Mapping[str, HealthCheck] | None = None,
) -> None:
	"""Attach /healthz (database ping plus extra checks) and /metrics to the app."""
	metrics_enabled = getattr(settings, "metrics_enabled", False)
	if metrics_enabled:
		app.state.instrumentator = Instrumentator().instrument(app)

	checks = dict(extra_checks or {})

	async def _run_check(name: str, check: HealthCheck, db: AsyncSession | None) -> None:
		try:
			result = check(db)
			if inspect.isawaitable(result):
				await result
		except Exception as exc:
			raise HTTPException(
				status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
				detail={"status": "error", "check": name, "error": str(exc)},
			) from exc

	async def _ping_database(db: AsyncSession) -> None:
		await db.execute(text("SELECT 1"))

	if get_db:

		@app.get("/healthz", tags=["health"])
		async def healthz(db: AsyncSession = Depends(get_db)) -> JSONResponse:
			results: dict[str, str] = {}
			await _run_check("database", _ping_database, db)
			results["database"] = "ok"
			for name, check in checks.items():
				await _run_check(name, check, db)
				results[name] = "ok"
			return JSONResponse({"status": "ok", "checks": results})

	else:

		@app.get("/healthz", tags=["health"])
		async def healthz() -> JSONResponse:
			results: dict[str, str] = {"database": "skipped"}
			for name, check in checks.items():
				await _run_check(name, check, None)
				results[name] = "ok"
			return JSONResponse({"status": "ok", "checks": results})

	@app.get("/metrics", tags=["health"])
	def metrics() -> Response:
		if not metrics_enabled:
			return JSONResponse({"detail": "Metrics disabled"}, status_code=404)
		return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
