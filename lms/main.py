from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from common import configure_logging, configure_observability

from .config import get_settings
from .database import SessionLocal, get_db
from .migrations_runner import run_migrations
from .permissions import ensure_default_roles
from .routers import (
	admin_batches_router,
	admin_roles_router,
	admin_router,
	auth_router,
	cart_router,
	checkout_router,
	classes_router,
	discussions_router,
	enrollments_router,
	instructor_courses_router,
	instructor_router,
	public_router,
	student_router,
	webhooks_router,
)
from .storage import optional_storage_service


settings = get_settings()

configure_logging(settings)

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
async def run_startup_tasks() -> None:
	if settings.run_migrations_on_startup:
		await run_in_threadpool(run_migrations)
	async with SessionLocal() as session:
		await ensure_default_roles(session)


async def _check_storage(_: AsyncSession) -> None:
	storage = optional_storage_service()
	if storage is None:
		return
	await run_in_threadpool(storage.ensure_bucket)


configure_observability(
	app,
	settings=settings,
	get_db=get_db,
	extra_checks={"storage": _check_storage},
)

for router in (
	auth_router,
	public_router,
	cart_router,
	checkout_router,
	webhooks_router,
	enrollments_router,
	instructor_courses_router,
	instructor_router,
	student_router,
	classes_router,
	discussions_router,
	admin_router,
	admin_roles_router,
	admin_batches_router,
):
	app.include_router(router, prefix=settings.api_prefix)
