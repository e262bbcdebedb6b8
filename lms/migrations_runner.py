from __future__ import annotations

from logging import getLogger
from pathlib import Path

from alembic import command
from alembic.config import Config

from common import resolve_async_url

from .config import get_settings


logger = getLogger(__name__)


def get_alembic_config() -> Config:
	# Alembic scripts live next to this module in lms/migrations
	base_dir = Path(__file__).resolve().parent
	settings = get_settings()

	alembic_cfg = Config()
	alembic_cfg.set_main_option("script_location", str(base_dir / "migrations"))
	alembic_cfg.set_main_option(
		"sqlalchemy.url",
		resolve_async_url(settings.database_url, settings.database_url_async),
	)
	return alembic_cfg


def run_migrations() -> None:
	"""Apply pending Alembic migrations at app startup."""
	cfg = get_alembic_config()
	try:
		command.upgrade(cfg, "head")
	except Exception as exc:
		logger.error("Failed to run migrations: %s", exc)
		raise
	logger.info("Alembic migrations applied")
