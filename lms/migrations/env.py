from __future__ import annotations

import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from common import Base, resolve_async_url

# Registers every table on Base.metadata
import lms.models  # noqa: F401


config = context.config

if config.config_file_name is not None:
	fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
	url = config.get_main_option("sqlalchemy.url")
	if url:
		return url
	env_url = os.getenv("DATABASE_URL") or os.getenv("database_url")
	if not env_url:
		raise RuntimeError("DATABASE_URL is not set for Alembic")
	return resolve_async_url(env_url, os.getenv("DATABASE_URL_ASYNC"))


def run_migrations_offline() -> None:
	"""Run migrations in 'offline' mode."""
	context.configure(
		url=get_url(),
		target_metadata=target_metadata,
		literal_binds=True,
		dialect_opts={"paramstyle": "named"},
	)

	with context.begin_transaction():
		context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
	context.configure(connection=connection, target_metadata=target_metadata)

	with context.begin_transaction():
		context.run_migrations()


async def run_migrations_online() -> None:
	"""Run migrations in 'online' mode over the async driver."""
	connectable = async_engine_from_config(
		{"sqlalchemy.url": get_url()},
		prefix="sqlalchemy.",
		poolclass=pool.NullPool,
	)

	async with connectable.connect() as connection:
		await connection.run_sync(do_run_migrations)

	await connectable.dispose()


if context.is_offline_mode():
	run_migrations_offline()
else:
	asyncio.run(run_migrations_online())
