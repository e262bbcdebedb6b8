"""Общий модуль для работы с базой данных."""
from collections.abc import AsyncIterator
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
	"""Базовый класс для всех моделей SQLAlchemy."""
	pass


def resolve_async_url(database_url: str, database_url_async: str | None) -> str:
	"""
	Преобразует синхронный URL базы данных в асинхронный.
	
	Поддерживаются PostgreSQL (asyncpg) и SQLite (aiosqlite).
	
	Raises:
		ValueError: Если не удалось определить async URL
	"""
	if database_url_async:
		return database_url_async
	if "+asyncpg" in database_url or "+aiosqlite" in database_url:
		return database_url
	replacements = [
		("+psycopg2", "+asyncpg"),
		("+psycopg", "+asyncpg"),
		("postgresql://", "postgresql+asyncpg://"),
		("postgres://", "postgresql+asyncpg://"),
		("sqlite://", "sqlite+aiosqlite://"),
	]
	for needle, replacement in replacements:
		if needle in database_url:
			return database_url.replace(needle, replacement, 1)
	raise ValueError(
		"Не удалось определить async URL: задайте database_url_async или используйте PostgreSQL/SQLite"
	)


def _engine_options(settings: Any, url: str) -> dict[str, Any]:
	if url.startswith("sqlite"):
		return {}
	return {
		"pool_pre_ping": True,
		"pool_size": settings.db_pool_size,
		"max_overflow": settings.db_max_overflow,
		"pool_timeout": settings.db_pool_timeout,
		"pool_recycle": settings.db_pool_recycle,
	}


def create_database_engines(
	get_settings: Callable,
) -> tuple[AsyncEngine, async_sessionmaker]:
	"""
	Создает асинхронный движок базы данных и sessionmaker.
	
	Args:
		get_settings: Функция получения настроек (database_url, database_url_async,
			db_pool_size, db_max_overflow, db_pool_timeout, db_pool_recycle)
	
	Returns:
		Кортеж (async_engine, SessionLocal)
	"""
	settings = get_settings()
	url = resolve_async_url(settings.database_url, settings.database_url_async)
	
	async_engine = create_async_engine(url, **_engine_options(settings, url))
	
	SessionLocal = async_sessionmaker(
		async_engine,
		expire_on_commit=False,
		autoflush=False,
		class_=AsyncSession,
	)
	
	return async_engine, SessionLocal


def make_get_db(SessionLocal: async_sessionmaker) -> Callable:
	"""
	Создает зависимость get_db, которая отдает одну сессию на запрос.
	"""
	async def get_db() -> AsyncIterator[AsyncSession]:
		async with SessionLocal() as session:
			yield session
	
	return get_db
