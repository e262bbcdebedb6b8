from __future__ import annotations

import re
import secrets
import string
import unicodedata
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
SLUG_HYPHEN_RE = re.compile(r"[-\s_]+")


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


def as_aware(value: datetime | None) -> datetime | None:
	"""SQLite hands back naive datetimes; treat them as UTC."""
	if value is None or value.tzinfo is not None:
		return value
	return value.replace(tzinfo=timezone.utc)


def slugify(value: str) -> str:
	normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
	normalized = SLUG_STRIP_RE.sub("", normalized).strip().lower()
	return SLUG_HYPHEN_RE.sub("-", normalized).strip("-") or "item"


async def unique_slug(
	db: AsyncSession,
	model: Any,
	source: str,
	*,
	exclude_id: int | None = None,
) -> str:
	"""Return ``slugify(source)`` or the first free ``<slug>-N`` for ``model.slug``."""
	base = slugify(source)
	candidate = base
	suffix = 1
	while True:
		stmt = select(model.id).where(model.slug == candidate)
		if exclude_id is not None:
			stmt = stmt.where(model.id != exclude_id)
		if not await db.scalar(stmt):
			return candidate
		candidate = f"{base}-{suffix}"
		suffix += 1


def random_code(length: int, alphabet: str = string.ascii_uppercase + string.digits) -> str:
	return "".join(secrets.choice(alphabet) for _ in range(length))


async def unique_code(
	exists: Callable[[str], Awaitable[bool]],
	generate: Callable[[], str],
	*,
	attempts: int = 20,
) -> str:
	for _ in range(attempts):
		code = generate()
		if not await exists(code):
			return code
	raise RuntimeError("Unable to generate a unique code")


async def count(db: AsyncSession, stmt: Any) -> int:
	"""Count rows of an arbitrary select statement."""
	total = await db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
	return int(total or 0)


async def paginate(db: AsyncSession, stmt: Any, *, page: int, per_page: int) -> tuple[list[Any], int]:
	total = await count(db, stmt)
	rows = await db.scalars(stmt.limit(per_page).offset((max(page, 1) - 1) * per_page))
	return list(rows.unique().all()), total
