"""Shared fixtures: an in-memory SQLite database, seeded roles, an HTTP client and factories."""
from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")
os.environ.setdefault("PAYMENT_SIMULATION_ENABLED", "true")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("METRICS_ENABLED", "false")

from collections.abc import AsyncGenerator
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import lms.models  # noqa: F401
from lms.database import Base, get_db
from lms.main import app
from lms.models import (
	Batch,
	BatchCourse,
	BatchInstructor,
	BatchStatus,
	BatchType,
	Course,
	CourseStatus,
	Enrollment,
	InstructorRole,
	Role,
	User,
)
from lms.permissions import ROLE_STUDENT, ensure_default_roles
from lms.security import create_access_token, get_password_hash
from lms.services.catalog import course_views
from lms.utils import unique_slug, utcnow

DEFAULT_PASSWORD = "secret-pass-123"


@pytest.fixture(autouse=True)
def _clear_course_views():
	course_views.reset()
	yield
	course_views.reset()


@pytest_asyncio.fixture
async def engine():
	engine = create_async_engine(
		"sqlite+aiosqlite://",
		poolclass=StaticPool,
		connect_args={"check_same_thread": False},
	)
	async with engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)
	yield engine
	await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker:
	factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
	async with factory() as session:
		await ensure_default_roles(session)
	return factory


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
	async with session_factory() as session:
		yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
	async def _get_db() -> AsyncGenerator[AsyncSession, None]:
		async with session_factory() as session:
			yield session

	app.dependency_overrides[get_db] = _get_db
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as ac:
		yield ac
	app.dependency_overrides.clear()


def auth_headers(user: User) -> dict[str, str]:
	return {"Authorization": f"Bearer {create_access_token(user.id)}"}


class Factory:
	"""Creates persisted rows directly through the session."""

	def __init__(self, db: AsyncSession):
		self.db = db
		self._seq = 0

	def _next(self) -> int:
		self._seq += 1
		return self._seq

	async def user(self, *roles: str, email: str | None = None, name: str = "Test User") -> User:
		role_names = roles or (ROLE_STUDENT,)
		role_rows = list((await self.db.scalars(select(Role).where(Role.name.in_(role_names)))).all())
		user = User(
			name=name,
			email=email or f"user{self._next()}@example.com",
			hashed_password=get_password_hash(DEFAULT_PASSWORD),
			roles=role_rows,
			profile=None,
		)
		self.db.add(user)
		await self.db.commit()
		return user

	async def course(
		self,
		instructor: User,
		*,
		title: str | None = None,
		price: Decimal = Decimal("150000"),
		discount_price: Decimal | None = None,
		status: str = CourseStatus.PUBLISHED.value,
		**extra: Any,
	) -> Course:
		title = title or f"Course {self._next()}"
		course = Course(
			instructor_id=instructor.id,
			title=title,
			slug=await unique_slug(self.db, Course, title),
			price=price,
			discount_price=discount_price,
			status=status,
			published_at=utcnow() if status == CourseStatus.PUBLISHED.value else None,
			sections=[],
			**extra,
		)
		self.db.add(course)
		await self.db.commit()
		return course

	async def batch(
		self,
		instructor: User,
		courses: list[Course],
		*,
		name: str | None = None,
		max_students: int | None = 30,
		status: str = BatchStatus.OPEN.value,
		batch_type: str = BatchType.STRUCTURED.value,
		**extra: Any,
	) -> Batch:
		name = name or f"Batch {self._next()}"
		batch = Batch(
			name=name,
			slug=await unique_slug(self.db, Batch, name),
			type=batch_type,
			status=status,
			max_students=max_students,
			instructor_id=instructor.id,
			course_links=[
				BatchCourse(course_id=course.id, order=index + 1) for index, course in enumerate(courses)
			],
			instructor_links=[BatchInstructor(user_id=instructor.id, role=InstructorRole.PRIMARY.value)],
			**extra,
		)
		self.db.add(batch)
		await self.db.commit()
		return batch

	async def enrollment(self, user: User, course: Course, *, batch: Batch | None = None, active: bool = True) -> Enrollment:
		enrollment = Enrollment(
			user_id=user.id,
			course_id=course.id,
			batch_id=batch.id if batch else None,
			enrolled_at=utcnow() if active else None,
		)
		self.db.add(enrollment)
		await self.db.commit()
		return enrollment


@pytest.fixture
def factory(db) -> Factory:
	return Factory(db)
