from __future__ import annotations

from collections import Counter
from threading import Lock
from typing import Literal

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Batch, BatchStatus, Category, Course, CourseStatus, CourseType, Section
from ..utils import paginate, utcnow
from .errors import NotFoundError

CatalogSort = Literal["latest", "oldest", "price_low", "price_high", "rating", "popularity"]

DEFAULT_PER_PAGE = 12
MAX_PER_PAGE = 50
RELATED_LIMIT = 6


class CourseViewCounter:
	"""Process-local view counter for catalog pages."""

	def __init__(self) -> None:
		self._views: Counter[int] = Counter()
		self._lock = Lock()

	def hit(self, course_id: int) -> int:
		with self._lock:
			self._views[course_id] += 1
			return self._views[course_id]

	def get(self, course_id: int) -> int:
		with self._lock:
			return self._views[course_id]

	def reset(self) -> None:
		with self._lock:
			self._views.clear()


course_views = CourseViewCounter()


def published_courses() -> Select:
	return select(Course).where(Course.status == CourseStatus.PUBLISHED.value, Course.deleted_at.is_(None))


def clamp_per_page(per_page: int | None, default: int = DEFAULT_PER_PAGE, maximum: int = MAX_PER_PAGE) -> int:
	if not per_page or per_page < 1:
		return default
	return min(per_page, maximum)


class CatalogService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_courses(
		self,
		*,
		category: str | None = None,
		level: str | None = None,
		course_type: str | None = None,
		instructor_id: int | None = None,
		search: str | None = None,
		featured: bool = False,
		self_paced: bool = False,
		structured: bool = False,
		sort: CatalogSort = "latest",
		page: int = 1,
		per_page: int | None = None,
	) -> tuple[list[Course], int, int]:
		stmt = published_courses()
		if category:
			if category.isdigit():
				stmt = stmt.where(Course.category_id == int(category))
			else:
				stmt = stmt.join(Category, Category.id == Course.category_id).where(Category.slug == category)
		if level:
			stmt = stmt.where(Course.level == level)
		if course_type:
			stmt = stmt.where(Course.type == course_type)
		if instructor_id:
			stmt = stmt.where(Course.instructor_id == instructor_id)
		if search:
			pattern = f"%{search.strip()}%"
			stmt = stmt.where(
				or_(
					Course.title.ilike(pattern),
					Course.subtitle.ilike(pattern),
					Course.description.ilike(pattern),
				)
			)
		if featured:
			stmt = stmt.where(Course.is_featured.is_(True))
		if self_paced:
			stmt = stmt.where(Course.type == CourseType.SELF_PACED.value)
		if structured:
			stmt = stmt.where(Course.type == CourseType.STRUCTURED.value)

		effective_price = func.coalesce(Course.discount_price, Course.price)
		ordering = {
			"latest": (Course.published_at.desc(), Course.id.desc()),
			"oldest": (Course.published_at.asc(), Course.id.asc()),
			"price_low": (effective_price.asc(), Course.id.asc()),
			"price_high": (effective_price.desc(), Course.id.desc()),
			"rating": (Course.average_rating.desc(), Course.id.desc()),
			"popularity": (Course.total_enrollments.desc(), Course.id.desc()),
		}
		stmt = stmt.order_by(*ordering.get(sort, ordering["latest"]))

		size = clamp_per_page(per_page)
		courses, total = await paginate(self.db, stmt, page=page, per_page=size)
		return courses, total, size

	async def get_by_slug(self, slug: str) -> Course:
		stmt = published_courses().where(Course.slug == slug).options(
			selectinload(Course.instructor),
			selectinload(Course.category),
			selectinload(Course.sections).selectinload(Section.lessons),
		)
		course = await self.db.scalar(stmt)
		if not course:
			raise NotFoundError("Course not found")
		return course

	async def related(self, course_id: int) -> list[Course]:
		course = await self.db.scalar(published_courses().where(Course.id == course_id))
		if not course:
			raise NotFoundError("Course not found")
		criteria = [Course.instructor_id == course.instructor_id]
		if course.category_id is not None:
			criteria.append(Course.category_id == course.category_id)
		stmt = (
			published_courses()
			.where(Course.id != course.id, or_(*criteria))
			.order_by(Course.total_enrollments.desc(), Course.id.desc())
			.limit(RELATED_LIMIT)
		)
		return list((await self.db.scalars(stmt)).all())

	async def categories(self, *, with_children: bool = False) -> list[Category]:
		stmt = (
			select(Category)
			.where(Category.is_active.is_(True), Category.parent_id.is_(None))
			.order_by(Category.sort_order, Category.name)
		)
		if with_children:
			stmt = stmt.options(selectinload(Category.children))
		return list((await self.db.scalars(stmt)).all())

	async def available_batches(self, *, page: int = 1, per_page: int | None = None) -> tuple[list[Batch], int, int]:
		now = utcnow()
		stmt = (
			select(Batch)
			.where(
				Batch.is_public.is_(True),
				Batch.status == BatchStatus.OPEN.value,
				or_(Batch.enrollment_end_date.is_(None), Batch.enrollment_end_date >= now),
			)
			.order_by(Batch.start_date.asc(), Batch.id.asc())
		)
		size = clamp_per_page(per_page)
		batches, total = await paginate(self.db, stmt, page=page, per_page=size)
		return batches, total, size
