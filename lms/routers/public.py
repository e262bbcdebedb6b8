from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.batch import BatchOut
from ..schemas.category import CategoryOut, CategoryTree
from ..schemas.common import Page
from ..schemas.course import CatalogCourseDetail, CourseSummary
from ..schemas.learning_path import LearningPathDetail, LearningPathOut
from ..services.builders import build_catalog_detail
from ..services.catalog import CatalogService, CatalogSort, course_views
from ..services.errors import ServiceError, to_http_exception
from ..services.learning_paths import LearningPathService


router = APIRouter(tags=["catalog"])


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.get("/categories", response_model=list[CategoryTree])
async def list_categories(
	with_children: bool = False,
	db: AsyncSession = Depends(get_db),
) -> list[CategoryTree]:
	categories = await CatalogService(db).categories(with_children=with_children)
	if with_children:
		return [CategoryTree.model_validate(category) for category in categories]
	return [CategoryTree(**CategoryOut.model_validate(category).model_dump()) for category in categories]


@router.get("/courses", response_model=Page[CourseSummary])
async def list_courses(
	category: str | None = None,
	level: str | None = None,
	course_type: Annotated[str | None, Query(alias="type")] = None,
	instructor: int | None = None,
	search: str | None = None,
	featured: bool = False,
	self_paced: bool = False,
	structured: bool = False,
	sort: CatalogSort = "latest",
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int | None, Query(ge=1)] = None,
	db: AsyncSession = Depends(get_db),
) -> Page[CourseSummary]:
	courses, total, size = await CatalogService(db).list_courses(
		category=category,
		level=level,
		course_type=course_type,
		instructor_id=instructor,
		search=search,
		featured=featured,
		self_paced=self_paced,
		structured=structured,
		sort=sort,
		page=page,
		per_page=per_page,
	)
	return Page[CourseSummary].build(
		[CourseSummary.model_validate(course) for course in courses], page=page, per_page=size, total=total
	)


@router.get("/courses/{slug}", response_model=CatalogCourseDetail)
async def show_course(slug: str, db: AsyncSession = Depends(get_db)) -> CatalogCourseDetail:
	try:
		course = await CatalogService(db).get_by_slug(slug)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_catalog_detail(course, views=course_views.hit(course.id))


@router.get("/courses/{course_id}/related", response_model=list[CourseSummary])
async def related_courses(course_id: int, db: AsyncSession = Depends(get_db)) -> list[CourseSummary]:
	try:
		courses = await CatalogService(db).related(course_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return [CourseSummary.model_validate(course) for course in courses]


@router.get("/batches", response_model=Page[BatchOut])
async def available_batches(
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int | None, Query(ge=1)] = None,
	db: AsyncSession = Depends(get_db),
) -> Page[BatchOut]:
	batches, total, size = await CatalogService(db).available_batches(page=page, per_page=per_page)
	return Page[BatchOut].build(
		[BatchOut.model_validate(batch) for batch in batches], page=page, per_page=size, total=total
	)


@router.get("/learning-paths", response_model=Page[LearningPathOut])
async def list_learning_paths(
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int, Query(ge=1, le=50)] = 15,
	db: AsyncSession = Depends(get_db),
) -> Page[LearningPathOut]:
	paths, total = await LearningPathService(db).index(published_only=True, page=page, per_page=per_page)
	return Page[LearningPathOut].build(
		[LearningPathOut.model_validate(path) for path in paths], page=page, per_page=per_page, total=total
	)


@router.get("/learning-paths/{slug}", response_model=LearningPathDetail)
async def show_learning_path(slug: str, db: AsyncSession = Depends(get_db)) -> LearningPathDetail:
	try:
		path = await LearningPathService(db).get_published(slug)
	except ServiceError as exc:
		raise _handle_error(exc)
	return path
