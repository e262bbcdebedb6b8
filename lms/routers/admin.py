from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import CourseStatus, User
from ..permissions import ROLE_ADMIN
from ..schemas.category import CategoryCreate, CategoryOut, CategoryTree, CategoryUpdate
from ..schemas.common import MessageOut, Page, ReorderInput
from ..schemas.course import CourseSummary
from ..schemas.dashboard import AdminDashboard
from ..security import require_roles
from ..services.categories import CategoryService
from ..services.courses import CourseService
from ..services.dashboards import DashboardService
from ..services.errors import ServiceError, to_http_exception


admin_only = require_roles(ROLE_ADMIN)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(admin_only)])


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.get("/dashboard", response_model=AdminDashboard)
async def dashboard(db: AsyncSession = Depends(get_db)) -> AdminDashboard:
	return await DashboardService(db).admin()


# Categories


@router.get("/categories", response_model=list[CategoryTree])
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[CategoryTree]:
	return await CategoryService(db).index()


@router.post("/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)) -> CategoryOut:
	try:
		return await CategoryService(db).create(data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/categories/reorder", response_model=MessageOut)
async def reorder_categories(data: ReorderInput, db: AsyncSession = Depends(get_db)) -> MessageOut:
	await CategoryService(db).reorder(data.items)
	return MessageOut(message="Categories reordered successfully")


@router.get("/categories/{category_id}", response_model=CategoryTree)
async def show_category(category_id: int, db: AsyncSession = Depends(get_db)) -> CategoryTree:
	try:
		return await CategoryService(db).get(category_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.put("/categories/{category_id}", response_model=CategoryOut)
async def update_category(category_id: int, data: CategoryUpdate, db: AsyncSession = Depends(get_db)) -> CategoryOut:
	try:
		return await CategoryService(db).update(category_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.delete("/categories/{category_id}", response_model=MessageOut)
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
	try:
		await CategoryService(db).delete(category_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Category deleted successfully")


# Course review


@router.get("/courses", response_model=Page[CourseSummary])
async def review_queue(
	status_filter: Annotated[str | None, Query(alias="status")] = None,
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int, Query(ge=1, le=100)] = 20,
	db: AsyncSession = Depends(get_db),
) -> Page[CourseSummary]:
	courses, total = await CourseService(db).list_for_review(status=status_filter, page=page, per_page=per_page)
	return Page[CourseSummary].build(
		[CourseSummary.model_validate(course) for course in courses], page=page, per_page=per_page, total=total
	)


async def _change_status(db: AsyncSession, course_id: int, new_status: str) -> CourseSummary:
	try:
		return await CourseService(db).change_status(course_id, new_status)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/courses/{course_id}/publish", response_model=CourseSummary)
async def publish_course(course_id: int, db: AsyncSession = Depends(get_db)) -> CourseSummary:
	return await _change_status(db, course_id, CourseStatus.PUBLISHED.value)


@router.post("/courses/{course_id}/reject", response_model=CourseSummary)
async def reject_course(course_id: int, db: AsyncSession = Depends(get_db)) -> CourseSummary:
	return await _change_status(db, course_id, CourseStatus.REJECTED.value)


@router.post("/courses/{course_id}/archive", response_model=CourseSummary)
async def archive_course(course_id: int, db: AsyncSession = Depends(get_db)) -> CourseSummary:
	return await _change_status(db, course_id, CourseStatus.ARCHIVED.value)


@router.post("/courses/{course_id}/feature", response_model=CourseSummary)
async def toggle_featured(course_id: int, db: AsyncSession = Depends(get_db)) -> CourseSummary:
	try:
		return await CourseService(db).toggle_featured(course_id)
	except ServiceError as exc:
		raise _handle_error(exc)
