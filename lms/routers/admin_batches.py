from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas.batch import (
	AssignInstructorInput,
	BatchCourseInput,
	BatchCreate,
	BatchDetail,
	BatchInstructorOut,
	BatchOut,
	BatchUpdate,
)
from ..schemas.common import MessageOut, Page, ReorderInput
from ..schemas.learning_path import LearningPathCreate, LearningPathDetail, LearningPathOut, LearningPathUpdate, PathItemInput
from ..services.batches import BatchService
from ..services.builders import build_batch_detail
from ..services.errors import ServiceError, to_http_exception
from ..services.learning_paths import LearningPathService
from .admin import admin_only


router = APIRouter(prefix="/admin", tags=["admin-batches"], dependencies=[Depends(admin_only)])


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.get("/batches", response_model=Page[BatchOut])
async def list_batches(
	batch_type: Annotated[str | None, Query(alias="type")] = None,
	status_filter: Annotated[str | None, Query(alias="status")] = None,
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int, Query(ge=1, le=100)] = 20,
	db: AsyncSession = Depends(get_db),
) -> Page[BatchOut]:
	batches, total = await BatchService(db).admin_list(
		batch_type=batch_type, status=status_filter, page=page, per_page=per_page
	)
	return Page[BatchOut].build([BatchOut.model_validate(batch) for batch in batches], page=page, per_page=per_page, total=total)


@router.post("/batches", response_model=BatchDetail, status_code=status.HTTP_201_CREATED)
async def create_batch(
	data: BatchCreate,
	user: User = Depends(admin_only),
	db: AsyncSession = Depends(get_db),
) -> BatchDetail:
	try:
		batch = await BatchService(db).admin_create(user, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.get("/batches/{batch_id}", response_model=BatchDetail)
async def show_batch(batch_id: int, db: AsyncSession = Depends(get_db)) -> BatchDetail:
	try:
		batch = await BatchService(db).get(batch_id, detail=True)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.put("/batches/{batch_id}", response_model=BatchDetail)
async def update_batch(batch_id: int, data: BatchUpdate, db: AsyncSession = Depends(get_db)) -> BatchDetail:
	try:
		batch = await BatchService(db).admin_update(batch_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.delete("/batches/{batch_id}", response_model=MessageOut)
async def delete_batch(batch_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
	try:
		await BatchService(db).admin_delete(batch_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Batch deleted successfully")


@router.post("/batches/{batch_id}/courses", response_model=BatchDetail)
async def attach_course(batch_id: int, data: BatchCourseInput, db: AsyncSession = Depends(get_db)) -> BatchDetail:
	try:
		batch = await BatchService(db).attach_course(batch_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.delete("/batches/{batch_id}/courses/{course_id}", response_model=BatchDetail)
async def detach_course(batch_id: int, course_id: int, db: AsyncSession = Depends(get_db)) -> BatchDetail:
	try:
		batch = await BatchService(db).detach_course(batch_id, course_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.get("/batches/{batch_id}/instructors", response_model=list[BatchInstructorOut])
async def list_instructors(batch_id: int, db: AsyncSession = Depends(get_db)) -> list[BatchInstructorOut]:
	try:
		links = await BatchService(db).instructors(batch_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return [BatchInstructorOut.model_validate(link) for link in links]


@router.post("/batches/{batch_id}/instructors", response_model=BatchDetail)
async def assign_instructor(batch_id: int, data: AssignInstructorInput, db: AsyncSession = Depends(get_db)) -> BatchDetail:
	try:
		batch = await BatchService(db).assign_instructor(batch_id, data.user_id, data.role)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.delete("/batches/{batch_id}/instructors/{user_id}", response_model=BatchDetail)
async def remove_instructor(batch_id: int, user_id: int, db: AsyncSession = Depends(get_db)) -> BatchDetail:
	try:
		batch = await BatchService(db).remove_instructor(batch_id, user_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


# Learning paths


@router.get("/learning-paths", response_model=Page[LearningPathOut])
async def list_learning_paths(
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int, Query(ge=1, le=100)] = 15,
	db: AsyncSession = Depends(get_db),
) -> Page[LearningPathOut]:
	paths, total = await LearningPathService(db).index(page=page, per_page=per_page)
	return Page[LearningPathOut].build(
		[LearningPathOut.model_validate(path) for path in paths], page=page, per_page=per_page, total=total
	)


@router.post("/learning-paths", response_model=LearningPathDetail, status_code=status.HTTP_201_CREATED)
async def create_learning_path(data: LearningPathCreate, db: AsyncSession = Depends(get_db)) -> LearningPathDetail:
	return await LearningPathService(db).create(data)


@router.get("/learning-paths/{path_id}", response_model=LearningPathDetail)
async def show_learning_path(path_id: int, db: AsyncSession = Depends(get_db)) -> LearningPathDetail:
	try:
		return await LearningPathService(db).get(path_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.put("/learning-paths/{path_id}", response_model=LearningPathDetail)
async def update_learning_path(path_id: int, data: LearningPathUpdate, db: AsyncSession = Depends(get_db)) -> LearningPathDetail:
	try:
		return await LearningPathService(db).update(path_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.delete("/learning-paths/{path_id}", response_model=MessageOut)
async def delete_learning_path(path_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
	try:
		await LearningPathService(db).delete(path_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Learning path deleted successfully")


@router.post("/learning-paths/{path_id}/courses", response_model=LearningPathDetail)
async def add_path_course(path_id: int, data: PathItemInput, db: AsyncSession = Depends(get_db)) -> LearningPathDetail:
	try:
		return await LearningPathService(db).add_course(path_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.delete("/learning-paths/{path_id}/courses/{course_id}", response_model=LearningPathDetail)
async def remove_path_course(path_id: int, course_id: int, db: AsyncSession = Depends(get_db)) -> LearningPathDetail:
	try:
		return await LearningPathService(db).remove_course(path_id, course_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/learning-paths/{path_id}/reorder", response_model=LearningPathDetail)
async def reorder_path(path_id: int, data: ReorderInput, db: AsyncSession = Depends(get_db)) -> LearningPathDetail:
	try:
		return await LearningPathService(db).reorder(path_id, data.items)
	except ServiceError as exc:
		raise _handle_error(exc)
