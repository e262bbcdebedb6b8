from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..permissions import ROLE_ADMIN, ROLE_INSTRUCTOR
from ..schemas.auth import UserBrief
from ..schemas.batch import BatchInstructorOut, BatchOut
from ..schemas.classroom import (
	AddClassCourseInput,
	ClassPeopleOut,
	ClassroomCreate,
	ClassroomDetail,
	ClassroomIndexOut,
	ClassroomUpdate,
	JoinClassInput,
	MaterialInput,
	StreamPostInput,
	TopicInput,
)
from ..schemas.common import MessageOut
from ..schemas.course import LessonDetail, SectionDetail, SectionOut
from ..schemas.discussion import DiscussionOut
from ..security import get_current_user, require_roles
from ..services.builders import build_batch_detail, build_section
from ..services.classrooms import ClassroomService
from ..services.errors import ServiceError, to_http_exception


router = APIRouter(prefix="/classes", tags=["classes"])

instructor_only = require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


def _detail(batch, user: User) -> ClassroomDetail:
	data = build_batch_detail(batch).model_dump()
	return ClassroomDetail(**data, is_owner=batch.instructor_id == user.id)


@router.get("", response_model=ClassroomIndexOut)
async def list_classes(
	status_filter: Annotated[str | None, Query(alias="status")] = None,
	search: str | None = None,
	sort: Literal["newest", "oldest", "name"] = "newest",
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> ClassroomIndexOut:
	classes, statistics = await ClassroomService(db).index(user, status=status_filter, search=search, sort=sort)
	return ClassroomIndexOut(data=[BatchOut.model_validate(c) for c in classes], statistics=statistics)


@router.post("", response_model=ClassroomDetail, status_code=status.HTTP_201_CREATED)
async def create_class(
	data: ClassroomCreate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> ClassroomDetail:
	batch = await ClassroomService(db).create(user, data)
	return _detail(batch, user)


@router.post("/join", response_model=ClassroomDetail)
async def join_class(
	data: JoinClassInput,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> ClassroomDetail:
	service = ClassroomService(db)
	try:
		batch, _ = await service.join(user, data.class_code)
		batch = await service.get_visible(user, batch.id, detail=True)
	except ServiceError as exc:
		raise _handle_error(exc)
	return _detail(batch, user)


@router.get("/{class_id}", response_model=ClassroomDetail)
async def show_class(class_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> ClassroomDetail:
	try:
		batch = await ClassroomService(db).get_visible(user, class_id, detail=True)
	except ServiceError as exc:
		raise _handle_error(exc)
	return _detail(batch, user)


@router.put("/{class_id}", response_model=ClassroomDetail)
async def update_class(
	class_id: int,
	data: ClassroomUpdate,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> ClassroomDetail:
	try:
		batch = await ClassroomService(db).update(user, class_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return _detail(batch, user)


@router.delete("/{class_id}", response_model=MessageOut)
async def delete_class(class_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> MessageOut:
	try:
		await ClassroomService(db).delete(user, class_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Class deleted successfully")


@router.post("/{class_id}/courses", response_model=ClassroomDetail)
async def add_course(
	class_id: int,
	data: AddClassCourseInput,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> ClassroomDetail:
	try:
		batch = await ClassroomService(db).add_course(user, class_id, data.course_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return _detail(batch, user)


@router.delete("/{class_id}/courses/{course_id}", response_model=ClassroomDetail)
async def remove_course(
	class_id: int,
	course_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> ClassroomDetail:
	try:
		batch = await ClassroomService(db).remove_course(user, class_id, course_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return _detail(batch, user)


@router.get("/{class_id}/stream", response_model=list[DiscussionOut])
async def class_stream(
	class_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> list[DiscussionOut]:
	try:
		return await ClassroomService(db).stream(user, class_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/{class_id}/stream", response_model=DiscussionOut, status_code=status.HTTP_201_CREATED)
async def post_to_stream(
	class_id: int,
	data: StreamPostInput,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> DiscussionOut:
	try:
		return await ClassroomService(db).post(user, class_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.get("/{class_id}/classwork", response_model=list[SectionDetail])
async def classwork(
	class_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> list[SectionDetail]:
	try:
		sections = await ClassroomService(db).classwork(user, class_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return [build_section(section) for section in sections]


@router.post("/{class_id}/classwork/topics", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
async def create_topic(
	class_id: int,
	data: TopicInput,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> SectionOut:
	try:
		return await ClassroomService(db).create_topic(user, class_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/{class_id}/classwork/materials", response_model=LessonDetail, status_code=status.HTTP_201_CREATED)
async def create_material(
	class_id: int,
	data: MaterialInput,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> LessonDetail:
	try:
		return await ClassroomService(db).create_material(user, class_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.get("/{class_id}/people", response_model=ClassPeopleOut)
async def class_people(
	class_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> ClassPeopleOut:
	try:
		instructors, students = await ClassroomService(db).people(user, class_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return ClassPeopleOut(
		instructors=[BatchInstructorOut.model_validate(link) for link in instructors],
		students=[UserBrief.model_validate(student) for student in students],
	)
