from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..permissions import ROLE_ADMIN, ROLE_INSTRUCTOR
from ..schemas.common import MessageOut, Page, ReorderInput
from ..schemas.course import (
	AttachmentOut,
	CourseCreate,
	CourseDetail,
	CourseSummary,
	CourseUpdate,
	LessonCreate,
	LessonDetail,
	LessonUpdate,
	SectionCreate,
	SectionOut,
	SectionUpdate,
)
from ..security import require_permission, require_roles
from ..services.builders import build_course_detail
from ..services.courses import CourseService
from ..services.errors import ServiceError, to_http_exception
from ..storage import StorageService, discard_objects, get_storage_service, optional_storage_service, store_upload


router = APIRouter(prefix="/instructor/courses", tags=["instructor-courses"])

THUMBNAIL_MAX_BYTES = 2 * 1024 * 1024
ATTACHMENT_MAX_BYTES = 10 * 1024 * 1024

instructor_only = require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)
can_create_courses = require_permission("create courses")


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.get("", response_model=Page[CourseSummary])
async def list_courses(
	status_filter: Annotated[str | None, Query(alias="status")] = None,
	search: str | None = None,
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int, Query(ge=1, le=100)] = 15,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> Page[CourseSummary]:
	courses, total = await CourseService(db).list_own(
		user, status=status_filter, search=search, page=page, per_page=per_page
	)
	return Page[CourseSummary].build(
		[CourseSummary.model_validate(course) for course in courses], page=page, per_page=per_page, total=total
	)


@router.post("", response_model=CourseDetail, status_code=status.HTTP_201_CREATED)
async def create_course(
	data: CourseCreate,
	user: User = Depends(can_create_courses),
	db: AsyncSession = Depends(get_db),
) -> CourseDetail:
	try:
		course = await CourseService(db).create(user, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_course_detail(course)


@router.get("/{course_id}", response_model=CourseDetail)
async def show_course(course_id: int, user: User = Depends(instructor_only), db: AsyncSession = Depends(get_db)) -> CourseDetail:
	try:
		course = await CourseService(db).get_owned(user, course_id, curriculum=True)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_course_detail(course)


@router.put("/{course_id}", response_model=CourseDetail)
async def update_course(
	course_id: int,
	data: CourseUpdate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> CourseDetail:
	try:
		course = await CourseService(db).update(user, course_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_course_detail(course)


@router.delete("/{course_id}", response_model=MessageOut)
async def delete_course(course_id: int, user: User = Depends(instructor_only), db: AsyncSession = Depends(get_db)) -> MessageOut:
	try:
		await CourseService(db).delete(user, course_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Course deleted successfully")


@router.post("/{course_id}/thumbnail", response_model=CourseSummary)
async def upload_thumbnail(
	course_id: int,
	thumbnail: UploadFile = File(...),
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
	storage: StorageService = Depends(get_storage_service),
) -> CourseSummary:
	service = CourseService(db)
	try:
		await service.get_owned(user, course_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	stored = await store_upload(
		storage,
		thumbnail,
		prefix=f"courses/{course_id}/thumbnails",
		max_bytes=THUMBNAIL_MAX_BYTES,
		allowed_types=("image/",),
	)
	course, previous = await service.set_thumbnail(user, course_id, stored["file_path"])
	if previous:
		await discard_objects(storage, [previous])
	return course


@router.post("/{course_id}/submit-review", response_model=CourseSummary)
async def submit_for_review(
	course_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> CourseSummary:
	try:
		return await CourseService(db).submit_for_review(user, course_id)
	except ServiceError as exc:
		raise _handle_error(exc)


# Sections


@router.post("/{course_id}/sections", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
async def create_section(
	course_id: int,
	data: SectionCreate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> SectionOut:
	try:
		return await CourseService(db).create_section(user, course_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/{course_id}/sections/reorder", response_model=MessageOut)
async def reorder_sections(
	course_id: int,
	data: ReorderInput,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> MessageOut:
	try:
		await CourseService(db).reorder_sections(user, course_id, data.items)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Sections reordered successfully")


@router.put("/{course_id}/sections/{section_id}", response_model=SectionOut)
async def update_section(
	course_id: int,
	section_id: int,
	data: SectionUpdate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> SectionOut:
	try:
		return await CourseService(db).update_section(user, course_id, section_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.delete("/{course_id}/sections/{section_id}", response_model=MessageOut)
async def delete_section(
	course_id: int,
	section_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> MessageOut:
	try:
		await CourseService(db).delete_section(user, course_id, section_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Section deleted successfully")


# Lessons


@router.post(
	"/{course_id}/sections/{section_id}/lessons",
	response_model=LessonDetail,
	status_code=status.HTTP_201_CREATED,
)
async def create_lesson(
	course_id: int,
	section_id: int,
	data: LessonCreate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> LessonDetail:
	try:
		return await CourseService(db).create_lesson(user, course_id, section_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/{course_id}/sections/{section_id}/lessons/reorder", response_model=MessageOut)
async def reorder_lessons(
	course_id: int,
	section_id: int,
	data: ReorderInput,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> MessageOut:
	try:
		await CourseService(db).reorder_lessons(user, course_id, section_id, data.items)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Lessons reordered successfully")


@router.get("/{course_id}/sections/{section_id}/lessons/{lesson_id}", response_model=LessonDetail)
async def show_lesson(
	course_id: int,
	section_id: int,
	lesson_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> LessonDetail:
	try:
		return await CourseService(db).get_lesson(user, course_id, section_id, lesson_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.put("/{course_id}/sections/{section_id}/lessons/{lesson_id}", response_model=LessonDetail)
async def update_lesson(
	course_id: int,
	section_id: int,
	lesson_id: int,
	data: LessonUpdate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> LessonDetail:
	try:
		return await CourseService(db).update_lesson(user, course_id, section_id, lesson_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.delete("/{course_id}/sections/{section_id}/lessons/{lesson_id}", response_model=MessageOut)
async def delete_lesson(
	course_id: int,
	section_id: int,
	lesson_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
	storage: StorageService | None = Depends(optional_storage_service),
) -> MessageOut:
	try:
		files = await CourseService(db).delete_lesson(user, course_id, section_id, lesson_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	if files and storage is not None:
		await discard_objects(storage, files)
	return MessageOut(message="Lesson deleted successfully")


# Attachments


@router.post(
	"/{course_id}/sections/{section_id}/lessons/{lesson_id}/attachments",
	response_model=AttachmentOut,
	status_code=status.HTTP_201_CREATED,
)
async def upload_attachment(
	course_id: int,
	section_id: int,
	lesson_id: int,
	file: UploadFile = File(...),
	title: str | None = Form(default=None),
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
	storage: StorageService = Depends(get_storage_service),
) -> AttachmentOut:
	service = CourseService(db)
	try:
		await service.get_lesson(user, course_id, section_id, lesson_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	stored = await store_upload(
		storage, file, prefix=f"courses/{course_id}/lessons/{lesson_id}", max_bytes=ATTACHMENT_MAX_BYTES
	)
	try:
		return await service.add_attachment(
			user, course_id, section_id, lesson_id, title=title or stored["file_name"], **stored
		)
	except ServiceError as exc:
		await discard_objects(storage, [stored["file_path"]])
		raise _handle_error(exc)


@router.delete(
	"/{course_id}/sections/{section_id}/lessons/{lesson_id}/attachments/{attachment_id}",
	response_model=MessageOut,
)
async def delete_attachment(
	course_id: int,
	section_id: int,
	lesson_id: int,
	attachment_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
	storage: StorageService = Depends(get_storage_service),
) -> MessageOut:
	try:
		path = await CourseService(db).delete_attachment(user, course_id, section_id, lesson_id, attachment_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	await discard_objects(storage, [path])
	return MessageOut(message="Attachment deleted successfully")
