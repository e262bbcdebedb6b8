from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas.common import MessageOut, Page
from ..schemas.discussion import DiscussionCreate, DiscussionDetail, DiscussionOut, DiscussionUpdate
from ..security import get_current_user
from ..services.builders import build_discussion_detail
from ..services.discussions import DISCUSSIONS_PER_PAGE, DiscussionService
from ..services.errors import ServiceError, to_http_exception


router = APIRouter(tags=["discussions"])


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


def _page(discussions, *, page: int, total: int) -> Page[DiscussionOut]:
	return Page[DiscussionOut].build(
		[DiscussionOut.model_validate(d) for d in discussions], page=page, per_page=DISCUSSIONS_PER_PAGE, total=total
	)


@router.get("/discussions", response_model=Page[DiscussionOut])
async def list_discussions(
	batch_id: int | None = None,
	lesson_id: int | None = None,
	discussion_type: Annotated[str | None, Query(alias="type")] = None,
	page: Annotated[int, Query(ge=1)] = 1,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> Page[DiscussionOut]:
	discussions, total = await DiscussionService(db).index(
		batch_id=batch_id, lesson_id=lesson_id, discussion_type=discussion_type, page=page
	)
	return _page(discussions, page=page, total=total)


@router.post("/discussions", response_model=DiscussionOut, status_code=status.HTTP_201_CREATED)
async def create_discussion(
	data: DiscussionCreate,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> DiscussionOut:
	try:
		return await DiscussionService(db).create(user, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.get("/discussions/{discussion_id}", response_model=DiscussionDetail)
async def show_discussion(
	discussion_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> DiscussionDetail:
	try:
		discussion, replies = await DiscussionService(db).show(discussion_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_discussion_detail(discussion, replies)


@router.put("/discussions/{discussion_id}", response_model=DiscussionOut)
async def update_discussion(
	discussion_id: int,
	data: DiscussionUpdate,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> DiscussionOut:
	try:
		return await DiscussionService(db).update(user, discussion_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.delete("/discussions/{discussion_id}", response_model=MessageOut)
async def delete_discussion(
	discussion_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> MessageOut:
	try:
		await DiscussionService(db).delete(user, discussion_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Discussion deleted successfully")


@router.post("/discussions/{discussion_id}/pin", response_model=DiscussionOut)
async def toggle_pin(
	discussion_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> DiscussionOut:
	try:
		return await DiscussionService(db).toggle_pin(user, discussion_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/discussions/{discussion_id}/lock", response_model=DiscussionOut)
async def toggle_lock(
	discussion_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> DiscussionOut:
	try:
		return await DiscussionService(db).toggle_lock(user, discussion_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.get("/batches/{batch_id}/discussions", response_model=Page[DiscussionOut])
async def batch_discussions(
	batch_id: int,
	page: Annotated[int, Query(ge=1)] = 1,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> Page[DiscussionOut]:
	try:
		discussions, total = await DiscussionService(db).for_batch(batch_id, page=page)
	except ServiceError as exc:
		raise _handle_error(exc)
	return _page(discussions, page=page, total=total)


@router.get("/lessons/{lesson_id}/discussions", response_model=Page[DiscussionOut])
async def lesson_discussions(
	lesson_id: int,
	page: Annotated[int, Query(ge=1)] = 1,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> Page[DiscussionOut]:
	try:
		discussions, total = await DiscussionService(db).for_lesson(lesson_id, page=page)
	except ServiceError as exc:
		raise _handle_error(exc)
	return _page(discussions, page=page, total=total)
