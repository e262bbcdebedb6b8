from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Batch, BatchCourse, Course, Discussion, Lesson, User
from ..permissions import ROLE_ADMIN
from ..schemas.discussion import DiscussionCreate, DiscussionUpdate
from ..utils import paginate
from .batches import BatchService
from .errors import NotFoundError, PermissionDeniedError, ValidationFailedError

DISCUSSIONS_PER_PAGE = 15


def _ordered(stmt):
	return stmt.order_by(Discussion.is_pinned.desc(), Discussion.created_at.desc(), Discussion.id.desc())


class DiscussionService:
	def __init__(self, db: AsyncSession):
		self.db = db
		self.batches = BatchService(db)

	async def _load(self, discussion_id: int) -> Discussion:
		discussion = await self.db.scalar(
			select(Discussion)
			.where(Discussion.id == discussion_id)
			.options(selectinload(Discussion.user))
			.execution_options(populate_existing=True)
		)
		if not discussion:
			raise NotFoundError("Discussion not found")
		return discussion

	async def index(
		self,
		*,
		batch_id: int | None = None,
		lesson_id: int | None = None,
		discussion_type: str | None = None,
		page: int = 1,
		per_page: int = DISCUSSIONS_PER_PAGE,
	) -> tuple[list[Discussion], int]:
		stmt = (
			select(Discussion)
			.where(Discussion.parent_id.is_(None), Discussion.is_approved.is_(True))
			.options(selectinload(Discussion.user))
		)
		if batch_id is not None:
			stmt = stmt.where(Discussion.batch_id == batch_id)
		if lesson_id is not None:
			stmt = stmt.where(Discussion.lesson_id == lesson_id)
		if discussion_type:
			stmt = stmt.where(Discussion.type == discussion_type)
		return await paginate(self.db, _ordered(stmt), page=page, per_page=per_page)

	async def for_batch(self, batch_id: int, *, page: int = 1) -> tuple[list[Discussion], int]:
		await self.batches.get(batch_id)
		return await self.index(batch_id=batch_id, page=page)

	async def for_lesson(self, lesson_id: int, *, page: int = 1) -> tuple[list[Discussion], int]:
		if not await self.db.get(Lesson, lesson_id):
			raise NotFoundError("Lesson not found")
		return await self.index(lesson_id=lesson_id, page=page)

	async def create(self, user: User, payload: DiscussionCreate) -> Discussion:
		data = payload.model_dump()
		if payload.parent_id is not None:
			parent = await self.db.get(Discussion, payload.parent_id)
			if not parent:
				raise NotFoundError("Parent discussion not found")
			if parent.is_locked:
				raise ValidationFailedError("This discussion is locked.")
			data["batch_id"] = parent.batch_id
			data["lesson_id"] = parent.lesson_id
		else:
			if not payload.title:
				raise ValidationFailedError("The title field is required.", errors={"title": ["The title field is required."]})
			if payload.batch_id is not None:
				await self.batches.get(payload.batch_id)
			if payload.lesson_id is not None and not await self.db.get(Lesson, payload.lesson_id):
				raise NotFoundError("Lesson not found")

		discussion = Discussion(**data, user_id=user.id, is_approved=True)
		self.db.add(discussion)
		if payload.parent_id is not None:
			await self.db.execute(
				update(Discussion)
				.where(Discussion.id == payload.parent_id)
				.values(replies_count=Discussion.replies_count + 1)
				.execution_options(synchronize_session="fetch")
			)
		await self.db.commit()
		return await self._load(discussion.id)

	async def show(self, discussion_id: int) -> tuple[Discussion, list[Discussion]]:
		discussion = await self._load(discussion_id)
		discussion.views_count += 1
		await self.db.commit()
		replies = (
			await self.db.scalars(
				select(Discussion)
				.where(Discussion.parent_id == discussion.id)
				.options(selectinload(Discussion.user))
				.order_by(Discussion.created_at.asc(), Discussion.id.asc())
			)
		).all()
		return discussion, list(replies)

	async def update(self, user: User, discussion_id: int, payload: DiscussionUpdate) -> Discussion:
		discussion = await self._load(discussion_id)
		if discussion.user_id != user.id:
			raise PermissionDeniedError("Unauthorized.")
		for field, value in payload.model_dump(exclude_unset=True).items():
			setattr(discussion, field, value)
		await self.db.commit()
		return await self._load(discussion.id)

	async def _moderates(self, user: User, discussion: Discussion) -> bool:
		"""Admins, batch instructors and instructors of the batch's courses moderate."""
		if user.has_role(ROLE_ADMIN):
			return True
		if discussion.batch_id is None:
			return False
		batch = await self.db.get(Batch, discussion.batch_id)
		if batch is not None and await self.batches.teaches(user, batch):
			return True
		owns_course = await self.db.scalar(
			select(Course.id)
			.join(BatchCourse, BatchCourse.course_id == Course.id)
			.where(BatchCourse.batch_id == discussion.batch_id, Course.instructor_id == user.id)
		)
		return bool(owns_course)

	async def delete(self, user: User, discussion_id: int) -> None:
		discussion = await self._load(discussion_id)
		if discussion.user_id != user.id and not await self._moderates(user, discussion):
			raise PermissionDeniedError("Unauthorized.")
		parent_id = discussion.parent_id
		await self.db.delete(discussion)
		if parent_id is not None:
			await self.db.execute(
				update(Discussion)
				.where(Discussion.id == parent_id, Discussion.replies_count > 0)
				.values(replies_count=Discussion.replies_count - 1)
				.execution_options(synchronize_session="fetch")
			)
		await self.db.commit()

	async def toggle_pin(self, user: User, discussion_id: int) -> Discussion:
		discussion = await self._load(discussion_id)
		if not await self._moderates(user, discussion):
			raise PermissionDeniedError("Unauthorized.")
		discussion.is_pinned = not discussion.is_pinned
		await self.db.commit()
		return await self._load(discussion.id)

	async def toggle_lock(self, user: User, discussion_id: int) -> Discussion:
		discussion = await self._load(discussion_id)
		if not await self._moderates(user, discussion):
			raise PermissionDeniedError("Unauthorized.")
		discussion.is_locked = not discussion.is_locked
		await self.db.commit()
		return await self._load(discussion.id)
