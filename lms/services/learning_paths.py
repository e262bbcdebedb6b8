from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Course, LearningPath, LearningPathItem
from ..schemas.common import ReorderItem
from ..schemas.learning_path import LearningPathCreate, LearningPathUpdate, PathItemInput
from ..utils import paginate, unique_slug
from .errors import NotFoundError, ValidationFailedError


def _detail_options():
	return (selectinload(LearningPath.items).selectinload(LearningPathItem.course),)


class LearningPathService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def get(self, path_id: int) -> LearningPath:
		path = await self.db.scalar(
			select(LearningPath)
			.where(LearningPath.id == path_id)
			.options(*_detail_options())
			.execution_options(populate_existing=True)
		)
		if not path:
			raise NotFoundError("Learning path not found")
		return path

	async def index(self, *, published_only: bool = False, page: int = 1, per_page: int = 15) -> tuple[list[LearningPath], int]:
		stmt = select(LearningPath)
		if published_only:
			stmt = stmt.where(LearningPath.is_published.is_(True))
		stmt = stmt.order_by(LearningPath.sort_order, LearningPath.id)
		return await paginate(self.db, stmt, page=page, per_page=per_page)

	async def get_published(self, slug: str) -> LearningPath:
		path = await self.db.scalar(
			select(LearningPath)
			.where(LearningPath.slug == slug, LearningPath.is_published.is_(True))
			.options(*_detail_options())
		)
		if not path:
			raise NotFoundError("Learning path not found")
		return path

	async def create(self, payload: LearningPathCreate) -> LearningPath:
		path = LearningPath(**payload.model_dump(), slug=await unique_slug(self.db, LearningPath, payload.title), items=[])
		self.db.add(path)
		await self.db.commit()
		return await self.get(path.id)

	async def update(self, path_id: int, payload: LearningPathUpdate) -> LearningPath:
		path = await self.get(path_id)
		data = payload.model_dump(exclude_unset=True)
		if data.get("title") and data["title"] != path.title:
			path.slug = await unique_slug(self.db, LearningPath, data["title"], exclude_id=path.id)
		for field, value in data.items():
			setattr(path, field, value)
		await self.db.commit()
		return await self.get(path.id)

	async def delete(self, path_id: int) -> None:
		path = await self.get(path_id)
		await self.db.delete(path)
		await self.db.commit()

	async def add_course(self, path_id: int, payload: PathItemInput) -> LearningPath:
		path = await self.get(path_id)
		course = await self.db.get(Course, payload.course_id)
		if not course or course.deleted_at is not None:
			raise ValidationFailedError("The selected course id is invalid.")
		if any(item.course_id == course.id for item in path.items):
			raise ValidationFailedError("Course already in this learning path.")
		data = payload.model_dump()
		if data["sort_order"] is None:
			data["sort_order"] = payload.step_number
		self.db.add(LearningPathItem(learning_path_id=path.id, **data))
		await self.db.commit()
		return await self.get(path.id)

	async def remove_course(self, path_id: int, course_id: int) -> LearningPath:
		path = await self.get(path_id)
		item = next((item for item in path.items if item.course_id == course_id), None)
		if item is None:
			raise NotFoundError("Course is not part of this learning path.")
		path.items.remove(item)
		await self.db.commit()
		return await self.get(path.id)

	async def reorder(self, path_id: int, items: list[ReorderItem]) -> LearningPath:
		path = await self.get(path_id)
		for item in items:
			await self.db.execute(
				update(LearningPathItem)
				.where(LearningPathItem.id == item.id, LearningPathItem.learning_path_id == path.id)
				.values(sort_order=item.sort_order)
			)
		await self.db.commit()
		return await self.get(path.id)
