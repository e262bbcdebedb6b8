from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Category, Course
from ..schemas.category import CategoryCreate, CategoryUpdate
from ..schemas.common import ReorderItem
from ..utils import unique_slug
from .errors import NotFoundError, ValidationFailedError


class CategoryService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def index(self) -> list[Category]:
		stmt = select(Category).options(selectinload(Category.children)).order_by(Category.sort_order, Category.name)
		return list((await self.db.scalars(stmt)).all())

	async def get(self, category_id: int) -> Category:
		category = await self.db.scalar(
			select(Category).where(Category.id == category_id).options(selectinload(Category.children))
		)
		if not category:
			raise NotFoundError("Category not found")
		return category

	async def _check_parent(self, parent_id: int | None, category_id: int | None = None) -> None:
		if parent_id is None:
			return
		if category_id is not None and parent_id == category_id:
			raise ValidationFailedError("A category cannot be its own parent.")
		if not await self.db.get(Category, parent_id):
			raise ValidationFailedError("The selected parent id is invalid.")

	async def create(self, payload: CategoryCreate) -> Category:
		await self._check_parent(payload.parent_id)
		category = Category(
			**payload.model_dump(),
			slug=await unique_slug(self.db, Category, payload.name),
			children=[],
		)
		self.db.add(category)
		await self.db.commit()
		return category

	async def update(self, category_id: int, payload: CategoryUpdate) -> Category:
		category = await self.get(category_id)
		data = payload.model_dump(exclude_unset=True)
		if "parent_id" in data:
			await self._check_parent(data["parent_id"], category.id)
		if data.get("name") and data["name"] != category.name:
			category.slug = await unique_slug(self.db, Category, data["name"], exclude_id=category.id)
		for field, value in data.items():
			setattr(category, field, value)
		await self.db.commit()
		return category

	async def delete(self, category_id: int) -> None:
		category = await self.get(category_id)
		courses = await self.db.scalar(select(func.count(Course.id)).where(Course.category_id == category.id))
		if courses:
			raise ValidationFailedError("Cannot delete category with existing courses.")
		children = await self.db.scalar(select(func.count(Category.id)).where(Category.parent_id == category.id))
		if children:
			raise ValidationFailedError("Cannot delete category with subcategories.")
		await self.db.delete(category)
		await self.db.commit()

	async def reorder(self, items: list[ReorderItem]) -> None:
		ids = [item.id for item in items]
		categories = {c.id: c for c in (await self.db.scalars(select(Category).where(Category.id.in_(ids)))).all()}
		missing = sorted(set(ids) - categories.keys())
		if missing:
			raise ValidationFailedError("Unknown categories in reorder request.", errors={"ids": missing})
		for item in items:
			categories[item.id].sort_order = item.sort_order
		await self.db.commit()
