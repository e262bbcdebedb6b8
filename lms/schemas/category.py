from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	description: str | None = None
	icon: str | None = Field(default=None, max_length=255)
	parent_id: int | None = None
	sort_order: int = 0
	is_active: bool = True


class CategoryUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	description: str | None = None
	icon: str | None = Field(default=None, max_length=255)
	parent_id: int | None = None
	sort_order: int | None = None
	is_active: bool | None = None


class CategoryOut(BaseModel):
	id: int
	parent_id: int | None = None
	name: str
	slug: str
	description: str | None = None
	icon: str | None = None
	sort_order: int
	is_active: bool
	created_at: datetime

	model_config = {"from_attributes": True}


class CategoryTree(CategoryOut):
	children: list[CategoryOut] = Field(default_factory=list)
