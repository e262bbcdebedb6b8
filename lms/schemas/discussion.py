from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .auth import UserBrief

DiscussionTypeLiteral = Literal["question", "discussion", "announcement"]


class DiscussionCreate(BaseModel):
	batch_id: int | None = None
	lesson_id: int | None = None
	parent_id: int | None = None
	title: str | None = Field(default=None, max_length=255)
	content: str = Field(min_length=1)
	type: DiscussionTypeLiteral = "discussion"


class DiscussionUpdate(BaseModel):
	title: str | None = Field(default=None, max_length=255)
	content: str | None = Field(default=None, min_length=1)


class DiscussionOut(BaseModel):
	id: int
	batch_id: int | None = None
	lesson_id: int | None = None
	parent_id: int | None = None
	title: str | None = None
	content: str
	type: str
	is_pinned: bool
	is_locked: bool
	is_approved: bool
	replies_count: int
	views_count: int
	upvotes_count: int
	user: UserBrief
	created_at: datetime

	model_config = {"from_attributes": True}


class DiscussionDetail(DiscussionOut):
	replies: list[DiscussionOut] = Field(default_factory=list)
