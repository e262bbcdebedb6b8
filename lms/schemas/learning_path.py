from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .course import CourseSummary

PathLevelLiteral = Literal["beginner", "intermediate", "advanced"]


class LearningPathCreate(BaseModel):
	title: str = Field(min_length=1, max_length=255)
	description: str | None = None
	thumbnail: str | None = Field(default=None, max_length=512)
	level: PathLevelLiteral = "beginner"
	estimated_hours: int | None = Field(default=None, ge=0)
	is_published: bool = False
	sort_order: int = 0


class LearningPathUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=255)
	description: str | None = None
	thumbnail: str | None = Field(default=None, max_length=512)
	level: PathLevelLiteral | None = None
	estimated_hours: int | None = Field(default=None, ge=0)
	is_published: bool | None = None
	sort_order: int | None = None


class PathItemInput(BaseModel):
	course_id: int
	step_number: int = Field(ge=1)
	step_title: str | None = Field(default=None, max_length=255)
	step_description: str | None = None
	is_required: bool = True
	sort_order: int | None = None


class PathItemOut(BaseModel):
	id: int
	course_id: int
	step_number: int
	step_title: str | None = None
	step_description: str | None = None
	is_required: bool
	sort_order: int
	course: CourseSummary

	model_config = {"from_attributes": True}


class LearningPathOut(BaseModel):
	id: int
	title: str
	slug: str
	description: str | None = None
	thumbnail: str | None = None
	level: str
	estimated_hours: int | None = None
	is_published: bool
	sort_order: int
	created_at: datetime

	model_config = {"from_attributes": True}


class LearningPathDetail(LearningPathOut):
	items: list[PathItemOut] = Field(default_factory=list)
