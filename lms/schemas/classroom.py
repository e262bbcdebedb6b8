from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .auth import UserBrief
from .batch import BatchDetail, BatchInstructorOut, BatchOut


class ClassroomCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	description: str | None = None
	max_students: int | None = Field(default=None, ge=1)
	start_date: datetime | None = None
	end_date: datetime | None = None


class ClassroomUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	description: str | None = None
	max_students: int | None = Field(default=None, ge=1)
	start_date: datetime | None = None
	end_date: datetime | None = None
	status: Literal["draft", "open", "in_progress", "completed", "cancelled"] | None = None


class ClassroomStats(BaseModel):
	total: int
	active: int
	published: int
	archived: int
	total_students: int
	average_grade: float | None = None


class ClassroomIndexOut(BaseModel):
	data: list[BatchOut]
	statistics: ClassroomStats | None = None


class ClassroomDetail(BatchDetail):
	is_owner: bool = False


class JoinClassInput(BaseModel):
	class_code: str = Field(min_length=6, max_length=6)


class AddClassCourseInput(BaseModel):
	course_id: int


class StreamPostInput(BaseModel):
	content: str = Field(min_length=1)
	title: str | None = Field(default=None, max_length=255)
	type: Literal["discussion", "question", "announcement"] = "discussion"


class TopicInput(BaseModel):
	title: str = Field(min_length=1, max_length=255)
	description: str | None = None
	course_id: int | None = None


class MaterialInput(BaseModel):
	section_id: int
	title: str = Field(min_length=1, max_length=255)
	content: str | None = None
	course_id: int | None = None


class ClassPeopleOut(BaseModel):
	instructors: list[BatchInstructorOut]
	students: list[UserBrief]
