from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from .auth import UserBrief
from .course import CourseSummary

BatchTypeLiteral = Literal["structured", "classroom"]
BatchStatusLiteral = Literal["draft", "open", "in_progress", "completed", "cancelled"]
InstructorRoleLiteral = Literal["primary", "instructor", "assistant"]


def _check_dates(data: "BatchCreate | BatchUpdate") -> None:
	if data.start_date and data.end_date and data.end_date < data.start_date:
		raise ValueError("The end date must be a date after or equal to start date.")
	if (
		data.enrollment_start_date
		and data.enrollment_end_date
		and data.enrollment_end_date < data.enrollment_start_date
	):
		raise ValueError("The enrollment end date must be after the enrollment start date.")


class BatchCourseInput(BaseModel):
	course_id: int
	order: int | None = None
	is_required: bool = True


class BatchCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	description: str | None = None
	type: BatchTypeLiteral = "structured"
	instructor_id: int | None = None
	start_date: datetime | None = None
	end_date: datetime | None = None
	enrollment_start_date: datetime | None = None
	enrollment_end_date: datetime | None = None
	max_students: int | None = Field(default=None, ge=1)
	is_public: bool = True
	auto_approve: bool = True
	course_ids: list[int] = Field(default_factory=list)

	@model_validator(mode="after")
	def _dates(self) -> "BatchCreate":
		_check_dates(self)
		return self


class BatchUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	description: str | None = None
	start_date: datetime | None = None
	end_date: datetime | None = None
	enrollment_start_date: datetime | None = None
	enrollment_end_date: datetime | None = None
	max_students: int | None = Field(default=None, ge=1)
	status: BatchStatusLiteral | None = None
	is_public: bool | None = None
	auto_approve: bool | None = None

	@model_validator(mode="after")
	def _dates(self) -> "BatchUpdate":
		_check_dates(self)
		return self


class BatchOut(BaseModel):
	id: int
	instructor_id: int | None = None
	name: str
	slug: str
	class_code: str | None = None
	description: str | None = None
	type: str
	status: str
	start_date: datetime | None = None
	end_date: datetime | None = None
	enrollment_start_date: datetime | None = None
	enrollment_end_date: datetime | None = None
	max_students: int | None = None
	current_students: int
	available_seats: int | None = None
	is_public: bool
	auto_approve: bool
	is_full: bool
	is_open_for_enrollment: bool
	created_at: datetime

	model_config = {"from_attributes": True}


class BatchCourseOut(BaseModel):
	order: int
	is_required: bool
	course: CourseSummary

	model_config = {"from_attributes": True}


class BatchInstructorOut(BaseModel):
	role: str
	user: UserBrief

	model_config = {"from_attributes": True}


class BatchDetail(BatchOut):
	courses: list[BatchCourseOut] = Field(default_factory=list)
	instructors: list[BatchInstructorOut] = Field(default_factory=list)


class UserEnrollmentInfo(BaseModel):
	enrollment_id: int
	batch_id: int | None = None


class CourseBatchesOut(BaseModel):
	data: list[BatchOut]
	user_enrollment: UserEnrollmentInfo | None = None


class AssignInstructorInput(BaseModel):
	user_id: int
	role: InstructorRoleLiteral = "instructor"


class BatchEnrollOut(BaseModel):
	message: str
	batch: BatchOut
	enrollment_id: int


class EnrollmentStatsOut(BaseModel):
	batch_id: int
	total_enrolled: int
	max_capacity: int | None = None
	capacity_percentage: float
	assignments_count: int
	completed_assignments: int
