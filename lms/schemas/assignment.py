from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field

AssignmentTypeLiteral = Literal["assignment", "quiz", "project", "discussion"]


class AssignmentCreate(BaseModel):
	batch_id: int
	lesson_id: int | None = None
	title: str = Field(min_length=1, max_length=255)
	description: str | None = None
	instructions: str | None = None
	type: AssignmentTypeLiteral = "assignment"
	content: dict[str, Any] | None = None
	due_date: datetime | None = None
	available_from: datetime | None = None
	max_points: int = Field(default=100, ge=1)
	gradable: bool = True
	allow_multiple_submissions: bool = False
	is_published: bool = False
	is_required: bool = True


class AssignmentUpdate(BaseModel):
	lesson_id: int | None = None
	title: str | None = Field(default=None, min_length=1, max_length=255)
	description: str | None = None
	instructions: str | None = None
	type: AssignmentTypeLiteral | None = None
	content: dict[str, Any] | None = None
	due_date: datetime | None = None
	available_from: datetime | None = None
	max_points: int | None = Field(default=None, ge=1)
	gradable: bool | None = None
	allow_multiple_submissions: bool | None = None
	is_published: bool | None = None
	is_required: bool | None = None


class SubmissionOut(BaseModel):
	id: int
	assignment_id: int
	user_id: int
	content: str | None = None
	files: list[dict[str, Any]] | None = None
	status: str
	points_awarded: Decimal | None = None
	percentage_score: float | None = None
	feedback: str | None = None
	submitted_at: datetime | None = None
	graded_at: datetime | None = None
	graded_by: int | None = None

	model_config = {"from_attributes": True}


class AssignmentOut(BaseModel):
	id: int
	batch_id: int
	lesson_id: int | None = None
	title: str
	description: str | None = None
	instructions: str | None = None
	type: str
	content: dict[str, Any] | None = None
	due_date: datetime | None = None
	available_from: datetime | None = None
	max_points: int
	gradable: bool
	allow_multiple_submissions: bool
	is_published: bool
	is_required: bool
	is_overdue: bool
	is_available: bool
	created_at: datetime

	model_config = {"from_attributes": True}


class StudentAssignmentOut(AssignmentOut):
	my_submission: SubmissionOut | None = None


class GradeSubmissionInput(BaseModel):
	points_awarded: Decimal = Field(ge=0)
	feedback: str | None = None


class GradeRow(BaseModel):
	assignment_id: int
	assignment_title: str
	is_graded: bool
	grade: Decimal | None = None
	max_points: int
	feedback: str | None = None
	submitted_at: datetime | None = None
	status: str


class GradeOut(BaseModel):
	id: int
	batch_id: int
	user_id: int
	overall_score: Decimal | None = None
	letter_grade: str | None = None
	final_comment: str | None = None
	grade_breakdown: dict[str, Any] | None = None
	status: str
	finalized_at: datetime | None = None

	model_config = {"from_attributes": True}


class StudentGradesOut(BaseModel):
	batch_id: int
	assignments: list[GradeRow]
	final_grade: GradeOut | None = None


class FinalizeGradeInput(BaseModel):
	final_comment: str | None = None
	status: Literal["in_progress", "completed", "withdrew"] = "completed"
