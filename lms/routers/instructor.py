from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..permissions import ROLE_ADMIN, ROLE_INSTRUCTOR
from ..schemas.assignment import (
	AssignmentCreate,
	AssignmentOut,
	AssignmentUpdate,
	FinalizeGradeInput,
	GradeOut,
	GradeSubmissionInput,
	SubmissionOut,
)
from ..schemas.batch import BatchCreate, BatchDetail, BatchOut, BatchUpdate, EnrollmentStatsOut
from ..schemas.common import MessageOut, Page
from ..schemas.dashboard import InstructorDashboard
from ..security import require_permission, require_roles
from ..services.assignments import AssignmentService
from ..services.batches import BatchService
from ..services.builders import build_batch_detail, build_submission
from ..services.dashboards import DashboardService
from ..services.errors import ServiceError, to_http_exception


router = APIRouter(prefix="/instructor", tags=["instructor"])

instructor_only = require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)
can_create_batches = require_permission("create batches")


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.get("/dashboard", response_model=InstructorDashboard)
async def dashboard(user: User = Depends(instructor_only), db: AsyncSession = Depends(get_db)) -> InstructorDashboard:
	return await DashboardService(db).instructor(user)


# Batches


@router.get("/batches", response_model=Page[BatchOut])
async def list_batches(
	status_filter: Annotated[str | None, Query(alias="status")] = None,
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int, Query(ge=1, le=100)] = 15,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> Page[BatchOut]:
	batches, total = await BatchService(db).instructor_batches(user, status=status_filter, page=page, per_page=per_page)
	return Page[BatchOut].build(
		[BatchOut.model_validate(batch) for batch in batches], page=page, per_page=per_page, total=total
	)


@router.post("/batches", response_model=BatchDetail, status_code=status.HTTP_201_CREATED)
async def create_batch(
	data: BatchCreate,
	user: User = Depends(can_create_batches),
	db: AsyncSession = Depends(get_db),
) -> BatchDetail:
	try:
		batch = await BatchService(db).instructor_create(user, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.get("/batches/{batch_id}", response_model=BatchDetail)
async def show_batch(batch_id: int, user: User = Depends(instructor_only), db: AsyncSession = Depends(get_db)) -> BatchDetail:
	try:
		batch = await BatchService(db).get_taught(user, batch_id, detail=True)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.put("/batches/{batch_id}", response_model=BatchDetail)
async def update_batch(
	batch_id: int,
	data: BatchUpdate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> BatchDetail:
	try:
		batch = await BatchService(db).instructor_update(user, batch_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.delete("/batches/{batch_id}", response_model=MessageOut)
async def delete_batch(batch_id: int, user: User = Depends(instructor_only), db: AsyncSession = Depends(get_db)) -> MessageOut:
	try:
		await BatchService(db).instructor_delete(user, batch_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Batch deleted successfully")


@router.get("/batches/{batch_id}/enrollment-stats", response_model=EnrollmentStatsOut)
async def enrollment_stats(
	batch_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> EnrollmentStatsOut:
	try:
		return await BatchService(db).enrollment_stats(user, batch_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/batches/{batch_id}/students/{student_id}/grade", response_model=GradeOut)
async def finalize_grade(
	batch_id: int,
	student_id: int,
	data: FinalizeGradeInput,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> GradeOut:
	try:
		return await AssignmentService(db).finalize_grade(user, batch_id, student_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


# Assignments


@router.get("/assignments", response_model=Page[AssignmentOut])
async def list_assignments(
	batch_id: int | None = None,
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int, Query(ge=1, le=100)] = 15,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> Page[AssignmentOut]:
	assignments, total = await AssignmentService(db).instructor_list(
		user, batch_id=batch_id, page=page, per_page=per_page
	)
	return Page[AssignmentOut].build(
		[AssignmentOut.model_validate(a) for a in assignments], page=page, per_page=per_page, total=total
	)


@router.post("/assignments", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
async def create_assignment(
	data: AssignmentCreate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> AssignmentOut:
	try:
		return await AssignmentService(db).create(user, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.get("/assignments/{assignment_id}", response_model=AssignmentOut)
async def show_assignment(
	assignment_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> AssignmentOut:
	try:
		return await AssignmentService(db).get_taught(user, assignment_id)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.put("/assignments/{assignment_id}", response_model=AssignmentOut)
async def update_assignment(
	assignment_id: int,
	data: AssignmentUpdate,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> AssignmentOut:
	try:
		return await AssignmentService(db).update(user, assignment_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.delete("/assignments/{assignment_id}", response_model=MessageOut)
async def delete_assignment(
	assignment_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> MessageOut:
	try:
		await AssignmentService(db).delete(user, assignment_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Assignment deleted successfully")


@router.get("/assignments/{assignment_id}/submissions", response_model=list[SubmissionOut])
async def list_submissions(
	assignment_id: int,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> list[SubmissionOut]:
	try:
		assignment, submissions = await AssignmentService(db).submissions(user, assignment_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return [build_submission(submission, assignment.max_points) for submission in submissions]


@router.post("/assignments/{assignment_id}/submissions/{submission_id}/grade", response_model=SubmissionOut)
async def grade_submission(
	assignment_id: int,
	submission_id: int,
	data: GradeSubmissionInput,
	user: User = Depends(instructor_only),
	db: AsyncSession = Depends(get_db),
) -> SubmissionOut:
	try:
		assignment, submission = await AssignmentService(db).grade_submission(user, assignment_id, submission_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_submission(submission, assignment.max_points)
