from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas.assignment import GradeOut, GradeRow, StudentAssignmentOut, StudentGradesOut
from ..schemas.batch import BatchDetail, BatchEnrollOut, BatchOut, CourseBatchesOut, UserEnrollmentInfo
from ..schemas.dashboard import RecommendationsOut, StudentDashboard
from ..security import get_current_user
from ..services.assignments import AssignmentService
from ..services.batches import BatchService
from ..services.builders import build_batch_detail, build_student_assignment
from ..services.dashboards import DashboardService
from ..services.errors import ServiceError, to_http_exception
from ..services.recommendations import RecommendationService
from ..storage import StorageService, discard_objects, optional_storage_service, store_uploads


router = APIRouter(prefix="/student", tags=["student"])

SUBMISSION_FILE_MAX_BYTES = 10 * 1024 * 1024


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.get("/dashboard", response_model=StudentDashboard)
async def dashboard(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> StudentDashboard:
	return await DashboardService(db).student(user)


@router.get("/recommendations", response_model=RecommendationsOut)
async def recommendations(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> RecommendationsOut:
	source, courses = await RecommendationService(db).recommend(user)
	return RecommendationsOut(source=source, data=courses)


# Batches


@router.get("/courses/{course_id}/batches", response_model=CourseBatchesOut)
async def course_batches(
	course_id: int,
	include_all: bool = False,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> CourseBatchesOut:
	try:
		batches, enrollment = await BatchService(db).list_for_course(user, course_id, include_all=include_all)
	except ServiceError as exc:
		raise _handle_error(exc)
	return CourseBatchesOut(
		data=[BatchOut.model_validate(batch) for batch in batches],
		user_enrollment=(
			UserEnrollmentInfo(enrollment_id=enrollment.id, batch_id=enrollment.batch_id) if enrollment else None
		),
	)


@router.get("/batches/available", response_model=list[BatchOut])
async def available_batches(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[BatchOut]:
	return await BatchService(db).available()


@router.get("/batches/mine", response_model=list[BatchOut])
async def my_batches(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[BatchOut]:
	return await BatchService(db).my_batches(user)


@router.get("/batches/{batch_id}", response_model=BatchDetail)
async def show_batch(batch_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> BatchDetail:
	try:
		batch = await BatchService(db).get(batch_id, detail=True)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_batch_detail(batch)


@router.post("/batches/{batch_id}/enroll", response_model=BatchEnrollOut)
async def enroll_in_batch(
	batch_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> BatchEnrollOut:
	try:
		batch, enrollment, created = await BatchService(db).enroll(user, batch_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	message = "Successfully enrolled in batch." if created else "Already enrolled in this batch."
	return BatchEnrollOut(message=message, batch=BatchOut.model_validate(batch), enrollment_id=enrollment.id)


# Assignments


@router.get("/assignments", response_model=list[StudentAssignmentOut])
async def list_assignments(
	batch_id: int | None = None,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> list[StudentAssignmentOut]:
	rows = await AssignmentService(db).student_list(user, batch_id=batch_id)
	return [build_student_assignment(assignment, submission) for assignment, submission in rows]


@router.get("/assignments/{assignment_id}", response_model=StudentAssignmentOut)
async def show_assignment(
	assignment_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> StudentAssignmentOut:
	try:
		assignment, submission = await AssignmentService(db).student_get(user, assignment_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_student_assignment(assignment, submission)


@router.post("/assignments/{assignment_id}/submit", response_model=StudentAssignmentOut)
async def submit_assignment(
	assignment_id: int,
	content: str | None = Form(default=None),
	files: list[UploadFile] = File(default=[]),
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
	storage: StorageService | None = Depends(optional_storage_service),
) -> StudentAssignmentOut:
	service = AssignmentService(db)
	try:
		await service.student_get(user, assignment_id)
	except ServiceError as exc:
		raise _handle_error(exc)

	stored = []
	if files:
		if storage is None:
			raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="S3 storage is not configured")
		stored = await store_uploads(
			storage,
			files,
			prefix=f"submissions/{assignment_id}/{user.id}",
			max_bytes=SUBMISSION_FILE_MAX_BYTES,
		)

	try:
		assignment, submission = await service.submit(user, assignment_id, content=content, files=stored)
	except ServiceError as exc:
		if stored and storage is not None:
			await discard_objects(storage, [item["file_path"] for item in stored])
		raise _handle_error(exc)
	return build_student_assignment(assignment, submission)


@router.get("/grades", response_model=StudentGradesOut)
async def my_grades(
	batch_id: int,
	user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> StudentGradesOut:
	try:
		rows, grade = await AssignmentService(db).student_grades(user, batch_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return StudentGradesOut(
		batch_id=batch_id,
		assignments=[GradeRow(**row) for row in rows],
		final_grade=GradeOut.model_validate(grade) if grade else None,
	)
