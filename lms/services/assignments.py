from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from logging import getLogger
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
	Assignment,
	Batch,
	Enrollment,
	Grade,
	GradeStatus,
	Lesson,
	Submission,
	SubmissionStatus,
	User,
	active_enrollment_clause,
	letter_grade,
)
from ..schemas.assignment import AssignmentCreate, AssignmentUpdate, FinalizeGradeInput, GradeSubmissionInput
from ..utils import as_aware, paginate, utcnow
from .batches import BatchService, teaches_clause
from .enrollments import active_batch_ids
from .errors import NotFoundError, PermissionDeniedError, ValidationFailedError


logger = getLogger(__name__)

TWO_PLACES = Decimal("0.01")


class AssignmentService:
	def __init__(self, db: AsyncSession):
		self.db = db
		self.batches = BatchService(db)

	async def _get(self, assignment_id: int) -> Assignment:
		assignment = await self.db.get(Assignment, assignment_id)
		if not assignment:
			raise NotFoundError("Assignment not found")
		return assignment

	async def _check_lesson(self, lesson_id: int | None) -> None:
		if lesson_id is not None and not await self.db.get(Lesson, lesson_id):
			raise ValidationFailedError("The selected lesson id is invalid.")

	# Instructor side

	async def get_taught(self, user: User, assignment_id: int) -> Assignment:
		assignment = await self._get(assignment_id)
		batch = await self.batches.get(assignment.batch_id)
		if not await self.batches.teaches(user, batch):
			raise PermissionDeniedError("Unauthorized.")
		return assignment

	async def instructor_list(
		self, user: User, *, batch_id: int | None = None, page: int = 1, per_page: int = 15
	) -> tuple[list[Assignment], int]:
		taught = select(Batch.id).where(teaches_clause(user.id))
		stmt = select(Assignment).where(Assignment.batch_id.in_(taught))
		if batch_id is not None:
			stmt = stmt.where(Assignment.batch_id == batch_id)
		stmt = stmt.order_by(Assignment.created_at.desc(), Assignment.id.desc())
		return await paginate(self.db, stmt, page=page, per_page=per_page)

	async def create(self, user: User, payload: AssignmentCreate) -> Assignment:
		await self.batches.get_taught(user, payload.batch_id)
		await self._check_lesson(payload.lesson_id)
		assignment = Assignment(**payload.model_dump())
		self.db.add(assignment)
		await self.db.commit()
		logger.info("Assignment %s created in batch %s", assignment.id, assignment.batch_id)
		return assignment

	async def update(self, user: User, assignment_id: int, payload: AssignmentUpdate) -> Assignment:
		assignment = await self.get_taught(user, assignment_id)
		data = payload.model_dump(exclude_unset=True)
		if "lesson_id" in data:
			await self._check_lesson(data["lesson_id"])
		for field, value in data.items():
			setattr(assignment, field, value)
		await self.db.commit()
		return assignment

	async def delete(self, user: User, assignment_id: int) -> None:
		assignment = await self.get_taught(user, assignment_id)
		await self.db.delete(assignment)
		await self.db.commit()

	async def submissions(self, user: User, assignment_id: int) -> tuple[Assignment, list[Submission]]:
		assignment = await self.get_taught(user, assignment_id)
		stmt = (
			select(Submission)
			.where(Submission.assignment_id == assignment.id)
			.order_by(Submission.submitted_at.desc(), Submission.id.desc())
		)
		return assignment, list((await self.db.scalars(stmt)).all())

	async def grade_submission(
		self, user: User, assignment_id: int, submission_id: int, payload: GradeSubmissionInput
	) -> tuple[Assignment, Submission]:
		assignment = await self.get_taught(user, assignment_id)
		submission = await self.db.scalar(
			select(Submission).where(Submission.id == submission_id, Submission.assignment_id == assignment.id)
		)
		if not submission:
			raise NotFoundError("Submission not found")
		if payload.points_awarded > assignment.max_points:
			raise ValidationFailedError(
				f"Points awarded cannot exceed {assignment.max_points}.",
				errors={"points_awarded": [f"The points awarded may not be greater than {assignment.max_points}."]},
			)
		submission.points_awarded = payload.points_awarded
		submission.feedback = payload.feedback
		submission.graded_at = utcnow()
		submission.graded_by = user.id
		submission.status = SubmissionStatus.GRADED.value
		await self.db.commit()
		return assignment, submission

	async def finalize_grade(self, user: User, batch_id: int, student_id: int, payload: FinalizeGradeInput) -> Grade:
		"""Compute and store the student's final batch grade from graded submissions."""
		batch = await self.batches.get_taught(user, batch_id)
		member = await self.db.scalar(
			select(Enrollment.id).where(Enrollment.batch_id == batch.id, Enrollment.user_id == student_id)
		)
		if not member:
			raise NotFoundError("Student is not enrolled in this batch.")

		assignments = (
			await self.db.scalars(
				select(Assignment)
				.where(
					Assignment.batch_id == batch.id,
					Assignment.is_published.is_(True),
					Assignment.gradable.is_(True),
				)
				.order_by(Assignment.id)
			)
		).all()
		submissions = {
			s.assignment_id: s
			for s in (
				await self.db.scalars(
					select(Submission).where(
						Submission.user_id == student_id,
						Submission.assignment_id.in_([a.id for a in assignments]),
					)
				)
			).all()
		}

		max_total = sum(a.max_points for a in assignments)
		awarded_total = Decimal("0")
		breakdown: dict[str, Any] = {}
		for assignment in assignments:
			submission = submissions.get(assignment.id)
			points = submission.points_awarded if submission is not None and submission.is_graded else None
			awarded_total += points or Decimal("0")
			breakdown[str(assignment.id)] = {
				"title": assignment.title,
				"points_awarded": float(points) if points is not None else None,
				"max_points": assignment.max_points,
			}

		score = (
			(awarded_total / max_total * 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
			if max_total
			else Decimal("0.00")
		)

		grade = await self.db.scalar(select(Grade).where(Grade.batch_id == batch.id, Grade.user_id == student_id))
		if grade is None:
			grade = Grade(batch_id=batch.id, user_id=student_id)
			self.db.add(grade)
		grade.overall_score = score
		grade.letter_grade = letter_grade(float(score))
		grade.grade_breakdown = breakdown
		grade.final_comment = payload.final_comment
		grade.status = payload.status
		grade.graded_by = user.id
		grade.finalized_at = utcnow() if payload.status == GradeStatus.COMPLETED.value else None
		await self.db.commit()
		logger.info("Final grade %s (%s) stored for user %s in batch %s", score, grade.letter_grade, student_id, batch.id)
		return grade

	# Student side

	async def _my_submission(self, user_id: int, assignment_id: int) -> Submission | None:
		return await self.db.scalar(
			select(Submission).where(Submission.assignment_id == assignment_id, Submission.user_id == user_id)
		)

	async def student_list(
		self, user: User, *, batch_id: int | None = None
	) -> list[tuple[Assignment, Submission | None]]:
		batch_ids = await active_batch_ids(self.db, user.id)
		if batch_id is not None:
			batch_ids = [bid for bid in batch_ids if bid == batch_id]
		if not batch_ids:
			return []
		assignments = (
			await self.db.scalars(
				select(Assignment)
				.where(Assignment.batch_id.in_(batch_ids), Assignment.is_published.is_(True))
				.order_by(Assignment.due_date.asc(), Assignment.id.asc())
			)
		).all()
		submissions = {
			s.assignment_id: s
			for s in (
				await self.db.scalars(
					select(Submission).where(
						Submission.user_id == user.id,
						Submission.assignment_id.in_([a.id for a in assignments]),
					)
				)
			).all()
		}
		return [(assignment, submissions.get(assignment.id)) for assignment in assignments]

	async def student_get(self, user: User, assignment_id: int) -> tuple[Assignment, Submission | None]:
		assignment = await self._get(assignment_id)
		if not assignment.is_published or assignment.batch_id not in await active_batch_ids(self.db, user.id):
			raise PermissionDeniedError("You do not have access to this assignment.")
		return assignment, await self._my_submission(user.id, assignment.id)

	async def submit(
		self,
		user: User,
		assignment_id: int,
		*,
		content: str | None,
		files: list[dict[str, Any]] | None = None,
	) -> tuple[Assignment, Submission]:
		assignment, submission = await self.student_get(user, assignment_id)
		if not (content and content.strip()) and not files:
			raise ValidationFailedError("Please provide content or files for your submission.")
		if not assignment.is_available:
			raise ValidationFailedError("This assignment is not available yet.")
		if submission is not None and submission.submitted_at is not None and not assignment.allow_multiple_submissions:
			raise ValidationFailedError("You have already submitted this assignment.")

		now = utcnow()
		due = as_aware(assignment.due_date)
		status = SubmissionStatus.LATE.value if due is not None and now > due else SubmissionStatus.SUBMITTED.value
		if submission is None:
			submission = Submission(assignment_id=assignment.id, user_id=user.id, files=[])
			self.db.add(submission)
		if content is not None:
			submission.content = content
		if files:
			submission.files = [*(submission.files or []), *files]
		submission.status = status
		submission.submitted_at = now
		submission.points_awarded = None
		submission.graded_at = None
		submission.graded_by = None
		await self.db.commit()
		logger.info("User %s submitted assignment %s (%s)", user.id, assignment.id, status)
		return assignment, submission

	async def student_grades(self, user: User, batch_id: int) -> tuple[list[dict[str, Any]], Grade | None]:
		enrolled = await self.db.scalar(
			select(Enrollment.id).where(
				Enrollment.user_id == user.id, Enrollment.batch_id == batch_id, active_enrollment_clause()
			)
		)
		if not enrolled:
			raise PermissionDeniedError("You are not enrolled in this batch.")

		rows = []
		for assignment, submission in await self.student_list(user, batch_id=batch_id):
			rows.append(
				{
					"assignment_id": assignment.id,
					"assignment_title": assignment.title,
					"is_graded": bool(submission and submission.is_graded),
					"grade": submission.points_awarded if submission else None,
					"max_points": assignment.max_points,
					"feedback": submission.feedback if submission else None,
					"submitted_at": submission.submitted_at if submission else None,
					"status": submission.status if submission else "pending",
				}
			)
		grade = await self.db.scalar(select(Grade).where(Grade.batch_id == batch_id, Grade.user_id == user.id))
		return rows, grade
