from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from lms.schemas.assignment import AssignmentCreate, FinalizeGradeInput, GradeSubmissionInput
from lms.services.assignments import AssignmentService
from lms.services.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from lms.utils import utcnow


@pytest.fixture
async def cohort(factory):
	instructor = await factory.user("instructor")
	course = await factory.course(instructor)
	batch = await factory.batch(instructor, [course])
	student = await factory.user()
	await factory.enrollment(student, course, batch=batch)
	return instructor, batch, student


async def _assignment(db, instructor, batch, **fields):
	data = {"batch_id": batch.id, "title": "Homework", "is_published": True, **fields}
	return await AssignmentService(db).create(instructor, AssignmentCreate(**data))


class TestAssignmentAuthoring:
	async def test_only_batch_instructors_create(self, db, factory, cohort):
		_, batch, _ = cohort
		stranger = await factory.user("instructor")

		with pytest.raises(PermissionDeniedError):
			await _assignment(db, stranger, batch)

	async def test_unknown_lesson_rejected(self, db, cohort):
		instructor, batch, _ = cohort

		with pytest.raises(ValidationFailedError):
			await _assignment(db, instructor, batch, lesson_id=404)

	async def test_students_do_not_see_drafts(self, db, cohort):
		instructor, batch, student = cohort
		draft = await _assignment(db, instructor, batch, is_published=False)

		with pytest.raises(PermissionDeniedError):
			await AssignmentService(db).student_get(student, draft.id)
		assert await AssignmentService(db).student_list(student) == []


class TestSubmissions:
	async def test_submit(self, db, cohort):
		instructor, batch, student = cohort
		assignment = await _assignment(db, instructor, batch)

		_, submission = await AssignmentService(db).submit(student, assignment.id, content="My answer")

		assert submission.status == "submitted"
		assert submission.submitted_at is not None
		assert submission.content == "My answer"

	async def test_empty_submission_rejected(self, db, cohort):
		instructor, batch, student = cohort
		assignment = await _assignment(db, instructor, batch)

		with pytest.raises(ValidationFailedError):
			await AssignmentService(db).submit(student, assignment.id, content="   ")

	async def test_late_submission_is_flagged(self, db, cohort):
		instructor, batch, student = cohort
		assignment = await _assignment(db, instructor, batch, due_date=utcnow() - timedelta(days=1))

		_, submission = await AssignmentService(db).submit(student, assignment.id, content="Sorry")

		assert submission.status == "late"

	async def test_single_submission_enforced(self, db, cohort):
		instructor, batch, student = cohort
		assignment = await _assignment(db, instructor, batch)
		service = AssignmentService(db)
		await service.submit(student, assignment.id, content="First")

		with pytest.raises(ValidationFailedError):
			await service.submit(student, assignment.id, content="Second")

	async def test_resubmission_appends_files(self, db, cohort):
		instructor, batch, student = cohort
		assignment = await _assignment(db, instructor, batch, allow_multiple_submissions=True)
		service = AssignmentService(db)
		await service.submit(student, assignment.id, content=None, files=[{"name": "a.pdf"}])

		_, submission = await service.submit(student, assignment.id, content=None, files=[{"name": "b.pdf"}])

		assert [f["name"] for f in submission.files] == ["a.pdf", "b.pdf"]

	async def test_outsider_cannot_submit(self, db, factory, cohort):
		instructor, batch, _ = cohort
		assignment = await _assignment(db, instructor, batch)
		outsider = await factory.user()

		with pytest.raises(PermissionDeniedError):
			await AssignmentService(db).submit(outsider, assignment.id, content="Hi")


class TestGrading:
	async def test_points_capped_at_max(self, db, cohort):
		instructor, batch, student = cohort
		assignment = await _assignment(db, instructor, batch, max_points=10)
		service = AssignmentService(db)
		_, submission = await service.submit(student, assignment.id, content="Answer")

		with pytest.raises(ValidationFailedError):
			await service.grade_submission(
				instructor, assignment.id, submission.id, GradeSubmissionInput(points_awarded=Decimal("11"))
			)

	async def test_final_grade_from_graded_submissions(self, db, cohort):
		instructor, batch, student = cohort
		service = AssignmentService(db)
		essay = await _assignment(db, instructor, batch, title="Essay", max_points=100)
		quiz = await _assignment(db, instructor, batch, title="Quiz", max_points=50)
		for assignment, points in ((essay, "80"), (quiz, "45")):
			_, submission = await service.submit(student, assignment.id, content="Work")
			await service.grade_submission(
				instructor, assignment.id, submission.id, GradeSubmissionInput(points_awarded=Decimal(points), feedback="ok")
			)

		grade = await service.finalize_grade(instructor, batch.id, student.id, FinalizeGradeInput(final_comment="Well done"))

		assert grade.overall_score == Decimal("83.33")
		assert grade.letter_grade == "B+"
		assert grade.finalized_at is not None
		assert grade.grade_breakdown[str(quiz.id)]["points_awarded"] == 45.0

	async def test_ungraded_work_counts_as_zero(self, db, cohort):
		instructor, batch, student = cohort
		await _assignment(db, instructor, batch, max_points=100)

		grade = await AssignmentService(db).finalize_grade(
			instructor, batch.id, student.id, FinalizeGradeInput(status="in_progress")
		)

		assert grade.overall_score == Decimal("0.00")
		assert grade.letter_grade == "F"
		assert grade.finalized_at is None

	async def test_finalize_requires_batch_member(self, db, factory, cohort):
		instructor, batch, _ = cohort
		outsider = await factory.user()

		with pytest.raises(NotFoundError):
			await AssignmentService(db).finalize_grade(instructor, batch.id, outsider.id, FinalizeGradeInput())

	async def test_student_grade_rows(self, db, cohort):
		instructor, batch, student = cohort
		service = AssignmentService(db)
		graded = await _assignment(db, instructor, batch, title="Graded")
		await _assignment(db, instructor, batch, title="Open")
		_, submission = await service.submit(student, graded.id, content="Work")
		await service.grade_submission(instructor, graded.id, submission.id, GradeSubmissionInput(points_awarded=Decimal("70")))

		rows, final = await service.student_grades(student, batch.id)

		by_title = {row["assignment_title"]: row for row in rows}
		assert by_title["Graded"]["is_graded"] is True
		assert by_title["Graded"]["grade"] == Decimal("70")
		assert by_title["Open"]["status"] == "pending"
		assert final is None
