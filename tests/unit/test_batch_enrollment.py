"""Service tests for seat-limited batch enrollment and classroom joining."""
from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from lms import events
from lms.models import Batch, Enrollment
from lms.schemas.batch import BatchCreate, BatchUpdate
from lms.schemas.classroom import ClassroomCreate
from lms.services.batches import BatchService
from lms.services.classrooms import ClassroomService
from lms.services.errors import (
	ConflictError,
	NotFoundError,
	PermissionDeniedError,
	ServiceError,
	ValidationFailedError,
)
from lms.utils import utcnow


@pytest.fixture
async def setup(factory):
	instructor = await factory.user("instructor")
	course = await factory.course(instructor)
	batch = await factory.batch(instructor, [course], max_students=2)
	return instructor, course, batch


async def _reload(db, batch_id: int) -> Batch:
	return await db.scalar(select(Batch).where(Batch.id == batch_id).execution_options(populate_existing=True))


class TestBatchEnroll:
	async def test_enroll_takes_a_seat(self, db, factory, setup):
		_, course, batch = setup
		student = await factory.user()
		enrollment = await factory.enrollment(student, course)

		with patch.object(events, "publish_event", new=AsyncMock()) as publish:
			batch, placed, created = await BatchService(db).enroll(student, batch.id)

		assert created is True
		assert placed.id == enrollment.id
		assert placed.batch_id == batch.id
		assert (await _reload(db, batch.id)).current_students == 1
		publish.assert_awaited_once()
		assert publish.await_args.args[0] == events.BATCH_ENROLLMENT

	async def test_requires_purchase(self, db, factory, setup):
		_, _, batch = setup
		student = await factory.user()

		with pytest.raises(PermissionDeniedError):
			await BatchService(db).enroll(student, batch.id)

	async def test_pending_purchase_is_not_enough(self, db, factory, setup):
		_, course, batch = setup
		student = await factory.user()
		await factory.enrollment(student, course, active=False)

		with pytest.raises(PermissionDeniedError):
			await BatchService(db).enroll(student, batch.id)

	async def test_second_enroll_is_a_no_op(self, db, factory, setup):
		_, course, batch = setup
		student = await factory.user()
		await factory.enrollment(student, course)
		service = BatchService(db)
		await service.enroll(student, batch.id)

		_, _, created = await service.enroll(student, batch.id)

		assert created is False
		assert (await _reload(db, batch.id)).current_students == 1

	async def test_cannot_switch_batches(self, db, factory, setup):
		instructor, course, batch = setup
		other = await factory.batch(instructor, [course])
		student = await factory.user()
		await factory.enrollment(student, course)
		await BatchService(db).enroll(student, batch.id)

		with pytest.raises(ValidationFailedError):
			await BatchService(db).enroll(student, other.id)

	async def test_capacity_is_enforced(self, db, factory, setup):
		_, course, batch = setup
		service = BatchService(db)
		for _ in range(2):
			student = await factory.user()
			await factory.enrollment(student, course)
			await service.enroll(student, batch.id)
		late = await factory.user()
		await factory.enrollment(late, course)

		with pytest.raises(ValidationFailedError):
			await service.enroll(late, batch.id)
		assert (await _reload(db, batch.id)).current_students == 2

	async def test_closed_batch_rejects(self, db, factory, setup):
		instructor, course, _ = setup
		draft = await factory.batch(instructor, [course], status="draft")
		student = await factory.user()
		await factory.enrollment(student, course)

		with pytest.raises(ValidationFailedError):
			await BatchService(db).enroll(student, draft.id)

	async def test_enrollment_window_closed(self, db, factory, setup):
		instructor, course, _ = setup
		closed = await factory.batch(instructor, [course], enrollment_end_date=utcnow() - timedelta(days=1))
		student = await factory.user()
		await factory.enrollment(student, course)

		with pytest.raises(ValidationFailedError):
			await BatchService(db).enroll(student, closed.id)

	async def test_unknown_batch(self, db, factory):
		student = await factory.user()

		with pytest.raises(NotFoundError):
			await BatchService(db).enroll(student, 999)


class TestBatchManagement:
	async def test_instructor_create_starts_as_draft(self, db, factory):
		instructor = await factory.user("instructor")
		course = await factory.course(instructor)

		batch = await BatchService(db).instructor_create(
			instructor, BatchCreate(name="Spring cohort", course_ids=[course.id], max_students=10)
		)

		assert batch.status == "draft"
		assert batch.type == "structured"
		assert batch.enrollment_end_date is not None
		assert [link.course_id for link in batch.course_links] == [course.id]
		assert [(link.user_id, link.role) for link in batch.instructor_links] == [(instructor.id, "primary")]

	async def test_instructor_cannot_attach_foreign_course(self, db, factory):
		instructor = await factory.user("instructor")
		other = await factory.user("instructor")
		course = await factory.course(other)

		with pytest.raises(PermissionDeniedError):
			await BatchService(db).instructor_create(instructor, BatchCreate(name="Mine", course_ids=[course.id]))

	async def test_capacity_cannot_drop_below_students(self, db, factory, setup):
		instructor, course, batch = setup
		service = BatchService(db)
		for _ in range(2):
			student = await factory.user()
			await factory.enrollment(student, course)
			await service.enroll(student, batch.id)

		with pytest.raises(ValidationFailedError):
			await service.instructor_update(instructor, batch.id, BatchUpdate(max_students=1))

	async def test_invalid_status_transition(self, db, setup):
		instructor, _, batch = setup

		with pytest.raises(ValidationFailedError):
			await BatchService(db).instructor_update(instructor, batch.id, BatchUpdate(status="completed"))

	async def test_batch_with_students_cannot_be_deleted(self, db, factory, setup):
		instructor, course, batch = setup
		student = await factory.user()
		await factory.enrollment(student, course)
		service = BatchService(db)
		await service.enroll(student, batch.id)

		with pytest.raises(ValidationFailedError):
			await service.instructor_delete(instructor, batch.id)

	async def test_stranger_cannot_manage(self, db, factory, setup):
		_, _, batch = setup
		stranger = await factory.user("instructor")

		with pytest.raises(PermissionDeniedError):
			await BatchService(db).get_taught(stranger, batch.id)

	async def test_assign_primary_demotes_previous(self, db, factory, setup):
		instructor, _, batch = setup
		co_instructor = await factory.user("instructor")

		batch = await BatchService(db).assign_instructor(batch.id, co_instructor.id, "primary")

		roles = {link.user_id: link.role for link in batch.instructor_links}
		assert roles == {instructor.id: "instructor", co_instructor.id: "primary"}
		assert batch.instructor_id == co_instructor.id

	async def test_assign_requires_instructor_role(self, db, factory, setup):
		_, _, batch = setup
		student = await factory.user()

		with pytest.raises(ValidationFailedError):
			await BatchService(db).assign_instructor(batch.id, student.id, "assistant")

	async def test_cannot_remove_only_instructor(self, db, setup):
		instructor, _, batch = setup

		with pytest.raises(ServiceError):
			await BatchService(db).remove_instructor(batch.id, instructor.id)


class TestClassroomJoin:
	@pytest.fixture
	async def classroom(self, db, factory):
		owner = await factory.user("instructor")
		batch = await ClassroomService(db).create(owner, ClassroomCreate(name="Algebra 1", max_students=1))
		return owner, batch

	async def test_create_generates_code(self, classroom):
		owner, batch = classroom

		assert batch.type == "classroom"
		assert batch.status == "open"
		assert batch.is_public is False
		assert len(batch.class_code) == 6
		assert batch.instructor_id == owner.id

	async def test_join_by_code(self, db, factory, classroom):
		_, batch = classroom
		student = await factory.user()

		joined, enrollment = await ClassroomService(db).join(student, batch.class_code.lower())

		assert joined.id == batch.id
		assert enrollment.course_id is None
		assert enrollment.enrolled_at is not None
		assert (await _reload(db, batch.id)).current_students == 1

	async def test_join_twice_conflicts(self, db, factory, classroom):
		_, batch = classroom
		student = await factory.user()
		service = ClassroomService(db)
		await service.join(student, batch.class_code)

		with pytest.raises(ConflictError):
			await service.join(student, batch.class_code)

	async def test_owner_cannot_join_own_class(self, db, classroom):
		owner, batch = classroom

		with pytest.raises(ConflictError):
			await ClassroomService(db).join(owner, batch.class_code)

	async def test_full_class(self, db, factory, classroom):
		_, batch = classroom
		service = ClassroomService(db)
		await service.join(await factory.user(), batch.class_code)

		with pytest.raises(ValidationFailedError):
			await service.join(await factory.user(), batch.class_code)

	async def test_unknown_code(self, db, factory, classroom):
		with pytest.raises(NotFoundError):
			await ClassroomService(db).join(await factory.user(), "ZZZZZZ")

	async def test_archived_class_rejects(self, db, factory, classroom):
		_, batch = classroom
		batch = await _reload(db, batch.id)
		batch.status = "completed"
		await db.commit()

		with pytest.raises(PermissionDeniedError):
			await ClassroomService(db).join(await factory.user(), batch.class_code)

	async def test_members_see_class_and_strangers_do_not(self, db, factory, classroom):
		_, batch = classroom
		member = await factory.user()
		stranger = await factory.user()
		service = ClassroomService(db)
		await service.join(member, batch.class_code)

		assert (await service.get_visible(member, batch.id)).id == batch.id
		with pytest.raises(PermissionDeniedError):
			await service.get_visible(stranger, batch.id)
		enrollments = (await db.scalars(select(Enrollment).where(Enrollment.batch_id == batch.id))).all()
		assert [e.user_id for e in enrollments] == [member.id]


class TestCourseBatches:
	async def test_active_enrollment_is_reported(self, db, factory, setup):
		_, course, batch = setup
		student = await factory.user()
		enrollment = await factory.enrollment(student, course)

		batches, found = await BatchService(db).list_for_course(student, course.id)

		assert [b.id for b in batches] == [batch.id]
		assert found.id == enrollment.id

	async def test_pending_or_expired_enrollment_is_not_reported(self, db, factory, setup):
		_, course, _ = setup
		pending = await factory.user()
		await factory.enrollment(pending, course, active=False)
		lapsed = await factory.user()
		expired = await factory.enrollment(lapsed, course)
		expired.expires_at = utcnow() - timedelta(days=1)
		await db.commit()
		service = BatchService(db)

		assert (await service.list_for_course(pending, course.id))[1] is None
		assert (await service.list_for_course(lapsed, course.id))[1] is None
