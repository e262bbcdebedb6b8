from __future__ import annotations

import secrets
from datetime import timedelta
from logging import getLogger

from sqlalchemy import distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import events
from ..models import (
	Assignment,
	Batch,
	BatchCourse,
	BatchInstructor,
	BatchStatus,
	BatchType,
	Course,
	Enrollment,
	InstructorRole,
	Submission,
	SubmissionStatus,
	User,
	active_enrollment_clause,
)
from ..permissions import ROLE_ADMIN, ROLE_INSTRUCTOR
from ..schemas.batch import BatchCourseInput, BatchCreate, BatchUpdate
from ..utils import paginate, unique_code, unique_slug, utcnow
from .enrollments import get_active_course_enrollment
from .errors import NotFoundError, PermissionDeniedError, ServiceError, ValidationFailedError


logger = getLogger(__name__)

DEFAULT_ENROLLMENT_WINDOW = timedelta(days=182)


def batch_detail_options():
	return (
		selectinload(Batch.course_links).selectinload(BatchCourse.course),
		selectinload(Batch.instructor_links).selectinload(BatchInstructor.user),
	)


def teaches_clause(user_id: int):
	"""Batches owned by the user or where the user is on the instructor pivot."""
	return or_(
		Batch.instructor_id == user_id,
		Batch.id.in_(select(BatchInstructor.batch_id).where(BatchInstructor.user_id == user_id)),
	)


async def generate_class_code(db: AsyncSession) -> str:
	async def _exists(code: str) -> bool:
		return bool(await db.scalar(select(Batch.id).where(Batch.class_code == code)))

	return await unique_code(_exists, lambda: secrets.token_hex(3).upper())


class BatchService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def get(self, batch_id: int, *, detail: bool = False) -> Batch:
		stmt = select(Batch).where(Batch.id == batch_id)
		if detail:
			stmt = stmt.options(*batch_detail_options()).execution_options(populate_existing=True)
		batch = await self.db.scalar(stmt)
		if not batch:
			raise NotFoundError("Batch not found")
		return batch

	async def first_course_id(self, batch_id: int) -> int | None:
		stmt = (
			select(BatchCourse.course_id)
			.where(BatchCourse.batch_id == batch_id)
			.order_by(BatchCourse.order, BatchCourse.id)
			.limit(1)
		)
		return await self.db.scalar(stmt)

	async def teaches(self, user: User, batch: Batch) -> bool:
		if user.has_role(ROLE_ADMIN) or batch.instructor_id == user.id:
			return True
		stmt = select(BatchInstructor.id).where(
			BatchInstructor.batch_id == batch.id, BatchInstructor.user_id == user.id
		)
		return bool(await self.db.scalar(stmt))

	# Student side

	async def list_for_course(
		self, user: User, course_id: int, *, include_all: bool = False
	) -> tuple[list[Batch], Enrollment | None]:
		if not await self.db.get(Course, course_id):
			raise NotFoundError("Course not found")
		stmt = (
			select(Batch)
			.join(BatchCourse, BatchCourse.batch_id == Batch.id)
			.where(
				BatchCourse.course_id == course_id,
				Batch.type == BatchType.STRUCTURED.value,
				Batch.status != BatchStatus.DRAFT.value,
			)
			.order_by(Batch.start_date.asc(), Batch.id.asc())
		)
		if not include_all:
			stmt = stmt.where(Batch.is_public.is_(True))
		batches = list((await self.db.scalars(stmt)).unique().all())
		enrollment = await get_active_course_enrollment(self.db, user.id, course_id)
		return batches, enrollment

	async def enroll(self, user: User, batch_id: int) -> tuple[Batch, Enrollment, bool]:
		"""Place the user's course enrollment into a structured batch.

		Returns ``(batch, enrollment, created)``; ``created`` is False when the user
		was already in this batch. The seat is taken under a row lock on the batch.
		"""
		batch = await self.get(batch_id)
		if batch.type == BatchType.STRUCTURED.value and batch.is_full:
			raise ValidationFailedError("Batch is full.")
		if batch.type != BatchType.STRUCTURED.value or not batch.is_open_for_enrollment:
			raise ValidationFailedError("This batch is not open for enrollment.")

		course_id = await self.first_course_id(batch.id)
		if course_id is None:
			raise ValidationFailedError("This batch has no course assigned.")

		enrollment = await get_active_course_enrollment(self.db, user.id, course_id)
		if enrollment is None:
			raise PermissionDeniedError("You must purchase the course before joining a batch.")

		if enrollment.batch_id == batch.id:
			return batch, enrollment, False
		if enrollment.batch_id is not None:
			raise ValidationFailedError("You are already enrolled in another batch for this course.")

		try:
			# SELECT ... FOR UPDATE on the batch row guards current_students
			locked = await self.db.scalar(
				select(Batch).where(Batch.id == batch.id).with_for_update().execution_options(populate_existing=True)
			)
			if locked is None:
				raise NotFoundError("Batch not found")
			if locked.is_full:
				raise ValidationFailedError("Batch is full.")
			if not locked.is_open_for_enrollment:
				raise ValidationFailedError("This batch is not open for enrollment.")
			enrollment.batch_id = locked.id
			locked.current_students += 1
			await self.db.commit()
		except Exception:
			await self.db.rollback()
			raise

		logger.info("User %s took a seat in batch %s (%s/%s)", user.id, locked.id, locked.current_students, locked.max_students)
		await events.publish_event(
			events.BATCH_ENROLLMENT,
			{"batch_id": locked.id, "user_id": user.id, "enrollment_id": enrollment.id},
		)
		return locked, enrollment, True

	async def available(self) -> list[Batch]:
		now = utcnow()
		stmt = (
			select(Batch)
			.where(
				Batch.type == BatchType.STRUCTURED.value,
				Batch.is_public.is_(True),
				Batch.status == BatchStatus.OPEN.value,
				or_(Batch.enrollment_start_date.is_(None), Batch.enrollment_start_date <= now),
				or_(Batch.enrollment_end_date.is_(None), Batch.enrollment_end_date >= now),
			)
			.order_by(Batch.start_date.asc(), Batch.id.asc())
		)
		return [batch for batch in (await self.db.scalars(stmt)).all() if not batch.is_full]

	async def my_batches(self, user: User) -> list[Batch]:
		stmt = (
			select(Batch)
			.join(Enrollment, Enrollment.batch_id == Batch.id)
			.where(Enrollment.user_id == user.id, active_enrollment_clause())
			.order_by(Batch.start_date.desc(), Batch.id.desc())
		)
		return list((await self.db.scalars(stmt)).unique().all())

	# Shared management helpers

	async def _check_courses(self, course_ids: list[int], owner: User | None = None) -> list[Course]:
		if not course_ids:
			return []
		courses = {c.id: c for c in (await self.db.scalars(select(Course).where(Course.id.in_(course_ids)))).all()}
		missing = [cid for cid in course_ids if cid not in courses]
		if missing:
			raise ValidationFailedError("The selected course id is invalid.", errors={"course_ids": missing})
		if owner is not None and not owner.has_role(ROLE_ADMIN):
			foreign = [cid for cid in course_ids if courses[cid].instructor_id != owner.id]
			if foreign:
				raise PermissionDeniedError("You can only attach your own courses.")
		return [courses[cid] for cid in course_ids]

	async def _create(self, payload: BatchCreate, *, primary_id: int, default_status: str) -> Batch:
		now = utcnow()
		data = payload.model_dump(exclude={"course_ids", "instructor_id"})
		data["enrollment_start_date"] = data.get("enrollment_start_date") or now
		data["enrollment_end_date"] = data.get("enrollment_end_date") or now + DEFAULT_ENROLLMENT_WINDOW
		batch = Batch(
			**data,
			instructor_id=primary_id,
			slug=await unique_slug(self.db, Batch, payload.name),
			class_code=await generate_class_code(self.db),
			status=default_status,
			current_students=0,
		)
		batch.instructor_links = [BatchInstructor(user_id=primary_id, role=InstructorRole.PRIMARY.value)]
		batch.course_links = [
			BatchCourse(course_id=course_id, order=index, is_required=True)
			for index, course_id in enumerate(payload.course_ids, start=1)
		]
		self.db.add(batch)
		await self.db.commit()
		return await self.get(batch.id, detail=True)

	async def apply_update(self, batch: Batch, payload: BatchUpdate) -> Batch:
		data = payload.model_dump(exclude_unset=True)
		new_status = data.pop("status", None)
		if "max_students" in data and data["max_students"] is not None and data["max_students"] < batch.current_students:
			raise ValidationFailedError("Max students cannot be lower than the number of enrolled students.")
		if data.get("name") and data["name"] != batch.name:
			batch.slug = await unique_slug(self.db, Batch, data["name"], exclude_id=batch.id)
		for field, value in data.items():
			setattr(batch, field, value)
		if new_status is not None:
			if not batch.can_transition_to(new_status):
				raise ValidationFailedError(f"Cannot change batch status from {batch.status} to {new_status}.")
			batch.status = new_status
		await self.db.commit()
		return await self.get(batch.id, detail=True)

	async def _delete(self, batch: Batch) -> None:
		if batch.current_students > 0:
			raise ValidationFailedError("Cannot delete batch with enrolled students.")
		await self.db.delete(batch)
		await self.db.commit()

	# Instructor side

	async def instructor_batches(
		self, user: User, *, status: str | None = None, page: int = 1, per_page: int = 15
	) -> tuple[list[Batch], int]:
		stmt = select(Batch).where(Batch.type == BatchType.STRUCTURED.value, teaches_clause(user.id))
		if status:
			stmt = stmt.where(Batch.status == status)
		return await paginate(self.db, stmt.order_by(Batch.created_at.desc(), Batch.id.desc()), page=page, per_page=per_page)

	async def get_taught(self, user: User, batch_id: int, *, detail: bool = False) -> Batch:
		batch = await self.get(batch_id, detail=detail)
		if not await self.teaches(user, batch):
			raise PermissionDeniedError("Unauthorized.")
		return batch

	async def instructor_create(self, user: User, payload: BatchCreate) -> Batch:
		await self._check_courses(payload.course_ids, owner=user)
		return await self._create(
			payload.model_copy(update={"type": BatchType.STRUCTURED.value}),
			primary_id=user.id,
			default_status=BatchStatus.DRAFT.value,
		)

	async def instructor_update(self, user: User, batch_id: int, payload: BatchUpdate) -> Batch:
		batch = await self.get_taught(user, batch_id)
		return await self.apply_update(batch, payload)

	async def instructor_delete(self, user: User, batch_id: int) -> None:
		batch = await self.get_taught(user, batch_id)
		if batch.instructor_id != user.id and not user.has_role(ROLE_ADMIN):
			raise PermissionDeniedError("Only the primary instructor can delete this batch.")
		await self._delete(batch)

	async def enrollment_stats(self, user: User, batch_id: int) -> dict:
		batch = await self.get_taught(user, batch_id)
		assignments_count = await self.db.scalar(
			select(func.count(Assignment.id)).where(Assignment.batch_id == batch.id)
		)
		completed_assignments = await self.db.scalar(
			select(func.count(distinct(Assignment.id)))
			.join(Submission, Submission.assignment_id == Assignment.id)
			.where(Assignment.batch_id == batch.id, Submission.status == SubmissionStatus.GRADED.value)
		)
		capacity = (
			round(batch.current_students / batch.max_students * 100, 2) if batch.max_students else 0.0
		)
		return {
			"batch_id": batch.id,
			"total_enrolled": batch.current_students,
			"max_capacity": batch.max_students,
			"capacity_percentage": capacity,
			"assignments_count": assignments_count or 0,
			"completed_assignments": completed_assignments or 0,
		}

	# Admin side

	async def admin_list(
		self, *, batch_type: str | None = None, status: str | None = None, page: int = 1, per_page: int = 20
	) -> tuple[list[Batch], int]:
		stmt = select(Batch)
		if batch_type:
			stmt = stmt.where(Batch.type == batch_type)
		if status:
			stmt = stmt.where(Batch.status == status)
		return await paginate(self.db, stmt.order_by(Batch.created_at.desc(), Batch.id.desc()), page=page, per_page=per_page)

	async def _require_instructor(self, user_id: int) -> User:
		user = await self.db.get(User, user_id)
		if not user or not user.has_role(ROLE_INSTRUCTOR, ROLE_ADMIN):
			raise ValidationFailedError("Selected user is not an instructor.")
		return user

	async def admin_create(self, admin: User, payload: BatchCreate) -> Batch:
		primary_id = payload.instructor_id or admin.id
		await self._require_instructor(primary_id)
		await self._check_courses(payload.course_ids)
		return await self._create(payload, primary_id=primary_id, default_status=BatchStatus.DRAFT.value)

	async def admin_update(self, batch_id: int, payload: BatchUpdate) -> Batch:
		return await self.apply_update(await self.get(batch_id), payload)

	async def admin_delete(self, batch_id: int) -> None:
		await self._delete(await self.get(batch_id))

	async def attach_course(self, batch_id: int, payload: BatchCourseInput, *, owner: User | None = None) -> Batch:
		batch = await self.get(batch_id, detail=True)
		await self._check_courses([payload.course_id], owner=owner)
		if any(link.course_id == payload.course_id for link in batch.course_links):
			raise ValidationFailedError("Course already attached to this batch.")
		order = payload.order if payload.order is not None else len(batch.course_links) + 1
		self.db.add(BatchCourse(batch_id=batch.id, course_id=payload.course_id, order=order, is_required=payload.is_required))
		await self.db.commit()
		return await self.get(batch.id, detail=True)

	async def detach_course(self, batch_id: int, course_id: int) -> Batch:
		batch = await self.get(batch_id, detail=True)
		link = next((link for link in batch.course_links if link.course_id == course_id), None)
		if link is None:
			raise NotFoundError("Course is not attached to this batch.")
		batch.course_links.remove(link)
		await self.db.commit()
		return await self.get(batch.id, detail=True)

	async def assign_instructor(self, batch_id: int, user_id: int, role: str) -> Batch:
		batch = await self.get(batch_id, detail=True)
		await self._require_instructor(user_id)
		if any(link.user_id == user_id for link in batch.instructor_links):
			raise ValidationFailedError("Instructor already assigned to this batch.")
		self.db.add(BatchInstructor(batch_id=batch.id, user_id=user_id, role=role))
		if role == InstructorRole.PRIMARY.value:
			for link in batch.instructor_links:
				if link.role == InstructorRole.PRIMARY.value:
					link.role = InstructorRole.INSTRUCTOR.value
			batch.instructor_id = user_id
		await self.db.commit()
		return await self.get(batch.id, detail=True)

	async def remove_instructor(self, batch_id: int, user_id: int) -> Batch:
		batch = await self.get(batch_id, detail=True)
		link = next((link for link in batch.instructor_links if link.user_id == user_id), None)
		if link is None:
			raise NotFoundError("Instructor is not assigned to this batch.")
		if link.role == InstructorRole.PRIMARY.value and len(batch.instructor_links) == 1:
			raise ServiceError("Cannot remove the only instructor of a batch.", 422)
		batch.instructor_links.remove(link)
		if batch.instructor_id == user_id:
			replacement = next((l for l in batch.instructor_links), None)
			batch.instructor_id = replacement.user_id if replacement else None
			if replacement:
				replacement.role = InstructorRole.PRIMARY.value
		await self.db.commit()
		return await self.get(batch.id, detail=True)

	async def instructors(self, batch_id: int) -> list[BatchInstructor]:
		batch = await self.get(batch_id, detail=True)
		return list(batch.instructor_links)

