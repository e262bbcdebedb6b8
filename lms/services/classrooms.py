from __future__ import annotations

from datetime import timedelta
from logging import getLogger

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import events
from ..models import (
	Batch,
	BatchCourse,
	BatchInstructor,
	BatchStatus,
	BatchType,
	Course,
	CourseStatus,
	Discussion,
	DiscussionType,
	Enrollment,
	Grade,
	InstructorRole,
	Lesson,
	LessonType,
	Section,
	User,
)
from ..permissions import ROLE_ADMIN, ROLE_INSTRUCTOR
from ..schemas.classroom import (
	ClassroomCreate,
	ClassroomUpdate,
	MaterialInput,
	StreamPostInput,
	TopicInput,
)
from ..utils import unique_slug, utcnow
from .batches import BatchService, generate_class_code, teaches_clause
from .courses import CourseService
from .errors import ConflictError, NotFoundError, PermissionDeniedError, ServiceError, ValidationFailedError


logger = getLogger(__name__)

CLASSROOM_ENROLLMENT_WINDOW = timedelta(days=365)
CLASSROOM_SORTS = {
	"newest": (Batch.created_at.desc(), Batch.id.desc()),
	"oldest": (Batch.created_at.asc(), Batch.id.asc()),
	"name": (Batch.name.asc(), Batch.id.asc()),
}


class ClassroomService:
	def __init__(self, db: AsyncSession):
		self.db = db
		self.batches = BatchService(db)

	async def _get(self, class_id: int, *, detail: bool = False) -> Batch:
		batch = await self.batches.get(class_id, detail=detail)
		if batch.type != BatchType.CLASSROOM.value:
			raise NotFoundError("Class not found")
		return batch

	async def _is_member(self, user: User, batch: Batch) -> bool:
		stmt = select(Enrollment.id).where(Enrollment.batch_id == batch.id, Enrollment.user_id == user.id)
		return bool(await self.db.scalar(stmt))

	async def get_visible(self, user: User, class_id: int, *, detail: bool = False) -> Batch:
		batch = await self._get(class_id, detail=detail)
		if not await self.batches.teaches(user, batch) and not await self._is_member(user, batch):
			raise PermissionDeniedError("You are not a member of this class.")
		return batch

	async def get_owned(self, user: User, class_id: int, *, detail: bool = False) -> Batch:
		batch = await self._get(class_id, detail=detail)
		if batch.instructor_id != user.id and not user.has_role(ROLE_ADMIN):
			raise PermissionDeniedError("Unauthorized.")
		return batch

	async def get_taught(self, user: User, class_id: int) -> Batch:
		batch = await self._get(class_id)
		if not await self.batches.teaches(user, batch):
			raise PermissionDeniedError("Unauthorized.")
		return batch

	# Listing

	async def index(
		self,
		user: User,
		*,
		status: str | None = None,
		search: str | None = None,
		sort: str = "newest",
	) -> tuple[list[Batch], dict | None]:
		if user.has_role(ROLE_INSTRUCTOR, ROLE_ADMIN):
			base = select(Batch).where(Batch.type == BatchType.CLASSROOM.value, teaches_clause(user.id))
			stmt = base
			if status:
				stmt = stmt.where(Batch.status == status)
			if search:
				stmt = stmt.where(or_(Batch.name.ilike(f"%{search}%"), Batch.description.ilike(f"%{search}%")))
			stmt = stmt.order_by(*CLASSROOM_SORTS.get(sort, CLASSROOM_SORTS["newest"]))
			classes = list((await self.db.scalars(stmt)).unique().all())
			return classes, await self._statistics(base)

		stmt = (
			select(Batch)
			.join(Enrollment, Enrollment.batch_id == Batch.id)
			.where(Batch.type == BatchType.CLASSROOM.value, Enrollment.user_id == user.id)
			.order_by(Batch.created_at.desc(), Batch.id.desc())
		)
		return list((await self.db.scalars(stmt)).unique().all()), None

	async def _statistics(self, base) -> dict:
		ids = base.with_only_columns(Batch.id)
		rows = (
			await self.db.execute(
				select(Batch.status, func.count(Batch.id), func.coalesce(func.sum(Batch.current_students), 0))
				.where(Batch.id.in_(ids))
				.group_by(Batch.status)
			)
		).all()
		by_status = {status: (total, students) for status, total, students in rows}
		average = await self.db.scalar(select(func.avg(Grade.overall_score)).where(Grade.batch_id.in_(ids)))
		return {
			"total": sum(total for total, _ in by_status.values()),
			"active": by_status.get(BatchStatus.IN_PROGRESS.value, (0, 0))[0],
			"published": by_status.get(BatchStatus.OPEN.value, (0, 0))[0],
			"archived": by_status.get(BatchStatus.COMPLETED.value, (0, 0))[0],
			"total_students": int(sum(students for _, students in by_status.values())),
			"average_grade": round(float(average), 2) if average is not None else None,
		}

	# Lifecycle

	async def create(self, user: User, payload: ClassroomCreate) -> Batch:
		now = utcnow()
		batch = Batch(
			**payload.model_dump(),
			instructor_id=user.id,
			slug=await unique_slug(self.db, Batch, payload.name),
			class_code=await generate_class_code(self.db),
			type=BatchType.CLASSROOM.value,
			status=BatchStatus.OPEN.value,
			enrollment_start_date=now,
			enrollment_end_date=now + CLASSROOM_ENROLLMENT_WINDOW,
			is_public=False,
			current_students=0,
		)
		batch.course_links = []
		batch.instructor_links = [BatchInstructor(user_id=user.id, role=InstructorRole.PRIMARY.value)]
		self.db.add(batch)
		await self.db.commit()
		logger.info("Classroom %s created by user %s with code %s", batch.id, user.id, batch.class_code)
		return await self._get(batch.id, detail=True)

	async def update(self, user: User, class_id: int, payload: ClassroomUpdate) -> Batch:
		batch = await self.get_owned(user, class_id)
		data = payload.model_dump(exclude_unset=True)
		new_status = data.pop("status", None)
		if data.get("max_students") is not None and data["max_students"] < batch.current_students:
			raise ValidationFailedError("Max students cannot be lower than the number of enrolled students.")
		if data.get("name") and data["name"] != batch.name:
			batch.slug = await unique_slug(self.db, Batch, data["name"], exclude_id=batch.id)
		for field, value in data.items():
			setattr(batch, field, value)
		if new_status is not None:
			if not batch.can_transition_to(new_status):
				raise ValidationFailedError(f"Cannot change class status from {batch.status} to {new_status}.")
			batch.status = new_status
		await self.db.commit()
		return await self._get(batch.id, detail=True)

	async def delete(self, user: User, class_id: int) -> None:
		batch = await self.get_owned(user, class_id)
		await self.db.delete(batch)
		await self.db.commit()

	# Courses

	async def add_course(self, user: User, class_id: int, course_id: int) -> Batch:
		batch = await self.get_owned(user, class_id, detail=True)
		course = await self.db.get(Course, course_id)
		if not course or course.deleted_at is not None:
			raise NotFoundError("Course not found")
		if course.instructor_id != user.id and not user.has_role(ROLE_ADMIN):
			raise PermissionDeniedError("You can only add your own courses.")
		if any(link.course_id == course.id for link in batch.course_links):
			raise ValidationFailedError("Course already added to this class.")
		self.db.add(BatchCourse(batch_id=batch.id, course_id=course.id, order=len(batch.course_links) + 1))
		await self.db.commit()
		return await self._get(batch.id, detail=True)

	async def remove_course(self, user: User, class_id: int, course_id: int) -> Batch:
		batch = await self.get_owned(user, class_id, detail=True)
		link = next((link for link in batch.course_links if link.course_id == course_id), None)
		if link is None:
			raise NotFoundError("Course is not part of this class.")
		batch.course_links.remove(link)
		await self.db.commit()
		return await self._get(batch.id, detail=True)

	# Joining

	async def join(self, user: User, class_code: str) -> tuple[Batch, Enrollment]:
		code = class_code.strip().upper()
		batch = await self.db.scalar(
			select(Batch).where(Batch.class_code == code, Batch.type == BatchType.CLASSROOM.value)
		)
		if batch is None:
			raise NotFoundError("Invalid class code")
		if batch.status != BatchStatus.OPEN.value:
			raise PermissionDeniedError("This class is not accepting new students.")
		if await self._is_member(user, batch) or await self.batches.teaches(user, batch):
			raise ConflictError("You are already a member of this class.")

		try:
			locked = await self.db.scalar(
				select(Batch).where(Batch.id == batch.id).with_for_update().execution_options(populate_existing=True)
			)
			if locked.is_full:
				raise ValidationFailedError("Class is full.")
			enrollment = Enrollment(user_id=user.id, course_id=None, batch_id=locked.id, enrolled_at=utcnow())
			self.db.add(enrollment)
			locked.current_students += 1
			await self.db.commit()
		except Exception:
			await self.db.rollback()
			raise

		logger.info("User %s joined classroom %s", user.id, locked.id)
		await events.publish_event(
			events.CLASSROOM_JOINED,
			{"batch_id": locked.id, "user_id": user.id, "enrollment_id": enrollment.id},
		)
		return locked, enrollment

	# Stream

	async def stream(self, user: User, class_id: int) -> list[Discussion]:
		batch = await self.get_visible(user, class_id)
		stmt = (
			select(Discussion)
			.where(Discussion.batch_id == batch.id, Discussion.parent_id.is_(None))
			.options(selectinload(Discussion.user))
			.order_by(Discussion.is_pinned.desc(), Discussion.created_at.desc(), Discussion.id.desc())
		)
		return list((await self.db.scalars(stmt)).all())

	async def post(self, user: User, class_id: int, payload: StreamPostInput) -> Discussion:
		batch = await self.get_visible(user, class_id)
		if payload.type == DiscussionType.ANNOUNCEMENT.value and not await self.batches.teaches(user, batch):
			raise PermissionDeniedError("Only instructors can post announcements.")
		post = Discussion(
			batch_id=batch.id,
			user_id=user.id,
			title=payload.title,
			content=payload.content,
			type=payload.type,
			is_approved=True,
		)
		self.db.add(post)
		await self.db.commit()
		return await self.db.scalar(
			select(Discussion)
			.where(Discussion.id == post.id)
			.options(selectinload(Discussion.user))
			.execution_options(populate_existing=True)
		)

	# Classwork

	async def classwork(self, user: User, class_id: int) -> list[Section]:
		batch = await self.get_visible(user, class_id)
		course_ids = select(BatchCourse.course_id).where(BatchCourse.batch_id == batch.id)
		stmt = (
			select(Section)
			.where(Section.course_id.in_(course_ids))
			.options(selectinload(Section.lessons).selectinload(Lesson.attachments))
			.order_by(Section.course_id, Section.sort_order, Section.id)
		)
		return list((await self.db.scalars(stmt)).all())

	async def _backing_course(self, user: User, batch: Batch) -> Course:
		"""Create an unlisted course owned by the instructor and attach it to the class."""
		course = Course(
			instructor_id=user.id,
			title=batch.name,
			slug=await unique_slug(self.db, Course, batch.name),
			description=batch.description,
			status=CourseStatus.DRAFT.value,
		)
		self.db.add(course)
		await self.db.flush()
		self.db.add(BatchCourse(batch_id=batch.id, course_id=course.id, order=1))
		return course

	async def create_topic(self, user: User, class_id: int, payload: TopicInput) -> Section:
		batch = await self.get_taught(user, class_id)
		if payload.course_id is not None:
			linked = await self.db.scalar(
				select(BatchCourse.id).where(BatchCourse.batch_id == batch.id, BatchCourse.course_id == payload.course_id)
			)
			if not linked:
				raise ValidationFailedError("Course is not part of this class.")
			course_id = payload.course_id
		else:
			course_id = await self.batches.first_course_id(batch.id)
			if course_id is None:
				course_id = (await self._backing_course(user, batch)).id

		max_order = await self.db.scalar(select(func.max(Section.sort_order)).where(Section.course_id == course_id))
		section = Section(
			course_id=course_id,
			title=payload.title,
			description=payload.description,
			sort_order=0 if max_order is None else max_order + 1,
			lessons=[],
		)
		self.db.add(section)
		await self.db.commit()
		return section

	async def create_material(self, user: User, class_id: int, payload: MaterialInput) -> Lesson:
		batch = await self.get_taught(user, class_id)
		course_id = payload.course_id or await self.batches.first_course_id(batch.id)
		section = await self.db.get(Section, payload.section_id)
		if course_id is None or section is None or section.course_id != course_id:
			raise ServiceError("Section does not belong to this class course.", 400)
		max_order = await self.db.scalar(select(func.max(Lesson.sort_order)).where(Lesson.section_id == section.id))
		lesson = Lesson(
			section_id=section.id,
			title=payload.title,
			content=payload.content,
			type=LessonType.TEXT.value,
			is_published=True,
			sort_order=0 if max_order is None else max_order + 1,
			attachments=[],
		)
		self.db.add(lesson)
		await self.db.flush()
		await CourseService(self.db).refresh_course_stats(course_id)
		await self.db.commit()
		return lesson

	# People

	async def people(self, user: User, class_id: int) -> tuple[list[BatchInstructor], list[User]]:
		batch = await self.get_visible(user, class_id, detail=True)
		students = (
			await self.db.scalars(
				select(User)
				.join(Enrollment, Enrollment.user_id == User.id)
				.where(Enrollment.batch_id == batch.id)
				.order_by(User.name)
			)
		).unique().all()
		return list(batch.instructor_links), list(students)
