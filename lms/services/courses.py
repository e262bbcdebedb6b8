from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Attachment, Category, Course, CourseStatus, Lesson, Section, User
from ..schemas.common import ReorderItem
from ..schemas.course import CourseCreate, CourseUpdate, LessonCreate, LessonUpdate, SectionCreate, SectionUpdate
from ..utils import paginate, unique_slug, utcnow
from .errors import NotFoundError, PermissionDeniedError, ValidationFailedError

REVIEW_TRANSITIONS: dict[str, frozenset[str]] = {
	CourseStatus.PENDING_REVIEW.value: frozenset({CourseStatus.PUBLISHED.value, CourseStatus.REJECTED.value}),
	CourseStatus.PUBLISHED.value: frozenset({CourseStatus.ARCHIVED.value}),
	CourseStatus.ARCHIVED.value: frozenset({CourseStatus.PUBLISHED.value}),
}


def _curriculum_options():
	return (
		selectinload(Course.category),
		selectinload(Course.instructor),
		selectinload(Course.sections).selectinload(Section.lessons).selectinload(Lesson.attachments),
	)


class CourseService:
	"""Instructor-side course authoring: courses, sections, lessons and attachments."""

	def __init__(self, db: AsyncSession):
		self.db = db

	# Courses

	async def list_own(
		self,
		instructor: User,
		*,
		status: str | None = None,
		search: str | None = None,
		page: int = 1,
		per_page: int = 15,
	) -> tuple[list[Course], int]:
		stmt = select(Course).where(Course.instructor_id == instructor.id, Course.deleted_at.is_(None))
		if status:
			stmt = stmt.where(Course.status == status)
		if search:
			stmt = stmt.where(or_(Course.title.ilike(f"%{search}%"), Course.subtitle.ilike(f"%{search}%")))
		return await paginate(self.db, stmt.order_by(Course.created_at.desc(), Course.id.desc()), page=page, per_page=per_page)

	async def _load(self, course_id: int, *, curriculum: bool = False) -> Course:
		stmt = select(Course).where(Course.id == course_id, Course.deleted_at.is_(None))
		if curriculum:
			stmt = stmt.options(*_curriculum_options()).execution_options(populate_existing=True)
		course = await self.db.scalar(stmt)
		if not course:
			raise NotFoundError("Course not found")
		return course

	async def get_owned(self, instructor: User, course_id: int, *, curriculum: bool = False) -> Course:
		course = await self._load(course_id, curriculum=curriculum)
		if course.instructor_id != instructor.id:
			raise PermissionDeniedError("Unauthorized.")
		return course

	async def _check_category(self, category_id: int | None) -> None:
		if category_id is not None and not await self.db.get(Category, category_id):
			raise ValidationFailedError("The selected category id is invalid.")

	async def create(self, instructor: User, payload: CourseCreate) -> Course:
		await self._check_category(payload.category_id)
		course = Course(
			**payload.model_dump(),
			instructor_id=instructor.id,
			slug=await unique_slug(self.db, Course, payload.title),
			status=CourseStatus.DRAFT.value,
		)
		self.db.add(course)
		await self.db.commit()
		return await self._load(course.id, curriculum=True)

	async def update(self, instructor: User, course_id: int, payload: CourseUpdate) -> Course:
		course = await self.get_owned(instructor, course_id)
		data = payload.model_dump(exclude_unset=True)
		if "category_id" in data:
			await self._check_category(data["category_id"])
		price = data.get("price", course.price)
		discount = data.get("discount_price", course.discount_price)
		if discount is not None and Decimal(discount) >= Decimal(price):
			raise ValidationFailedError("The discount price must be less than price.")
		if data.get("title") and data["title"] != course.title:
			course.slug = await unique_slug(self.db, Course, data["title"], exclude_id=course.id)
		for field, value in data.items():
			setattr(course, field, value)
		if course.status == CourseStatus.REJECTED.value:
			course.status = CourseStatus.DRAFT.value
		await self.db.commit()
		return await self._load(course.id, curriculum=True)

	async def delete(self, instructor: User, course_id: int) -> None:
		course = await self.get_owned(instructor, course_id)
		if course.status != CourseStatus.DRAFT.value:
			raise ValidationFailedError("Only draft courses can be deleted.")
		course.deleted_at = utcnow()
		await self.db.commit()

	async def set_thumbnail(self, instructor: User, course_id: int, object_name: str) -> tuple[Course, str | None]:
		course = await self.get_owned(instructor, course_id)
		previous = course.thumbnail
		course.thumbnail = object_name
		await self.db.commit()
		return course, previous

	async def submit_for_review(self, instructor: User, course_id: int) -> Course:
		course = await self.get_owned(instructor, course_id)
		if course.status != CourseStatus.DRAFT.value:
			raise ValidationFailedError("Only draft courses can be submitted for review.")
		lessons = await self.db.scalar(
			select(func.count(Lesson.id)).join(Section, Section.id == Lesson.section_id).where(Section.course_id == course.id)
		)
		if not lessons:
			raise ValidationFailedError("Course must have at least one lesson before submitting for review.")
		course.status = CourseStatus.PENDING_REVIEW.value
		await self.db.commit()
		return course

	# Admin review

	async def list_for_review(self, *, status: str | None = None, page: int = 1, per_page: int = 20) -> tuple[list[Course], int]:
		stmt = select(Course).where(
			Course.deleted_at.is_(None),
			Course.status == (status or CourseStatus.PENDING_REVIEW.value),
		)
		return await paginate(self.db, stmt.order_by(Course.updated_at.asc(), Course.id.asc()), page=page, per_page=per_page)

	async def change_status(self, course_id: int, status: str) -> Course:
		course = await self._load(course_id)
		if status not in REVIEW_TRANSITIONS.get(course.status, frozenset()):
			raise ValidationFailedError(f"Cannot change course status from {course.status} to {status}.")
		course.status = status
		if status == CourseStatus.PUBLISHED.value and course.published_at is None:
			course.published_at = utcnow()
		await self.db.commit()
		return course

	async def toggle_featured(self, course_id: int) -> Course:
		course = await self._load(course_id)
		course.is_featured = not course.is_featured
		await self.db.commit()
		return course

	# Sections

	async def _owned_section(self, instructor: User, course_id: int, section_id: int) -> tuple[Course, Section]:
		course = await self.get_owned(instructor, course_id)
		section = await self.db.scalar(select(Section).where(Section.id == section_id, Section.course_id == course.id))
		if not section:
			raise NotFoundError("Section not found")
		return course, section

	async def create_section(self, instructor: User, course_id: int, payload: SectionCreate) -> Section:
		course = await self.get_owned(instructor, course_id)
		max_order = await self.db.scalar(select(func.max(Section.sort_order)).where(Section.course_id == course.id))
		section = Section(
			course_id=course.id,
			title=payload.title,
			description=payload.description,
			sort_order=0 if max_order is None else max_order + 1,
			lessons=[],
		)
		self.db.add(section)
		await self.db.commit()
		return section

	async def update_section(self, instructor: User, course_id: int, section_id: int, payload: SectionUpdate) -> Section:
		_, section = await self._owned_section(instructor, course_id, section_id)
		for field, value in payload.model_dump(exclude_unset=True).items():
			setattr(section, field, value)
		await self.db.commit()
		return section

	async def delete_section(self, instructor: User, course_id: int, section_id: int) -> None:
		course, section = await self._owned_section(instructor, course_id, section_id)
		await self.db.delete(section)
		await self.db.flush()
		await self.refresh_course_stats(course.id)
		await self.db.commit()

	async def reorder_sections(self, instructor: User, course_id: int, items: list[ReorderItem]) -> None:
		course = await self.get_owned(instructor, course_id)
		for item in items:
			await self.db.execute(
				update(Section)
				.where(Section.id == item.id, Section.course_id == course.id)
				.values(sort_order=item.sort_order)
			)
		await self.db.commit()

	# Lessons

	async def _owned_lesson(
		self, instructor: User, course_id: int, section_id: int, lesson_id: int
	) -> tuple[Course, Section, Lesson]:
		course, section = await self._owned_section(instructor, course_id, section_id)
		lesson = await self.db.scalar(
			select(Lesson)
			.where(Lesson.id == lesson_id, Lesson.section_id == section.id)
			.options(selectinload(Lesson.attachments))
		)
		if not lesson:
			raise NotFoundError("Lesson not found")
		return course, section, lesson

	async def refresh_course_stats(self, course_id: int) -> None:
		"""Recompute total_lessons and total_duration from the curriculum."""
		lessons_count, duration = (
			await self.db.execute(
				select(func.count(Lesson.id), func.coalesce(func.sum(Lesson.duration), 0))
				.join(Section, Section.id == Lesson.section_id)
				.where(Section.course_id == course_id)
			)
		).one()
		await self.db.execute(
			update(Course)
			.where(Course.id == course_id)
			.values(total_lessons=lessons_count, total_duration=duration, updated_at=utcnow())
			.execution_options(synchronize_session="fetch")
		)

	async def create_lesson(self, instructor: User, course_id: int, section_id: int, payload: LessonCreate) -> Lesson:
		course, section = await self._owned_section(instructor, course_id, section_id)
		max_order = await self.db.scalar(select(func.max(Lesson.sort_order)).where(Lesson.section_id == section.id))
		lesson = Lesson(
			**payload.model_dump(),
			section_id=section.id,
			sort_order=0 if max_order is None else max_order + 1,
			attachments=[],
		)
		self.db.add(lesson)
		await self.db.flush()
		await self.refresh_course_stats(course.id)
		await self.db.commit()
		return lesson

	async def get_lesson(self, instructor: User, course_id: int, section_id: int, lesson_id: int) -> Lesson:
		_, _, lesson = await self._owned_lesson(instructor, course_id, section_id, lesson_id)
		return lesson

	async def update_lesson(
		self, instructor: User, course_id: int, section_id: int, lesson_id: int, payload: LessonUpdate
	) -> Lesson:
		course, _, lesson = await self._owned_lesson(instructor, course_id, section_id, lesson_id)
		for field, value in payload.model_dump(exclude_unset=True).items():
			setattr(lesson, field, value)
		await self.db.flush()
		await self.refresh_course_stats(course.id)
		await self.db.commit()
		return lesson

	async def delete_lesson(self, instructor: User, course_id: int, section_id: int, lesson_id: int) -> list[str]:
		course, _, lesson = await self._owned_lesson(instructor, course_id, section_id, lesson_id)
		files = [attachment.file_path for attachment in lesson.attachments]
		await self.db.delete(lesson)
		await self.db.flush()
		await self.refresh_course_stats(course.id)
		await self.db.commit()
		return files

	async def reorder_lessons(self, instructor: User, course_id: int, section_id: int, items: list[ReorderItem]) -> None:
		_, section = await self._owned_section(instructor, course_id, section_id)
		for item in items:
			await self.db.execute(
				update(Lesson)
				.where(Lesson.id == item.id, Lesson.section_id == section.id)
				.values(sort_order=item.sort_order)
			)
		await self.db.commit()

	# Attachments

	async def add_attachment(
		self,
		instructor: User,
		course_id: int,
		section_id: int,
		lesson_id: int,
		*,
		title: str,
		file_path: str,
		file_name: str,
		file_type: str | None,
		file_size: int,
	) -> Attachment:
		_, _, lesson = await self._owned_lesson(instructor, course_id, section_id, lesson_id)
		attachment = Attachment(
			lesson_id=lesson.id,
			title=title,
			file_path=file_path,
			file_name=file_name,
			file_type=file_type,
			file_size=file_size,
			sort_order=len(lesson.attachments),
		)
		self.db.add(attachment)
		await self.db.commit()
		return attachment

	async def delete_attachment(
		self, instructor: User, course_id: int, section_id: int, lesson_id: int, attachment_id: int
	) -> str:
		_, _, lesson = await self._owned_lesson(instructor, course_id, section_id, lesson_id)
		attachment = next((a for a in lesson.attachments if a.id == attachment_id), None)
		if not attachment:
			raise NotFoundError("Attachment not found")
		path = attachment.file_path
		await self.db.delete(attachment)
		await self.db.commit()
		return path
