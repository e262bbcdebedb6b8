"""Service tests for course authoring, the review workflow, lesson totals and categories."""
from __future__ import annotations

from decimal import Decimal

import pytest

from lms.models import Lesson, Section
from lms.schemas.category import CategoryCreate, CategoryUpdate
from lms.schemas.classroom import ClassroomCreate, MaterialInput
from lms.schemas.course import CourseCreate, CourseUpdate, LessonCreate, LessonUpdate, SectionCreate
from lms.services.categories import CategoryService
from lms.services.classrooms import ClassroomService
from lms.services.courses import CourseService
from lms.services.errors import PermissionDeniedError, ValidationFailedError


async def _draft(db, instructor):
	return await CourseService(db).create(
		instructor,
		CourseCreate(title="Intro to SQL", description="Tables and joins", price=Decimal("100000")),
	)


async def _with_lesson(db, instructor, course_id: int, duration: int = 10):
	service = CourseService(db)
	section = await service.create_section(instructor, course_id, SectionCreate(title="Basics"))
	lesson = await service.create_lesson(
		instructor, course_id, section.id, LessonCreate(title="SELECT", type="text", duration=duration)
	)
	return section, lesson


class TestCourseWorkflow:
	async def test_new_course_is_draft(self, db, factory):
		instructor = await factory.user("instructor")

		course = await _draft(db, instructor)

		assert course.status == "draft"
		assert course.slug == "intro-to-sql"
		assert course.published_at is None

	async def test_submit_review_needs_a_lesson(self, db, factory):
		instructor = await factory.user("instructor")
		course = await _draft(db, instructor)

		with pytest.raises(ValidationFailedError):
			await CourseService(db).submit_for_review(instructor, course.id)

	async def test_submit_then_publish(self, db, factory):
		instructor = await factory.user("instructor")
		course = await _draft(db, instructor)
		await _with_lesson(db, instructor, course.id)
		service = CourseService(db)

		course = await service.submit_for_review(instructor, course.id)
		assert course.status == "pending_review"

		course = await service.change_status(course.id, "published")
		assert course.status == "published"
		assert course.published_at is not None

	async def test_draft_cannot_be_published_directly(self, db, factory):
		instructor = await factory.user("instructor")
		course = await _draft(db, instructor)

		with pytest.raises(ValidationFailedError):
			await CourseService(db).change_status(course.id, "published")

	async def test_edit_returns_rejected_course_to_draft(self, db, factory):
		instructor = await factory.user("instructor")
		course = await factory.course(instructor, status="rejected")

		course = await CourseService(db).update(instructor, course.id, CourseUpdate(subtitle="Now with exercises"))

		assert course.status == "draft"
		assert course.subtitle == "Now with exercises"

	async def test_discount_must_stay_below_price(self, db, factory):
		instructor = await factory.user("instructor")
		course = await factory.course(instructor, status="draft", price=Decimal("100000"))

		with pytest.raises(ValidationFailedError):
			await CourseService(db).update(instructor, course.id, CourseUpdate(discount_price=Decimal("100000")))

	async def test_only_drafts_can_be_deleted(self, db, factory):
		instructor = await factory.user("instructor")
		published = await factory.course(instructor)
		draft = await factory.course(instructor, status="draft")
		service = CourseService(db)

		with pytest.raises(ValidationFailedError):
			await service.delete(instructor, published.id)
		await service.delete(instructor, draft.id)

		courses, total = await service.list_own(instructor)
		assert [c.id for c in courses] == [published.id]
		assert total == 1

	async def test_foreign_course_is_off_limits(self, db, factory):
		owner = await factory.user("instructor")
		other = await factory.user("instructor")
		course = await factory.course(owner, status="draft")

		with pytest.raises(PermissionDeniedError):
			await CourseService(db).update(other, course.id, CourseUpdate(title="Mine now"))


class TestLessonTotals:
	async def test_totals_follow_lesson_changes(self, db, factory):
		instructor = await factory.user("instructor")
		course = await _draft(db, instructor)
		service = CourseService(db)
		section, first = await _with_lesson(db, instructor, course.id, duration=10)
		second = await service.create_lesson(
			instructor, course.id, section.id, LessonCreate(title="JOIN", type="text", duration=25)
		)

		await db.refresh(course)
		assert (course.total_lessons, course.total_duration) == (2, 35)

		await service.update_lesson(instructor, course.id, section.id, second.id, LessonUpdate(duration=5))
		await db.refresh(course)
		assert (course.total_lessons, course.total_duration) == (2, 15)

		await service.delete_lesson(instructor, course.id, section.id, first.id)
		await db.refresh(course)
		assert (course.total_lessons, course.total_duration) == (1, 5)

	async def test_deleting_section_drops_its_lessons(self, db, factory):
		instructor = await factory.user("instructor")
		course = await _draft(db, instructor)
		section, _ = await _with_lesson(db, instructor, course.id, duration=40)

		await CourseService(db).delete_section(instructor, course.id, section.id)

		await db.refresh(course)
		assert (course.total_lessons, course.total_duration) == (0, 0)

	async def test_class_material_keeps_totals_in_sync(self, db, factory):
		owner = await factory.user("instructor")
		course = await factory.course(owner, status="draft")
		section = Section(course_id=course.id, title="Week 1", lessons=[])
		db.add(section)
		await db.flush()
		db.add(Lesson(section_id=section.id, title="Recorded lecture", duration=45))
		await db.commit()
		classes = ClassroomService(db)
		batch = await classes.create(owner, ClassroomCreate(name="Databases"))
		await classes.add_course(owner, batch.id, course.id)

		await classes.create_material(owner, batch.id, MaterialInput(section_id=section.id, title="Reading list"))

		await db.refresh(course)
		assert (course.total_lessons, course.total_duration) == (2, 45)


class TestCategories:
	async def test_child_category(self, db):
		service = CategoryService(db)
		parent = await service.create(CategoryCreate(name="Programming"))

		child = await service.create(CategoryCreate(name="Python", parent_id=parent.id))

		assert child.parent_id == parent.id
		assert child.slug == "python"

	async def test_category_cannot_be_its_own_parent(self, db):
		service = CategoryService(db)
		category = await service.create(CategoryCreate(name="Design"))

		with pytest.raises(ValidationFailedError):
			await service.update(category.id, CategoryUpdate(parent_id=category.id))

	async def test_unknown_parent(self, db):
		with pytest.raises(ValidationFailedError):
			await CategoryService(db).create(CategoryCreate(name="Orphan", parent_id=999))

	async def test_category_with_children_is_kept(self, db):
		service = CategoryService(db)
		parent = await service.create(CategoryCreate(name="Business"))
		await service.create(CategoryCreate(name="Marketing", parent_id=parent.id))

		with pytest.raises(ValidationFailedError):
			await service.delete(parent.id)

	async def test_category_with_courses_is_kept(self, db, factory):
		service = CategoryService(db)
		category = await service.create(CategoryCreate(name="Data"))
		instructor = await factory.user("instructor")
		await factory.course(instructor, category_id=category.id)

		with pytest.raises(ValidationFailedError):
			await service.delete(category.id)

	async def test_empty_category_is_deleted(self, db):
		service = CategoryService(db)
		category = await service.create(CategoryCreate(name="Music"))

		await service.delete(category.id)

		assert [c.id for c in await service.index()] == []
