"""Service tests for threaded batch and lesson discussions."""
from __future__ import annotations

import pytest

from lms.schemas.course import LessonCreate, SectionCreate
from lms.schemas.discussion import DiscussionCreate, DiscussionUpdate
from lms.services.courses import CourseService
from lms.services.discussions import DiscussionService
from lms.services.errors import NotFoundError, PermissionDeniedError, ValidationFailedError


@pytest.fixture
async def thread(db, factory):
	instructor = await factory.user("instructor")
	student = await factory.user()
	course = await factory.course(instructor)
	batch = await factory.batch(instructor, [course])
	courses = CourseService(db)
	section = await courses.create_section(instructor, course.id, SectionCreate(title="Week 1"))
	lesson = await courses.create_lesson(instructor, course.id, section.id, LessonCreate(title="Welcome", type="text"))
	root = await DiscussionService(db).create(
		student,
		DiscussionCreate(batch_id=batch.id, lesson_id=lesson.id, title="Stuck on setup", content="pip fails", type="question"),
	)
	return instructor, student, batch, lesson, root


class TestReplies:
	async def test_reply_inherits_batch_and_lesson(self, db, thread):
		instructor, _, batch, lesson, root = thread

		reply = await DiscussionService(db).create(instructor, DiscussionCreate(parent_id=root.id, content="Upgrade pip"))

		assert reply.parent_id == root.id
		assert reply.batch_id == batch.id
		assert reply.lesson_id == lesson.id
		assert reply.user.id == instructor.id

	async def test_replies_count_follows_replies(self, db, factory, thread):
		_, student, _, _, root = thread
		service = DiscussionService(db)
		other = await factory.user()
		first = await service.create(other, DiscussionCreate(parent_id=root.id, content="Same here"))
		await service.create(student, DiscussionCreate(parent_id=root.id, content="Fixed it"))

		root, replies = await service.show(root.id)
		assert root.replies_count == 2
		assert [r.content for r in replies] == ["Same here", "Fixed it"]

		await service.delete(other, first.id)

		root, replies = await service.show(root.id)
		assert root.replies_count == 1
		assert root.views_count == 2
		assert [r.content for r in replies] == ["Fixed it"]

	async def test_locked_thread_rejects_replies(self, db, thread):
		instructor, student, _, _, root = thread
		service = DiscussionService(db)

		locked = await service.toggle_lock(instructor, root.id)
		assert locked.is_locked is True

		with pytest.raises(ValidationFailedError):
			await service.create(student, DiscussionCreate(parent_id=root.id, content="Anyone?"))

	async def test_reply_to_missing_thread(self, db, thread):
		_, student, *_ = thread

		with pytest.raises(NotFoundError):
			await DiscussionService(db).create(student, DiscussionCreate(parent_id=999, content="Hello"))

	async def test_topic_needs_title(self, db, thread):
		_, student, batch, _, _ = thread

		with pytest.raises(ValidationFailedError):
			await DiscussionService(db).create(student, DiscussionCreate(batch_id=batch.id, content="No title"))


class TestModeration:
	@pytest.mark.parametrize("action", ["toggle_pin", "toggle_lock"])
	async def test_students_cannot_moderate(self, db, thread, action):
		_, student, *_, root = thread

		with pytest.raises(PermissionDeniedError):
			await getattr(DiscussionService(db), action)(student, root.id)

	async def test_unrelated_instructor_cannot_moderate(self, db, factory, thread):
		*_, root = thread
		outsider = await factory.user("instructor")

		with pytest.raises(PermissionDeniedError):
			await DiscussionService(db).toggle_pin(outsider, root.id)

	async def test_admin_moderates_any_thread(self, db, factory, thread):
		*_, root = thread
		admin = await factory.user("admin")

		pinned = await DiscussionService(db).toggle_pin(admin, root.id)

		assert pinned.is_pinned is True

	async def test_pinned_threads_come_first(self, db, thread):
		instructor, student, batch, _, root = thread
		service = DiscussionService(db)
		newer = await service.create(student, DiscussionCreate(batch_id=batch.id, title="Later", content="Second"))
		await service.toggle_pin(instructor, root.id)

		threads, total = await service.for_batch(batch.id)

		assert [t.id for t in threads] == [root.id, newer.id]
		assert total == 2

	async def test_only_author_edits(self, db, thread):
		instructor, student, *_, root = thread
		service = DiscussionService(db)

		with pytest.raises(PermissionDeniedError):
			await service.update(instructor, root.id, DiscussionUpdate(content="Edited"))
		updated = await service.update(student, root.id, DiscussionUpdate(content="pip fails on 3.12"))
		assert updated.content == "pip fails on 3.12"

	async def test_moderator_deletes_others_posts(self, db, thread):
		instructor, *_, root = thread
		service = DiscussionService(db)

		await service.delete(instructor, root.id)

		with pytest.raises(NotFoundError):
			await service.show(root.id)
