"""Service tests for learning paths and role management."""
from __future__ import annotations

import pytest
from sqlalchemy import select

from lms.models import Role
from lms.schemas.common import ReorderItem
from lms.schemas.learning_path import LearningPathCreate, PathItemInput
from lms.schemas.roles import RoleCreate, RoleUpdate
from lms.services.errors import ConflictError, NotFoundError, ValidationFailedError
from lms.services.learning_paths import LearningPathService
from lms.services.roles import RoleService


async def _role(db, name: str) -> Role:
	return await db.scalar(select(Role).where(Role.name == name))


class TestLearningPaths:
	@pytest.fixture
	async def path_courses(self, db, factory):
		instructor = await factory.user("instructor")
		first = await factory.course(instructor, title="Python Basics")
		second = await factory.course(instructor, title="Web APIs")
		path = await LearningPathService(db).create(LearningPathCreate(title="Backend Developer", is_published=True))
		return path, first, second

	async def test_steps_are_ordered(self, db, path_courses):
		path, first, second = path_courses
		service = LearningPathService(db)
		await service.add_course(path.id, PathItemInput(course_id=second.id, step_number=2))
		path = await service.add_course(path.id, PathItemInput(course_id=first.id, step_number=1))

		assert path.slug == "backend-developer"
		assert [item.course.title for item in path.items] == ["Python Basics", "Web APIs"]

	async def test_duplicate_course_is_rejected(self, db, path_courses):
		path, first, _ = path_courses
		service = LearningPathService(db)
		await service.add_course(path.id, PathItemInput(course_id=first.id, step_number=1))

		with pytest.raises(ValidationFailedError):
			await service.add_course(path.id, PathItemInput(course_id=first.id, step_number=2))

	async def test_unknown_course_is_rejected(self, db, path_courses):
		path, *_ = path_courses

		with pytest.raises(ValidationFailedError):
			await LearningPathService(db).add_course(path.id, PathItemInput(course_id=999, step_number=1))

	async def test_remove_and_reorder(self, db, path_courses):
		path, first, second = path_courses
		service = LearningPathService(db)
		await service.add_course(path.id, PathItemInput(course_id=first.id, step_number=1))
		path = await service.add_course(path.id, PathItemInput(course_id=second.id, step_number=2))
		first_item, second_item = path.items

		path = await service.reorder(
			path.id, [ReorderItem(id=first_item.id, sort_order=2), ReorderItem(id=second_item.id, sort_order=1)]
		)
		assert [item.course_id for item in path.items] == [second.id, first.id]

		path = await service.remove_course(path.id, second.id)
		assert [item.course_id for item in path.items] == [first.id]
		with pytest.raises(NotFoundError):
			await service.remove_course(path.id, second.id)

	async def test_unpublished_paths_are_hidden(self, db, path_courses):
		path, *_ = path_courses
		service = LearningPathService(db)
		draft = await service.create(LearningPathCreate(title="Data Engineer"))

		paths, total = await service.index(published_only=True)

		assert [p.id for p in paths] == [path.id]
		assert total == 1
		with pytest.raises(NotFoundError):
			await service.get_published(draft.slug)


class TestRoles:
	@pytest.mark.parametrize("name", ["admin", "super-admin"])
	async def test_system_roles_cannot_be_deleted(self, db, name):
		service = RoleService(db)
		role = await _role(db, name)
		if role is None:
			role = await service.create(RoleCreate(name=name))

		with pytest.raises(ValidationFailedError):
			await service.delete(role.id)

	async def test_system_role_cannot_be_renamed(self, db):
		admin = await _role(db, "admin")

		with pytest.raises(ValidationFailedError):
			await RoleService(db).update(admin.id, RoleUpdate(name="owner"))

	async def test_custom_role_lifecycle(self, db, factory):
		service = RoleService(db)
		role = await service.create(RoleCreate(name="moderator", permissions=["post discussions", "manage users"]))
		assert sorted(p.name for p in role.permissions) == ["manage users", "post discussions"]

		user = await factory.user()
		await service.assign(user.id, "moderator")
		assert await service.users_count(role.id) == 1

		await service.delete(role.id)
		assert await _role(db, "moderator") is None
		assert await service.users_count(role.id) == 0

	async def test_unknown_permission(self, db):
		with pytest.raises(ValidationFailedError):
			await RoleService(db).create(RoleCreate(name="auditor", permissions=["launch rockets"]))

	async def test_duplicate_role_name(self, db):
		with pytest.raises(ValidationFailedError):
			await RoleService(db).create(RoleCreate(name="student"))

	async def test_assign_twice_conflicts(self, db, factory):
		user = await factory.user()

		with pytest.raises(ConflictError):
			await RoleService(db).assign(user.id, "student")

	async def test_verify_requires_instructor(self, db, factory):
		service = RoleService(db)
		student = await factory.user()
		instructor = await factory.user("instructor")

		with pytest.raises(ValidationFailedError):
			await service.verify_instructor(student.id)
		verified = await service.verify_instructor(instructor.id)
		assert verified.email_verified_at is not None
