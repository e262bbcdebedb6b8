from __future__ import annotations

import pytest

from tests.conftest import auth_headers

API = "/api/v1"


@pytest.fixture
async def cohort(factory):
	instructor = await factory.user("instructor")
	course = await factory.course(instructor)
	batch = await factory.batch(instructor, [course], max_students=1)
	return instructor, course, batch


class TestStudentBatchEnrollment:
	async def test_enroll_after_purchase(self, client, factory, cohort):
		_, course, batch = cohort
		student = await factory.user()
		await factory.enrollment(student, course)

		res = await client.post(f"{API}/student/batches/{batch.id}/enroll", headers=auth_headers(student))

		assert res.status_code == 200
		assert res.json()["message"] == "Successfully enrolled in batch."
		assert res.json()["batch"]["current_students"] == 1

		again = await client.post(f"{API}/student/batches/{batch.id}/enroll", headers=auth_headers(student))
		assert again.json()["message"] == "Already enrolled in this batch."

		mine = await client.get(f"{API}/student/batches/mine", headers=auth_headers(student))
		assert [b["id"] for b in mine.json()] == [batch.id]

	async def test_enroll_without_purchase(self, client, factory, cohort):
		_, _, batch = cohort
		student = await factory.user()

		res = await client.post(f"{API}/student/batches/{batch.id}/enroll", headers=auth_headers(student))

		assert res.status_code == 403

	async def test_full_batch(self, client, factory, cohort):
		_, course, batch = cohort
		for _ in range(2):
			student = await factory.user()
			await factory.enrollment(student, course)
			last = await client.post(f"{API}/student/batches/{batch.id}/enroll", headers=auth_headers(student))

		assert last.status_code == 422
		assert last.json()["detail"] == "Batch is full."


class TestInstructorBatches:
	async def test_create_and_open(self, client, cohort):
		instructor, course, _ = cohort
		headers = auth_headers(instructor)

		res = await client.post(
			f"{API}/instructor/batches",
			json={"name": "Evening cohort", "course_ids": [course.id], "max_students": 20},
			headers=headers,
		)
		assert res.status_code == 201
		created = res.json()
		assert created["status"] == "draft"

		res = await client.put(f"{API}/instructor/batches/{created['id']}", json={"status": "open"}, headers=headers)
		assert res.status_code == 200
		assert res.json()["status"] == "open"

	async def test_students_cannot_manage(self, client, factory):
		student = await factory.user()

		res = await client.get(f"{API}/instructor/batches", headers=auth_headers(student))

		assert res.status_code == 403


class TestClassrooms:
	async def test_create_and_join(self, client, factory):
		owner = await factory.user("instructor")
		student = await factory.user()

		created = await client.post(f"{API}/classes", json={"name": "Physics 101"}, headers=auth_headers(owner))
		assert created.status_code == 201
		code = created.json()["class_code"]

		joined = await client.post(f"{API}/classes/join", json={"class_code": code}, headers=auth_headers(student))
		assert joined.status_code == 200
		assert joined.json()["is_owner"] is False

		again = await client.post(f"{API}/classes/join", json={"class_code": code}, headers=auth_headers(student))
		assert again.status_code == 409

	async def test_students_cannot_create(self, client, factory):
		student = await factory.user()

		res = await client.post(f"{API}/classes", json={"name": "Nope"}, headers=auth_headers(student))

		assert res.status_code == 403


class TestAdminAccess:
	@pytest.mark.parametrize("path", ["/admin/dashboard", "/admin/roles", "/admin/batches", "/admin/learning-paths"])
	async def test_admin_routes_reject_students(self, client, factory, path):
		student = await factory.user()

		res = await client.get(f"{API}{path}", headers=auth_headers(student))

		assert res.status_code == 403

	async def test_admin_dashboard(self, client, factory):
		admin = await factory.user("admin")

		res = await client.get(f"{API}/admin/dashboard", headers=auth_headers(admin))

		assert res.status_code == 200

	async def test_assign_role(self, client, factory):
		admin = await factory.user("admin")
		user = await factory.user()

		res = await client.post(
			f"{API}/admin/users/{user.id}/roles", json={"role": "instructor"}, headers=auth_headers(admin)
		)

		assert res.status_code == 200
		assert sorted(res.json()["roles"]) == ["instructor", "student"]
