from __future__ import annotations

from decimal import Decimal

import pytest

API = "/api/v1"


@pytest.fixture
async def catalog(factory):
	instructor = await factory.user("instructor", name="Ada Lovelace")
	cheap = await factory.course(instructor, title="Intro to SQL", price=Decimal("50000"))
	pricey = await factory.course(
		instructor, title="Advanced Kubernetes", price=Decimal("300000"), discount_price=Decimal("250000")
	)
	draft = await factory.course(instructor, title="Unreleased Course", status="draft")
	return instructor, cheap, pricey, draft


class TestCourseListing:
	async def test_only_published_courses(self, client, catalog):
		_, cheap, pricey, draft = catalog

		res = await client.get(f"{API}/courses")

		assert res.status_code == 200
		ids = {c["id"] for c in res.json()["data"]}
		assert ids == {cheap.id, pricey.id}
		assert res.json()["meta"]["total"] == 2

	async def test_search(self, client, catalog):
		_, _, pricey, _ = catalog

		res = await client.get(f"{API}/courses", params={"search": "kubernetes"})

		assert [c["id"] for c in res.json()["data"]] == [pricey.id]

	@pytest.mark.parametrize("sort, first", [("price_low", 1), ("price_high", 2)])
	async def test_sort_by_effective_price(self, client, catalog, sort, first):
		courses = {1: catalog[1], 2: catalog[2]}

		res = await client.get(f"{API}/courses", params={"sort": sort})

		assert res.json()["data"][0]["id"] == courses[first].id

	async def test_pagination(self, client, catalog):
		res = await client.get(f"{API}/courses", params={"per_page": 1, "page": 2})

		body = res.json()
		assert len(body["data"]) == 1
		assert body["meta"] == {"current_page": 2, "per_page": 1, "total": 2, "last_page": 2}


class TestCourseDetail:
	async def test_detail_by_slug(self, client, catalog):
		instructor, _, pricey, _ = catalog

		res = await client.get(f"{API}/courses/{pricey.slug}")

		assert res.status_code == 200
		body = res.json()
		assert body["title"] == "Advanced Kubernetes"
		assert Decimal(body["effective_price"]) == Decimal("250000")
		assert body["is_on_sale"] is True
		assert body["instructor"]["name"] == instructor.name
		assert body["views"] == 1

	async def test_draft_is_hidden(self, client, catalog):
		*_, draft = catalog

		res = await client.get(f"{API}/courses/{draft.slug}")

		assert res.status_code == 404

	async def test_related(self, client, catalog):
		_, cheap, pricey, _ = catalog

		res = await client.get(f"{API}/courses/{cheap.id}/related")

		assert [c["id"] for c in res.json()] == [pricey.id]


class TestPublicBatches:
	async def test_open_public_batches(self, client, factory, catalog):
		instructor, cheap, _, _ = catalog
		open_batch = await factory.batch(instructor, [cheap], name="Open cohort")
		await factory.batch(instructor, [cheap], name="Draft cohort", status="draft")
		await factory.batch(instructor, [cheap], name="Private cohort", is_public=False)

		res = await client.get(f"{API}/batches")

		assert [b["id"] for b in res.json()["data"]] == [open_batch.id]
