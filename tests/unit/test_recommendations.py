from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from lms.config import get_settings
from lms.services.recommendations import RecommendationService, build_prompt, parse_course_ids


class TestParseCourseIds:
	@pytest.mark.parametrize(
		"reply, expected",
		[
			("[3, 1]", [3, 1]),
			("Sure! Try these: [2,2,5] because...", [2, 5]),
			("[9, 1]", [1]),
			("[1, 2, 3, 5]", [1, 2, 3]),
			("no idea", []),
			("", []),
		],
	)
	def test_parse(self, reply, expected):
		assert parse_course_ids(reply, {1, 2, 3, 5}) == expected


class TestBuildPrompt:
	def test_lists_candidates(self):
		class Stub:
			id = 7
			title = "Async Python"
			level = "advanced"

		prompt = build_prompt([], [Stub()])

		assert "(none yet)" in prompt
		assert "7: Async Python (advanced)" in prompt


class TestRecommend:
	@pytest.fixture
	async def catalog(self, factory):
		instructor = await factory.user("instructor")
		owned = await factory.course(instructor, title="Python Basics")
		popular = await factory.course(instructor, title="Web APIs", total_enrollments=50)
		niche = await factory.course(instructor, title="Compilers", total_enrollments=2)
		student = await factory.user()
		await factory.enrollment(student, owned)
		return student, owned, popular, niche

	def _llm_settings(self):
		return get_settings().model_copy(update={"recommendations_llm_url": "http://llm.test"})

	async def test_fallback_without_llm(self, db, catalog):
		student, owned, popular, niche = catalog

		source, courses = await RecommendationService(db).recommend(student)

		assert source == "fallback"
		assert [c.id for c in courses] == [popular.id, niche.id]

	async def test_llm_pick(self, db, catalog):
		student, _, _, niche = catalog
		requests = []

		def handler(request: httpx.Request) -> httpx.Response:
			requests.append(request)
			return httpx.Response(200, json={"response": f"[{niche.id}]"})

		async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
			with patch("lms.services.recommendations.get_settings", self._llm_settings):
				source, courses = await RecommendationService(db, client=client).recommend(student)

		assert source == "llm"
		assert [c.id for c in courses] == [niche.id]
		assert str(requests[0].url) == "http://llm.test/api/generate"

	async def test_llm_failure_falls_back(self, db, catalog):
		student, _, popular, _ = catalog

		def handler(request: httpx.Request) -> httpx.Response:
			return httpx.Response(503)

		async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
			with patch("lms.services.recommendations.get_settings", self._llm_settings):
				source, courses = await RecommendationService(db, client=client).recommend(student)

		assert source == "fallback"
		assert courses[0].id == popular.id

	@pytest.mark.parametrize("body", [[1, 2], "3", {"response": None}, {"response": [3]}])
	async def test_malformed_llm_reply_falls_back(self, db, catalog, body):
		student, _, popular, _ = catalog

		def handler(request: httpx.Request) -> httpx.Response:
			return httpx.Response(200, json=body)

		async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
			with patch("lms.services.recommendations.get_settings", self._llm_settings):
				source, courses = await RecommendationService(db, client=client).recommend(student)

		assert source == "fallback"
		assert courses[0].id == popular.id
