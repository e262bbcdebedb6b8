"""Course recommendations for students, via an Ollama-compatible LLM with a popularity fallback."""
from __future__ import annotations

import json
import re
from logging import getLogger

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..models import Course, Enrollment, User
from .catalog import published_courses


logger = getLogger(__name__)

RECOMMENDATION_LIMIT = 3
CANDIDATE_LIMIT = 30
ID_LIST_RE = re.compile(r"\[[\d,\s]*\]")


def build_prompt(enrolled_titles: list[str], candidates: list[Course]) -> str:
	owned = "\n".join(f"- {title}" for title in enrolled_titles) or "- (none yet)"
	catalog = "\n".join(f"{course.id}: {course.title} ({course.level})" for course in candidates)
	return (
		"A student has taken these courses:\n"
		f"{owned}\n\n"
		"Available courses (id: title (level)):\n"
		f"{catalog}\n\n"
		f"Pick up to {RECOMMENDATION_LIMIT} course ids the student should take next. "
		"Answer with a JSON array of integers only, for example [3, 7]."
	)


def parse_course_ids(text: str, allowed: set[int]) -> list[int]:
	"""Pull the first JSON integer array out of a model reply, keeping known ids only."""
	match = ID_LIST_RE.search(text or "")
	if not match:
		return []
	try:
		values = json.loads(match.group(0))
	except ValueError:
		return []
	picked = []
	for value in values:
		if isinstance(value, int) and value in allowed and value not in picked:
			picked.append(value)
	return picked[:RECOMMENDATION_LIMIT]


class RecommendationService:
	def __init__(self, db: AsyncSession, client: httpx.AsyncClient | None = None):
		self.db = db
		self.client = client

	async def _enrolled_courses(self, user_id: int) -> list[Course]:
		stmt = (
			select(Course)
			.join(Enrollment, Enrollment.course_id == Course.id)
			.where(Enrollment.user_id == user_id, Enrollment.enrolled_at.is_not(None))
		)
		return list((await self.db.scalars(stmt)).unique().all())

	async def _candidates(self, exclude_ids: set[int]) -> list[Course]:
		stmt = published_courses().order_by(Course.total_enrollments.desc(), Course.id.asc())
		if exclude_ids:
			stmt = stmt.where(Course.id.not_in(exclude_ids))
		return list((await self.db.scalars(stmt.limit(CANDIDATE_LIMIT))).all())

	async def _ask_llm(self, prompt: str) -> str:
		settings = get_settings()
		payload = {"model": settings.recommendations_llm_model, "prompt": prompt, "stream": False}
		url = settings.recommendations_llm_url.rstrip("/") + "/api/generate"
		if self.client is not None:
			res = await self.client.post(url, json=payload, timeout=settings.recommendations_llm_timeout)
		else:
			async with httpx.AsyncClient(timeout=settings.recommendations_llm_timeout) as client:
				res = await client.post(url, json=payload)
		res.raise_for_status()
		body = res.json()
		reply = body.get("response") if isinstance(body, dict) else None
		if not isinstance(reply, str):
			raise ValueError("LLM reply has no text response")
		return reply

	async def recommend(self, user: User) -> tuple[str, list[Course]]:
		enrolled = await self._enrolled_courses(user.id)
		candidates = await self._candidates({course.id for course in enrolled})
		fallback = candidates[:RECOMMENDATION_LIMIT]
		if not candidates or not get_settings().recommendations_llm_url:
			return "fallback", fallback

		try:
			reply = await self._ask_llm(build_prompt([course.title for course in enrolled], candidates))
		except (httpx.HTTPError, ValueError) as exc:
			logger.warning("Recommendation LLM unavailable for user %s: %s", user.id, exc)
			return "fallback", fallback

		by_id = {course.id: course for course in candidates}
		picked = parse_course_ids(reply, set(by_id))
		if not picked:
			logger.info("Recommendation LLM returned no usable ids for user %s", user.id)
			return "fallback", fallback
		return "llm", [by_id[course_id] for course_id in picked]
