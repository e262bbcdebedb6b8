"""Unit tests for slug, code and datetime helpers."""
from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from lms.utils import as_aware, random_code, slugify, unique_code


class TestSlugify:
	@pytest.mark.parametrize(
		"source,expected",
		[
			("Python for Beginners", "python-for-beginners"),
			("  Data   Science 101 ", "data-science-101"),
			("Café & Crème", "cafe-creme"),
			("under_score--dash", "under-score-dash"),
			("!!!", "item"),
		],
	)
	def test_slugify(self, source, expected):
		assert slugify(source) == expected


class TestAsAware:
	def test_naive_value_becomes_utc(self):
		value = as_aware(datetime(2024, 1, 1, 12, 0))

		assert value.tzinfo is timezone.utc

	def test_aware_value_and_none_pass_through(self):
		aware = datetime(2024, 1, 1, tzinfo=timezone.utc)

		assert as_aware(aware) is aware
		assert as_aware(None) is None


class TestCodes:
	def test_random_code_uses_alphabet(self):
		code = random_code(8, alphabet="AB")

		assert len(code) == 8
		assert set(code) <= {"A", "B"}

	async def test_unique_code_skips_taken_values(self):
		candidates = iter(["TAKEN1", "FREE22"])
		exists = AsyncMock(side_effect=lambda code: code == "TAKEN1")

		code = await unique_code(exists, lambda: next(candidates))

		assert code == "FREE22"
		assert exists.await_count == 2

	async def test_unique_code_gives_up(self):
		exists = AsyncMock(return_value=True)

		with pytest.raises(RuntimeError):
			await unique_code(exists, lambda: "SAME", attempts=3)
		assert exists.await_count == 3
