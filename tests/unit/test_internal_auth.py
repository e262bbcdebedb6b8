"""Unit tests for the service-to-service token dependency."""
from __future__ import annotations

import pytest
from fastapi import HTTPException

from common import make_internal_token_verifier


class TestInternalTokenVerifier:
	def test_disabled_without_expected_token(self):
		make_internal_token_verifier(lambda: None)(None)

	def test_matching_token(self):
		make_internal_token_verifier(lambda: "s3cret")("s3cret")

	@pytest.mark.parametrize("token", [None, "", "s3cre", "s3cret-extra", "ключ"])
	def test_wrong_token_is_rejected(self, token):
		verify = make_internal_token_verifier(lambda: "s3cret")

		with pytest.raises(HTTPException) as exc_info:
			verify(token)
		assert exc_info.value.status_code == 401
