from __future__ import annotations

import hmac
from typing import Callable

from fastapi import Header, HTTPException, status


def make_internal_token_verifier(
	expected_token_supplier: Callable[[], str | None],
	*,
	header_name: str = "X-Internal-Token",
) -> Callable[[str | None], None]:
	"""Build a FastAPI dependency that validates service-to-service tokens in constant time."""

	def _verify(token: str | None = Header(default=None, alias=header_name)) -> None:
		expected = expected_token_supplier()
		if not expected:
			# token check disabled (dev mode)
			return
		if not token or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid internal token")

	return _verify
