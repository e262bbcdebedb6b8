import hashlib
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID, uuid4

from fastapi import Depends, HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from common import CurrentUser, encode_token, make_get_current_user, make_internal_token_verifier

from .config import get_settings
from .database import get_db
from .models import RefreshToken, User
from .utils import as_aware


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

get_token_user = make_get_current_user(get_settings)
verify_internal_token = make_internal_token_verifier(lambda: get_settings().internal_token)


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
	return pwd_context.hash(password)


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _hash_token(token: str) -> str:
	return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_access_token(user_id: int) -> str:
	settings = get_settings()
	return encode_token(
		subject=str(user_id),
		token_type="access",
		expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
		jwt_secret=settings.jwt_secret,
		jwt_algorithm=settings.jwt_algorithm,
	)


class RefreshTokenError(Exception):
	def __init__(self, detail: str):
		self.detail = detail
		super().__init__(detail)


async def create_refresh_token(db: AsyncSession, user_id: int) -> str:
	settings = get_settings()
	expires_delta = timedelta(days=settings.refresh_token_expire_days)
	token_uuid = uuid4()
	token = encode_token(
		subject=str(user_id),
		token_type="refresh",
		expires_delta=expires_delta,
		jwt_secret=settings.jwt_secret,
		jwt_algorithm=settings.jwt_algorithm,
		extra_claims={"jti": str(token_uuid)},
	)
	db.add(
		RefreshToken(
			token_id=token_uuid,
			user_id=user_id,
			token_hash=_hash_token(token),
			expires_at=_now() + expires_delta,
		)
	)
	await db.commit()
	return token


async def revoke_refresh_tokens(db: AsyncSession, user_id: int) -> None:
	await db.execute(
		update(RefreshToken)
		.where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
		.values(revoked=True, revoked_at=_now())
	)


def decode_token(token: str) -> dict:
	settings = get_settings()
	return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


async def validate_refresh_token(db: AsyncSession, token: str) -> RefreshToken:
	try:
		payload = decode_token(token)
	except JWTError as exc:
		raise RefreshTokenError("Invalid refresh token") from exc

	if payload.get("type") != "refresh":
		raise RefreshTokenError("Invalid token type")

	token_id = payload.get("jti")
	if not token_id:
		raise RefreshTokenError("Token has no identifier")

	try:
		token_uuid = UUID(token_id)
	except ValueError as exc:
		raise RefreshTokenError("Malformed token identifier") from exc

	record = await db.scalar(select(RefreshToken).where(RefreshToken.token_id == token_uuid))
	if not record:
		raise RefreshTokenError("Refresh token not found")

	if record.revoked:
		raise RefreshTokenError("Refresh token already used")

	if as_aware(record.expires_at) <= _now():
		raise RefreshTokenError("Refresh token expired")

	if str(payload.get("sub")) != str(record.user_id):
		raise RefreshTokenError("Token subject mismatch")

	if _hash_token(token) != record.token_hash:
		raise RefreshTokenError("Refresh token signature not recognised")

	return record


async def get_current_user(
	token_user: CurrentUser = Depends(get_token_user),
	db: AsyncSession = Depends(get_db),
) -> User:
	user: Optional[User] = await db.get(User, token_user.id)
	if not user or not user.is_active:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
	return user


def require_roles(*role_names: str) -> Callable:
	"""Dependency allowing users holding any of ``role_names``."""

	async def _require(user: User = Depends(get_current_user)) -> User:
		if not user.has_role(*role_names):
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail="User does not have the right roles.",
			)
		return user

	return _require



def require_permission(permission: str) -> Callable:
	async def _require(user: User = Depends(get_current_user)) -> User:
		if not user.has_permission(permission):
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail="User does not have the right permissions.",
			)
		return user

	return _require
