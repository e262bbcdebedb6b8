"""Общие функции безопасности: выпуск и проверка JWT."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt


bearer_scheme = HTTPBearer(auto_error=True)


@dataclass
class CurrentUser:
	"""Пользователь, извлеченный из access токена."""
	id: int
	token: str


def encode_token(
	*,
	subject: str,
	token_type: str,
	expires_delta: timedelta,
	jwt_secret: str,
	jwt_algorithm: str = "HS256",
	extra_claims: dict[str, Any] | None = None,
) -> str:
	"""
	Подписывает JWT с полями sub, type и exp.
	
	Args:
		subject: Идентификатор пользователя
		token_type: "access" или "refresh"
		expires_delta: Время жизни токена
		extra_claims: Дополнительные поля (например, jti)
	"""
	expire = datetime.now(timezone.utc) + expires_delta
	payload: dict[str, Any] = {"sub": subject, "type": token_type, "exp": int(expire.timestamp())}
	if extra_claims:
		payload |= extra_claims
	return jwt.encode(payload, jwt_secret, algorithm=jwt_algorithm)


def decode_access_token(
	token: str,
	jwt_secret: str,
	jwt_algorithm: str = "HS256",
) -> CurrentUser:
	"""
	Декодирует и валидирует access токен.
	
	Raises:
		HTTPException: Если токен невалиден, истек или имеет неверный тип
	"""
	try:
		payload = jwt.decode(token, jwt_secret, algorithms=[jwt_algorithm])
	except JWTError:
		raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

	if payload.get("type") != "access":
		raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

	exp = payload.get("exp")
	if exp and datetime.fromtimestamp(exp, tz=timezone.utc) < datetime.now(timezone.utc):
		raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Token expired")

	sub = payload.get("sub")
	if not sub:
		raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

	return CurrentUser(id=int(sub), token=token)


def make_get_current_user(
	get_settings: Callable,
) -> Callable:
	"""
	Создает зависимость, возвращающую CurrentUser из заголовка Authorization.
	
	Args:
		get_settings: Функция получения настроек (jwt_secret, jwt_algorithm)
	"""
	async def get_current_user(
		credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
	) -> CurrentUser:
		settings = get_settings()
		return decode_access_token(
			credentials.credentials,
			settings.jwt_secret,
			settings.jwt_algorithm,
		)
	
	return get_current_user

