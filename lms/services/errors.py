from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class ServiceError(Exception):
	def __init__(
		self,
		message: str,
		status_code: int = status.HTTP_400_BAD_REQUEST,
		errors: Any = None,
	):
		super().__init__(message)
		self.message = message
		self.status_code = status_code
		self.errors = errors


class NotFoundError(ServiceError):
	def __init__(self, message: str = "Not found", errors: Any = None):
		super().__init__(message, status.HTTP_404_NOT_FOUND, errors)


class PermissionDeniedError(ServiceError):
	def __init__(self, message: str = "Unauthorized.", errors: Any = None):
		super().__init__(message, status.HTTP_403_FORBIDDEN, errors)


class ValidationFailedError(ServiceError):
	def __init__(self, message: str, errors: Any = None):
		super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


class ConflictError(ServiceError):
	def __init__(self, message: str, errors: Any = None):
		super().__init__(message, status.HTTP_409_CONFLICT, errors)


def to_http_exception(exc: ServiceError) -> HTTPException:
	detail: Any = exc.message
	if exc.errors is not None:
		detail = {"message": exc.message, "errors": exc.errors}
	return HTTPException(status_code=exc.status_code, detail=detail)
