from __future__ import annotations

import io
import uuid
from functools import lru_cache
from logging import getLogger
from pathlib import PurePosixPath
from typing import BinaryIO, Optional

from fastapi import HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from minio import Minio
from minio.error import S3Error

from .config import get_settings


logger = getLogger(__name__)


class StorageNotConfiguredError(RuntimeError):
	"""Raised when object storage credentials are missing."""


class StorageBucketError(RuntimeError):
	"""Raised when working with S3 buckets fails."""


class StorageService:
	"""MinIO client wrapper for course assets and submission files."""

	def __init__(self) -> None:
		settings = get_settings()
		if not settings.s3_endpoint or not settings.s3_access_key or not settings.s3_secret_key:
			raise StorageNotConfiguredError("S3 storage is not configured")

		self._client = Minio(
			settings.s3_endpoint,
			access_key=settings.s3_access_key,
			secret_key=settings.s3_secret_key,
			secure=settings.s3_use_ssl,
			region=settings.s3_region,
		)
		self._bucket = settings.s3_bucket_assets
		self._bucket_ready = False

	@property
	def bucket(self) -> str:
		return self._bucket

	def ensure_bucket(self) -> None:
		if self._bucket_ready:
			return
		try:
			if not self._client.bucket_exists(self._bucket):
				self._client.make_bucket(self._bucket)
		except S3Error as exc:
			raise StorageBucketError(f"Unable to ensure bucket '{self._bucket}': {exc}") from exc
		self._bucket_ready = True

	def upload_stream(
		self,
		object_name: str,
		data: BinaryIO,
		length: int,
		content_type: Optional[str] = None,
	) -> str:
		self.ensure_bucket()
		try:
			self._client.put_object(
				self._bucket,
				object_name,
				data,
				length,
				content_type=content_type or "application/octet-stream",
			)
		except S3Error as exc:
			raise StorageBucketError(f"Failed to upload object {object_name}: {exc}") from exc
		return object_name

	def remove(self, object_name: str) -> None:
		try:
			self._client.remove_object(self._bucket, object_name)
		except S3Error as exc:
			raise StorageBucketError(f"Failed to delete object {object_name}: {exc}") from exc


@lru_cache(maxsize=1)
def _cached_storage() -> StorageService:
	return StorageService()


def get_storage_service() -> StorageService:
	"""FastAPI dependency; 503 when storage is not configured."""
	try:
		return _cached_storage()
	except StorageNotConfiguredError as exc:
		raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def optional_storage_service() -> StorageService | None:
	"""Like get_storage_service, but None instead of 503 when storage is off."""
	try:
		return _cached_storage()
	except StorageNotConfiguredError:
		return None


def build_object_name(prefix: str, filename: str | None) -> str:
	suffix = PurePosixPath(filename or "").suffix.lower()
	return f"{prefix.strip('/')}/{uuid.uuid4().hex}{suffix}"


async def read_upload(upload: UploadFile, *, max_bytes: int) -> bytes:
	data = await upload.read()
	if len(data) > max_bytes:
		raise HTTPException(
			status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
			detail=f"File {upload.filename} exceeds {max_bytes // 1024} KB",
		)
	return data


async def store_upload(
	storage: StorageService,
	upload: UploadFile,
	*,
	prefix: str,
	max_bytes: int,
	allowed_types: tuple[str, ...] | None = None,
) -> dict:
	"""Validate an upload and put it into the assets bucket."""
	if allowed_types and not (upload.content_type or "").startswith(allowed_types):
		raise HTTPException(
			status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
			detail=f"File {upload.filename} has an unsupported type",
		)
	data = await read_upload(upload, max_bytes=max_bytes)
	object_name = build_object_name(prefix, upload.filename)
	try:
		await run_in_threadpool(
			storage.upload_stream, object_name, io.BytesIO(data), len(data), upload.content_type
		)
	except StorageBucketError as exc:
		raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
	return {
		"file_path": object_name,
		"file_name": upload.filename or object_name,
		"file_type": upload.content_type,
		"file_size": len(data),
	}


async def discard_objects(storage: StorageService, object_names: list[str]) -> None:
	for object_name in object_names:
		try:
			await run_in_threadpool(storage.remove, object_name)
		except StorageBucketError:
			logger.warning("Could not remove stale object %s", object_name, exc_info=True)


async def store_uploads(
	storage: StorageService,
	uploads: list[UploadFile],
	*,
	prefix: str,
	max_bytes: int,
	allowed_types: tuple[str, ...] | None = None,
) -> list[dict]:
	"""Store several uploads; objects already written are removed if a later one fails."""
	stored: list[dict] = []
	try:
		for upload in uploads:
			stored.append(
				await store_upload(storage, upload, prefix=prefix, max_bytes=max_bytes, allowed_types=allowed_types)
			)
	except HTTPException:
		await discard_objects(storage, [item["file_path"] for item in stored])
		raise
	return stored
