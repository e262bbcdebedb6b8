"""Unit tests for multi-file uploads into object storage."""
from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from lms.storage import StorageBucketError, StorageService, store_uploads


def _upload(name: str, size: int, content_type: str = "application/pdf") -> UploadFile:
	return UploadFile(
		file=io.BytesIO(b"x" * size),
		filename=name,
		headers=Headers({"content-type": content_type}),
	)


@pytest.fixture
def storage():
	return MagicMock(spec=StorageService)


class TestStoreUploads:
	async def test_stores_every_file(self, storage):
		stored = await store_uploads(
			storage,
			[_upload("a.pdf", 10), _upload("b.pdf", 20)],
			prefix="submissions/1/2",
			max_bytes=100,
		)

		assert [item["file_name"] for item in stored] == ["a.pdf", "b.pdf"]
		assert [item["file_size"] for item in stored] == [10, 20]
		assert all(item["file_path"].startswith("submissions/1/2/") for item in stored)
		assert storage.upload_stream.call_count == 2
		storage.remove.assert_not_called()

	async def test_oversize_file_discards_earlier_objects(self, storage):
		with pytest.raises(HTTPException) as exc_info:
			await store_uploads(
				storage,
				[_upload("a.pdf", 10), _upload("b.pdf", 500)],
				prefix="submissions/1/2",
				max_bytes=100,
			)

		assert exc_info.value.status_code == 422
		storage.upload_stream.assert_called_once()
		written = storage.upload_stream.call_args.args[0]
		storage.remove.assert_called_once_with(written)

	async def test_storage_error_discards_earlier_objects(self, storage):
		storage.upload_stream.side_effect = [None, StorageBucketError("bucket down")]

		with pytest.raises(HTTPException) as exc_info:
			await store_uploads(
				storage,
				[_upload("a.pdf", 10), _upload("b.pdf", 10)],
				prefix="submissions/1/2",
				max_bytes=100,
			)

		assert exc_info.value.status_code == 502
		first = storage.upload_stream.call_args_list[0].args[0]
		storage.remove.assert_called_once_with(first)

	async def test_rejected_type_stores_nothing(self, storage):
		with pytest.raises(HTTPException):
			await store_uploads(
				storage,
				[_upload("a.exe", 10, "application/octet-stream")],
				prefix="submissions/1/2",
				max_bytes=100,
				allowed_types=("application/pdf",),
			)

		storage.upload_stream.assert_not_called()
		storage.remove.assert_not_called()
