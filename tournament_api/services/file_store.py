"""Blob storage for uploaded payment-proof files."""

from __future__ import annotations

import asyncio
import os
import pathlib
from dataclasses import dataclass
from typing import Optional

import aiofiles

from tournament_api.ids import is_object_id, new_object_id

try:  # optional dependency for S3-compatible stores
    import boto3
    from botocore.exceptions import BotoCoreError, ClientError
except Exception:  # pragma: no cover - boto3 optional
    boto3 = None
    BotoCoreError = ClientError = Exception


class FileNotStoredError(LookupError):
    """The requested file id is not present in the store."""


@dataclass
class StoredFile:
    file_id: str
    filename: str
    content_type: str
    size: int
    backend: str


class FileStore:
    backend_name = "base"

    async def save(self, data: bytes, filename: str, content_type: str) -> StoredFile:  # pragma: no cover
        raise NotImplementedError

    async def read(self, file_id: str) -> bytes:  # pragma: no cover - interface only
        raise NotImplementedError

    async def delete(self, file_id: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError


class LocalFileStore(FileStore):
    backend_name = "local"

    def __init__(self, base_path: Optional[str] = None) -> None:
        base_path = base_path or os.getenv("UPLOAD_LOCAL_PATH", "storage/uploads")
        self.base_path = pathlib.Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, file_id: str) -> pathlib.Path:
        # Ids are generated here; anything else is never a path we wrote.
        if not is_object_id(file_id):
            raise FileNotStoredError(file_id)
        return self.base_path / file_id.lower()

    async def save(self, data: bytes, filename: str, content_type: str) -> StoredFile:
        file_id = new_object_id()
        async with aiofiles.open(self._path_for(file_id), "wb") as buffer:
            await buffer.write(data)
        return StoredFile(
            file_id=file_id,
            filename=filename,
            content_type=content_type,
            size=len(data),
            backend=self.backend_name,
        )

    async def read(self, file_id: str) -> bytes:
        path = self._path_for(file_id)
        try:
            async with aiofiles.open(path, "rb") as handle:
                return await handle.read()
        except FileNotFoundError as exc:
            raise FileNotStoredError(file_id) from exc

    async def delete(self, file_id: str) -> None:
        try:
            self._path_for(file_id).unlink()
        except FileNotFoundError:  # pragma: no cover - fine if already gone
            pass


class S3FileStore(FileStore):
    backend_name = "s3"

    def __init__(self) -> None:
        if boto3 is None:
            raise RuntimeError("boto3 is required for S3 file storage")
        bucket = os.getenv("UPLOAD_S3_BUCKET")
        if not bucket:
            raise RuntimeError("UPLOAD_S3_BUCKET must be set for S3 storage")
        self.bucket = bucket
        self.prefix = os.getenv("UPLOAD_S3_PREFIX", "bank-slips/")
        self.client = boto3.client(
            "s3",
            endpoint_url=os.getenv("UPLOAD_S3_ENDPOINT"),
            region_name=os.getenv("UPLOAD_S3_REGION"),
        )

    def _key(self, file_id: str) -> str:
        return f"{self.prefix}{file_id}"

    async def save(self, data: bytes, filename: str, content_type: str) -> StoredFile:
        file_id = new_object_id()
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=self._key(file_id),
                Body=data,
                ContentType=content_type,
                Metadata={"original-name": filename},
            )
        except (BotoCoreError, ClientError) as exc:  # pragma: no cover
            raise RuntimeError(f"Failed to store file: {exc}") from exc
        return StoredFile(
            file_id=file_id,
            filename=filename,
            content_type=content_type,
            size=len(data),
            backend=self.backend_name,
        )

    async def read(self, file_id: str) -> bytes:
        def _download() -> bytes:
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(file_id))
            return response["Body"].read()

        try:
            return await asyncio.to_thread(_download)
        except ClientError as exc:  # pragma: no cover - needs a real bucket
            raise FileNotStoredError(file_id) from exc

    async def delete(self, file_id: str) -> None:
        await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=self._key(file_id))


def build_file_store(settings) -> FileStore:
    backend = settings.file_storage
    if backend == "local":
        return LocalFileStore(settings.upload_local_path)
    if backend == "s3":
        return S3FileStore()
    raise RuntimeError(f"Unsupported FILE_STORAGE backend: {backend}")
