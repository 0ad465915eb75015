"""Service layer utilities for external integrations."""

from .file_store import (
    FileNotStoredError,
    FileStore,
    LocalFileStore,
    S3FileStore,
    StoredFile,
    build_file_store,
)

__all__ = [
    "FileNotStoredError",
    "FileStore",
    "LocalFileStore",
    "S3FileStore",
    "StoredFile",
    "build_file_store",
]
