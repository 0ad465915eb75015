"""Storage adapters: one interface, a SQL backend and an in-memory backend."""

from .base import (
    CONFIRMED_STATUSES,
    DuplicateEntryError,
    DuplicateTeamNameError,
    DuplicateUsernameError,
    StorageError,
    TournamentStorage,
)
from .memory import InMemoryStorage
from .sql import SQLStorage

__all__ = [
    "CONFIRMED_STATUSES",
    "DuplicateEntryError",
    "DuplicateTeamNameError",
    "DuplicateUsernameError",
    "InMemoryStorage",
    "SQLStorage",
    "StorageError",
    "TournamentStorage",
    "build_storage",
]


def build_storage(settings) -> TournamentStorage:
    """Storage backend named by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        return InMemoryStorage()
    if settings.storage_backend == "sql":
        return SQLStorage.from_url(
            settings.database_url,
            init_max_attempts=settings.db_init_max_attempts,
            init_retry_seconds=settings.db_init_retry_seconds,
        )
    raise RuntimeError(f"Unsupported STORAGE_BACKEND: {settings.storage_backend}")
