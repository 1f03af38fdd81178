"""Custom exceptions for the repository layer."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from pymongo.errors import DocumentTooLarge, WriteError

# Server-side codes for writes that exceed the BSON document size limit
_TOO_LARGE_CODES = {10334, 17419, 17420}


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""


class DuplicateKeyRepositoryError(RepositoryError):
    """Raised when attempting to insert a document that violates a unique index."""


class NotFoundRepositoryError(RepositoryError):
    """Raised when an expected document is missing."""


class StorageExceededRepositoryError(RepositoryError):
    """Raised when the database rejects a write because the document is too large."""


class ConcurrentUpdateRepositoryError(RepositoryError):
    """Raised when a compare-and-set write lost the race against another writer."""


@contextmanager
def storage_guard(label: str) -> Iterator[None]:
    """Translate driver size-limit failures into StorageExceededRepositoryError."""
    try:
        yield
    except DocumentTooLarge as exc:
        raise StorageExceededRepositoryError(f"{label} exceeds storage limit") from exc
    except WriteError as exc:
        if exc.code in _TOO_LARGE_CODES:
            raise StorageExceededRepositoryError(f"{label} exceeds storage limit") from exc
        raise


__all__ = [
    "ConcurrentUpdateRepositoryError",
    "DuplicateKeyRepositoryError",
    "NotFoundRepositoryError",
    "RepositoryError",
    "StorageExceededRepositoryError",
    "storage_guard",
]
