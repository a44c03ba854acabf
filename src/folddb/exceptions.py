from __future__ import annotations

from typing import Mapping


class FoldDBError(Exception):
    """Base exception for folddb errors."""


class ConfigurationError(FoldDBError, ValueError):
    """Raised when a database or collection is configured with unusable options."""


class InvalidIdError(FoldDBError, ValueError):
    """Raised when a document identifier cannot be used as a directory entry."""


class DocumentNotFoundError(FoldDBError, LookupError):
    """Raised when a document id has no file in its collection."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"Document '{doc_id}' not found in collection '{collection}'")
        self.collection = collection
        self.id = doc_id


class DocumentValidationError(FoldDBError, ValueError):
    """Raised when the collection's type rejects document data."""


class StorageError(FoldDBError):
    """Raised when the underlying filesystem operation fails."""


class ClearError(StorageError):
    """Raised when some entries of a directory could not be deleted."""

    def __init__(self, path: str, failures: Mapping[str, BaseException]) -> None:
        names = ", ".join(sorted(failures))
        super().__init__(f"Failed to delete {len(failures)} entries in '{path}': {names}")
        self.path = path
        self.failures = dict(failures)
