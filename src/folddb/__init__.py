"""
Directory-backed document store with pattern-matching queries.

A :class:`Database` is a directory of collections; a :class:`Collection` is a
directory holding one JSON file per document, validated by a Pydantic-aware
type. Queries select documents by partial structure, see :func:`match`.
"""

from .codecs import DocumentCodec, JsonCodec, YamlCodec
from .collection import Collection, Document, PendingDocument
from .database import Database
from .exceptions import (
    ClearError,
    ConfigurationError,
    DocumentNotFoundError,
    DocumentValidationError,
    FoldDBError,
    InvalidIdError,
    StorageError,
)
from .ids import random_id, slug_id
from .match import match
from .store import DirectoryStore

__all__ = (
    "ClearError",
    "Collection",
    "ConfigurationError",
    "Database",
    "DirectoryStore",
    "Document",
    "DocumentCodec",
    "DocumentNotFoundError",
    "DocumentValidationError",
    "FoldDBError",
    "InvalidIdError",
    "JsonCodec",
    "PendingDocument",
    "StorageError",
    "YamlCodec",
    "match",
    "random_id",
    "slug_id",
)
