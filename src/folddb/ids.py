from __future__ import annotations

import re
from typing import Any, Callable
from uuid import uuid4

from .exceptions import InvalidIdError

IdGenerator = Callable[[Any], str]

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def random_id(data: Any) -> str:
    """Default generator: a random UUID4 in canonical form. ``data`` is ignored."""
    return str(uuid4())


def slugify(value: Any) -> str:
    """Normalize a value into a filesystem-friendly slug."""
    text = str(value).strip().lower()
    text = SLUG_PATTERN.sub("-", text)
    text = text.strip("-")
    return text or "item"


def slug_id(field: str) -> IdGenerator:
    """Build a generator deriving natural keys from ``data[field]``.

    Documents sharing a slug share an id, so saving the second one replaces
    the first.
    """

    def _generate(data: Any) -> str:
        if isinstance(data, dict):
            value = data.get(field)
        else:
            value = getattr(data, field, None)
        if value is None:
            raise InvalidIdError(f"Cannot derive an id: field '{field}' is missing")
        return slugify(value)

    return _generate


def check_id(doc_id: Any) -> str:
    if not isinstance(doc_id, str) or not doc_id:
        raise InvalidIdError(f"Identifier must be a non-empty string, got {doc_id!r}")
    if doc_id in (".", "..") or doc_id.startswith("."):
        raise InvalidIdError(f"Identifier {doc_id!r} may not start with '.'")
    if "/" in doc_id or "\\" in doc_id or "\x00" in doc_id:
        raise InvalidIdError(f"Identifier {doc_id!r} contains a path separator")
    return doc_id
