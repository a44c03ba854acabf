"""
Partial-structure matching used by collection queries.

A pattern constrains only what it names: every truthy key of a mapping
pattern must match the same key of the candidate, recursively. Falsy pattern
values (``None``, ``False``, ``0``, ``""``, empty containers) constrain
nothing, so ``{"active": False}`` selects every document.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

_MISSING = object()


def is_blank(pattern: Any) -> bool:
    if isinstance(pattern, float) and math.isnan(pattern):
        return True
    return not pattern


def _lookup(candidate: Any, key: Any) -> Any:
    # list indices and their string form address the same slot
    if isinstance(candidate, Mapping):
        if key in candidate:
            return candidate[key]
        if isinstance(key, int) and not isinstance(key, bool):
            return candidate.get(str(key), _MISSING)
        return _MISSING
    if isinstance(candidate, Sequence) and not isinstance(candidate, (str, bytes)):
        if isinstance(key, str) and key.isdigit():
            key = int(key)
        if isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(candidate):
            return candidate[key]
    return _MISSING


def _same(pattern: Any, candidate: Any) -> bool:
    if candidate is _MISSING:
        return False
    if isinstance(pattern, bool) or isinstance(candidate, bool):
        return type(pattern) is type(candidate) and pattern == candidate
    return bool(pattern == candidate)


def match(pattern: Any, candidate: Any) -> bool:
    """Return whether ``candidate`` has (at least) the structure of ``pattern``.

    List patterns are checked index by index; the candidate may be longer.
    """
    if is_blank(pattern):
        return True

    if isinstance(pattern, Mapping):
        return all(match(value, _lookup(candidate, key)) for key, value in pattern.items())

    if isinstance(pattern, (list, tuple)):
        return all(match(value, _lookup(candidate, index)) for index, value in enumerate(pattern))

    return _same(pattern, candidate)
