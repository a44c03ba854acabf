from __future__ import annotations

import inspect
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from .exceptions import DocumentValidationError

T = TypeVar("T")


class Validator(Generic[T]):
    """Validate and serialize document data for one collection.

    ``type_`` is anything pydantic can build a ``TypeAdapter`` for: a
    ``BaseModel`` subclass, ``dict[str, Any]``, ``int``, a dataclass... A plain
    function ``raw -> validated`` is also accepted and called as is.
    """

    def __init__(self, type_: type[T] | Callable[[Any], T]) -> None:
        self.type = type_
        self._adapter: TypeAdapter[T] | None = None
        if inspect.isfunction(type_) or inspect.ismethod(type_) or inspect.isbuiltin(type_):
            self._func: Callable[[Any], T] | None = type_
        else:
            self._func = None
            self._adapter = TypeAdapter(type_)

    def validate(self, raw: Any) -> T:
        try:
            if self._adapter is not None:
                return self._adapter.validate_python(raw)
            return self._func(raw)
        except (ValidationError, ValueError, TypeError) as exc:
            raise DocumentValidationError(f"Invalid document data: {exc}") from exc

    def dump(self, value: T) -> Any:
        """Return the JSON-compatible form written to disk and used for matching."""
        if self._adapter is not None:
            return self._adapter.dump_python(value, mode="json")
        return to_jsonable_python(value)


def to_plain(item: Any) -> Any:
    """Reduce a query pattern or update value to plain values.

    Models keep only the fields that were set explicitly, so defaults never
    turn into constraints.
    """
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json", exclude_unset=True)
    return to_jsonable_python(item)
