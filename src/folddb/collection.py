from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Generic, Iterator, List, Optional, TypeVar

from .codecs import DocumentCodec, resolve_codec
from .exceptions import DocumentNotFoundError, StorageError
from .ids import IdGenerator, check_id, random_id
from .match import is_blank, match
from .store import DirectoryStore
from .validation import Validator, to_plain

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document(Generic[T]):
    """A stored record: its identifier and its validated data."""

    id: str
    data: T


@dataclass(frozen=True)
class PendingDocument(Document[T]):
    """Document built by :meth:`Collection.new`; nothing is written until :meth:`save`."""

    collection: "Collection[T]" = field(repr=False, compare=False, default=None)

    async def save(self) -> None:
        await self.collection._write(self.id, self.data)


class Collection(Generic[T]):
    """Directory of documents sharing a type and an identifier namespace.

    Parameters
    ----------
    type_:
        Type used to validate and coerce document data, e.g. a Pydantic
        ``BaseModel`` or ``dict[str, Any]``. A plain callable also works.
    path:
        Directory holding one file per document. It must already exist;
        :meth:`folddb.Database.collection` creates it.
    id_generator:
        Function of the validated data returning the new document's id.
        Defaults to a random UUID. Ids are not checked for uniqueness.
    format:
        Codec name (``"json"`` or ``"yaml"``) or a :class:`DocumentCodec`.

    Nothing is cached: every call reads the directory again.
    """

    def __init__(
        self,
        type_: type[T] | Callable[[Any], T],
        path: Path | str,
        *,
        id_generator: IdGenerator | None = None,
        format: str | DocumentCodec = "json",
        store: DirectoryStore | None = None,
    ) -> None:
        self.path = Path(path).expanduser()
        self.name = self.path.name
        self._validator: Validator[T] = Validator(type_)
        self._generate_id = id_generator or random_id
        self._codec = resolve_codec(format)
        self._store = store or DirectoryStore()

    @property
    def type(self) -> Any:
        return self._validator.type

    # Lifecycle operations ----------------------------------------------
    def new(self, data: Any) -> PendingDocument[T]:
        value = self._validator.validate(data)
        doc_id = check_id(self._generate_id(value))
        return PendingDocument(id=doc_id, data=value, collection=self)

    async def ids(self) -> AsyncIterator[str]:
        """Yield every id currently in the directory, listing it afresh."""
        with self._storage_errors():
            names = await self._store.list(self.path)
        for name in names:
            yield name

    async def select(self, doc_id: str) -> Document[T]:
        check_id(doc_id)
        with self._storage_errors(doc_id):
            raw = await self._store.read(self.path, doc_id)
        try:
            payload = self._codec.decode(raw)
        except ValueError as exc:
            raise StorageError(f"Corrupt document '{doc_id}' in '{self.path}'") from exc
        return Document(id=doc_id, data=self._validator.validate(payload.get("data")))

    async def delete(self, doc_id: str) -> None:
        check_id(doc_id)
        with self._storage_errors(doc_id):
            await self._store.delete(self.path, doc_id)

    async def clear(self) -> None:
        with self._storage_errors():
            await self._store.clear(self.path)

    async def update(self, doc_id: str, value: Any, *, override: bool = False) -> Document[T]:
        """Merge ``value`` into a stored document and write it back.

        Mapping data is shallow-merged with ``value`` (list values add
        their indices as keys) and list data is overlaid index by index.
        Container data is kept as is when ``value`` has no keys to merge;
        scalar data is replaced. ``override`` replaces the data outright.
        The result is validated again.
        """
        current = await self.select(doc_id)
        patch = to_plain(value)
        merged = patch if override else _merge(self._validator.dump(current.data), patch)
        updated = Document(id=doc_id, data=self._validator.validate(merged))
        await self._write(updated.id, updated.data)
        return updated

    # Query entrypoints -------------------------------------------------
    async def find(
        self,
        item: Any = None,
        count: Optional[int] = None,
        except_: bool = False,
    ) -> List[Document[T]]:
        """Collect documents whose data matches ``item``.

        With ``except_`` the selection is inverted. Scanning stops once
        ``count`` documents were collected.
        """
        pattern = to_plain(item)
        found: List[Document[T]] = []
        async for doc_id in self.ids():
            if count is not None and len(found) == count:
                break
            document = await self.select(doc_id)
            if self._selected(pattern, document, except_):
                found.append(document)
        logger.debug("find in %s returned %d documents", self.name, len(found))
        return found

    async def find_one(self, item: Any = None, except_: bool = False) -> Optional[Document[T]]:
        found = await self.find(item, count=1, except_=except_)
        return found[0] if found else None

    async def remove(
        self,
        item: Any = None,
        count: Optional[int] = None,
        except_: bool = False,
    ) -> int:
        """Delete matching documents and return how many were deleted.

        ``count`` limits the number of documents *examined*, matching or not.
        """
        pattern = to_plain(item)
        removed = 0
        async for doc_id in self.ids():
            if count == 0:
                break
            if count is not None:
                count -= 1
            if not _absent(pattern):
                document = await self.select(doc_id)
                if not self._selected(pattern, document, except_):
                    continue
            await self.delete(doc_id)
            removed += 1
        logger.debug("remove in %s deleted %d documents", self.name, removed)
        return removed

    async def count(self) -> int:
        with self._storage_errors():
            return len(await self._store.list(self.path))

    async def exists(self, doc_id: str) -> bool:
        check_id(doc_id)
        with self._storage_errors():
            return await self._store.exists(self.path, doc_id)

    async def __aiter__(self) -> AsyncIterator[Document[T]]:
        async for doc_id in self.ids():
            yield await self.select(doc_id)

    # Internal helpers --------------------------------------------------
    def _selected(self, pattern: Any, document: Document[T], except_: bool) -> bool:
        if _absent(pattern):
            return True
        return match(pattern, self._validator.dump(document.data)) != bool(except_)

    async def _write(self, doc_id: str, data: T) -> None:
        payload = {"data": self._validator.dump(data), "id": doc_id}
        with self._storage_errors():
            await self._store.write(self.path, doc_id, self._codec.encode(payload))

    @contextmanager
    def _storage_errors(self, doc_id: str | None = None) -> Iterator[None]:
        try:
            yield
        except FileNotFoundError as exc:
            if doc_id is None:
                raise StorageError(f"Collection directory '{self.path}' is missing") from exc
            raise DocumentNotFoundError(self.name, doc_id) from exc
        except OSError as exc:
            raise StorageError(f"I/O error in collection '{self.name}': {exc}") from exc

    def __repr__(self) -> str:
        return f"Collection(name={self.name!r}, path={str(self.path)!r})"


def _absent(pattern: Any) -> bool:
    # containers always count as a pattern, even when empty
    if isinstance(pattern, (Mapping, list, tuple)):
        return False
    return is_blank(pattern)


def _merge(current: Any, patch: Any) -> Any:
    if isinstance(current, Mapping):
        if isinstance(patch, Mapping):
            return {**current, **patch}
        if isinstance(patch, list):
            return {**current, **{str(index): value for index, value in enumerate(patch)}}
        return dict(current)
    if isinstance(current, list):
        if isinstance(patch, list):
            overlay = dict(enumerate(patch))
        elif isinstance(patch, Mapping):
            overlay = {int(key): value for key, value in patch.items() if str(key).isdigit()}
        else:
            return list(current)
        merged = list(current)
        for index, value in sorted(overlay.items()):
            if index >= len(merged):
                merged.extend([None] * (index + 1 - len(merged)))
            merged[index] = value
        return merged
    return patch
