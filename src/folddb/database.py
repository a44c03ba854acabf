from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, List, TypeVar

import aiofiles.os
from pydantic_core import to_jsonable_python

from .codecs import DocumentCodec, resolve_codec
from .collection import Collection
from .exceptions import ConfigurationError, StorageError
from .ids import IdGenerator, check_id, random_id
from .store import DirectoryStore

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Database:
    """Root directory holding one sub-directory per collection.

    Parameters
    ----------
    root:
        Database directory. Created (with parents) if missing.
    format:
        Codec used by every collection of this database (``"json"`` or
        ``"yaml"``).
    """

    def __init__(self, root: Path | str, *, format: str | DocumentCodec = "json") -> None:
        self.root = _root_path(root)
        self.format = format
        self._codec = resolve_codec(format)
        self._store = DirectoryStore()
        try:
            self._store.ensure_dir_sync(self.root)
        except OSError as exc:
            raise StorageError(f"Cannot create database directory '{self.root}'") from exc
        logger.info("Opened database at %s", self.root)

    @classmethod
    async def from_structure(
        cls,
        structure: Mapping[str, Mapping[Any, Any]],
        root: Path | str,
        *,
        format: str | DocumentCodec = "json",
        id_generator: IdGenerator = random_id,
    ) -> "Database":
        """Bulk-load ``{collection: {old_key: record}}`` into a new database.

        Old keys are discarded; every record is written under a freshly
        generated id. ``structure`` itself is left untouched.
        """
        root_path = _root_path(root)
        codec = resolve_codec(format)
        store = DirectoryStore()
        written = 0
        try:
            await store.ensure_dir(root_path)
            for name, records in structure.items():
                collection_path = root_path / check_id(name)
                await store.ensure_dir(collection_path)
                for record in records.values():
                    doc_id = check_id(id_generator(record))
                    payload = {"data": to_jsonable_python(record), "id": doc_id}
                    await store.write(collection_path, doc_id, codec.encode(payload))
                    written += 1
        except OSError as exc:
            raise StorageError(f"Import into '{root_path}' failed: {exc}") from exc
        logger.info(
            "Imported %d documents in %d collections into %s",
            written,
            len(structure),
            root_path,
        )
        return cls(root_path, format=codec)

    # Collections -------------------------------------------------------
    async def collection(
        self,
        name: str,
        type_: type[T] | Callable[[Any], T],
        id_generator: IdGenerator | None = None,
    ) -> Collection[T]:
        path = self.root / check_id(name)
        try:
            await self._store.ensure_dir(path)
        except OSError as exc:
            raise StorageError(f"Cannot create collection '{name}'") from exc
        return self._collection(path, type_, id_generator)

    def collection_sync(
        self,
        name: str,
        type_: type[T] | Callable[[Any], T],
        id_generator: IdGenerator | None = None,
    ) -> Collection[T]:
        path = self.root / check_id(name)
        try:
            self._store.ensure_dir_sync(path)
        except OSError as exc:
            raise StorageError(f"Cannot create collection '{name}'") from exc
        return self._collection(path, type_, id_generator)

    async def collection_names(self) -> List[str]:
        try:
            names = await self._store.list(self.root)
        except OSError as exc:
            raise StorageError(f"Cannot list database '{self.root}'") from exc
        return sorted([name for name in names if await aiofiles.os.path.isdir(self.root / name)])

    # Lifecycle operations ----------------------------------------------
    async def clear(self) -> None:
        """Remove every entry directly under the root.

        Collection directories are removed as single entries, so non-empty
        ones fail and are reported in the raised :class:`ClearError`.
        """
        try:
            await self._store.clear(self.root)
        except OSError as exc:
            raise StorageError(f"Cannot clear database '{self.root}'") from exc

    async def remove_collection(self, name: str, *, recursive: bool = False) -> None:
        """Remove a collection directory.

        Without ``recursive`` only an empty collection can be removed.
        """
        path = self.root / check_id(name)
        try:
            await self._store.remove_dir(path, recursive=recursive)
        except OSError as exc:
            raise StorageError(f"Cannot remove collection '{name}': {exc}") from exc

    async def destroy(self, *, recursive: bool = False) -> None:
        try:
            await self._store.remove_dir(self.root, recursive=recursive)
        except OSError as exc:
            raise StorageError(f"Cannot destroy database '{self.root}': {exc}") from exc
        logger.info("Destroyed database at %s", self.root)

    # Internal helpers --------------------------------------------------
    def _collection(
        self,
        path: Path,
        type_: type[T] | Callable[[Any], T],
        id_generator: IdGenerator | None,
    ) -> Collection[T]:
        return Collection(
            type_,
            path,
            id_generator=id_generator,
            format=self._codec,
            store=self._store,
        )

    def __repr__(self) -> str:
        return f"Database(root={str(self.root)!r})"


def _root_path(root: Path | str | None) -> Path:
    # Path("") collapses to ".", so both spellings count as missing
    if root is None or str(root) in ("", "."):
        raise ConfigurationError("Invalid path to database")
    return Path(root).expanduser()
