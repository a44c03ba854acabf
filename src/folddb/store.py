"""
Filesystem boundary used by collections and databases.

Every method is a thin async wrapper around a single directory operation.
Errors from the operating system propagate unchanged except for
:meth:`DirectoryStore.clear`, which gathers them into a :class:`ClearError`.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import List
from uuid import uuid4

import aiofiles
import aiofiles.os

from .exceptions import ClearError

logger = logging.getLogger(__name__)

TEMP_PREFIX = "."
TEMP_SUFFIX = ".tmp"


def _is_hidden(name: str) -> bool:
    # in-flight temp files and other dot entries are never document ids
    return name.startswith(TEMP_PREFIX)


class DirectoryStore:
    """Async list/read/write/delete over the entries of a directory."""

    async def list(self, directory: Path) -> List[str]:
        names = await aiofiles.os.listdir(directory)
        return [name for name in names if not _is_hidden(name)]

    async def read(self, directory: Path, name: str) -> bytes:
        async with aiofiles.open(directory / name, "rb") as fh:
            return await fh.read()

    async def write(self, directory: Path, name: str, payload: bytes) -> None:
        target = directory / name
        temp = directory / f"{TEMP_PREFIX}{name}.{uuid4().hex}{TEMP_SUFFIX}"
        try:
            async with aiofiles.open(temp, "wb") as fh:
                await fh.write(payload)
                await fh.flush()
            # os.replace is atomic for readers on POSIX and Windows
            await aiofiles.os.replace(temp, target)
        except BaseException:
            if await aiofiles.os.path.exists(temp):
                await aiofiles.os.remove(temp)
            raise
        logger.debug("Wrote %d bytes to %s", len(payload), target)

    async def exists(self, directory: Path, name: str) -> bool:
        return await aiofiles.os.path.isfile(directory / name)

    async def delete(self, directory: Path, name: str) -> None:
        await aiofiles.os.remove(directory / name)
        logger.debug("Deleted %s", directory / name)

    async def remove_dir(self, path: Path, *, recursive: bool = False) -> None:
        if recursive:
            await asyncio.to_thread(shutil.rmtree, path)
        else:
            await aiofiles.os.rmdir(path)
        logger.debug("Removed directory %s (recursive=%s)", path, recursive)

    async def clear(self, directory: Path) -> None:
        names = await aiofiles.os.listdir(directory)
        results = await asyncio.gather(
            *(self._delete_entry(directory / name) for name in names),
            return_exceptions=True,
        )
        failures = {
            name: result
            for name, result in zip(names, results)
            if isinstance(result, BaseException)
        }
        if failures:
            logger.warning(
                "Cleared %s with %d of %d entries failing",
                directory,
                len(failures),
                len(names),
            )
            raise ClearError(str(directory), failures)
        logger.debug("Cleared %d entries from %s", len(names), directory)

    async def ensure_dir(self, path: Path) -> None:
        await aiofiles.os.makedirs(path, exist_ok=True)

    def ensure_dir_sync(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    async def _delete_entry(self, path: Path) -> None:
        # single-entry removal: directories are only removed when empty
        if await aiofiles.os.path.isdir(path) and not await aiofiles.os.path.islink(path):
            await aiofiles.os.rmdir(path)
        else:
            await aiofiles.os.remove(path)
