"""Local durable cache — the key-value store under the queue and snapshot.

Values are anything ``json`` can serialise.  ``get`` never raises for a
missing key, ``remove`` is idempotent, and every failure of the backing
store surfaces as :class:`StorageError`.
"""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from animia_sync.client.errors import StorageError

logger = logging.getLogger(__name__)


class LocalDurableCache(ABC):
    """Async key-value contract shared by every cache backend."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Replace the value atomically."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete the key; a missing key is not an error."""


class MemoryCache(LocalDurableCache):
    """In-process cache; values round-trip through JSON like the file cache."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Cannot serialise value for {key!r}: {exc}") from exc

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileCache(LocalDurableCache):
    """One JSON file per key under ``directory``.

    Writes go to a temp file in the same directory which is then
    ``os.replace``d over the target, so a reader sees either the old or the
    new value and never a torn write.  Blocking file I/O runs in a worker
    thread to keep the event loop free.
    """

    def __init__(self, directory: str | os.PathLike) -> None:
        self._dir = Path(directory)

    def _path(self, key: str) -> Path:
        # Sanitised prefix for readability; the digest of the exact key keeps names distinct.
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        return self._dir / f"{_UNSAFE_CHARS.sub('_', key)[:64]}~{digest}.json"

    def _read(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            with open(path, encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            raise StorageError(f"Cannot read {key!r} from {path}: {exc}") from exc

    def _write(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            data = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Cannot serialise value for {key!r}: {exc}") from exc

        tmp_name = None
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{path.stem}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Cannot write {key!r} to {path}: {exc}") from exc

    def _delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot remove {key!r}: {exc}") from exc

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)
