"""Offline queue manager — the ordered list of pending mutations.

The whole queue is one JSON list under a single cache key.  Every
operation that touches it holds ``self._lock`` for its full
read-modify-write, so an enqueue from a screen and a removal from the
sync engine can interleave on the event loop without losing entries.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from animia_sync.client.cache import LocalDurableCache
from animia_sync.client.errors import StorageError
from animia_sync.client.mutation import Mutation
from animia_sync.schemas.sync import SyncEntity, SyncOperation, parse_payload

logger = logging.getLogger(__name__)

QUEUE_KEY = "offline_queue"


class OfflineQueue:
    def __init__(self, cache: LocalDurableCache, key: str = QUEUE_KEY) -> None:
        self._cache = cache
        self._key = key
        self._lock = asyncio.Lock()

    async def _load(self) -> list[dict[str, Any]]:
        items = await self._cache.get(self._key)
        if items is None:
            return []
        if not isinstance(items, list):
            raise StorageError(f"Offline queue under {self._key!r} is not a list")
        return items

    async def enqueue(self, operation: str | SyncOperation, entity: str | SyncEntity,
                      payload: dict[str, Any]) -> Mutation:
        """Validate and append a mutation; StorageError propagates to the caller.

        Raises ValueError for an unknown operation/entity, UnsupportedOperation
        for a pair the server cannot apply, and pydantic.ValidationError for
        a malformed payload.
        """
        op = SyncOperation(operation)
        target = SyncEntity(entity)
        parse_payload(op, target, payload)

        mutation = Mutation.create(op, target, payload)
        async with self._lock:
            items = await self._load()
            items.append(mutation.to_dict())
            await self._cache.set(self._key, items)
        logger.info("Queued %s %s as %s (%d pending)", op.value, target.value, mutation.id, len(items))
        return mutation

    async def list(self) -> list[Mutation]:
        """Pending mutations in FIFO order."""
        async with self._lock:
            items = await self._load()

        mutations = []
        for raw in items:
            try:
                mutations.append(Mutation.from_dict(raw))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable queue entry %r: %s", raw, exc)
        return mutations

    async def remove(self, mutation_id: str) -> bool:
        """Drop a mutation by id; removing an unknown id is a no-op."""
        async with self._lock:
            items = await self._load()
            kept = [item for item in items if not (isinstance(item, dict) and item.get("id") == mutation_id)]
            if len(kept) == len(items):
                return False
            await self._cache.set(self._key, kept)
        logger.debug("Removed %s from offline queue (%d pending)", mutation_id, len(kept))
        return True

    async def clear(self) -> None:
        async with self._lock:
            await self._cache.remove(self._key)
        logger.info("Offline queue cleared")

    async def count(self) -> int:
        async with self._lock:
            return len(await self._load())
