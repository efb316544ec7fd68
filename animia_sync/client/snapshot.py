"""Cache snapshots: last known-good entity lists kept for offline reads.

Each save overwrites a snapshot wholesale together with its ``fetched_at``
time.  Snapshots are never merged with pending mutations, so offline reads
can be stale.  A snapshot built with ``max_age`` treats anything older as
absent; the beneficiary snapshot has no expiry.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from animia_sync.client.cache import LocalDurableCache
from animia_sync.client.connectivity import ConnectivityObserver
from animia_sync.client.errors import StorageError, SyncError
from animia_sync.client.transport import SyncTransport

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "cached_beneficiaries"
INTERVENTIONS_KEY = "cached_interventions"
SCREENINGS_KEY = "cached_screenings"
DEFAULT_MAX_AGE = timedelta(hours=24)


class EntitySnapshot:
    def __init__(self, cache: LocalDurableCache, key: str,
                 max_age: Optional[timedelta] = None) -> None:
        self._cache = cache
        self._key = key
        self._max_age = max_age

    @property
    def key(self) -> str:
        return self._key

    async def save(self, records: list[dict[str, Any]]) -> None:
        await self._cache.set(self._key, {
            "fetched_at": datetime.now(timezone.utc).isoformat(),
            "records": records,
        })
        logger.info("Cached %d record(s) under %s", len(records), self._key)

    async def _read(self) -> Optional[dict[str, Any]]:
        try:
            raw = await self._cache.get(self._key)
        except StorageError as exc:
            logger.error("Cannot read %s: %s", self._key, exc)
            return None
        return raw if isinstance(raw, dict) else None

    def _expired(self, raw: dict[str, Any]) -> bool:
        if self._max_age is None:
            return False
        try:
            fetched_at = datetime.fromisoformat(raw["fetched_at"])
        except (KeyError, TypeError, ValueError):
            return True
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - fetched_at > self._max_age

    async def load(self) -> Optional[list[dict[str, Any]]]:
        """Cached records, or None when nothing usable (or nothing fresh) is cached."""
        raw = await self._read()
        if raw is None:
            logger.info("Nothing cached under %s", self._key)
            return None
        if self._expired(raw):
            logger.info("Cache %s expired", self._key)
            return None
        return list(raw.get("records") or [])

    async def is_expired(self) -> bool:
        raw = await self._read()
        return raw is None or self._expired(raw)

    async def fetched_at(self) -> Optional[str]:
        raw = await self._read()
        return raw.get("fetched_at") if raw else None

    async def clear(self) -> None:
        await self._cache.remove(self._key)


class BeneficiarySnapshot(EntitySnapshot):
    """The beneficiary list, refreshed from the server feed when online."""

    def __init__(self, cache: LocalDurableCache, transport: SyncTransport,
                 connectivity: ConnectivityObserver, key: str = SNAPSHOT_KEY) -> None:
        super().__init__(cache, key)
        self._transport = transport
        self._connectivity = connectivity

    async def load(self) -> list[dict[str, Any]]:
        """Cached records, or an empty list when nothing usable is cached."""
        return await super().load() or []

    async def fetch(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        """Fresh list when online (refreshing the cache), cached list otherwise."""
        if not (await self._connectivity.current_status()).is_online:
            logger.info("Offline; serving cached beneficiaries")
            return await self.load()

        try:
            records = await self._transport.fetch_beneficiaries(limit)
        except SyncError as exc:
            logger.warning("Beneficiary fetch failed (%s); serving cached list", exc)
            return await self.load()

        try:
            await self.save(records)
        except StorageError as exc:
            logger.error("Cannot cache beneficiaries: %s", exc)
        return records


def intervention_snapshot(cache: LocalDurableCache, max_age: timedelta = DEFAULT_MAX_AGE) -> EntitySnapshot:
    return EntitySnapshot(cache, INTERVENTIONS_KEY, max_age=max_age)


def screening_snapshot(cache: LocalDurableCache, max_age: timedelta = DEFAULT_MAX_AGE) -> EntitySnapshot:
    return EntitySnapshot(cache, SCREENINGS_KEY, max_age=max_age)
