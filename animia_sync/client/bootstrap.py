"""Wires the offline sync client together from settings."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Optional

import httpx

from animia_sync.config import Settings, settings as default_settings
from animia_sync.client.cache import JsonFileCache, LocalDurableCache
from animia_sync.client.connectivity import ConnectivityObserver, HttpProbeConnectivity
from animia_sync.client.engine import SyncEngine, SyncResult
from animia_sync.client.queue import OfflineQueue
from animia_sync.client.scheduler import SyncScheduler
from animia_sync.client.snapshot import (
    BeneficiarySnapshot,
    EntitySnapshot,
    intervention_snapshot,
    screening_snapshot,
)
from animia_sync.client.transport import SyncTransport

logger = logging.getLogger(__name__)


@dataclass
class SyncClient:
    cache: LocalDurableCache
    queue: OfflineQueue
    connectivity: ConnectivityObserver
    transport: SyncTransport
    engine: SyncEngine
    scheduler: SyncScheduler
    snapshot: BeneficiarySnapshot
    interventions: EntitySnapshot
    screenings: EntitySnapshot

    async def start(self) -> None:
        await self.connectivity.start()
        self.scheduler.start()

    async def aclose(self) -> None:
        try:
            await self.scheduler.stop()
            await self.connectivity.stop()
        finally:
            await self.transport.aclose()

    async def clear_cache(self) -> None:
        """Drop every snapshot and the offline queue."""
        for snapshot in (self.snapshot, self.interventions, self.screenings):
            await snapshot.clear()
        await self.queue.clear()


def build_sync_client(
    config: Settings = default_settings,
    cache: Optional[LocalDurableCache] = None,
    connectivity: Optional[ConnectivityObserver] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    on_synced: Optional[Callable[[int], Any]] = None,
    on_failed: Optional[Callable[[SyncResult], Any]] = None,
) -> SyncClient:
    """Build the client once at application start; pass the result around."""
    cache = cache or JsonFileCache(config.CACHE_DIR)
    transport = SyncTransport(config.SYNC_ENDPOINT, timeout=config.SYNC_TIMEOUT_SECONDS, client=http_client)
    if connectivity is None:
        connectivity = HttpProbeConnectivity(
            transport.url_for("/api/health"),
            interval=config.CONNECTIVITY_PROBE_INTERVAL_SECONDS,
            client=http_client,
        )
    queue = OfflineQueue(cache)
    engine = SyncEngine(queue, connectivity, transport, on_synced=on_synced, on_failed=on_failed)
    scheduler = SyncScheduler(engine, connectivity, interval=config.SYNC_INTERVAL_SECONDS)
    snapshot = BeneficiarySnapshot(cache, transport, connectivity)
    max_age = timedelta(hours=config.CACHE_MAX_AGE_HOURS)
    logger.info("Sync client ready (endpoint=%s, cache=%s)", config.SYNC_ENDPOINT, type(cache).__name__)
    return SyncClient(
        cache, queue, connectivity, transport, engine, scheduler, snapshot,
        interventions=intervention_snapshot(cache, max_age),
        screenings=screening_snapshot(cache, max_age),
    )
