"""Sync engine — drains the offline queue against the sync endpoint.

Delivery is one mutation per request in FIFO order.  A mutation that fails
stays queued and the drain moves on to the next one, so ordering is
best-effort: one stuck entry never blocks the entries behind it.  There
is no terminal failure state; every pending mutation is retried on every
run.

At most one run is in flight.  A trigger that arrives while a run is
active is dropped and reported as ``BUSY``; the flag is checked and set
with no await in between, so two triggers on the same event loop cannot
both start draining.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from animia_sync.client.connectivity import ConnectivityObserver
from animia_sync.client.errors import InvalidResponse, NetworkError, RemoteRejected, StorageError
from animia_sync.client.mutation import Mutation
from animia_sync.client.queue import OfflineQueue
from animia_sync.client.transport import SyncTransport

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    SKIPPED = "skipped"
    ALREADY_SYNCED = "already_synced"
    COMPLETED = "completed"
    BUSY = "busy"


@dataclass
class SyncResult:
    status: SyncStatus
    synced: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "synced": self.synced, "failed": self.failed}


def _log_summary(synced: int) -> None:
    logger.info("Sync complete: %d offline item(s) synced successfully", synced)


class SyncEngine:
    """Replays queued mutations.

    Parameters
    ----------
    queue : OfflineQueue
        Source of pending mutations; entries are removed once acknowledged.
    connectivity : ConnectivityObserver
        Consulted before the run and between deliveries.
    transport : SyncTransport
        Performs the POST for each envelope.
    on_synced : callable, optional
        ``(count) -> None`` user-visible summary after a run that synced
        anything.  Defaults to a log line.
    on_failed : callable, optional
        ``(SyncResult) -> None`` called only for manual runs that had
        failures; automatic runs stay silent.
    """

    def __init__(
        self,
        queue: OfflineQueue,
        connectivity: ConnectivityObserver,
        transport: SyncTransport,
        on_synced: Optional[Callable[[int], Any]] = None,
        on_failed: Optional[Callable[[SyncResult], Any]] = None,
    ) -> None:
        self._queue = queue
        self._connectivity = connectivity
        self._transport = transport
        self._on_synced = on_synced or _log_summary
        self._on_failed = on_failed
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_sync_once(self, manual: bool = False) -> SyncResult:
        if self._running:
            logger.debug("Sync already in progress; dropping trigger")
            return SyncResult(SyncStatus.BUSY)

        self._running = True
        try:
            result = await self._drain()
        finally:
            self._running = False

        if result.synced:
            await self._notify(self._on_synced, result.synced)
        if manual and result.failed and self._on_failed is not None:
            await self._notify(self._on_failed, result)
        return result

    async def _drain(self) -> SyncResult:
        if not (await self._connectivity.current_status()).is_online:
            logger.info("Offline; sync skipped")
            return SyncResult(SyncStatus.SKIPPED)

        try:
            mutations = await self._queue.list()
        except StorageError as exc:
            logger.error("Cannot read offline queue: %s", exc)
            return SyncResult(SyncStatus.COMPLETED)

        if not mutations:
            return SyncResult(SyncStatus.ALREADY_SYNCED)

        logger.info("Processing offline queue: %d item(s)", len(mutations))
        result = SyncResult(SyncStatus.COMPLETED)
        for index, mutation in enumerate(mutations):
            if index and not (await self._connectivity.current_status()).is_online:
                logger.info("Connectivity lost; %d item(s) left for the next run", len(mutations) - index)
                break
            if await self._deliver(mutation):
                result.synced += 1
            else:
                result.failed += 1

        logger.info("Sync run finished: %d synced, %d failed", result.synced, result.failed)
        return result

    async def _deliver(self, mutation: Mutation) -> bool:
        try:
            await self._transport.post_mutation(mutation.envelope())
        except RemoteRejected as exc:
            logger.warning(
                "Server rejected %s (%s %s) with HTTP %d: %s",
                mutation.id, mutation.operation.value, mutation.entity.value, exc.status_code, exc.body,
            )
            return False
        except (NetworkError, InvalidResponse) as exc:
            logger.warning("Failed to sync %s: %s", mutation.id, exc)
            return False
        except Exception:
            logger.exception("Unexpected error syncing %s; left queued", mutation.id)
            return False

        try:
            await self._queue.remove(mutation.id)
        except StorageError as exc:
            # Stays queued; the server recognises the idempotency key on redelivery.
            logger.error("Synced %s but could not remove it from the queue: %s", mutation.id, exc)
        logger.info("Synced %s (%s %s)", mutation.id, mutation.operation.value, mutation.entity.value)
        return True

    @staticmethod
    async def _notify(callback: Callable[..., Any], *args: Any) -> None:
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Sync callback %r failed", callback)
