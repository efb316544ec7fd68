"""Sync scheduler — timer loop plus reconnect trigger around one engine.

Constructed once when the client is wired and passed around by
reference; it owns the loop task, so there is no module-level timer
handle.  ``start`` and ``stop`` are both idempotent.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from animia_sync.client.connectivity import ConnectionStatus, ConnectivityObserver
from animia_sync.client.engine import SyncEngine

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60.0


class SyncScheduler:
    def __init__(self, engine: SyncEngine, connectivity: ConnectivityObserver,
                 interval: float = DEFAULT_INTERVAL) -> None:
        self._engine = engine
        self._connectivity = connectivity
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._was_online: Optional[bool] = None
        self._triggered: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval(self) -> float:
        return self._interval

    def start(self, interval: Optional[float] = None) -> None:
        """Run a sync now and then every ``interval`` seconds until stopped."""
        if self.is_running:
            logger.debug("Sync loop already running; start ignored")
            return
        if interval is not None:
            self._interval = interval
        self._task = asyncio.get_running_loop().create_task(self._loop(), name="animia-sync-loop")
        self._unsubscribe = self._connectivity.subscribe(self._on_status)
        logger.info("Sync loop started (every %.1fs)", self._interval)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._was_online = None

        tasks = list(self._triggered)
        if self._task is not None:
            tasks.append(self._task)
            self._task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Sync loop stopped")

    async def _loop(self) -> None:
        while True:
            await self._tick()
            await asyncio.sleep(self._interval)

    async def _tick(self) -> None:
        try:
            await self._engine.run_sync_once()
        except Exception:
            logger.exception("Sync run failed")

    def _on_status(self, status: ConnectionStatus) -> None:
        was_online, self._was_online = self._was_online, status.is_online
        if not status.is_online or was_online:
            return
        logger.info("Connectivity restored; triggering sync")
        task = asyncio.get_running_loop().create_task(self._tick())
        self._triggered.add(task)
        task.add_done_callback(self._triggered.discard)
