"""Connectivity observer — reachability reporting for the sync client.

The observer is a signal, not a policy: subscribers are told about every
status change and decide for themselves what a transition means.

If the platform signal cannot be read, ``current_status`` fails open and
reports the device as online; a sync attempt made on that assumption that
fails leaves the queue untouched.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionStatus:
    connected: bool
    internet_reachable: bool

    @property
    def is_online(self) -> bool:
        return self.connected and self.internet_reachable

    def to_dict(self) -> dict[str, Any]:
        return {"connected": self.connected, "internet_reachable": self.internet_reachable}


ONLINE = ConnectionStatus(connected=True, internet_reachable=True)
OFFLINE = ConnectionStatus(connected=False, internet_reachable=False)

StatusCallback = Callable[[ConnectionStatus], Any]


class ConnectivityObserver:
    """Base observer; subclasses override ``_query`` to read the platform."""

    def __init__(self, initial: Optional[ConnectionStatus] = None) -> None:
        self._status = initial
        self._subscribers: list[StatusCallback] = []

    async def _query(self) -> ConnectionStatus:
        if self._status is None:
            raise RuntimeError("no connectivity signal received yet")
        return self._status

    async def current_status(self) -> ConnectionStatus:
        try:
            return await self._query()
        except Exception as exc:
            logger.warning("Connectivity signal unavailable (%s); assuming online", exc)
            return ONLINE

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Register ``callback`` for every status change; returns the unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, status: ConnectionStatus) -> None:
        """Record a new status and notify subscribers if it changed."""
        previous, self._status = self._status, status
        if status == previous:
            return
        logger.info("Connectivity changed: %s -> %s", previous, status)
        for callback in list(self._subscribers):
            try:
                result = callback(status)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Connectivity subscriber %r failed", callback)

    async def start(self) -> None:
        """Begin watching the platform signal (no-op for push-driven observers)."""

    async def stop(self) -> None:
        """Stop watching the platform signal."""


class ManualConnectivity(ConnectivityObserver):
    """Status is pushed in by the host platform through :meth:`publish`."""


class HttpProbeConnectivity(ConnectivityObserver):
    """Derives reachability by periodically probing the server health endpoint.

    Connect failures mean the device has no route at all; any other HTTP
    failure (or a 5xx) means the network is up but the service is not
    reachable.
    """

    def __init__(self, probe_url: str, interval: float = 30.0, timeout: float = 5.0,
                 client: Optional[httpx.AsyncClient] = None) -> None:
        super().__init__()
        self._probe_url = probe_url
        self._interval = interval
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._task: Optional[asyncio.Task] = None

    async def probe(self) -> ConnectionStatus:
        if self._client is None:
            self._client = httpx.AsyncClient()
        try:
            response = await self._client.get(self._probe_url, timeout=self._timeout)
        except httpx.ConnectError as exc:
            logger.debug("Probe %s could not connect: %s", self._probe_url, exc)
            return OFFLINE
        except httpx.HTTPError as exc:
            logger.debug("Probe %s failed: %s", self._probe_url, exc)
            return ConnectionStatus(connected=True, internet_reachable=False)
        return ConnectionStatus(connected=True, internet_reachable=response.status_code < 500)

    async def _query(self) -> ConnectionStatus:
        if self._status is None:
            await self.publish(await self.probe())
        return await super()._query()

    async def _watch(self) -> None:
        while True:
            try:
                status = await self.probe()
            except Exception:
                logger.exception("Probe %s raised; assuming online", self._probe_url)
                status = ONLINE
            await self.publish(status)
            await asyncio.sleep(self._interval)

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._watch(), name="animia-connectivity-probe")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Connectivity probe task had failed")
            self._task = None
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
