"""HTTP transport between the device and the sync server.

Every call has a bounded timeout.  Failures are classified into the
client's error taxonomy so the engine never has to look at httpx types.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from animia_sync.client.errors import InvalidResponse, NetworkError, RemoteRejected

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class SyncTransport:
    def __init__(self, endpoint: str, timeout: float = DEFAULT_TIMEOUT,
                 client: Optional[httpx.AsyncClient] = None) -> None:
        self.endpoint = endpoint
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    def url_for(self, path: str) -> str:
        """Absolute URL for ``path`` on the sync server."""
        return str(httpx.URL(self.endpoint).join(path))

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, url, timeout=self._timeout, **kwargs)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"{method} {url} timed out after {self._timeout}s") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc
        except (httpx.InvalidURL, httpx.StreamError) as exc:
            raise NetworkError(f"{method} {url} failed: {exc!r}") from exc

        if not response.is_success:
            raise RemoteRejected(response.status_code, response.text[:500])
        try:
            return response.json()
        except ValueError as exc:
            raise InvalidResponse(f"{method} {url} returned a non-JSON body") from exc

    async def post_mutation(self, envelope: dict[str, Any]) -> dict[str, Any]:
        """POST one mutation envelope; returns the server's acknowledgement."""
        return await self._request("POST", self.endpoint, json=envelope)

    async def fetch_beneficiaries(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        params = {"limit": limit} if limit else None
        records = await self._request("GET", self.url_for("/api/beneficiaries"), params=params)
        if not isinstance(records, list):
            raise InvalidResponse("beneficiary feed is not a list")
        return records

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
