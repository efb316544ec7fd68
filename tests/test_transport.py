"""Tests for the HTTP transport's failure classification."""
import json

import httpx
import pytest

from animia_sync.client.engine import SyncEngine
from animia_sync.client.errors import InvalidResponse, NetworkError, RemoteRejected
from animia_sync.client.transport import SyncTransport

ENDPOINT = "http://sync.test/api/sync"


def _transport(handler, timeout=15.0):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SyncTransport(ENDPOINT, timeout=timeout, client=client)


class TestPostMutation:

    @pytest.mark.asyncio
    async def test_success_returns_ack(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "message": "Beneficiary created", "record_id": 7})

        ack = await _transport(handler).post_mutation({"op": "CREATE", "entity": "beneficiaries", "payload": {"name": "A"}})
        assert ack["record_id"] == 7
        assert seen == [{"op": "CREATE", "entity": "beneficiaries", "payload": {"name": "A"}}]

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(NetworkError, match="timed out"):
            await _transport(handler, timeout=0.5).post_mutation({})

    @pytest.mark.asyncio
    async def test_connect_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("no route", request=request)

        with pytest.raises(NetworkError):
            await _transport(handler).post_mutation({})

    @pytest.mark.asyncio
    async def test_stream_error_is_network_error(self):
        def handler(request):
            raise httpx.StreamClosed()

        with pytest.raises(NetworkError):
            await _transport(handler).post_mutation({})

    @pytest.mark.parametrize("status_code", [400, 404, 409, 422, 500, 503])
    @pytest.mark.asyncio
    async def test_non_2xx_is_rejected(self, status_code):
        def handler(request):
            return httpx.Response(status_code, json={"detail": "nope"})

        with pytest.raises(RemoteRejected) as info:
            await _transport(handler).post_mutation({})
        assert info.value.status_code == status_code
        assert "nope" in info.value.body

    @pytest.mark.asyncio
    async def test_unparseable_2xx_is_invalid_response(self):
        def handler(request):
            return httpx.Response(200, text="<html>captive portal</html>")

        with pytest.raises(InvalidResponse):
            await _transport(handler).post_mutation({})


class TestFetchBeneficiaries:

    @pytest.mark.asyncio
    async def test_fetch_uses_feed_url_and_limit(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=[{"id": 1, "name": "A"}])

        records = await _transport(handler).fetch_beneficiaries(limit=50)
        assert records == [{"id": 1, "name": "A"}]
        assert seen[0].path == "/api/beneficiaries"
        assert seen[0].params["limit"] == "50"

    @pytest.mark.asyncio
    async def test_non_list_feed(self):
        def handler(request):
            return httpx.Response(200, json={"records": []})

        with pytest.raises(InvalidResponse):
            await _transport(handler).fetch_beneficiaries()


class TestEngineOverHttp:

    @pytest.mark.asyncio
    async def test_first_fails_second_succeeds(self, queue, connectivity):
        first = await queue.enqueue("CREATE", "beneficiaries", {"name": "First"})
        await queue.enqueue("CREATE", "beneficiaries", {"name": "Second"})
        calls = []

        def handler(request):
            calls.append(json.loads(request.content)["idempotency_key"])
            if len(calls) == 1:
                return httpx.Response(500, json={"success": False, "error": "Internal server error"})
            return httpx.Response(200, json={"success": True})

        result = await SyncEngine(queue, connectivity, _transport(handler)).run_sync_once()

        assert (result.synced, result.failed) == (1, 1)
        assert [m.id for m in await queue.list()] == [first.id]
