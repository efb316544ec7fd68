"""Tests for the connectivity observers."""
import asyncio

import httpx
import pytest

from animia_sync.client.connectivity import (
    OFFLINE,
    ONLINE,
    ConnectionStatus,
    ConnectivityObserver,
    HttpProbeConnectivity,
    ManualConnectivity,
)


class TestStatus:

    def test_online_requires_both_flags(self):
        assert ONLINE.is_online
        assert not OFFLINE.is_online
        assert not ConnectionStatus(connected=True, internet_reachable=False).is_online

    def test_to_dict(self):
        assert ONLINE.to_dict() == {"connected": True, "internet_reachable": True}


class TestFailOpen:

    @pytest.mark.asyncio
    async def test_no_signal_yet_reports_online(self):
        assert await ConnectivityObserver().current_status() == ONLINE

    @pytest.mark.asyncio
    async def test_query_error_reports_online(self):
        class Broken(ConnectivityObserver):
            async def _query(self):
                raise OSError("netinfo unavailable")

        assert await Broken().current_status() == ONLINE


class TestSubscriptions:

    @pytest.mark.asyncio
    async def test_publish_notifies_on_change_only(self):
        observer = ManualConnectivity(ONLINE)
        seen = []
        observer.subscribe(seen.append)

        await observer.publish(ONLINE)
        await observer.publish(OFFLINE)
        await observer.publish(OFFLINE)
        await observer.publish(ONLINE)

        assert seen == [OFFLINE, ONLINE]
        assert await observer.current_status() == ONLINE

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self):
        observer = ManualConnectivity(ONLINE)
        seen = []
        unsubscribe = observer.subscribe(seen.append)
        unsubscribe()
        unsubscribe()

        await observer.publish(OFFLINE)
        assert seen == []

    @pytest.mark.asyncio
    async def test_async_subscriber_and_failing_subscriber(self):
        observer = ManualConnectivity(ONLINE)
        seen = []

        def broken(status):
            raise RuntimeError("listener bug")

        async def record(status):
            seen.append(status)

        observer.subscribe(broken)
        observer.subscribe(record)
        await observer.publish(OFFLINE)
        assert seen == [OFFLINE]


def _probe(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpProbeConnectivity("http://sync.test/api/health", client=client)


class TestHttpProbe:

    @pytest.mark.asyncio
    async def test_healthy_server(self):
        observer = _probe(lambda request: httpx.Response(200, json={"status": "ok"}))
        assert await observer.probe() == ONLINE

    @pytest.mark.asyncio
    async def test_connect_error_is_offline(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        assert await _probe(handler).probe() == OFFLINE

    @pytest.mark.asyncio
    async def test_timeout_is_connected_but_unreachable(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        status = await _probe(handler).probe()
        assert status.connected and not status.internet_reachable

    @pytest.mark.asyncio
    async def test_server_error_is_unreachable(self):
        status = await _probe(lambda request: httpx.Response(503)).probe()
        assert status == ConnectionStatus(connected=True, internet_reachable=False)

    @pytest.mark.asyncio
    async def test_first_query_checks_and_publishes(self):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(200)

        observer = _probe(handler)
        seen = []
        observer.subscribe(seen.append)

        assert await observer.current_status() == ONLINE
        assert await observer.current_status() == ONLINE
        assert calls == ["/api/health"]
        assert seen == [ONLINE]

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        observer = _probe(lambda request: httpx.Response(200))
        await observer.start()
        await observer.start()
        await observer.stop()
        await observer.stop()

    @pytest.mark.asyncio
    async def test_watch_survives_unexpected_check_error(self):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            if len(calls) == 1:
                raise httpx.ConnectError("no route", request=request)
            if len(calls) == 2:
                raise RuntimeError("ssl context blew up")
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        observer = HttpProbeConnectivity("http://sync.test/api/health", interval=0.01, client=client)
        seen = []
        observer.subscribe(seen.append)

        await observer.start()
        for _ in range(200):
            if len(calls) >= 3:
                break
            await asyncio.sleep(0.01)
        await observer.stop()

        assert len(calls) >= 3
        assert seen == [OFFLINE, ONLINE]
        assert await observer.current_status() == ONLINE

    @pytest.mark.asyncio
    async def test_stop_after_failed_task(self):
        async def _crashed():
            raise RuntimeError("watch died")

        observer = _probe(lambda request: httpx.Response(200))
        observer._task = asyncio.get_running_loop().create_task(_crashed())
        await asyncio.sleep(0)

        await observer.stop()
        assert observer._task is None
