"""Tests for the sync scheduler's timer loop and reconnect trigger."""
import asyncio

import pytest

from animia_sync.client.connectivity import OFFLINE, ONLINE, ManualConnectivity
from animia_sync.client.engine import SyncResult, SyncStatus
from animia_sync.client.scheduler import SyncScheduler


class CountingEngine:
    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    async def run_sync_once(self, manual=False):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return SyncResult(SyncStatus.ALREADY_SYNCED)


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestLoop:

    @pytest.mark.asyncio
    async def test_runs_immediately_then_every_interval(self, connectivity):
        engine = CountingEngine()
        scheduler = SyncScheduler(engine, connectivity)

        scheduler.start(0.05)
        await asyncio.sleep(0.17)
        await scheduler.stop()

        assert scheduler.interval == 0.05
        assert 2 <= engine.calls <= 5

    @pytest.mark.asyncio
    async def test_double_start_keeps_one_timer(self, connectivity):
        engine = CountingEngine()
        scheduler = SyncScheduler(engine, connectivity)

        scheduler.start(0.05)
        scheduler.start(0.05)
        await asyncio.sleep(0.17)
        await scheduler.stop()

        assert engine.calls <= 5

    @pytest.mark.asyncio
    async def test_stop_halts_ticks(self, connectivity):
        engine = CountingEngine()
        scheduler = SyncScheduler(engine, connectivity)

        scheduler.start(0.02)
        await asyncio.sleep(0.05)
        await scheduler.stop()
        assert not scheduler.is_running
        calls = engine.calls

        await asyncio.sleep(0.06)
        assert engine.calls == calls

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, connectivity):
        scheduler = SyncScheduler(CountingEngine(), connectivity)
        await scheduler.stop()
        scheduler.start(60)
        await scheduler.stop()
        await scheduler.stop()
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, connectivity):
        engine = CountingEngine()
        scheduler = SyncScheduler(engine, connectivity)
        scheduler.start(60)
        await _settle()
        await scheduler.stop()
        scheduler.start(60)
        await _settle()
        await scheduler.stop()
        assert engine.calls == 2

    @pytest.mark.asyncio
    async def test_failing_run_does_not_kill_loop(self, connectivity):
        engine = CountingEngine(error=RuntimeError("bug"))
        scheduler = SyncScheduler(engine, connectivity)

        scheduler.start(0.02)
        await asyncio.sleep(0.07)
        assert scheduler.is_running
        await scheduler.stop()
        assert engine.calls >= 2


class TestReconnectTrigger:

    @pytest.mark.asyncio
    async def test_offline_to_online_triggers_run(self):
        connectivity = ManualConnectivity(ONLINE)
        engine = CountingEngine()
        scheduler = SyncScheduler(engine, connectivity)
        scheduler.start(60)
        await _settle()
        assert engine.calls == 1

        await connectivity.publish(OFFLINE)
        await _settle()
        assert engine.calls == 1

        await connectivity.publish(ONLINE)
        await _settle()
        assert engine.calls == 2
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_first_signal_online_triggers_run(self):
        connectivity = ManualConnectivity()
        engine = CountingEngine()
        scheduler = SyncScheduler(engine, connectivity)
        scheduler.start(60)
        await _settle()

        await connectivity.publish(ONLINE)
        await _settle()
        assert engine.calls == 2
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_no_trigger_after_stop(self):
        connectivity = ManualConnectivity(ONLINE)
        engine = CountingEngine()
        scheduler = SyncScheduler(engine, connectivity)
        scheduler.start(60)
        await _settle()
        await scheduler.stop()

        await connectivity.publish(OFFLINE)
        await connectivity.publish(ONLINE)
        await _settle()
        assert engine.calls == 1
