"""Tests for connectivity monitoring."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from offline_sync_queue.sync.connectivity import ConnectivityMonitor, ConnectivityProbe


class TestConnectivityMonitor:
    """Tests for state tracking and debounced notifications."""

    def test_initial_state(self):
        assert ConnectivityMonitor().is_online is True
        assert ConnectivityMonitor(initially_online=False).is_online is False

    def test_negative_debounce_rejected(self):
        with pytest.raises(ValueError):
            ConnectivityMonitor(debounce_s=-1)

    @pytest.mark.asyncio
    async def test_become_online_fires_once(self):
        monitor = ConnectivityMonitor(initially_online=False, debounce_s=0)
        callback = AsyncMock()
        monitor.on_become_online(callback)

        monitor.set_online(True)
        monitor.set_online(True)  # no transition
        await monitor.wait_for_notifications()

        callback.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_going_offline_does_not_fire(self):
        monitor = ConnectivityMonitor(initially_online=True, debounce_s=0)
        callback = AsyncMock()
        monitor.on_become_online(callback)

        monitor.set_online(False)
        await monitor.wait_for_notifications()

        callback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_flapping_inside_window_yields_single_notification(self):
        """Rapid offline/online toggling settles into one notification."""
        monitor = ConnectivityMonitor(initially_online=False, debounce_s=0.05)
        calls = []
        monitor.on_become_online(lambda: calls.append("online"))

        for _ in range(5):
            monitor.set_online(True)
            await asyncio.sleep(0.01)
            monitor.set_online(False)
        monitor.set_online(True)
        await monitor.wait_for_notifications()

        assert calls == ["online"]

    @pytest.mark.asyncio
    async def test_offline_inside_window_cancels(self):
        monitor = ConnectivityMonitor(initially_online=False, debounce_s=0.05)
        callback = AsyncMock()
        monitor.on_become_online(callback)

        monitor.set_online(True)
        monitor.set_online(False)
        await asyncio.sleep(0.1)

        callback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        monitor = ConnectivityMonitor(initially_online=False, debounce_s=0)
        callback = AsyncMock()
        unsubscribe = monitor.on_become_online(callback)

        unsubscribe()
        unsubscribe()
        monitor.set_online(True)
        await monitor.wait_for_notifications()

        callback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_stop_others(self):
        monitor = ConnectivityMonitor(initially_online=False, debounce_s=0)
        later = AsyncMock()

        def broken():
            raise RuntimeError("boom")

        monitor.on_become_online(broken)
        monitor.on_become_online(later)
        monitor.set_online(True)
        await monitor.wait_for_notifications()

        later.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_on_change_receives_every_transition(self):
        monitor = ConnectivityMonitor(initially_online=True, debounce_s=0)
        states = []
        monitor.on_change(states.append)

        monitor.set_online(False)
        monitor.set_online(True)
        monitor.set_online(True)
        await monitor.wait_for_notifications()

        assert states == [False, True]

    @pytest.mark.asyncio
    async def test_close_drops_pending(self):
        monitor = ConnectivityMonitor(initially_online=False, debounce_s=0.05)
        callback = AsyncMock()
        monitor.on_become_online(callback)

        monitor.set_online(True)
        await monitor.close()
        await asyncio.sleep(0.1)

        callback.assert_not_awaited()


class TestConnectivityProbe:
    """Tests for the DNS probe, with name resolution patched out."""

    @pytest.mark.asyncio
    async def test_resolvable_host_reports_online(self, monkeypatch):
        monitor = ConnectivityMonitor(initially_online=False, debounce_s=0)
        loop = asyncio.get_running_loop()
        monkeypatch.setattr(loop, "getaddrinfo", AsyncMock(return_value=[("addr",)]))

        assert await ConnectivityProbe(monitor).check() is True
        assert monitor.is_online

    @pytest.mark.asyncio
    async def test_resolution_failure_reports_offline(self, monkeypatch):
        monitor = ConnectivityMonitor(initially_online=True, debounce_s=0)
        loop = asyncio.get_running_loop()
        monkeypatch.setattr(loop, "getaddrinfo", AsyncMock(side_effect=OSError("no route")))

        assert await ConnectivityProbe(monitor).check() is False
        assert not monitor.is_online

    @pytest.mark.asyncio
    async def test_slow_resolution_times_out(self, monkeypatch):
        monitor = ConnectivityMonitor(initially_online=True, debounce_s=0)
        loop = asyncio.get_running_loop()

        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        monkeypatch.setattr(loop, "getaddrinfo", hang)

        assert await ConnectivityProbe(monitor, timeout_s=0.01).check() is False

    @pytest.mark.asyncio
    async def test_start_stop(self, monkeypatch):
        monitor = ConnectivityMonitor(initially_online=False, debounce_s=0)
        loop = asyncio.get_running_loop()
        monkeypatch.setattr(loop, "getaddrinfo", AsyncMock(return_value=[]))
        probe = ConnectivityProbe(monitor, interval_s=0.01)

        await probe.start()
        assert probe.running
        await asyncio.sleep(0.05)
        await probe.stop()

        assert not probe.running
        assert monitor.is_online
