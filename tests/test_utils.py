"""Tests for hook invocation helpers."""

from unittest.mock import AsyncMock

import pytest

from offline_sync_queue.utils import call_hook


class TestCallHook:
    @pytest.mark.asyncio
    async def test_sync_hook(self):
        seen = []
        assert await call_hook(seen.append, "x") is True
        assert seen == ["x"]

    @pytest.mark.asyncio
    async def test_async_hook_awaited(self):
        hook = AsyncMock()
        assert await call_hook(hook, 1, 2) is True
        hook.assert_awaited_once_with(1, 2)

    @pytest.mark.asyncio
    async def test_failure_logged_not_raised(self, caplog):
        async def broken():
            raise RuntimeError("nope")

        assert await call_hook(broken, name="on_notify") is False
        assert "Hook on_notify failed: nope" in caplog.text
