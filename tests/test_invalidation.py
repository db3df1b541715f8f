"""Tests for post-drain cache invalidation and notifications."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from offline_sync_queue.exceptions import UnsupportedEntityError
from offline_sync_queue.models import Entity
from offline_sync_queue.sync.invalidation import (
    InvalidationNotifier,
    cache_keys_for,
    sync_message,
)


class TestHelpers:
    def test_sync_message_singular(self):
        assert sync_message(1) == "Synced 1 offline item"

    def test_sync_message_plural(self):
        assert sync_message(4) == "Synced 4 offline items"

    def test_cache_keys_are_distinct_and_ordered(self):
        assert cache_keys_for(["expense", "budget"]) == [
            "expenses",
            "stats",
            "insights",
            "analytics",
            "budgets",
        ]

    def test_cache_keys_for_meal(self):
        assert cache_keys_for([Entity.MEAL]) == ["meals", "calorie-stats"]


class TestInvalidationNotifier:
    @pytest.mark.asyncio
    async def test_invalidate_with_distinct_domains(self):
        hook = MagicMock(return_value=None)
        notifier = InvalidationNotifier(on_invalidate=hook)

        assert await notifier.invalidate(["expense", Entity.BUDGET, "expense"]) is True

        hook.assert_called_once_with(["expense", "budget"])

    @pytest.mark.asyncio
    async def test_empty_domains_skip_hook(self):
        hook = MagicMock(return_value=None)
        await InvalidationNotifier(on_invalidate=hook).invalidate([])
        hook.assert_not_called()

    @pytest.mark.asyncio
    async def test_async_hooks_awaited(self):
        invalidate = AsyncMock()
        notify = AsyncMock()
        notifier = InvalidationNotifier(on_invalidate=invalidate, on_notify=notify)

        await notifier.drain_completed(["goal"], 2)

        invalidate.assert_awaited_once_with(["goal"])
        notify.assert_awaited_once_with("Synced 2 offline items")

    @pytest.mark.asyncio
    async def test_no_notification_for_zero(self):
        notify = MagicMock(return_value=None)
        await InvalidationNotifier(on_notify=notify).notify_synced(0)
        notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_hook_is_swallowed(self):
        """A broken cache hook still lets the user notification through."""
        notify = MagicMock(return_value=None)
        notifier = InvalidationNotifier(
            on_invalidate=MagicMock(side_effect=RuntimeError("cache down")),
            on_notify=notify,
        )

        assert await notifier.invalidate(["meal"]) is False
        await notifier.drain_completed(["meal"], 1)

        notify.assert_called_once_with("Synced 1 offline item")

    @pytest.mark.asyncio
    async def test_unknown_domain_rejected(self):
        with pytest.raises(UnsupportedEntityError):
            notifier = InvalidationNotifier(on_invalidate=MagicMock(return_value=None))
            await notifier.invalidate(["invoice"])
