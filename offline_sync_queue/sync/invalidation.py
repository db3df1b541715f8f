"""
Cache invalidation after a drain.

Translates "these domains changed" into the signals the host expects:
the cache invalidation hook receives the distinct domain names, and the
user notification hook receives a short informational message. Both are
fire-and-forget; a failing hook never undoes work already committed.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from ..models import Entity
from ..utils import call_hook

logger = logging.getLogger(__name__)

InvalidateHook = Callable[[list[str]], Awaitable[None] | None]
NotifyHook = Callable[[str], Awaitable[None] | None]

# Cache key prefixes that go stale when a domain changes. Expenses feed
# the stats, insights and analytics widgets; budgets feed analytics.
DOMAIN_CACHE_KEYS: dict[Entity, tuple[str, ...]] = {
    Entity.EXPENSE: ("expenses", "stats", "insights", "analytics"),
    Entity.BUDGET: ("budgets", "analytics"),
    Entity.GOAL: ("goals",),
    Entity.MEAL: ("meals", "calorie-stats"),
}


def cache_keys_for(domains: Iterable[Entity | str]) -> list[str]:
    """Distinct cache key prefixes to invalidate for the given domains, in order."""
    keys: list[str] = []
    for domain in domains:
        for key in DOMAIN_CACHE_KEYS[Entity.parse(domain)]:
            if key not in keys:
                keys.append(key)
    return keys


def sync_message(count: int) -> str:
    """User-facing summary for a drain with ``count`` successes."""
    return f"Synced {count} offline item{'s' if count != 1 else ''}"


class InvalidationNotifier:
    """Notifies the caching layer and the user after a drain.

    Example:
        >>> notifier = InvalidationNotifier(
        ...     on_invalidate=lambda domains: query_cache.invalidate(cache_keys_for(domains)),
        ...     on_notify=toast.success,
        ... )
    """

    def __init__(
        self,
        on_invalidate: InvalidateHook | None = None,
        on_notify: NotifyHook | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            on_invalidate: Called once per drain with the distinct synced domains
            on_notify: Called with "Synced N offline item(s)" when N > 0
        """
        self.on_invalidate = on_invalidate
        self.on_notify = on_notify

    async def invalidate(self, domains: Iterable[Entity | str]) -> bool:
        """Signal that cached data for ``domains`` is stale.

        Returns:
            True if the hook ran (or none is set), False if it raised
        """
        names: list[str] = []
        for domain in domains:
            name = Entity.parse(domain).value
            if name not in names:
                names.append(name)

        if not names or self.on_invalidate is None:
            return True

        logger.debug(f"Invalidating cached domains: {', '.join(names)}")
        return await call_hook(self.on_invalidate, names, name="on_invalidate")

    async def notify_synced(self, count: int) -> bool:
        """Tell the user how many queued items were synced; silent for zero."""
        if count <= 0 or self.on_notify is None:
            return True
        return await call_hook(self.on_notify, sync_message(count), name="on_notify")

    async def drain_completed(self, domains: Iterable[Entity | str], synced_count: int) -> None:
        """Emit both signals for a finished drain."""
        await self.invalidate(domains)
        await self.notify_synced(synced_count)
