"""
Offline sync service.

Owns the queue store, connectivity monitor, sync engine, invalidation
notifier and write path for one client, with an explicit lifecycle:

    service = OfflineSyncService(kv_store, transport)
    await service.init()        # hydrate, subscribe, drain if online
    await service.create("expense", {...})
    await service.sync_now()    # manual "Sync Now"
    await service.teardown()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .config import SyncConfig
from .kvstore import FileKeyValueStore, KeyValueStore
from .models import Entity, MutationType, PendingMutation
from .sync.connectivity import ConnectivityMonitor, ConnectivityProbe
from .sync.engine import DrainResult, EvictedHook, SyncEngine
from .sync.invalidation import InvalidateHook, InvalidationNotifier, NotifyHook
from .sync.queue_store import DEFAULT_QUEUE_KEY, QueueStore
from .sync.retry import RetryPolicy
from .sync.writer import MutationWriter, WriteResult
from .transport import AiohttpTransport, Transport

logger = logging.getLogger(__name__)


class OfflineSyncService:
    """Explicitly constructed owner of the offline queue and its sync loop."""

    def __init__(
        self,
        kv_store: KeyValueStore,
        transport: Transport,
        monitor: ConnectivityMonitor | None = None,
        policy: RetryPolicy | None = None,
        notifier: InvalidationNotifier | None = None,
        queue_key: str = DEFAULT_QUEUE_KEY,
        on_evicted: EvictedHook | None = None,
        probe: ConnectivityProbe | None = None,
    ):
        """Initialize the service.

        Args:
            kv_store: Key-value store persisting the queue
            transport: Transport for direct writes and drains
            monitor: Connectivity monitor (online by default)
            policy: Retry policy (three attempts by default)
            notifier: Cache invalidation and user notification hooks
            queue_key: Storage slot of the queue
            on_evicted: Optional hook receiving evicted mutations
            probe: Optional connectivity probe started by ``init``
        """
        self.kv_store = kv_store
        self.transport = transport
        self.monitor = monitor or ConnectivityMonitor()
        self.store = QueueStore(kv_store, queue_key)
        self.engine = SyncEngine(
            self.store,
            transport,
            policy=policy,
            notifier=notifier,
            on_evicted=on_evicted,
        )
        self.writer = MutationWriter(self.store, transport, self.monitor)
        self.probe = probe

        self._unsubscribe: Callable[[], None] | None = None
        self._drains: set[asyncio.Task[DrainResult]] = set()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self) -> DrainResult | None:
        """Hydrate the queue, subscribe to connectivity and drain if possible.

        Returns:
            Result of the startup drain, or None if none ran
        """
        if self._initialized:
            return None

        await self.store.load()
        self._unsubscribe = self.monitor.on_become_online(self._on_online)
        if self.probe is not None:
            await self.probe.start()
        self._initialized = True

        pending = len(self.store)
        logger.info(f"Offline sync service ready with {pending} pending mutation(s)")

        if pending and self.monitor.is_online:
            return await self.sync_now()
        return None

    async def _on_online(self) -> None:
        await self.sync_now()

    async def sync_now(self) -> DrainResult | None:
        """Drain the queue now if online.

        A started drain runs to completion even if the caller is cancelled
        (connectivity dropping, teardown); teardown waits for it.

        Returns:
            The drain result, or None while offline
        """
        if not self.monitor.is_online:
            logger.debug("Offline, skipping sync")
            return None

        task = asyncio.get_running_loop().create_task(self.engine.drain())
        self._drains.add(task)
        task.add_done_callback(self._drains.discard)
        return await asyncio.shield(task)

    async def submit(
        self,
        type: MutationType | str,
        entity: Entity | str,
        data: dict[str, Any],
    ) -> WriteResult:
        """Write a mutation, queueing it when it cannot be delivered now."""
        return await self.writer.submit(type, entity, data)

    async def create(self, entity: Entity | str, data: dict[str, Any]) -> WriteResult:
        return await self.writer.create(entity, data)

    async def update(self, entity: Entity | str, data: dict[str, Any]) -> WriteResult:
        return await self.writer.update(entity, data)

    async def delete(self, entity: Entity | str, record_id: str) -> WriteResult:
        return await self.writer.delete(entity, record_id)

    async def pending(self) -> list[PendingMutation]:
        """Ordered snapshot of queued mutations."""
        return await self.store.read_all()

    async def clear(self) -> int:
        """Drop every queued mutation.

        Returns:
            Number of mutations dropped
        """
        count = await self.store.clear()
        logger.info(f"Cleared {count} pending mutation(s)")
        return count

    def status(self) -> dict[str, Any]:
        """Get current sync status."""
        last_drain = self.engine.last_drain
        last_result = self.engine.last_result
        return {
            "queue_length": len(self.store),
            "is_online": self.monitor.is_online,
            "is_processing": self.engine.is_draining,
            "last_sync": last_drain.isoformat() if last_drain else None,
            "last_result": last_result.to_dict() if last_result else None,
        }

    async def teardown(self) -> None:
        """Unsubscribe, wait for in-flight drains and release resources."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        if self.probe is not None:
            await self.probe.stop()

        await self.monitor.close()

        if self._drains:
            await asyncio.gather(*self._drains, return_exceptions=True)

        await self.transport.close()
        await self.kv_store.close()
        self._initialized = False

    async def __aenter__(self) -> OfflineSyncService:
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.teardown()


async def create_offline_sync_service(
    config: SyncConfig | None = None,
    on_invalidate: InvalidateHook | None = None,
    on_notify: NotifyHook | None = None,
    on_evicted: EvictedHook | None = None,
    start_probe: bool = True,
) -> OfflineSyncService:
    """Create and initialize an offline sync service.

    Args:
        config: Service configuration (read from the environment if not provided)
        on_invalidate: Cache invalidation hook
        on_notify: User notification hook
        on_evicted: Eviction hook
        start_probe: Whether to run the DNS connectivity probe

    Returns:
        Initialized OfflineSyncService
    """
    if config is None:
        config = SyncConfig.from_environment()
    config.validate()

    kv_store = FileKeyValueStore(config.resolved_storage_path())
    transport = AiohttpTransport(
        config.api_base_url,
        auth_token=config.auth_token,
        timeout_s=config.request_timeout_s,
    )
    monitor = ConnectivityMonitor(debounce_s=config.debounce_s)
    probe = None
    if start_probe:
        probe = ConnectivityProbe(
            monitor,
            host=config.connectivity_host,
            timeout_s=config.connectivity_timeout_s,
            interval_s=config.probe_interval_s,
        )

    service = OfflineSyncService(
        kv_store,
        transport,
        monitor=monitor,
        policy=config.retry_policy(),
        notifier=InvalidationNotifier(on_invalidate=on_invalidate, on_notify=on_notify),
        queue_key=config.queue_key,
        on_evicted=on_evicted,
        probe=probe,
    )
    await service.init()
    return service
