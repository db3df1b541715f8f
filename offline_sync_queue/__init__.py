"""
Offline Sync Queue

Client-side outbox for writes made while disconnected.

Provides:
- Durable FIFO queue of pending mutations in one key-value slot
- Sequential drain with bounded retries and silent eviction
- Debounced connectivity monitoring with an optional DNS probe
- Cache invalidation and user notification hooks after each drain

Usage:

    >>> from offline_sync_queue import SyncConfig, create_offline_sync_service
    >>> service = await create_offline_sync_service(
    ...     SyncConfig.from_file("~/.offline-sync/settings.yaml"),
    ...     on_invalidate=query_cache.invalidate_domains,
    ...     on_notify=toast.info,
    ... )
    >>> result = await service.create("expense", {"amount": 12.5, "category": "food"})
    >>> result.queued
    True
    >>> await service.sync_now()
    >>> await service.teardown()

Custom storage and transport:

    from offline_sync_queue import OfflineSyncService
    from offline_sync_queue.kvstore import InMemoryKeyValueStore

    async with OfflineSyncService(InMemoryKeyValueStore(), my_transport) as service:
        await service.update("budget", {"id": "b-1", "limit": 400})
"""

from .config import SyncConfig

# Exceptions
from .exceptions import (
    ConfigurationError,
    InvalidMutationError,
    OfflineQueueError,
    StorageIOError,
    TransportError,
    UnsupportedEntityError,
)

# Storage and transport adapters
from .kvstore import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore
from .models import Entity, MutationType, PendingMutation
from .routes import OutboundRequest, build_request
from .service import OfflineSyncService, create_offline_sync_service

# Sync components
from .sync import (
    ConnectivityMonitor,
    ConnectivityProbe,
    DrainResult,
    InvalidationNotifier,
    MutationWriter,
    QueueStore,
    RetryPolicy,
    SyncEngine,
    WriteResult,
)
from .transport import AiohttpTransport, Transport, TransportResponse

__all__ = [
    # Service
    "OfflineSyncService",
    "create_offline_sync_service",
    "SyncConfig",
    # Models
    "Entity",
    "MutationType",
    "PendingMutation",
    "OutboundRequest",
    "build_request",
    # Sync components
    "ConnectivityMonitor",
    "ConnectivityProbe",
    "DrainResult",
    "InvalidationNotifier",
    "MutationWriter",
    "QueueStore",
    "RetryPolicy",
    "SyncEngine",
    "WriteResult",
    # Adapters
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "Transport",
    "TransportResponse",
    "AiohttpTransport",
    # Exceptions
    "OfflineQueueError",
    "UnsupportedEntityError",
    "InvalidMutationError",
    "StorageIOError",
    "TransportError",
    "ConfigurationError",
]

__version__ = "0.1.0"
