"""
Sync module.

Provides the durable mutation queue, retry policy, connectivity
monitoring, the drain engine and the write path.
"""

from .connectivity import ConnectivityMonitor, ConnectivityProbe
from .engine import Delivery, DrainResult, SyncEngine, SyncState, deliver
from .invalidation import InvalidationNotifier, cache_keys_for, sync_message
from .queue_store import DEFAULT_QUEUE_KEY, QueueStore
from .retry import MAX_RETRIES, DeliveryOutcome, RetryAction, RetryDecision, RetryPolicy
from .writer import MutationWriter, WriteResult

__all__ = [
    "ConnectivityMonitor",
    "ConnectivityProbe",
    "Delivery",
    "DrainResult",
    "SyncEngine",
    "SyncState",
    "deliver",
    "InvalidationNotifier",
    "cache_keys_for",
    "sync_message",
    "DEFAULT_QUEUE_KEY",
    "QueueStore",
    "MAX_RETRIES",
    "DeliveryOutcome",
    "RetryAction",
    "RetryDecision",
    "RetryPolicy",
    "MutationWriter",
    "WriteResult",
]
