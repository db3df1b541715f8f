"""
Durable queue of pending mutations.

Keeps the ordered list of pending mutations in memory and persists the
full list into a single key-value slot after every change, so the queue
survives process restarts.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from ..exceptions import InvalidMutationError, OfflineQueueError
from ..kvstore.base import KeyValueStore
from ..models import PendingMutation

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_KEY = "offline_mutation_queue"


class QueueStore:
    """Ordered, persistent store of pending mutations.

    Order of insertion is order of processing (global FIFO across all
    entities). The whole list is serialized as one JSON array under
    ``queue_key``.
    """

    def __init__(self, kv_store: KeyValueStore, queue_key: str = DEFAULT_QUEUE_KEY):
        """Initialize the queue store.

        Args:
            kv_store: Key-value store holding the persisted queue
            queue_key: Slot the queue is persisted under
        """
        self.kv_store = kv_store
        self.queue_key = queue_key
        self._mutations: list[PendingMutation] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Hydrate from persisted storage if not already loaded."""
        async with self._lock:
            await self._ensure_loaded()

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return

        raw = await self.kv_store.get(self.queue_key)
        self._mutations = self._parse(raw) if raw else []
        self._loaded = True

        if self._mutations:
            logger.info(f"Loaded {len(self._mutations)} pending mutation(s) from storage")

    def _parse(self, raw: str) -> list[PendingMutation]:
        """Decode the persisted blob, treating corruption as an empty queue."""
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Persisted queue is corrupted, starting empty: {e}")
            return []

        if not isinstance(records, list):
            logger.warning("Persisted queue is not a list, starting empty")
            return []

        mutations: list[PendingMutation] = []
        seen: set[str] = set()
        for record in records:
            try:
                mutation = PendingMutation.from_dict(record)
            except (OfflineQueueError, KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Dropping malformed queued mutation: {e}")
                continue
            if mutation.id in seen:
                logger.warning(f"Dropping duplicate queued mutation {mutation.id}")
                continue
            seen.add(mutation.id)
            mutations.append(mutation)
        return mutations

    async def _commit(self, mutations: list[PendingMutation]) -> None:
        """Persist the full list, then make it the in-memory state.

        If the write fails the in-memory queue is left untouched.
        """
        records: list[dict[str, Any]] = [m.to_dict() for m in mutations]
        try:
            blob = json.dumps(records)
        except (TypeError, ValueError) as e:
            raise InvalidMutationError(f"Mutation data is not JSON serializable: {e}") from e
        await self.kv_store.set(self.queue_key, blob)
        self._mutations = mutations

    async def enqueue(self, mutation: PendingMutation) -> PendingMutation:
        """Append a mutation to the end of the queue.

        Args:
            mutation: Mutation to stage

        Returns:
            The staged mutation
        """
        async with self._lock:
            await self._ensure_loaded()
            await self._commit([*self._mutations, mutation])

        logger.debug(f"Queued {mutation.type.value} {mutation.entity.value} as {mutation.id}")
        return mutation

    async def read_all(self) -> list[PendingMutation]:
        """Get an ordered snapshot of the queue."""
        async with self._lock:
            await self._ensure_loaded()
            return list(self._mutations)

    async def remove(self, mutation_id: str) -> bool:
        """Remove one mutation by id.

        Args:
            mutation_id: ID of the mutation to remove

        Returns:
            True if the mutation was found and removed
        """
        async with self._lock:
            await self._ensure_loaded()

            for index, mutation in enumerate(self._mutations):
                if mutation.id == mutation_id:
                    await self._commit(self._mutations[:index] + self._mutations[index + 1 :])
                    return True
            return False

    async def replace(self, mutation: PendingMutation) -> bool:
        """Persist an updated copy of an existing mutation, keeping its position.

        Args:
            mutation: Updated mutation; matched by id

        Returns:
            True if the mutation was found and replaced
        """
        async with self._lock:
            await self._ensure_loaded()

            for index, existing in enumerate(self._mutations):
                if existing.id == mutation.id:
                    updated = list(self._mutations)
                    updated[index] = mutation
                    await self._commit(updated)
                    return True
            return False

    async def clear(self) -> int:
        """Remove all pending mutations.

        Returns:
            Number of mutations removed
        """
        async with self._lock:
            await self._ensure_loaded()

            count = len(self._mutations)
            await self.kv_store.remove(self.queue_key)
            self._mutations = []
            return count

    async def count(self) -> int:
        """Get the number of pending mutations."""
        async with self._lock:
            await self._ensure_loaded()
            return len(self._mutations)

    def __len__(self) -> int:
        return len(self._mutations)
