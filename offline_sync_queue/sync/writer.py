"""
Write path for domain mutations.

Every create/update/delete goes through the writer. Online writes are
attempted directly; offline writes, and online writes that fail, are
staged in the queue for the next drain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..models import Entity, MutationType, PendingMutation
from ..routes import build_request
from ..transport.base import Transport
from .connectivity import ConnectivityMonitor
from .engine import deliver
from .queue_store import QueueStore

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Result of one write.

    Attributes:
        queued: True if the write was staged instead of delivered
        mutation_id: ID of the pending mutation (also set for direct writes)
        payload: Response payload of a direct write, None when queued
        status: HTTP status of the direct attempt, if one was made
    """

    queued: bool
    mutation_id: str
    payload: Any = None
    status: int | None = None


class MutationWriter:
    """Routes writes to the backend or into the offline queue."""

    def __init__(self, store: QueueStore, transport: Transport, monitor: ConnectivityMonitor):
        self.store = store
        self.transport = transport
        self.monitor = monitor

    async def submit(
        self,
        type: MutationType | str,
        entity: Entity | str,
        data: dict[str, Any],
    ) -> WriteResult:
        """Write one mutation, queueing it if it cannot be delivered now.

        Args:
            type: create, update or delete
            entity: Target domain
            data: Payload; update/delete must carry the server ``id``

        Returns:
            WriteResult describing where the write went

        Raises:
            UnsupportedEntityError: If the entity is unknown
            InvalidMutationError: If the mutation is malformed
            StorageIOError: If queueing was needed and persistence failed
        """
        # Validates before anything touches the network or the queue
        mutation = PendingMutation(type=type, entity=entity, data=data)

        if not self.monitor.is_online:
            await self.store.enqueue(mutation)
            logger.info(f"Offline, queued {mutation.type.value} {mutation.entity.value}")
            return WriteResult(queued=True, mutation_id=mutation.id)

        request = build_request(mutation)
        outcome = await deliver(self.transport, request)
        if outcome.ok:
            return WriteResult(
                queued=False,
                mutation_id=mutation.id,
                payload=outcome.payload,
                status=outcome.status,
            )

        logger.warning(
            f"Direct {request.method} {request.path} failed ({outcome.error}), queueing for later"
        )
        await self.store.enqueue(mutation)
        return WriteResult(queued=True, mutation_id=mutation.id, status=outcome.status)

    async def create(self, entity: Entity | str, data: dict[str, Any]) -> WriteResult:
        return await self.submit(MutationType.CREATE, entity, data)

    async def update(self, entity: Entity | str, data: dict[str, Any]) -> WriteResult:
        return await self.submit(MutationType.UPDATE, entity, data)

    async def delete(self, entity: Entity | str, record_id: str) -> WriteResult:
        """Delete a record by its server id."""
        return await self.submit(MutationType.DELETE, entity, {"id": record_id})
