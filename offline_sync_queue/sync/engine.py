"""
Sync engine for draining the offline mutation queue.

Orchestrates one sequential pass ("drain") over the queue:
- Snapshot the queue in FIFO order
- Deliver each mutation, one request in flight at a time
- Remove successes, retry or evict failures per the retry policy
- Invalidate cached domains once after the pass

Mutations may target the same record (an update right after its
create), so deliveries are never reordered or run concurrently.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from ..exceptions import OfflineQueueError
from ..logging_utils import MutationLoggerAdapter, drain_context
from ..models import PendingMutation
from ..routes import OutboundRequest, build_request
from ..transport.base import Transport
from ..utils import call_hook
from .invalidation import InvalidationNotifier
from .queue_store import QueueStore
from .retry import DeliveryOutcome, RetryAction, RetryDecision, RetryPolicy

logger = logging.getLogger(__name__)

EvictedHook = Callable[[PendingMutation], Awaitable[None] | None]


class SyncState(Enum):
    """Current state of the sync engine."""

    IDLE = "idle"
    DRAINING = "draining"


@dataclass
class DrainResult:
    """Result of one drain.

    Attributes:
        synced: IDs of mutations delivered and removed
        retried: IDs of mutations that failed and stay queued
        evicted: IDs of mutations dropped after their final failure
        synced_domains: Distinct entity names with at least one success
        requests: Number of requests issued
        errors: Failure descriptions collected during the pass
        skipped: True if the drain was refused because one was running
        duration_ms: Wall time of the pass
    """

    synced: list[str] = field(default_factory=list)
    retried: list[str] = field(default_factory=list)
    evicted: list[str] = field(default_factory=list)
    synced_domains: list[str] = field(default_factory=list)
    requests: int = 0
    errors: list[str] = field(default_factory=list)
    skipped: bool = False
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        """True if the pass ran and every mutation it saw was delivered."""
        return not self.skipped and not self.retried and not self.evicted and not self.errors

    def to_dict(self) -> dict[str, object]:
        return {
            "synced": list(self.synced),
            "retried": list(self.retried),
            "evicted": list(self.evicted),
            "synced_domains": list(self.synced_domains),
            "requests": self.requests,
            "errors": list(self.errors),
            "skipped": self.skipped,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class Delivery:
    """One mutation paired with the request sent for it and its outcome."""

    mutation: PendingMutation
    request: OutboundRequest
    outcome: DeliveryOutcome


async def deliver(transport: Transport, request: OutboundRequest) -> DeliveryOutcome:
    """Send one request and fold every kind of failure into an outcome.

    Never raises: a vanished network, a timeout or a misbehaving transport
    are all ordinary failures for the retry policy to judge.
    """
    try:
        response = await transport.send(request.path, request.method, request.body)
    except Exception as e:
        return DeliveryOutcome.failure(None, str(e) or type(e).__name__)
    return DeliveryOutcome.from_response(response)


class SyncEngine:
    """Sequential drain of the pending mutation queue.

    State machine per drain: IDLE -> DRAINING -> IDLE. A drain requested
    while one is running is a no-op, so cycle N always completes before
    cycle N+1 begins.

    No retry loop lives here: mutations that stay queued wait for the
    next trigger (connectivity restored, or an explicit ``drain()``).
    """

    def __init__(
        self,
        store: QueueStore,
        transport: Transport,
        policy: RetryPolicy | None = None,
        notifier: InvalidationNotifier | None = None,
        on_evicted: EvictedHook | None = None,
    ):
        """Initialize the sync engine.

        Args:
            store: Queue store to drain
            transport: Transport issuing the outbound requests
            policy: Retry policy (three attempts by default)
            notifier: Invalidation notifier called after each drain
            on_evicted: Optional hook receiving each evicted mutation
        """
        self.store = store
        self.transport = transport
        self.policy = policy or RetryPolicy()
        self.notifier = notifier or InvalidationNotifier()
        self.on_evicted = on_evicted

        self._state = SyncState.IDLE
        self._last_drain: datetime | None = None
        self._last_result: DrainResult | None = None

    @property
    def state(self) -> SyncState:
        """Get current engine state."""
        return self._state

    @property
    def is_draining(self) -> bool:
        return self._state is SyncState.DRAINING

    @property
    def last_drain(self) -> datetime | None:
        """When the last completed drain finished."""
        return self._last_drain

    @property
    def last_result(self) -> DrainResult | None:
        return self._last_result

    async def drain(self) -> DrainResult:
        """Run one sequential pass over the current queue snapshot.

        Returns:
            Result of the pass; ``skipped`` is set if a drain was already running
        """
        if self._state is SyncState.DRAINING:
            logger.debug("Drain already in progress, ignoring trigger")
            return DrainResult(skipped=True)

        self._state = SyncState.DRAINING
        start_time = time.monotonic()
        result = DrainResult()

        try:
            try:
                snapshot = await self.store.read_all()
            except Exception as e:
                logger.error(
                    f"Could not read the queue: {e}",
                    exc_info=not isinstance(e, OfflineQueueError),
                )
                result.errors.append(f"Failed to read queue: {e}")
                return result

            if not snapshot:
                return result

            logger.info(f"Draining {len(snapshot)} pending mutation(s)")

            async for delivery in self._deliveries(snapshot):
                result.requests += 1
                await self._settle(delivery, result)

            if result.synced_domains:
                await self.notifier.drain_completed(result.synced_domains, len(result.synced))

            result.duration_ms = int((time.monotonic() - start_time) * 1000)
            logger.info(
                f"Drain finished: {len(result.synced)} synced, {len(result.retried)} retrying, "
                f"{len(result.evicted)} evicted",
                extra=drain_context(result),
            )
            return result

        finally:
            result.duration_ms = int((time.monotonic() - start_time) * 1000)
            self._last_drain = datetime.now(UTC)
            self._last_result = result
            self._state = SyncState.IDLE

    async def _deliveries(self, snapshot: list[PendingMutation]) -> AsyncIterator[Delivery]:
        """Deliver mutations strictly in order, one request in flight at a time.

        The next request is built and sent only after the consumer has
        settled the previous delivery.
        """
        for mutation in snapshot:
            request = build_request(mutation)
            logger.debug(f"{request.method} {request.path} for mutation {mutation.id}")
            outcome = await deliver(self.transport, request)
            yield Delivery(mutation, request, outcome)

    async def _settle(self, delivery: Delivery, result: DrainResult) -> RetryDecision:
        """Apply the retry policy to one delivery and commit it to the store."""
        mutation = delivery.mutation
        decision = self.policy.decide(mutation, delivery.outcome)
        log = MutationLoggerAdapter(
            logger, mutation, action=decision.action.value, reason=decision.reason
        )

        try:
            if decision.action is RetryAction.REMOVE:
                if mutation.entity.value not in result.synced_domains:
                    result.synced_domains.append(mutation.entity.value)
                await self.store.remove(mutation.id)
                result.synced.append(mutation.id)
                log.debug(f"Synced {mutation.type.value} {mutation.entity.value}")

            elif decision.action is RetryAction.EVICT:
                await self.store.remove(mutation.id)
                result.evicted.append(mutation.id)
                result.errors.append(f"Evicted {mutation.id}: {delivery.outcome.error}")
                log.warning(f"Evicting mutation {mutation.id}: {decision.reason}")
                if self.on_evicted is not None:
                    await call_hook(self.on_evicted, decision.mutation, name="on_evicted")

            elif await self.store.replace(decision.mutation):
                result.retried.append(mutation.id)
                log.warning(
                    f"Mutation {mutation.id} will be retried: {decision.reason} "
                    f"({delivery.outcome.error})"
                )

            else:
                log.info(f"Mutation {mutation.id} left the queue during delivery, not retrying")

        except Exception as e:
            log.error(
                f"Could not commit outcome for mutation {mutation.id}: {e}",
                exc_info=not isinstance(e, OfflineQueueError),
            )
            result.errors.append(f"Failed to commit {mutation.id}: {e}")

        return decision
