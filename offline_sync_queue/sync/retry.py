"""Retry policy for pending mutations.

Pure decision logic: given a mutation and the outcome of one delivery
attempt, decide whether the mutation is removed, kept for the next drain
with an incremented retry count, or evicted. No network or storage side
effects live here.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..models import PendingMutation
from ..transport.base import TransportResponse

MAX_RETRIES = 3


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one attempt to deliver a mutation.

    ``status`` is None when the request never produced a response
    (connection refused, timeout, network gone mid-request).
    """

    ok: bool
    status: int | None = None
    error: str | None = None
    payload: Any = None

    @classmethod
    def success(cls, status: int = 200, payload: Any = None) -> DeliveryOutcome:
        return cls(ok=True, status=status, payload=payload)

    @classmethod
    def failure(cls, status: int | None = None, error: str | None = None) -> DeliveryOutcome:
        return cls(ok=False, status=status, error=error)

    @classmethod
    def from_response(cls, response: TransportResponse) -> DeliveryOutcome:
        if response.ok:
            return cls.success(response.status, response.json())
        return cls.failure(response.status, f"HTTP {response.status}: {response.text}".strip())


class RetryAction(Enum):
    """What to do with a mutation after a delivery attempt."""

    REMOVE = "remove"  # Delivered, drop from the queue
    RETRY = "retry"  # Keep it with the incremented count
    EVICT = "evict"  # Give up, drop it silently


@dataclass(frozen=True)
class RetryDecision:
    """Decision for one mutation; ``mutation`` carries any updated retry count."""

    action: RetryAction
    mutation: PendingMutation
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.action is RetryAction.REMOVE


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy.

    Attributes:
        max_retries: Failed attempts after which a mutation is evicted
        permanent_status_codes: Statuses evicted on first failure. Empty by
            default, so backend rejections are retried like transient errors.
    """

    max_retries: int = MAX_RETRIES
    permanent_status_codes: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        object.__setattr__(self, "permanent_status_codes", frozenset(self.permanent_status_codes))

    def decide(self, mutation: PendingMutation, outcome: DeliveryOutcome) -> RetryDecision:
        """Decide the fate of a mutation after one delivery attempt."""
        if outcome.ok:
            return RetryDecision(RetryAction.REMOVE, mutation, "delivered")

        attempted = dataclasses.replace(mutation, retry_count=mutation.retry_count + 1)

        if outcome.status is not None and outcome.status in self.permanent_status_codes:
            return RetryDecision(RetryAction.EVICT, attempted, f"permanent status {outcome.status}")

        if attempted.retry_count >= self.max_retries:
            return RetryDecision(
                RetryAction.EVICT,
                attempted,
                f"retry limit reached ({attempted.retry_count}/{self.max_retries})",
            )

        return RetryDecision(
            RetryAction.RETRY,
            attempted,
            f"attempt {attempted.retry_count}/{self.max_retries} failed",
        )


DEFAULT_RETRY_POLICY = RetryPolicy()


def decide(
    mutation: PendingMutation,
    outcome: DeliveryOutcome,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> RetryDecision:
    """Apply ``policy`` (the default three-attempt policy unless given)."""
    return policy.decide(mutation, outcome)
