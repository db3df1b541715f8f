"""
Core data types for the offline sync queue.

Defines the Pending Mutation record, the only entity that is persisted,
along with the closed sets of mutation types and target entities.
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import InvalidMutationError, UnsupportedEntityError

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9


class MutationType(Enum):
    """Kind of write operation being staged."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def targets_existing(self) -> bool:
        """Whether the mutation addresses a record the server already knows."""
        return self is not MutationType.CREATE


class Entity(Enum):
    """Data domains a mutation can target."""

    EXPENSE = "expense"
    BUDGET = "budget"
    GOAL = "goal"
    MEAL = "meal"

    @classmethod
    def parse(cls, value: Entity | str) -> Entity:
        """Resolve an entity name, failing fast on anything unknown."""
        if isinstance(value, Entity):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedEntityError(str(value)) from None


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_mutation_id() -> str:
    """Generate a client-side temporary id: ``{epoch_millis}_{9 base36 chars}``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{now_ms()}_{suffix}"


def _parse_type(value: MutationType | str) -> MutationType:
    if isinstance(value, MutationType):
        return value
    try:
        return MutationType(value)
    except ValueError:
        raise InvalidMutationError(f"Unsupported mutation type: {value!r}", field="type") from None


@dataclass
class PendingMutation:
    """A queued write operation awaiting transmission to the backend.

    Attributes:
        id: Unique identifier, generated at enqueue time
        type: create, update or delete
        entity: Domain the mutation targets
        data: Domain payload; update/delete must carry the server ``id``
        timestamp: Enqueue time in epoch milliseconds (ordering only)
        retry_count: Failed delivery attempts so far
    """

    type: MutationType
    entity: Entity
    data: dict[str, Any]
    id: str = field(default_factory=generate_mutation_id)
    timestamp: int = field(default_factory=now_ms)
    retry_count: int = 0

    def __post_init__(self) -> None:
        self.type = _parse_type(self.type)
        self.entity = Entity.parse(self.entity)

        if not self.id:
            raise InvalidMutationError("Mutation id must not be empty", field="id")
        if not isinstance(self.data, dict):
            raise InvalidMutationError(
                "Mutation data must be a JSON object", field="data", mutation_id=self.id
            )
        if self.type.targets_existing and self.data.get("id") in (None, ""):
            raise InvalidMutationError(
                f"{self.type.value} mutation requires data.id of the target record",
                field="data.id",
                mutation_id=self.id,
            )
        if self.retry_count < 0:
            raise InvalidMutationError(
                "retry_count must be non-negative", field="retry_count", mutation_id=self.id
            )

    @property
    def target_id(self) -> str | None:
        """Server-assigned id of the target record, if any."""
        target = self.data.get("id")
        return None if target is None else str(target)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted wire layout."""
        return {
            "id": self.id,
            "type": self.type.value,
            "entity": self.entity.value,
            "data": self.data,
            "timestamp": self.timestamp,
            "retryCount": self.retry_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingMutation:
        """Create from the persisted wire layout."""
        retry_count = data.get("retryCount", data.get("retry_count", 0))
        timestamp = data.get("timestamp")
        if timestamp is None:
            timestamp = now_ms()

        return cls(
            id=data["id"],
            type=data["type"],
            entity=data["entity"],
            data=data.get("data") or {},
            timestamp=int(timestamp),
            retry_count=int(retry_count),
        )
