"""Outbound request conventions for pending mutations.

Centralizes the path/method knowledge so callers never need to
construct request paths directly.

create: POST   /api/{entity}s
update: PUT    /api/{entity}s/{data.id}
delete: DELETE /api/{entity}s/{data.id}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from .models import Entity, MutationType, PendingMutation

API_PREFIX = "/api"

ENTITY_RESOURCES: dict[Entity, str] = {
    Entity.EXPENSE: "expenses",
    Entity.BUDGET: "budgets",
    Entity.GOAL: "goals",
    Entity.MEAL: "meals",
}

METHODS: dict[MutationType, str] = {
    MutationType.CREATE: "POST",
    MutationType.UPDATE: "PUT",
    MutationType.DELETE: "DELETE",
}


@dataclass(frozen=True)
class OutboundRequest:
    """A single request derived from a mutation."""

    method: str
    path: str
    body: dict[str, Any] | None = None


def collection_path(entity: Entity) -> str:
    """Path of the collection resource for an entity."""
    return f"{API_PREFIX}/{ENTITY_RESOURCES[entity]}"


def record_path(entity: Entity, record_id: str) -> str:
    """Path of a single record of an entity."""
    return f"{collection_path(entity)}/{quote(str(record_id), safe='')}"


def build_request(mutation: PendingMutation) -> OutboundRequest:
    """Translate ``(type, entity, data)`` into the outbound request."""
    method = METHODS[mutation.type]

    if mutation.type is MutationType.CREATE:
        return OutboundRequest(method, collection_path(mutation.entity), mutation.data)

    path = record_path(mutation.entity, mutation.target_id or "")
    if mutation.type is MutationType.DELETE:
        return OutboundRequest(method, path)
    return OutboundRequest(method, path, mutation.data)
