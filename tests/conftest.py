"""
Shared test configuration and fixtures.

Provides a scripted transport that replays canned responses without a
network, plus in-memory storage fixtures.
"""

from typing import Any

import pytest

from offline_sync_queue.kvstore import InMemoryKeyValueStore
from offline_sync_queue.sync.queue_store import QueueStore
from offline_sync_queue.transport import Transport, TransportResponse


class ScriptedTransport(Transport):
    """
    Fake transport for testing without a backend.

    Replays a script of outcomes, one per request. Each entry is either an
    HTTP status code, a TransportResponse, or an exception to raise. When
    the script runs out, ``default_status`` is returned.
    """

    def __init__(self, script: list[Any] | None = None, default_status: int = 200):
        self.script = list(script or [])
        self.default_status = default_status
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self.closed = False

    def push(self, *outcomes: Any) -> None:
        """Append outcomes to the script."""
        self.script.extend(outcomes)

    async def send(
        self,
        path: str,
        method: str,
        body: dict[str, Any] | None = None,
    ) -> TransportResponse:
        self.calls.append((method, path, body))
        outcome = self.script.pop(0) if self.script else self.default_status

        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, TransportResponse):
            return outcome
        return TransportResponse(
            ok=200 <= outcome < 300,
            status=outcome,
            payload={"id": f"srv-{len(self.calls)}"} if 200 <= outcome < 300 else None,
            text="" if 200 <= outcome < 300 else "rejected",
        )

    async def close(self) -> None:
        self.closed = True

    @property
    def paths(self) -> list[str]:
        return [path for _, path, _ in self.calls]

    @property
    def methods(self) -> list[str]:
        return [method for method, _, _ in self.calls]


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv_store) -> QueueStore:
    return QueueStore(kv_store)


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()
