"""
Abstract network transport interface.

The sync engine and the write path only ever talk to the backend
through this contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class TransportResponse:
    """Outcome of a delivered request.

    Attributes:
        ok: True for 2xx statuses
        status: HTTP status code
        payload: Decoded JSON body, or None if the body was empty or not JSON
        text: Raw body text, kept for error reporting
    """

    ok: bool
    status: int
    payload: Any = None
    text: str = ""

    def json(self) -> Any:
        """Decoded response payload."""
        return self.payload


class Transport(ABC):
    """Abstract interface for sending one request to the backend."""

    @abstractmethod
    async def send(
        self,
        path: str,
        method: str,
        body: dict[str, Any] | None = None,
    ) -> TransportResponse:
        """Send a request and wait for its response.

        Args:
            path: Request path, e.g. ``/api/expenses``
            method: HTTP method
            body: Optional JSON body

        Returns:
            The response, including non-2xx ones

        Raises:
            TransportError: If the request could not be delivered at all
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        return None
