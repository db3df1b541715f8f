"""
aiohttp transport.

Sends mutation requests to the backend API over HTTP. A single
ClientSession is created lazily and reused until ``close()``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from ..exceptions import TransportError
from .base import Transport, TransportResponse

logger = logging.getLogger(__name__)


class AiohttpTransport(Transport):
    """HTTP transport backed by aiohttp.

    Example:
        >>> transport = AiohttpTransport("https://tracker.example.com", auth_token=token)
        >>> response = await transport.send("/api/expenses", "POST", {"amount": 75000})
        >>> response.ok
        True
        >>> await transport.close()
    """

    def __init__(
        self,
        base_url: str,
        auth_token: str | None = None,
        timeout_s: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            base_url: Backend origin, e.g. ``https://tracker.example.com``
            auth_token: Optional bearer token sent with every request
            timeout_s: Total per-request timeout in seconds
            session: Optional externally owned session (not closed by us)
        """
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)
        self._session = session
        self._owns_session = session is None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def send(
        self,
        path: str,
        method: str,
        body: dict[str, Any] | None = None,
    ) -> TransportResponse:
        url = f"{self.base_url}{path}"
        session = self._get_session()

        try:
            async with session.request(
                method, url, json=body, headers=self._headers(), timeout=self.timeout
            ) as response:
                text = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.debug(f"{method} {path} not delivered: {e}")
            raise TransportError(method, path, e) from e

        payload: Any = None
        if text:
            try:
                payload = json.loads(text)
            except json.JSONDecodeError:
                logger.debug(f"{method} {path} returned a non-JSON body ({status})")

        return TransportResponse(ok=200 <= status < 300, status=status, payload=payload, text=text)

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
