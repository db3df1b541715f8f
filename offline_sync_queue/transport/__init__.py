"""
Network transports.

Provides the abstract Transport contract and an aiohttp implementation.
"""

from .base import Transport, TransportResponse
from .http_client import AiohttpTransport

__all__ = [
    "Transport",
    "TransportResponse",
    "AiohttpTransport",
]
