"""
Abstract key-value storage interface.

Defines the contract the queue store persists through. Values are
opaque strings; the queue store owns serialization.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Abstract interface for a persistent key-value slot store.

    All storage implementations (memory, file) must implement this
    interface.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Read the value stored under a key.

        Args:
            key: Slot name

        Returns:
            Stored value, or None if the key is absent

        Raises:
            StorageIOError: If the read fails
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a value under a key, replacing any previous value.

        Args:
            key: Slot name
            value: Value to store

        Raises:
            StorageIOError: If the write fails
        """
        ...

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op.

        Args:
            key: Slot name

        Raises:
            StorageIOError: If the removal fails
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the store."""
        return None
