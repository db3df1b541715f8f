"""In-process key-value store."""

from __future__ import annotations

from .base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store.

    Useful for tests and for hosts that provide their own durability.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the current contents."""
        return dict(self._data)
