"""
Key-value storage adapters.

The queue store persists its whole list into a single slot of one of
these stores.
"""

from .base import KeyValueStore
from .file import FileKeyValueStore
from .memory import InMemoryKeyValueStore

__all__ = [
    "KeyValueStore",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
]
