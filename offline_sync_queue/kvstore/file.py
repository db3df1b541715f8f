"""
File-backed key-value store.

Each key maps to one file under a base directory. Writes are atomic
(temp file + fsync + rename) so a crash mid-write leaves either the old
value or the new one, never a torn file.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError
from .base import KeyValueStore

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileKeyValueStore(KeyValueStore):
    """Key-value store persisting each slot as ``{base_dir}/{key}.json``.

    Example:
        >>> store = FileKeyValueStore(Path.home() / ".offline-sync")
        >>> await store.set("offline_mutation_queue", "[]")
    """

    def __init__(self, base_dir: Path | str, suffix: str = ".json") -> None:
        """Initialize the file store.

        Args:
            base_dir: Directory holding one file per key
            suffix: File suffix appended to each key
        """
        self.base_dir = Path(base_dir)
        self.suffix = suffix

    def path_for(self, key: str) -> Path:
        """Resolve the file path for a key.

        Raises ValueError on keys that are not plain file-name safe tokens.
        """
        if not _KEY_RE.match(key) or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_dir / f"{key}{self.suffix}"

    async def get(self, key: str) -> str | None:
        """Read a slot.

        Bytes that are not valid UTF-8 are decoded with replacement
        characters, so callers see a damaged value instead of an error.
        """
        path = self.path_for(key)
        try:
            if not await aiofiles.os.path.exists(path):
                return None
            async with aiofiles.open(path, "rb") as f:
                raw = await f.read()
        except OSError as e:
            raise StorageIOError("read", key, e) from e

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"Slot {key} is not valid UTF-8 ({e.reason} at byte {e.start})")
            return raw.decode("utf-8", errors="replace")

    async def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            await aiofiles.os.makedirs(self.base_dir, exist_ok=True)
        except OSError as e:
            raise StorageIOError("create_directory", str(self.base_dir), e) from e

        # Write to temp file first
        fd, temp_path = tempfile.mkstemp(dir=self.base_dir, prefix=".tmp_", suffix=self.suffix)
        try:
            os.close(fd)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(value)
                await f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            await aiofiles.os.replace(temp_path, path)
        except Exception as e:
            # Clean up temp file on error
            try:
                await aiofiles.os.remove(temp_path)
            except OSError:
                pass
            raise StorageIOError("write", key, e) from e

    async def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            if await aiofiles.os.path.exists(path):
                await aiofiles.os.remove(path)
        except OSError as e:
            raise StorageIOError("remove", key, e) from e
