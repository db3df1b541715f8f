"""Tests for key-value storage adapters."""

import os

import pytest

from offline_sync_queue.exceptions import StorageIOError
from offline_sync_queue.kvstore import FileKeyValueStore, InMemoryKeyValueStore


class TestInMemoryKeyValueStore:
    @pytest.mark.asyncio
    async def test_get_set_remove(self):
        store = InMemoryKeyValueStore()

        assert await store.get("k") is None
        await store.set("k", "v")
        assert await store.get("k") == "v"
        await store.remove("k")
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_remove_absent_is_noop(self):
        store = InMemoryKeyValueStore({"a": "1"})
        await store.remove("missing")
        assert store.snapshot() == {"a": "1"}


class TestFileKeyValueStore:
    @pytest.mark.asyncio
    async def test_roundtrip(self, tmp_path):
        store = FileKeyValueStore(tmp_path / "kv")

        await store.set("offline_mutation_queue", '[{"id": "1"}]')

        assert await store.get("offline_mutation_queue") == '[{"id": "1"}]'
        assert (tmp_path / "kv" / "offline_mutation_queue.json").exists()

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        assert await store.get("nothing") is None

    @pytest.mark.asyncio
    async def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Atomic writes clean up after themselves."""
        store = FileKeyValueStore(tmp_path)

        await store.set("q", "first")
        await store.set("q", "second")

        assert await store.get("q") == "second"
        assert sorted(os.listdir(tmp_path)) == ["q.json"]

    @pytest.mark.asyncio
    async def test_remove(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        await store.set("q", "x")

        await store.remove("q")
        await store.remove("q")

        assert await store.get("q") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".."])
    def test_unsafe_keys_rejected(self, tmp_path, key):
        store = FileKeyValueStore(tmp_path)
        with pytest.raises(ValueError):
            store.path_for(key)

    @pytest.mark.asyncio
    async def test_write_failure_raises_storage_error(self, tmp_path):
        """A base path that is a regular file cannot hold slots."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = FileKeyValueStore(blocker)

        with pytest.raises(StorageIOError) as exc_info:
            await store.set("q", "x")
        assert exc_info.value.details["operation"] in ("create_directory", "write")

    @pytest.mark.asyncio
    async def test_undecodable_bytes_read_with_replacement(self, tmp_path, caplog):
        store = FileKeyValueStore(tmp_path)
        store.path_for("q").write_bytes(b"\xff\xfe[garbage")

        value = await store.get("q")

        assert value == "\ufffd\ufffd[garbage"
        assert "not valid UTF-8" in caplog.text
