"""Tests for the in-memory key-value store."""

from unittest.mock import patch

import pytest

from src.core.memory_store import InMemoryStore


@pytest.mark.unit
class TestInMemoryStore:
    async def test_set_and_get(self, store: InMemoryStore) -> None:
        await store.set("k", "v", ttl_seconds=60)

        assert await store.get("k") == "v"

    async def test_missing_key(self, store: InMemoryStore) -> None:
        assert await store.get("missing") is None

    async def test_expired_key_is_gone(self, store: InMemoryStore) -> None:
        with patch("src.core.memory_store.time.time", return_value=1000.0):
            await store.set("k", "v", ttl_seconds=90)

        with patch("src.core.memory_store.time.time", return_value=1089.0):
            assert await store.get("k") == "v"

        with patch("src.core.memory_store.time.time", return_value=1091.0):
            assert await store.get("k") is None

    async def test_zero_ttl_never_expires(self, store: InMemoryStore) -> None:
        with patch("src.core.memory_store.time.time", return_value=1000.0):
            await store.set("k", "v", ttl_seconds=0)

        with patch("src.core.memory_store.time.time", return_value=10_000_000.0):
            assert await store.get("k") == "v"

    async def test_overwrite_resets_ttl(self, store: InMemoryStore) -> None:
        with patch("src.core.memory_store.time.time", return_value=1000.0):
            await store.set("k", "old", ttl_seconds=10)
        with patch("src.core.memory_store.time.time", return_value=1005.0):
            await store.set("k", "new", ttl_seconds=10)
        with patch("src.core.memory_store.time.time", return_value=1012.0):
            assert await store.get("k") == "new"

    async def test_delete(self, store: InMemoryStore) -> None:
        await store.set("a", "1", ttl_seconds=60)
        await store.set("b", "2", ttl_seconds=60)

        await store.delete("a", "b", "missing")

        assert await store.get("a") is None
        assert await store.get("b") is None

    async def test_ping_and_close(self, store: InMemoryStore) -> None:
        await store.set("k", "v", ttl_seconds=60)
        assert await store.ping() is True

        await store.close()

        assert await store.ping() is False
        assert store.is_available is False
        assert await store.get("k") is None

    async def test_health_status(self, store: InMemoryStore) -> None:
        await store.set("k", "v", ttl_seconds=60)

        status = store.get_health_status()

        assert status["backend"] == "memory"
        assert status["connected"] is True
        assert status["entries"] == 1
        assert status["total_operations"] == 1
