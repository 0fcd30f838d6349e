"""Tests for self-origin markers."""

from unittest.mock import patch

import pytest

from src.core.memory_store import InMemoryStore
from src.domain.events import WebhookEventType
from src.services.self_origin_service import consume_self_origin, mark_self_origin, marker_key


API_KEY = "sk_test_subscriber_0001"


@pytest.mark.unit
class TestSelfOrigin:
    def test_marker_key(self) -> None:
        assert marker_key(API_KEY, "t1") == f"api_change:{API_KEY}:t1"

    async def test_consume_returns_marker_once(self, store: InMemoryStore) -> None:
        await mark_self_origin(store, subscriber=API_KEY, task_id="t1", event_type=WebhookEventType.COMPLETED)

        assert await consume_self_origin(store, subscriber=API_KEY, task_id="t1") == "task.completed"
        assert await consume_self_origin(store, subscriber=API_KEY, task_id="t1") is None

    async def test_empty_marker_is_consumed(self, store: InMemoryStore) -> None:
        await mark_self_origin(store, subscriber=API_KEY, task_id="t1", event_type="")

        assert await consume_self_origin(store, subscriber=API_KEY, task_id="t1") == ""
        assert await store.get(marker_key(API_KEY, "t1")) is None

    async def test_markers_are_scoped_per_subscriber_and_task(self, store: InMemoryStore) -> None:
        await mark_self_origin(store, subscriber=API_KEY, task_id="t1", event_type="task.updated")

        assert await consume_self_origin(store, subscriber="sk_other_subscriber", task_id="t1") is None
        assert await consume_self_origin(store, subscriber=API_KEY, task_id="t2") is None
        assert await consume_self_origin(store, subscriber=API_KEY, task_id="t1") == "task.updated"

    async def test_marker_expires(self, store: InMemoryStore) -> None:
        with patch("src.core.memory_store.time.time", return_value=1000.0):
            await mark_self_origin(store, subscriber=API_KEY, task_id="t1", event_type="task.updated")

        with patch("src.core.memory_store.time.time", return_value=1091.0):
            assert await consume_self_origin(store, subscriber=API_KEY, task_id="t1") is None

    async def test_custom_ttl(self, store: InMemoryStore) -> None:
        with patch("src.core.memory_store.time.time", return_value=1000.0):
            await mark_self_origin(store, subscriber=API_KEY, task_id="t1", event_type="task.updated", ttl_seconds=300)

        with patch("src.core.memory_store.time.time", return_value=1200.0):
            assert await consume_self_origin(store, subscriber=API_KEY, task_id="t1") == "task.updated"
