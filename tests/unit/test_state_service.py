"""Tests for subscriber state persistence."""

import json
from unittest.mock import AsyncMock

import pytest

from src.core.errors import StateStoreError
from src.core.memory_store import InMemoryStore
from src.domain.snapshot import SubscriberState
from src.services.snapshot_service import build_snapshot
from src.services.state_service import load_state, merge_snapshots, save_state, state_key
from tests.unit.mocks import NOW, make_task


API_KEY = "sk_test_subscriber_0001"


@pytest.mark.unit
class TestStateService:
    def test_state_key(self) -> None:
        assert state_key(API_KEY) == f"webhook_state:{API_KEY}"

    async def test_missing_state_is_empty(self, store: InMemoryStore) -> None:
        state = await load_state(store, API_KEY)

        assert state.tasks == {}
        assert state.last_poll is None

    async def test_save_then_load(self, store: InMemoryStore) -> None:
        snapshot = build_snapshot(make_task("t1", text="Buy milk", dueDate="2025-01-10"), NOW)
        state = SubscriberState(last_poll="2025-01-08T12:00:00.000Z", tasks={"t1": snapshot})

        await save_state(store, API_KEY, state)
        loaded = await load_state(store, API_KEY)

        assert loaded == state

    async def test_saved_state_uses_wire_names(self, store: InMemoryStore) -> None:
        snapshot = build_snapshot(make_task("t1"), NOW)

        await save_state(store, API_KEY, SubscriberState(last_poll="x", tasks={"t1": snapshot}))

        raw = json.loads(await store.get(state_key(API_KEY)))
        assert raw["lastPoll"] == "x"
        assert raw["tasks"]["t1"]["updatedAt"] == "2025-01-08T12:00:00.000Z"

    async def test_save_uses_seven_day_ttl(self) -> None:
        store = AsyncMock()

        await save_state(store, API_KEY, SubscriberState())

        assert store.set.await_args.kwargs["ttl_seconds"] == 7 * 24 * 3600

    @pytest.mark.parametrize("raw", ["{not json", '{"tasks": {"t1": {"id": "t1"}}}', "[]"])
    async def test_unreadable_state_raises(self, store: InMemoryStore, raw: str) -> None:
        await store.set(state_key(API_KEY), raw, ttl_seconds=60)

        with pytest.raises(StateStoreError):
            await load_state(store, API_KEY)


@pytest.mark.unit
class TestMergeSnapshots:
    def test_overlays_without_evicting(self) -> None:
        old_t1 = build_snapshot(make_task("t1", text="Old"), NOW)
        t2 = build_snapshot(make_task("t2"), NOW)
        new_t1 = build_snapshot(make_task("t1", text="New"), NOW)
        state = SubscriberState(last_poll="earlier", tasks={"t1": old_t1, "t2": t2})

        merged = merge_snapshots(state, {"t1": new_t1}, last_poll="now")

        assert merged.last_poll == "now"
        assert merged.tasks == {"t1": new_t1, "t2": t2}

    def test_does_not_mutate_input(self) -> None:
        state = SubscriberState(tasks={})

        merge_snapshots(state, {"t1": build_snapshot(make_task("t1"), NOW)}, last_poll="now")

        assert state.tasks == {}
