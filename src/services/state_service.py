"""Persistence of per-subscriber task snapshots."""

import logging

from pydantic import ValidationError

from src.core.config import Constants
from src.core.errors import StateStoreError
from src.core.store import KeyValueStore
from src.domain.snapshot import StoredTaskSnapshot, SubscriberState


logger = logging.getLogger(__name__)


def state_key(subscriber: str) -> str:
    """Store key holding a subscriber's state."""
    return f"{Constants.STATE_KEY_PREFIX}:{subscriber}"


async def load_state(store: KeyValueStore, subscriber: str) -> SubscriberState:
    """Load a subscriber's stored state.

    A missing key yields an empty state (first poll). Unparseable data is a store
    error rather than an empty state, so a corrupt record never masquerades as a
    fresh baseline.

    Raises:
        StateStoreError: If the store fails or holds invalid data
    """
    raw = await store.get(state_key(subscriber))
    if raw is None:
        return SubscriberState()

    try:
        return SubscriberState.model_validate_json(raw)
    except ValidationError as e:
        raise StateStoreError(f"Stored state for subscriber is unreadable: {e.error_count()} error(s)") from e


async def save_state(store: KeyValueStore, subscriber: str, state: SubscriberState) -> None:
    """Persist a subscriber's state with the standard TTL.

    Raises:
        StateStoreError: If the store fails
    """
    await store.set(
        state_key(subscriber),
        state.model_dump_json(by_alias=True),
        ttl_seconds=Constants.STATE_TTL_SECONDS,
    )


def merge_snapshots(
    state: SubscriberState,
    snapshots: dict[str, StoredTaskSnapshot],
    *,
    last_poll: str,
) -> SubscriberState:
    """Overlay snapshots onto an existing state.

    Keys not present in ``snapshots`` are kept; tasks known only from another tier
    are never evicted.
    """
    return SubscriberState(last_poll=last_poll, tasks={**state.tasks, **snapshots})
