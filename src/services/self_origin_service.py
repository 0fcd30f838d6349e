"""Self-origin markers: suppress webhooks for changes this system made itself.

Any write path that mutates a task on behalf of a subscriber calls
``mark_self_origin`` before or right after the mutation. The next poll cycle that
sees the resulting change consumes the marker and skips the webhook.
"""

import logging

from src.core.config import Constants
from src.core.store import KeyValueStore
from src.domain.events import WebhookEventType


logger = logging.getLogger(__name__)


def marker_key(subscriber: str, task_id: str) -> str:
    """Store key of the marker for one subscriber/task pair."""
    return f"{Constants.SELF_ORIGIN_KEY_PREFIX}:{subscriber}:{task_id}"


async def mark_self_origin(
    store: KeyValueStore,
    *,
    subscriber: str,
    task_id: str,
    event_type: WebhookEventType | str,
    ttl_seconds: int = Constants.SELF_ORIGIN_TTL_SECONDS,
) -> None:
    """Record that this system itself changed a task.

    Args:
        store: State store
        subscriber: Subscriber that made the change
        task_id: Changed task
        event_type: Kind of change that was made
        ttl_seconds: How long the marker stays valid
    """
    await store.set(marker_key(subscriber, task_id), str(event_type), ttl_seconds=ttl_seconds)
    logger.debug("Recorded self-origin marker", extra={"task_id": task_id, "event": str(event_type)})


async def consume_self_origin(store: KeyValueStore, *, subscriber: str, task_id: str) -> str | None:
    """Return and delete the marker for a subscriber/task pair.

    Returns:
        The recorded event type, or None if the change was not self-originated
    """
    key = marker_key(subscriber, task_id)
    value = await store.get(key)
    if value is not None:
        await store.delete(key)
    return value
