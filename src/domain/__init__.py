"""Domain models and DTOs."""

from src.domain.events import (
    WEBHOOK_EVENTS,
    DeliveryResult,
    DetectedChange,
    FieldChange,
    WebhookEventData,
    WebhookEventType,
    WebhookPayload,
)
from src.domain.scope import PollTier
from src.domain.snapshot import StoredTaskSnapshot, SubscriberState
from src.domain.task import Snooze, Task, TimeHorizon, TimeHorizonType


__all__ = [
    "WEBHOOK_EVENTS",
    "DeliveryResult",
    "DetectedChange",
    "FieldChange",
    "PollTier",
    "Snooze",
    "StoredTaskSnapshot",
    "SubscriberState",
    "Task",
    "TimeHorizon",
    "TimeHorizonType",
    "WebhookEventData",
    "WebhookEventType",
    "WebhookPayload",
]
