"""Webhook event models and payload DTOs."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.snapshot import StoredTaskSnapshot
from src.domain.task import Task


class WebhookEventType(StrEnum):
    """Webhook event types emitted by the watcher."""

    CREATED = "task.created"
    COMPLETED = "task.completed"
    UNCOMPLETED = "task.uncompleted"
    DELETED = "task.deleted"
    UPDATED = "task.updated"
    SCHEDULED = "task.scheduled"


WEBHOOK_EVENTS: list[str] = [event.value for event in WebhookEventType]


class FieldChange(BaseModel):
    """Old and new value of a single changed field."""

    old: Any = None
    new: Any = None


class DetectedChange(BaseModel):
    """Classified delta between two snapshots of the same task."""

    event: WebhookEventType
    changes: dict[str, FieldChange] | None = None


class WebhookEventData(BaseModel):
    """Event data: current task, previous state and field-level changes."""

    model_config = ConfigDict(populate_by_name=True)

    task: Task | None = Field(..., description="Current task state (None for deleted)")
    previous_task: StoredTaskSnapshot | None = Field(default=None, alias="previousTask")
    changes: dict[str, FieldChange] | None = None


class WebhookPayload(BaseModel):
    """Body of a webhook POST."""

    model_config = ConfigDict(populate_by_name=True)

    event: WebhookEventType
    timestamp: str = Field(..., description="Emission timestamp (ISO format)")
    api_key: str = Field(..., alias="apiKey", description="Subscriber that owns this data")
    data: WebhookEventData


class DeliveryResult(BaseModel):
    """Result of delivering one webhook."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(..., description="Whether the webhook was accepted (or filtered out)")
    status_code: int | None = Field(default=None, alias="statusCode")
    error: str | None = Field(default=None, description="Truncated error detail if failed")
    duration: float = Field(..., description="Elapsed time in milliseconds")
