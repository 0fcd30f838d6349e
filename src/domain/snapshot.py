"""Stored snapshot and per-subscriber state models."""

from pydantic import BaseModel, ConfigDict, Field


class StoredTaskSnapshot(BaseModel):
    """Compact record of a task's last observed state."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str = ""
    completed: bool = False
    completed_at: str | None = Field(default=None, alias="completedAt")
    snooze_until: str | None = Field(default=None, alias="snoozeUntil")
    due_date: str | None = Field(default=None, alias="dueDate")
    time_estimate: int | None = Field(default=None, alias="timeEstimate")
    time_horizon_type: str | None = Field(default=None, alias="timeHorizonType")
    updated_at: str = Field(..., alias="updatedAt", description="When this snapshot was taken (ISO format)")
    hash: str = Field(..., description="Fingerprint over the significant task fields")


class SubscriberState(BaseModel):
    """Last poll time and known task snapshots for one subscriber, merged across tiers."""

    model_config = ConfigDict(populate_by_name=True)

    last_poll: str | None = Field(default=None, alias="lastPoll")
    tasks: dict[str, StoredTaskSnapshot] = Field(default_factory=dict)
