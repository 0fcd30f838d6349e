"""Task models as returned by the remote task service."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TimeHorizonType(StrEnum):
    """Backlog bucket of a task with no scheduled day."""

    SOON = "soon"
    NEXT = "next"
    NEXT_QUARTER = "next-quarter"
    LATER = "later"
    SOMEDAY = "someday"
    NEVER = "never"


class Snooze(BaseModel):
    """Schedule information ("snooze until" date)."""

    model_config = ConfigDict(extra="allow")

    until: str | None = None


class TimeHorizon(BaseModel):
    """Backlog bucket classification."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: TimeHorizonType | None = None
    relative_to: str | None = Field(default=None, alias="relativeTo")


class Task(BaseModel):
    """Task data transfer object.

    Field names follow the task service's wire format. Unknown fields are kept so the
    webhook payload carries the task exactly as the service returned it.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., alias="_id", description="Opaque task ID")
    text: str = Field(default="", description="Task title")
    notes: str | None = Field(default=None, description="Free-form notes")
    completed: bool = Field(default=False, description="Completion flag")
    complete_date: str | None = Field(default=None, alias="completeDate", description="Completion timestamp")
    due_date: str | None = Field(default=None, alias="dueDate", description="Due date")
    time_estimate: int | None = Field(default=None, alias="timeEstimate", description="Planned time (minutes)")
    snooze: Snooze | None = Field(default=None, description="Schedule date holder")
    time_horizon: TimeHorizon | None = Field(default=None, alias="timeHorizon", description="Backlog bucket")
    stream_ids: list[str] = Field(default_factory=list, alias="streamIds", description="Category-tag IDs")

    @property
    def snooze_until(self) -> str | None:
        """Scheduled day, if any."""
        return self.snooze.until if self.snooze else None

    @property
    def time_horizon_type(self) -> str | None:
        """Backlog bucket type, if any."""
        if self.time_horizon and self.time_horizon.type:
            return self.time_horizon.type.value
        return None

    @property
    def time_horizon_relative_to(self) -> str | None:
        """Reference date of the backlog bucket, if any."""
        return self.time_horizon.relative_to if self.time_horizon else None
