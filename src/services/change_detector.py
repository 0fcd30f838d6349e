"""Change detector: classify the delta between two snapshots of a task."""

from src.domain.events import DetectedChange, FieldChange, WebhookEventType
from src.domain.snapshot import StoredTaskSnapshot


# Fields reported in the change map of a task.updated event, keyed by wire name
UPDATED_FIELDS: tuple[tuple[str, str], ...] = (
    ("text", "text"),
    ("dueDate", "due_date"),
    ("timeEstimate", "time_estimate"),
)


def detect_change(old: StoredTaskSnapshot | None, new: StoredTaskSnapshot | None) -> DetectedChange | None:
    """Classify what changed between two snapshots.

    Only the most significant change is reported; the first matching rule wins:
    completion, un-completion, schedule date, backlog bucket, then a general update
    whose change map lists the differing text/due date/time estimate fields.

    Args:
        old: Previously stored snapshot, or None if unknown
        new: Current snapshot, or None if the task is gone

    Returns:
        DetectedChange, or None when there is nothing to report
    """
    if old is not None and new is None:
        return DetectedChange(event=WebhookEventType.DELETED)

    if old is None and new is not None:
        return DetectedChange(event=WebhookEventType.CREATED)

    if old is None or new is None or old.hash == new.hash:
        return None

    if not old.completed and new.completed:
        return DetectedChange(event=WebhookEventType.COMPLETED)

    if old.completed and not new.completed:
        return DetectedChange(event=WebhookEventType.UNCOMPLETED)

    if old.snooze_until != new.snooze_until:
        return DetectedChange(
            event=WebhookEventType.SCHEDULED,
            changes={"snoozeUntil": FieldChange(old=old.snooze_until, new=new.snooze_until)},
        )

    if old.time_horizon_type != new.time_horizon_type:
        return DetectedChange(
            event=WebhookEventType.SCHEDULED,
            changes={"timeHorizon": FieldChange(old=old.time_horizon_type, new=new.time_horizon_type)},
        )

    changes = {
        wire_name: FieldChange(old=getattr(old, attr), new=getattr(new, attr))
        for wire_name, attr in UPDATED_FIELDS
        if getattr(old, attr) != getattr(new, attr)
    }
    return DetectedChange(event=WebhookEventType.UPDATED, changes=changes or None)
