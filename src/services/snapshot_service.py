"""Snapshot builder: task fingerprints and stored records."""

import hashlib
import json
from collections.abc import Callable
from datetime import datetime
from typing import Any

from src.core.clock import isoformat_utc
from src.domain.snapshot import StoredTaskSnapshot
from src.domain.task import Task


# Every field that makes two task states different. Order is irrelevant to the hash
# (keys are sorted on serialization); adding a field here changes every fingerprint.
HASHED_FIELDS: tuple[tuple[str, Callable[[Task], Any]], ...] = (
    ("text", lambda task: task.text),
    ("completed", lambda task: task.completed),
    ("completeDate", lambda task: task.complete_date),
    ("snoozeUntil", lambda task: task.snooze_until),
    ("dueDate", lambda task: task.due_date),
    ("timeEstimate", lambda task: task.time_estimate),
    ("notes", lambda task: task.notes),
    ("streamIds", lambda task: sorted(task.stream_ids)),
    ("timeHorizonType", lambda task: task.time_horizon_type),
    ("timeHorizonRelativeTo", lambda task: task.time_horizon_relative_to),
)


def canonical_fields(task: Task) -> dict[str, Any]:
    """Extract the hashed fields of a task."""
    return {name: getter(task) for name, getter in HASHED_FIELDS}


def fingerprint(task: Task) -> str:
    """Deterministic hash over the significant fields of a task."""
    serialized = json.dumps(canonical_fields(task), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.md5(serialized.encode("utf-8"), usedforsecurity=False).hexdigest()


def build_snapshot(task: Task, now: datetime) -> StoredTaskSnapshot:
    """Convert a task into its stored snapshot.

    Args:
        task: Task as returned by the task source
        now: Observation time, recorded as ``updatedAt`` (not part of the hash)

    Returns:
        StoredTaskSnapshot with fingerprint
    """
    return StoredTaskSnapshot(
        id=task.id,
        text=task.text or "",
        completed=task.completed,
        completed_at=task.complete_date or None,
        snooze_until=task.snooze_until or None,
        due_date=task.due_date or None,
        time_estimate=task.time_estimate or None,
        time_horizon_type=task.time_horizon_type,
        updated_at=isoformat_utc(now),
        hash=fingerprint(task),
    )
