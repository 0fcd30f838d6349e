from src.services import (
    change_detector,
    scope_service,
    self_origin_service,
    snapshot_service,
    state_service,
    task_source,
    watcher_service,
)


__all__ = [
    "change_detector",
    "scope_service",
    "self_origin_service",
    "snapshot_service",
    "state_service",
    "task_source",
    "watcher_service",
]
