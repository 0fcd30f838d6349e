"""Error types and classification for the watcher and its collaborators."""

from enum import Enum
from typing import Literal


class TaskhookError(Exception):
    """Base class for taskhook errors."""


class ConfigError(TaskhookError):
    """Invalid or missing configuration. Fatal at startup, never raised at runtime."""


class FetchError(TaskhookError):
    """The task source was unreachable or returned an error."""


class StateStoreError(TaskhookError):
    """The state store was unreachable or returned unusable data."""


class ErrorCategory(Enum):
    """Categories of errors that can abort a poll cycle."""

    FETCH = "fetch"
    STORE = "store"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_ERROR_PATTERNS: dict[Literal["fetch", "store"], dict[str, list[str] | set[str]]] = {
    "fetch": {
        "phrases": [
            "connection",
            "timeout",
            "timed out",
            "unreachable",
            "502",
            "503",
            "504",
        ],
        "exception_types": {"ConnectionError", "TimeoutError", "HTTPStatusError", "ConnectError", "ReadTimeout"},
    },
    "store": {
        "phrases": ["redis"],
        "exception_types": {"RedisError"},
    },
}


def _match_error_pattern(*, error_str: str, exception_type: str, pattern_type: Literal["fetch", "store"]) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_cycle_error(exception: BaseException) -> ErrorCategory:
    """Classify an exception that aborted a poll cycle.

    Typed errors map directly; anything else is matched on its type name and message
    so that raw client exceptions from a task source still get a useful category.

    Args:
        exception: The exception raised during the cycle

    Returns:
        The ErrorCategory for structured logging
    """
    if isinstance(exception, StateStoreError):
        return ErrorCategory.STORE
    if isinstance(exception, FetchError):
        return ErrorCategory.FETCH
    if isinstance(exception, ConfigError):
        return ErrorCategory.CONFIGURATION

    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="store"):
        return ErrorCategory.STORE
    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="fetch"):
        return ErrorCategory.FETCH
    return ErrorCategory.UNKNOWN
