"""Tests for cycle error classification."""

import httpx
import pytest
from redis.exceptions import RedisError

from src.core.errors import ConfigError, ErrorCategory, FetchError, StateStoreError, classify_cycle_error


@pytest.mark.unit
@pytest.mark.parametrize(
    ("exception", "expected"),
    [
        (StateStoreError("unreadable"), ErrorCategory.STORE),
        (FetchError("backlog"), ErrorCategory.FETCH),
        (ConfigError("missing"), ErrorCategory.CONFIGURATION),
        (RedisError("boom"), ErrorCategory.STORE),
        (RuntimeError("Redis went away"), ErrorCategory.STORE),
        (httpx.ConnectError("refused"), ErrorCategory.FETCH),
        (RuntimeError("upstream returned 503"), ErrorCategory.FETCH),
        (TimeoutError(), ErrorCategory.FETCH),
        (ValueError("something else"), ErrorCategory.UNKNOWN),
    ],
)
def test_classify_cycle_error(exception: BaseException, expected: ErrorCategory) -> None:
    assert classify_cycle_error(exception) == expected
