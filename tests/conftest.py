"""Pytest configuration and shared fixtures."""

import logging

import pytest


logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def clear_webhook_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables from leaking into Settings() in tests."""
    for name in (
        "WEBHOOK_ENABLED",
        "WEBHOOK_URL",
        "WEBHOOK_SECRET",
        "WEBHOOK_EVENTS",
        "STATE_BACKEND",
        "REDIS_URL",
        "REDIS_HOST",
    ):
        monkeypatch.delenv(name, raising=False)
