"""Pytest configuration and fixtures for unit tests."""

import pytest

from src.core.clock import FixedClock
from src.core.config import WebhookConfig
from src.core.memory_store import InMemoryStore
from tests.unit.mocks import NOW, FakeTaskSource


@pytest.fixture
def store() -> InMemoryStore:
    """Provides a fresh in-memory state store for each test."""
    return InMemoryStore()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def source() -> FakeTaskSource:
    return FakeTaskSource()


@pytest.fixture
def webhook_config() -> WebhookConfig:
    return WebhookConfig(
        enabled=True,
        url="https://hooks.example.com/tasks",
        secret="test-secret-123",
        timeout_seconds=5.0,
    )
