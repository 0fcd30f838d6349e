"""In-process key-value store with TTL support (single-process deployments and tests)."""

import logging
import threading
import time
from typing import Any


logger = logging.getLogger(__name__)


class InMemoryStore:
    """Thread-safe in-memory store with TTL support."""

    def __init__(self) -> None:
        """Initialize in-memory store."""
        self._data: dict[str, str] = {}
        self._expiry: dict[str, float] = {}
        self._lock = threading.Lock()
        self._closed = False

        # Health tracking
        self._last_successful_operation: float | None = None
        self._total_operations = 0

    @property
    def is_available(self) -> bool:
        """Check if the store is open."""
        return not self._closed

    def get_health_status(self) -> dict[str, Any]:
        """Get store health status.

        Returns:
            Dict with health status including last successful operation and total operations
        """
        return {
            "backend": "memory",
            "connected": self.is_available,
            "last_successful_operation": self._last_successful_operation,
            "total_operations": self._total_operations,
            "entries": len(self._data),
        }

    def _record_success(self) -> None:
        """Record successful store operation."""
        self._last_successful_operation = time.time()
        self._total_operations += 1

    def _cleanup_expired(self, keys: list[str] | None = None) -> None:
        """Clean up expired entries.

        Args:
            keys: Specific keys to check. If None, checks all keys.
        """
        now = time.time()
        keys_to_check = list(self._expiry.keys()) if keys is None else keys

        for key in keys_to_check:
            expiry = self._expiry.get(key)
            if expiry and expiry < now:
                self._data.pop(key, None)
                self._expiry.pop(key, None)

    async def get(self, key: str) -> str | None:
        """Get value from the store.

        Args:
            key: Key to read

        Returns:
            Stored value or None if not found or expired
        """
        with self._lock:
            self._cleanup_expired([key])
            value = self._data.get(key)
            self._record_success()
            return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Set value with TTL.

        Args:
            key: Key to write
            value: Value to store
            ttl_seconds: Time-to-live in seconds (0 disables expiry)
        """
        with self._lock:
            self._data[key] = value
            if ttl_seconds > 0:
                self._expiry[key] = time.time() + ttl_seconds
            else:
                self._expiry.pop(key, None)
            self._record_success()
            logger.debug("Stored key: %s (TTL: %ds)", key, ttl_seconds)

    async def delete(self, *keys: str) -> None:
        """Delete one or more keys.

        Args:
            *keys: Keys to delete
        """
        if not keys:
            return

        with self._lock:
            for key in keys:
                self._data.pop(key, None)
                self._expiry.pop(key, None)
            self._record_success()
            logger.debug("Deleted %d key(s)", len(keys))

    async def ping(self) -> bool:
        """Ping the store.

        Returns:
            True while the store is open
        """
        return self.is_available

    async def close(self) -> None:
        """Close the store and drop its contents."""
        with self._lock:
            self._data.clear()
            self._expiry.clear()
            self._closed = True
        logger.info("In-memory store closed")
