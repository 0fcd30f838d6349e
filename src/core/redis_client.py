"""Redis-backed key-value store for subscriber state and self-origin markers."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from functools import wraps
from typing import Any, TypeVar

from redis.asyncio import Redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from src.core.config import Constants, Settings
from src.core.errors import ConfigError, StateStoreError


logger = logging.getLogger(__name__)

# Type variable for generic retry decorator
T = TypeVar("T")


def with_retry(
    max_retries: int = 3, base_delay: float = 0.1
) -> Callable[[Callable[..., Coroutine[Any, Any, T]]], Callable[..., Coroutine[Any, Any, T]]]:
    """Decorator to retry async functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., Coroutine[Any, Any, T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:  # noqa: ANN401
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except RedisError as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Redis operation failed (attempt %d/%d): %s. Retrying in %.2fs",
                            attempt + 1,
                            max_retries,
                            e,
                            delay,
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(
                            "Redis operation failed after %d attempts: %s",
                            max_retries,
                            e,
                        )
            # If we get here, all retries failed
            raise last_exception  # type: ignore[misc]

        return wrapper

    return decorator


class RedisClient:
    """Async Redis client wrapper with connection pooling."""

    def __init__(
        self,
        *,
        url: str | None = None,
        host: str | None = None,
        port: int = 6379,
        password: str | None = None,
    ) -> None:
        """Initialize Redis client from a URL, or from host/port/password when no URL is given.

        Raises:
            ConfigError: If neither a URL nor a host is provided
        """
        if url:
            self._pool = ConnectionPool.from_url(
                url,
                decode_responses=True,
                max_connections=Constants.REDIS_MAX_CONNECTIONS,
                socket_timeout=Constants.REDIS_SOCKET_TIMEOUT_SECONDS,
            )
            self._target = url
        elif host:
            self._pool = ConnectionPool(
                host=host,
                port=port,
                password=password,
                decode_responses=True,
                max_connections=Constants.REDIS_MAX_CONNECTIONS,
                socket_timeout=Constants.REDIS_SOCKET_TIMEOUT_SECONDS,
            )
            self._target = f"{host}:{port}"
        else:
            raise ConfigError("Redis is not configured. Set REDIS_URL or REDIS_HOST.")

        self._client: Redis | None = Redis(connection_pool=self._pool)

        # Health tracking
        self._last_successful_operation: datetime | None = None
        self._failure_count = 0
        self._total_operations = 0

        logger.info("Redis client initialized for %s", self._target)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisClient":
        """Build a client from application settings."""
        return cls(
            url=settings.redis_url,
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
        )

    @property
    def is_available(self) -> bool:
        """Check if the client has not been closed."""
        return self._client is not None

    def get_health_status(self) -> dict[str, Any]:
        """Get Redis health status.

        Returns:
            Dict with health status including last successful operation,
            failure count, and total operations
        """
        return {
            "backend": "redis",
            "connected": self.is_available,
            "last_successful_operation": self._last_successful_operation.isoformat()
            if self._last_successful_operation
            else None,
            "failure_count": self._failure_count,
            "total_operations": self._total_operations,
        }

    def _record_success(self) -> None:
        """Record successful Redis operation."""
        self._last_successful_operation = datetime.now(UTC)
        self._total_operations += 1

    def _record_failure(self) -> None:
        """Record failed Redis operation."""
        self._failure_count += 1
        self._total_operations += 1

    def _require_client(self) -> Redis:
        if self._client is None:
            raise StateStoreError("Redis client is closed")
        return self._client

    async def get(self, key: str) -> str | None:
        """Get value from Redis.

        Args:
            key: Key to read

        Returns:
            Stored value or None if not found

        Raises:
            StateStoreError: If Redis fails after retries
        """
        client = self._require_client()

        @with_retry(max_retries=3, base_delay=0.1)
        async def _get_operation() -> str | None:
            return await client.get(key)

        try:
            value = await _get_operation()
        except RedisError as e:
            self._record_failure()
            raise StateStoreError(f"Redis GET failed for key {key}: {e}") from e
        self._record_success()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Set value in Redis with TTL.

        Args:
            key: Key to write
            value: Value to store
            ttl_seconds: Time-to-live in seconds

        Raises:
            StateStoreError: If Redis fails after retries
        """
        client = self._require_client()

        @with_retry(max_retries=3, base_delay=0.1)
        async def _set_operation() -> None:
            await client.set(key, value, ex=ttl_seconds)

        try:
            await _set_operation()
        except RedisError as e:
            self._record_failure()
            raise StateStoreError(f"Redis SET failed for key {key}: {e}") from e
        self._record_success()
        logger.debug("Stored key: %s (TTL: %ds)", key, ttl_seconds)

    async def delete(self, *keys: str) -> None:
        """Delete one or more keys from Redis.

        Args:
            *keys: Keys to delete

        Raises:
            StateStoreError: If Redis fails after retries
        """
        if not keys:
            return
        client = self._require_client()

        @with_retry(max_retries=3, base_delay=0.1)
        async def _delete_operation() -> None:
            await client.delete(*keys)

        try:
            await _delete_operation()
        except RedisError as e:
            self._record_failure()
            raise StateStoreError(f"Redis DELETE failed: {e}") from e
        self._record_success()
        logger.debug("Deleted %d key(s)", len(keys))

    async def ping(self) -> bool:
        """Ping Redis to check connection.

        Returns:
            True if Redis is responsive, False otherwise
        """
        if self._client is None:
            return False

        try:
            result = await self._client.ping()  # type: ignore[misc]
            return bool(result)
        except RedisError as e:
            logger.warning("Redis PING failed: %s", e)
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            await self._pool.disconnect()
            self._client = None
            logger.info("Redis client closed")
