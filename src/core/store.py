"""Key-value store capability used for subscriber state and self-origin markers."""

from typing import Protocol


class KeyValueStore(Protocol):
    """Get/set/delete with per-key TTL.

    Implementations raise ``StateStoreError`` when the backend cannot serve the
    request, so callers can tell a missing key from an unreachable store.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, *keys: str) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...
