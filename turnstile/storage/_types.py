"""
Storage types — durable client storage protocol.

Storage maps string keys to JSON text.
All methods return Result for explicit error handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from kungfu import Result


# ═══════════════════════════════════════════════════════════════════════════════
# Storage Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StorageError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


# ═══════════════════════════════════════════════════════════════════════════════
# Storage Protocol — Result-based
# ═══════════════════════════════════════════════════════════════════════════════


class Storage(Protocol):
    """
    Key/value storage for client state (cart, orders).

    Note: Values are opaque text; callers own serialization.
    Backend failures come back as Error(StorageError), never raised.

    Example — Redis implementation:

        class RedisStorage:
            def __init__(self, client: Redis):
                self.client = client

            async def get(self, key: str) -> Result[str | None, StorageError]:
                try:
                    raw = await self.client.get(key)
                    return Ok(raw.decode() if raw else None)
                except RedisError as e:
                    return Error(StorageError("Failed to get", e))

            # ... set / delete
    """

    async def get(self, key: str) -> Result[str | None, StorageError]:
        """Read value. Returns Ok(None) if not found."""
        ...

    async def set(self, key: str, value: str) -> Result[None, StorageError]:
        """Write value, replacing any previous one."""
        ...

    async def delete(self, key: str) -> Result[bool, StorageError]:
        """Delete value. Returns Ok(True) if existed."""
        ...


__all__ = ("StorageError", "Storage")
