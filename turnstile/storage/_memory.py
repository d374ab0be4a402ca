"""
Memory storage — for tests and single-process demos.
"""

from __future__ import annotations

import asyncio

from kungfu import Result, Ok

from turnstile.storage._types import StorageError


class MemoryStorage:
    """
    In-memory client storage.

    Note: Nothing survives a restart. Use SQLAlchemyStorage for durability.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._lock = asyncio.Lock()

    @property
    def keys(self) -> frozenset[str]:
        return frozenset(self._values)

    def peek(self, key: str) -> str | None:
        """Synchronous read for assertions and debugging."""
        return self._values.get(key)

    async def get(self, key: str) -> Result[str | None, StorageError]:
        async with self._lock:
            return Ok(self._values.get(key))

    async def set(self, key: str, value: str) -> Result[None, StorageError]:
        async with self._lock:
            self._values[key] = value
            return Ok(None)

    async def delete(self, key: str) -> Result[bool, StorageError]:
        async with self._lock:
            if key in self._values:
                del self._values[key]
                return Ok(True)
            return Ok(False)


__all__ = ("MemoryStorage",)
