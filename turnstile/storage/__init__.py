"""
Storage — durable client storage for cart and orders.

    from turnstile import storage as St

    memory = St.MemoryStorage()
    durable, engine = await St.create_storage("sqlite+aiosqlite:///turnstile.db")

    await durable.set("order_ABC", payload)
    match await durable.get("order_ABC"):
        case Ok(raw):
            ...
        case Error(e):
            ...
"""

from turnstile.storage._types import Storage, StorageError
from turnstile.storage._memory import MemoryStorage
from turnstile.storage._sqlalchemy import (
    SQLAlchemyStorage,
    StorageEntry,
    create_storage,
)

__all__ = (
    "Storage",
    "StorageError",
    "MemoryStorage",
    "SQLAlchemyStorage",
    "StorageEntry",
    "create_storage",
)
