"""
SQLAlchemy storage — durable client storage in one key/value table.

Usage:
    storage, engine = await create_storage("sqlite+aiosqlite:///turnstile.db")

    await storage.set("turnstile:cart_items", "[]")
    result = await storage.get("turnstile:cart_items")

    await engine.dispose()
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, DateTime, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from kungfu import Result, Ok, Error

from turnstile.storage._types import StorageError


# ═══════════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class StorageEntry(Base):
    """One persisted client value."""

    __tablename__ = "client_storage"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Storage
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyStorage:
    """Storage backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> Result[str | None, StorageError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(StorageEntry, key)
                return Ok(row.value if row is not None else None)
        except SQLAlchemyError as e:
            return Error(StorageError(f"Failed to get {key}", e))

    async def set(self, key: str, value: str) -> Result[None, StorageError]:
        try:
            async with self._session_factory() as session:
                await session.merge(
                    StorageEntry(key=key, value=value, updated_at=datetime.now())
                )
                await session.commit()
                return Ok(None)
        except SQLAlchemyError as e:
            return Error(StorageError(f"Failed to set {key}", e))

    async def delete(self, key: str) -> Result[bool, StorageError]:
        try:
            async with self._session_factory() as session:
                cursor = await session.execute(
                    delete(StorageEntry).where(StorageEntry.key == key)
                )
                await session.commit()
                return Ok(bool(cursor.rowcount))
        except SQLAlchemyError as e:
            return Error(StorageError(f"Failed to delete {key}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_storage(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[SQLAlchemyStorage, AsyncEngine]:
    """Create schema and return (storage, engine). Caller disposes the engine."""
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return SQLAlchemyStorage(async_sessionmaker(engine, expire_on_commit=False)), engine


__all__ = ("StorageEntry", "SQLAlchemyStorage", "create_storage")
