"""
Order store — write-once records keyed by order id.
"""

from __future__ import annotations

import asyncio

import structlog
from kungfu import Result, Ok, Error

from turnstile.orders._types import Order, OrderError, OrderExists, order_key
from turnstile.storage import Storage, StorageError

logger = structlog.get_logger(__name__)


class OrderStore:
    """
    Durable orders.

    Example:
        orders = OrderStore(storage)
        match await orders.create(order):
            case Ok(_):
                ...
            case Error(OrderExists()):
                ...
    """

    def __init__(self, storage: Storage) -> None:
        self._storage = storage
        self._lock = asyncio.Lock()

    async def create(self, order: Order) -> Result[Order, OrderError]:
        """Persist a new order. An existing id is left untouched."""
        key = order_key(order.id)
        async with self._lock:
            match await self._storage.get(key):
                case Error(e):
                    return Error(e)
                case Ok(None):
                    pass
                case Ok(_):
                    logger.warning("order_exists", order_id=order.id)
                    return Error(OrderExists(order.id))

            match await self._storage.set(key, order.encode()):
                case Error(e):
                    logger.error("order_persist_failed", order_id=order.id, cause=str(e))
                    return Error(e)
                case Ok(_):
                    logger.info("order_created", order_id=order.id, tickets=len(order.tickets))
                    return Ok(order)

    async def get(self, order_id: str) -> Result[Order | None, StorageError]:
        """Look up an order. Absent or unreadable records yield Ok(None)."""
        match await self._storage.get(order_key(order_id)):
            case Error(e):
                return Error(e)
            case Ok(None):
                return Ok(None)
            case Ok(raw):
                try:
                    return Ok(Order.decode(raw))
                except ValueError as e:
                    logger.warning("order_corrupt", order_id=order_id, cause=str(e))
                    return Ok(None)


__all__ = ("OrderStore",)
