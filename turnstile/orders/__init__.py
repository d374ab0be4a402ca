"""
Orders — durable record of completed purchases.

    from turnstile import orders as O

    store = O.OrderStore(storage)
    await store.create(O.Order.from_settlement(group, settlement, ...))
    await store.get(group)   # Ok(Order) | Ok(None)
"""

from turnstile.orders._types import Order, OrderError, OrderExists, order_key
from turnstile.orders._store import OrderStore

__all__ = (
    "Order",
    "OrderError",
    "OrderExists",
    "order_key",
    "OrderStore",
)
