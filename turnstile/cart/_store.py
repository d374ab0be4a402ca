"""
Cart store — pending purchase selection for one event.

Mutations apply to the in-memory list before the first await, then the full
list is written to storage. Writes are serialised and always carry the latest
list, so the durable copy converges on the in-memory one.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

import structlog
from kungfu import Ok, Error

from turnstile._types import Unsubscribe
from turnstile.cart._types import CartChanged, CartItem, CartNotice, cleared_for_new_event
from turnstile.domain import TicketType
from turnstile.storage import Storage, StorageError

logger = structlog.get_logger(__name__)

DEFAULT_CART_KEY = "turnstile:cart_items"

type CartListener = Callable[[CartChanged], None]


# ═══════════════════════════════════════════════════════════════════════════════
# Decoding
# ═══════════════════════════════════════════════════════════════════════════════


def decode_items(raw: str) -> tuple[CartItem, ...]:
    """
    Parse a persisted cart.

    Raises ValueError on anything that is not a list of well-formed items
    sharing one event.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Cart is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ValueError("Cart is not a list")
    try:
        items = tuple(CartItem.from_wire(entry) for entry in data)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed cart item: {e!r}") from e
    if len({item.event_id for item in items}) > 1:
        raise ValueError("Cart holds items for more than one event")
    return items


def encode_items(items: tuple[CartItem, ...]) -> str:
    return json.dumps([item.to_wire() for item in items])


# ═══════════════════════════════════════════════════════════════════════════════
# CartStore
# ═══════════════════════════════════════════════════════════════════════════════


class CartStore:
    """
    Cart bound to a storage backend.

    Example:
        cart = await CartStore.load(storage, settings.cart_key)
        changed = await cart.add_item(event.id, event.name, ticket_type, 2)
        if changed.notice:
            show(changed.notice)
        cart.cart_total, cart.item_count
    """

    def __init__(
        self,
        storage: Storage,
        key: str = DEFAULT_CART_KEY,
        items: tuple[CartItem, ...] = (),
    ) -> None:
        self._storage = storage
        self._key = key
        self._items = items
        self._listeners: list[CartListener] = []
        self._write_lock = asyncio.Lock()

    @classmethod
    async def load(cls, storage: Storage, key: str = DEFAULT_CART_KEY) -> CartStore:
        """Restore the persisted cart. Missing or unreadable data yields an empty cart."""
        match await storage.get(key):
            case Ok(None):
                return cls(storage, key)
            case Ok(raw):
                try:
                    items = decode_items(raw)
                except ValueError as e:
                    logger.warning("cart_load_corrupt", key=key, cause=str(e))
                    return cls(storage, key)
                logger.debug("cart_loaded", key=key, lines=len(items))
                return cls(storage, key, items)
            case Error(e):
                logger.warning("cart_load_failed", key=key, cause=str(e))
                return cls(storage, key)

    # ───────────────────────────────────────────────────────────────────────────
    # Derived
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def key(self) -> str:
        return self._key

    @property
    def items(self) -> tuple[CartItem, ...]:
        return self._items

    @property
    def cart_total(self) -> float:
        return sum(item.price * item.quantity for item in self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def event_id(self) -> str | None:
        return self._items[0].event_id if self._items else None

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, ticket_type_id: str) -> CartItem | None:
        for item in self._items:
            if item.ticket_type_id == ticket_type_id:
                return item
        return None

    # ───────────────────────────────────────────────────────────────────────────
    # Mutations
    # ───────────────────────────────────────────────────────────────────────────

    async def add_item(
        self,
        event_id: str,
        event_name: str,
        ticket_type: TicketType,
        quantity: int = 1,
    ) -> CartChanged:
        """
        Add tickets of one type.

        A cart holding another event is emptied first and the returned change
        carries a cleared-for-new-event notice. Adding a ticket type already
        in the cart sums the quantities.
        """
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")

        notice: CartNotice | None = None
        items = self._items
        current_event = self.event_id
        if current_event is not None and current_event != event_id:
            notice = cleared_for_new_event(current_event)
            items = ()
            logger.info("cart_cleared_for_new_event", previous=current_event, event_id=event_id)

        existing = next((i for i in items if i.ticket_type_id == ticket_type.id), None)
        if existing is not None:
            items = tuple(
                i.with_quantity(i.quantity + quantity) if i is existing else i for i in items
            )
        else:
            items = items + (
                CartItem(
                    event_id=event_id,
                    event_name=event_name,
                    ticket_type_id=ticket_type.id,
                    ticket_type_name=ticket_type.name,
                    price=ticket_type.price,
                    quantity=quantity,
                ),
            )
        return await self._commit(items, notice)

    async def update_quantity(self, ticket_type_id: str, quantity: int) -> CartChanged:
        """Set a line's quantity exactly. Zero or less removes the line."""
        if quantity <= 0:
            return await self.remove_item(ticket_type_id)
        items = tuple(
            i.with_quantity(quantity) if i.ticket_type_id == ticket_type_id else i
            for i in self._items
        )
        return await self._commit(items)

    async def remove_item(self, ticket_type_id: str) -> CartChanged:
        items = tuple(i for i in self._items if i.ticket_type_id != ticket_type_id)
        return await self._commit(items)

    async def clear(self) -> CartChanged:
        """Empty the cart and erase its durable copy."""
        return await self._commit(())

    # ───────────────────────────────────────────────────────────────────────────
    # Subscription
    # ───────────────────────────────────────────────────────────────────────────

    def subscribe(self, listener: CartListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ───────────────────────────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────────────────────────

    async def _commit(
        self,
        items: tuple[CartItem, ...],
        notice: CartNotice | None = None,
    ) -> CartChanged:
        self._items = items
        error = await self._persist()
        changed = CartChanged(items=self._items, notice=notice, error=error)
        for listener in list(self._listeners):
            listener(changed)
        return changed

    async def _persist(self) -> StorageError | None:
        async with self._write_lock:
            # Latest list, not the one this mutation produced
            items = self._items
            if items:
                result = await self._storage.set(self._key, encode_items(items))
            else:
                result = await self._storage.delete(self._key)

        match result:
            case Ok(_):
                return None
            case Error(e):
                logger.error("cart_persist_failed", key=self._key, cause=str(e))
                return e


__all__ = (
    "DEFAULT_CART_KEY",
    "CartListener",
    "CartStore",
    "decode_items",
    "encode_items",
)
