"""
Cart — pending purchase selection for at most one event.

    from turnstile import cart as Ct

    store = await Ct.CartStore.load(storage, settings.cart_key)
    changed = await store.add_item(event.id, event.name, ticket_type, 2)

    store.cart_total   # Σ price × quantity
    store.item_count   # Σ quantity

    unsubscribe = store.subscribe(lambda changed: render(changed.items))
"""

from turnstile.cart._types import (
    CartItem,
    CartNotice,
    CartChanged,
    cleared_for_new_event,
)
from turnstile.cart._store import (
    DEFAULT_CART_KEY,
    CartListener,
    CartStore,
    decode_items,
    encode_items,
)

__all__ = (
    "CartItem",
    "CartNotice",
    "CartChanged",
    "cleared_for_new_event",
    "DEFAULT_CART_KEY",
    "CartListener",
    "CartStore",
    "decode_items",
    "encode_items",
)
