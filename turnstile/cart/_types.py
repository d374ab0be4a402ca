"""
Cart types — line items and change notifications.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from turnstile.storage import StorageError


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Item
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartItem:
    """
    One ticket type line in the cart.

    Note: `price` is the unit price; the line total is price × quantity.
    """

    event_id: str
    event_name: str
    ticket_type_id: str
    ticket_type_name: str
    price: float
    quantity: int

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def with_quantity(self, quantity: int) -> CartItem:
        return replace(self, quantity=quantity)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> CartItem:
        quantity = int(data["quantity"])
        if quantity <= 0:
            raise ValueError(f"Non-positive quantity: {quantity}")
        return cls(
            event_id=str(data["eventId"]),
            event_name=str(data["eventName"]),
            ticket_type_id=str(data["ticketTypeId"]),
            ticket_type_name=str(data["ticketTypeName"]),
            price=float(data["price"]),
            quantity=quantity,
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "eventId": self.event_id,
            "eventName": self.event_name,
            "ticketTypeId": self.ticket_type_id,
            "ticketTypeName": self.ticket_type_name,
            "price": self.price,
            "quantity": self.quantity,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Notifications
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartNotice:
    """User-visible notice raised by a cart mutation."""

    title: str
    description: str
    previous_event_id: str | None = None


def cleared_for_new_event(previous_event_id: str) -> CartNotice:
    return CartNotice(
        title="Cart Cleared",
        description="Your cart was cleared to add tickets for a new event.",
        previous_event_id=previous_event_id,
    )


@dataclass(frozen=True, slots=True)
class CartChanged:
    """
    Result of one mutation; also what subscribers receive.

    error: set when the durable write failed. In-memory state is already applied.
    """

    items: tuple[CartItem, ...]
    notice: CartNotice | None = None
    error: StorageError | None = None


__all__ = (
    "CartItem",
    "CartNotice",
    "CartChanged",
    "cleared_for_new_event",
)
