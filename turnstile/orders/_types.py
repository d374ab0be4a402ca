"""
Order types — completed purchase records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from turnstile.domain import ResolvedTicket, Settlement
from turnstile.storage import StorageError


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Order:
    """
    A completed purchase.

    Note: `id` is the ticket group of the payment attempt that settled.
    Immutable once created; there is no edit or refund path.
    """

    id: str
    customer_name: str
    customer_email: str
    ticket_group: str
    tickets: tuple[ResolvedTicket, ...]
    total: float
    poster_url: str
    event_name: str
    order_date: datetime
    coupon_code: str | None = None

    @classmethod
    def from_settlement(
        cls,
        ticket_group: str,
        settlement: Settlement,
        *,
        customer_name: str,
        customer_email: str,
        coupon_code: str | None = None,
        order_date: datetime | None = None,
    ) -> Order:
        return cls(
            id=ticket_group,
            customer_name=customer_name,
            customer_email=customer_email,
            ticket_group=ticket_group,
            tickets=settlement.tickets,
            total=settlement.total,
            poster_url=settlement.poster_url,
            event_name=settlement.event_name,
            order_date=order_date or datetime.now(),
            coupon_code=coupon_code or None,
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "ticketGroup": self.ticket_group,
            "tickets": [t.to_wire() for t in self.tickets],
            "total": self.total,
            "posterUrl": self.poster_url,
            "eventName": self.event_name,
            "orderDate": self.order_date.isoformat(),
            "couponCode": self.coupon_code,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Order:
        return cls(
            id=str(data["id"]),
            customer_name=str(data["customerName"]),
            customer_email=str(data["customerEmail"]),
            ticket_group=str(data["ticketGroup"]),
            tickets=tuple(ResolvedTicket.from_wire(t) for t in data["tickets"]),
            total=float(data["total"]),
            poster_url=str(data.get("posterUrl", "")),
            event_name=str(data.get("eventName", "")),
            order_date=datetime.fromisoformat(data["orderDate"]),
            coupon_code=data.get("couponCode"),
        )

    def encode(self) -> str:
        return json.dumps(self.to_wire())

    @classmethod
    def decode(cls, raw: str) -> Order:
        """Raises ValueError on malformed data."""
        try:
            return cls.from_wire(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise ValueError(f"Malformed order: {e!r}") from e


def order_key(order_id: str) -> str:
    return f"order_{order_id}"


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderExists:
    """An order with this id was already created."""

    order_id: str

    def __str__(self) -> str:
        return f"Order {self.order_id} already exists"


type OrderError = OrderExists | StorageError


__all__ = (
    "Order",
    "order_key",
    "OrderExists",
    "OrderError",
)
