"""
Domain — catalog and settlement types shared across modules.

Wire format is the remote API's camelCase JSON; `from_wire` / `to_wire`
convert at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class TicketStatus(Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


@dataclass(frozen=True, slots=True)
class TicketType:
    id: str
    name: str
    price: float
    quantity_available: int
    status: TicketStatus = TicketStatus.ACTIVE
    tickets_to_issue: int = 1
    ticket_limit_per_person: int = 0
    sale_start_date: str | None = None
    sale_end_date: str | None = None

    @property
    def is_purchasable(self) -> bool:
        """Active and with stock left."""
        return self.status is TicketStatus.ACTIVE and self.quantity_available > 0


@dataclass(frozen=True, slots=True)
class Event:
    id: str
    slug: str
    name: str
    date: str
    location: str
    poster_url: str
    description: str = ""
    end_date: str | None = None
    is_featured: bool = False
    is_active: bool = True
    category: str | None = None
    ticket_types: tuple[TicketType, ...] = ()

    def ticket_type(self, ticket_type_id: str) -> TicketType | None:
        for tt in self.ticket_types:
            if tt.id == ticket_type_id:
                return tt
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Settlement
# ═══════════════════════════════════════════════════════════════════════════════

VALID_TICKET = "VALID"


@dataclass(frozen=True, slots=True)
class ResolvedTicket:
    """A ticket record issued by the remote API for a ticket group."""

    id: int
    ticket_name: str
    ticket_price: float
    ticket_group_code: str
    customer_mobile: str
    status: str
    created_at: str
    barcode: str | None = None
    is_complementary: bool = False

    @property
    def is_valid(self) -> bool:
        return self.status == VALID_TICKET

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> ResolvedTicket:
        return cls(
            id=int(data["id"]),
            ticket_name=str(data.get("ticketName", "")),
            ticket_price=float(data.get("ticketPrice") or 0),
            ticket_group_code=str(data.get("ticketGroupCode", "")),
            customer_mobile=str(data.get("customerMobile", "")),
            status=str(data.get("status", "")),
            created_at=str(data.get("createdAt", "")),
            barcode=data.get("barcode"),
            is_complementary=bool(data.get("isComplementary", False)),
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ticketName": self.ticket_name,
            "ticketPrice": self.ticket_price,
            "barcode": self.barcode,
            "ticketGroupCode": self.ticket_group_code,
            "customerMobile": self.customer_mobile,
            "isComplementary": self.is_complementary,
            "status": self.status,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class Settlement:
    """Confirmed payment: the resolved tickets of one ticket group."""

    tickets: tuple[ResolvedTicket, ...]
    total: float
    poster_url: str
    event_name: str


__all__ = (
    "TicketStatus",
    "TicketType",
    "Event",
    "VALID_TICKET",
    "ResolvedTicket",
    "Settlement",
)
