"""
Panel types — admin resources and their envelopes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Resources
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Balances:
    platform_fee: float
    available_funds: float
    gross_fee: float

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Balances:
        return cls(
            platform_fee=float(data.get("platform_fee") or 0),
            available_funds=float(data.get("availableFunds") or 0),
            gross_fee=float(data.get("grossFee") or 0),
        )


@dataclass(frozen=True, slots=True)
class EventTicket:
    id: str
    ticket_name: str
    ticket_price: float
    quantity_available: int
    sold_quantity: int
    is_active: bool
    is_sold_out: bool
    ticket_status: str

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> EventTicket:
        return cls(
            id=str(data["id"]),
            ticket_name=str(data.get("ticketName", "")),
            ticket_price=float(data.get("ticketPrice") or 0),
            quantity_available=int(data.get("quantityAvailable") or 0),
            sold_quantity=int(data.get("soldQuantity") or 0),
            is_active=bool(data.get("isActive", False)),
            is_sold_out=bool(data.get("isSoldOut", False)),
            ticket_status=str(data.get("ticketStatus", "")),
        )


@dataclass(frozen=True, slots=True)
class GLTransaction:
    id: str
    ticket_name: str
    transaction_type: str
    credit_amount: float
    debit_amount: float
    net_effect: float
    created_at: str

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> GLTransaction:
        return cls(
            id=str(data["id"]),
            ticket_name=str(data.get("ticketName", "")),
            transaction_type=str(data.get("transactionType", "")),
            credit_amount=float(data.get("creditAmount") or 0),
            debit_amount=float(data.get("debitAmount") or 0),
            net_effect=float(data.get("netEffect") or 0),
            created_at=str(data.get("createdAt", "")),
        )


@dataclass(frozen=True, slots=True)
class ComplementaryTicket:
    id: str
    event_name: str
    ticket_name: str
    ticket_price: float
    ticket_group_code: str
    customer_mobile: str
    status: str
    issued_by: str
    created_at: str

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> ComplementaryTicket:
        return cls(
            id=str(data["id"]),
            event_name=str(data.get("eventName", "")),
            ticket_name=str(data.get("ticketName", "")),
            ticket_price=float(data.get("ticketPrice") or 0),
            ticket_group_code=str(data.get("ticketGroupCode", "")),
            customer_mobile=str(data.get("customerMobile", "")),
            status=str(data.get("status", "")),
            issued_by=str(data.get("issuedBy", "")),
            created_at=str(data.get("createdAt", "")),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Resource — name, envelope key, parser
# ═══════════════════════════════════════════════════════════════════════════════


class Resource(Enum):
    BALANCES = "balances"
    TICKETS = "tickets"
    TRANSACTIONS = "transactions"
    COMPLEMENTARY = "complementary"

    @property
    def envelope_key(self) -> str:
        """Key holding the payload in the API response."""
        return _ENVELOPE_KEYS[self]

    def parse(self, raw: Any) -> Any:
        """Raises KeyError / TypeError / ValueError on malformed data."""
        match self:
            case Resource.BALANCES:
                return Balances.from_wire(raw)
            case Resource.TICKETS:
                return tuple(EventTicket.from_wire(t) for t in raw)
            case Resource.TRANSACTIONS:
                return tuple(GLTransaction.from_wire(t) for t in raw)
            case Resource.COMPLEMENTARY:
                return tuple(ComplementaryTicket.from_wire(t) for t in raw)

    @classmethod
    def coerce(cls, value: Resource | str) -> Resource:
        if isinstance(value, Resource):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown panel resource: {value!r}") from None


_ENVELOPE_KEYS = {
    Resource.BALANCES: "balances",
    Resource.TICKETS: "tickets",
    Resource.TRANSACTIONS: "data",
    Resource.COMPLEMENTARY: "comps",
}


class PanelState(Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    CLOSED = "closed"


__all__ = (
    "Balances",
    "EventTicket",
    "GLTransaction",
    "ComplementaryTicket",
    "Resource",
    "PanelState",
)
