"""
API types — errors and request/response payloads of the ticketing API.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class ApiErrorKind(Enum):
    """
    TRANSPORT: no usable response (connect, timeout, protocol error).
    STATUS: non-2xx response.
    DECODE: 2xx response whose body is not the expected shape.
    """

    TRANSPORT = auto()
    STATUS = auto()
    DECODE = auto()


@dataclass(frozen=True, slots=True)
class ApiError:
    kind: ApiErrorKind
    message: str
    status: int | None = None

    def __str__(self) -> str:
        return self.message


# ═══════════════════════════════════════════════════════════════════════════════
# Payment initiation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PurchaseLine:
    ticket_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class PurchaseRequest:
    """Body of the payment-initiation call."""

    event_id: str
    amount: float
    channel: str
    email: str
    mobile_number: str
    lines: tuple[PurchaseLine, ...]
    coupon_code: str = ""

    def to_wire(self) -> dict[str, Any]:
        return {
            "eventId": _numeric_id(self.event_id),
            "amountDisplayed": self.amount,
            "coupon_code": self.coupon_code,
            "channel": self.channel,
            "customer": {
                "email": self.email,
                "mobile_number": self.mobile_number,
            },
            "tickets": [
                {"ticketId": _numeric_id(line.ticket_id), "quantity": line.quantity}
                for line in self.lines
            ],
        }


@dataclass(frozen=True, slots=True)
class PurchaseReceipt:
    """
    Response of the payment-initiation call.

    ticket_group: None when the response carries no string `ticketGroup`.
    """

    ticket_group: str | None
    message: str = ""
    status: bool = False
    checkout_url: str | None = None

    @classmethod
    def from_wire(cls, data: Any) -> PurchaseReceipt:
        if not isinstance(data, dict):
            return cls(ticket_group=None)
        group = data.get("ticketGroup")
        return cls(
            ticket_group=group if isinstance(group, str) and group else None,
            message=str(data.get("message") or ""),
            status=bool(data.get("status", False)),
            checkout_url=data.get("checkoutUrl") or None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Admin
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class UserEvent:
    """An event mapped to an admin user, with its owning company."""

    id: str
    name: str
    company_id: str | None = None

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> UserEvent:
        company = data.get("companyId")
        return cls(
            id=str(data["id"]),
            name=str(data.get("eventName", "")),
            company_id=str(company) if company else None,
        )


@dataclass(frozen=True, slots=True)
class ComplementaryRequest:
    """Issue free tickets. At least one of mobile_number or email is required."""

    event_id: str
    ticket_id: str
    quantity: int
    mobile_number: str | None = None
    email: str | None = None

    def __post_init__(self) -> None:
        if not (self.mobile_number or self.email):
            raise ValueError("Provide at least a mobile number or an email")
        if self.quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {self.quantity}")

    def to_wire(self) -> dict[str, Any]:
        customer: dict[str, str] = {}
        if self.mobile_number:
            customer["mobile_number"] = self.mobile_number
        if self.email:
            customer["email"] = self.email
        return {
            "eventId": _numeric_id(self.event_id),
            "customer": customer,
            "tickets": [{"ticketId": _numeric_id(self.ticket_id), "quantity": self.quantity}],
        }


def _numeric_id(value: str) -> int | str:
    """The API keys events and tickets by integer ids."""
    return int(value) if value.isdigit() else value


__all__ = (
    "ApiErrorKind",
    "ApiError",
    "PurchaseLine",
    "PurchaseRequest",
    "PurchaseReceipt",
    "UserEvent",
    "ComplementaryRequest",
)
