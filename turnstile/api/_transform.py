"""
Transforms — API payloads into domain types.

All functions raise KeyError / TypeError / ValueError on malformed input;
the client maps those to DECODE errors.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from turnstile.domain import (
    Event,
    ResolvedTicket,
    Settlement,
    TicketStatus,
    TicketType,
)
from turnstile.orders import Order


def ticket_type_from_wire(data: dict[str, Any]) -> TicketType:
    return TicketType(
        id=str(data["id"]),
        name=str(data["ticketName"]),
        price=float(data.get("ticketPrice") or 0),
        quantity_available=int(data.get("quantityAvailable") or 0),
        status=TicketStatus.ACTIVE if data.get("isActive") else TicketStatus.DISABLED,
        tickets_to_issue=int(data.get("ticketsToIssue") or 1),
        ticket_limit_per_person=int(data.get("ticketLimitPerPerson") or 0),
        sale_start_date=data.get("ticketSaleStartDate"),
        sale_end_date=data.get("ticketSaleEndDate"),
    )


def event_from_wire(data: dict[str, Any]) -> Event:
    return Event(
        id=str(data["id"]),
        slug=str(data.get("slug") or ""),
        name=str(data["eventName"]),
        date=str(data.get("eventStartDate") or ""),
        end_date=data.get("eventEndDate") or None,
        location=str(data.get("eventLocation") or ""),
        poster_url=str(data.get("eventPosterUrl") or ""),
        description=str(data.get("eventDescription") or ""),
        is_featured=bool(data.get("isFeatured", False)),
        is_active=bool(data.get("isActive", True)),
        category=data.get("category") or None,
        ticket_types=tuple(ticket_type_from_wire(t) for t in data.get("tickets") or ()),
    )


def events_from_wire(data: dict[str, Any]) -> list[Event]:
    return [event_from_wire(e) for e in data["events"]]


def tickets_in_group(data: Any) -> tuple[ResolvedTicket, ...]:
    if not isinstance(data, dict):
        return ()
    return tuple(ResolvedTicket.from_wire(t) for t in data.get("tickets") or ())


def settlement_from_wire(data: Any) -> Settlement | None:
    """
    Settlement of a ticket group, or None while unsettled.

    Settled means at least one ticket in the group is VALID.
    """
    tickets = tickets_in_group(data)
    if not any(t.is_valid for t in tickets):
        return None
    return Settlement(
        tickets=tickets,
        total=float(data.get("ticketPrice") or 0),
        poster_url=str(data.get("posterUrl") or ""),
        event_name=str(data.get("event") or ""),
    )


def order_from_group(data: Any) -> Order | None:
    """
    Public order view built from a ticket group, regardless of payment state.

    Note: Customer name and email are not part of the group; they stay empty.
    """
    tickets = tickets_in_group(data)
    if not tickets:
        return None
    first = tickets[0]
    try:
        order_date = datetime.fromisoformat(first.created_at)
    except ValueError:
        order_date = datetime.now()
    return Order(
        id=first.ticket_group_code,
        customer_name="",
        customer_email="",
        ticket_group=first.ticket_group_code,
        tickets=tickets,
        total=float(data.get("ticketPrice") or 0),
        poster_url=str(data.get("posterUrl") or ""),
        event_name=str(data.get("event") or ""),
        order_date=order_date,
    )


__all__ = (
    "ticket_type_from_wire",
    "event_from_wire",
    "events_from_wire",
    "tickets_in_group",
    "settlement_from_wire",
    "order_from_group",
)
