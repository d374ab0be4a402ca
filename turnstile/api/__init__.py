"""
API — async client for the remote ticketing API.

    from turnstile import api as A

    client = A.TicketingClient.from_settings(settings)
    receipt = await client.purchase_tickets(A.PurchaseRequest(...))

Errors are `ApiError` values: TRANSPORT, STATUS (non-2xx) or DECODE.
"""

from turnstile.api._types import (
    ApiError,
    ApiErrorKind,
    ComplementaryRequest,
    PurchaseLine,
    PurchaseReceipt,
    PurchaseRequest,
    UserEvent,
)
from turnstile.api._transform import (
    event_from_wire,
    events_from_wire,
    order_from_group,
    settlement_from_wire,
    ticket_type_from_wire,
    tickets_in_group,
)
from turnstile.api._client import TicketingClient, to_api_error

__all__ = (
    "ApiError",
    "ApiErrorKind",
    "ComplementaryRequest",
    "PurchaseLine",
    "PurchaseReceipt",
    "PurchaseRequest",
    "UserEvent",
    "event_from_wire",
    "events_from_wire",
    "order_from_group",
    "settlement_from_wire",
    "ticket_type_from_wire",
    "tickets_in_group",
    "TicketingClient",
    "to_api_error",
)
