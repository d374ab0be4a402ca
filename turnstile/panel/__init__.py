"""
Panel — data synchronisation for one admin event view.

    from turnstile import panel as P

    sync = P.PanelSynchronizer(client, event_id="42", company_id="7")
    sync.slot("balances").state     # LOADING / ERROR / READY
    sync.refresh(P.Resource.TICKETS)
    sync.close()

Envelope keys: balances → "balances", tickets → "tickets",
transactions → "data", complementary → "comps".
"""

from turnstile.panel._types import (
    Balances,
    ComplementaryTicket,
    EventTicket,
    GLTransaction,
    PanelState,
    Resource,
)
from turnstile.panel._sync import PanelApi, PanelSynchronizer, unpack

__all__ = (
    "Balances",
    "ComplementaryTicket",
    "EventTicket",
    "GLTransaction",
    "PanelState",
    "Resource",
    "PanelApi",
    "PanelSynchronizer",
    "unpack",
)
