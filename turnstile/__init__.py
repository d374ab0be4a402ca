"""
turnstile — resilient storefront client for event ticket sales.

    from turnstile import cart as Ct       # Pending selection, one event at a time
    from turnstile import fetch as F       # Retry-with-backoff reads into slots
    from turnstile import panel as P       # Admin event view synchronisation
    from turnstile import checkout as Co   # Payment initiation and settlement polling
    from turnstile import orders as O      # Write-once order records
    from turnstile import api as A         # Remote ticketing API client

The FastAPI surface lives in `turnstile.web`.
"""

from turnstile import storage
from turnstile import cart
from turnstile import orders
from turnstile import fetch
from turnstile import api
from turnstile import panel
from turnstile import checkout
from turnstile import lift
from turnstile.config import Settings
from turnstile.log import configure_logging
from turnstile._types import (
    Read,
    Sleep,
    Unsubscribe,
)

__version__ = "0.1.0"

__all__ = (
    "storage",
    "cart",
    "orders",
    "fetch",
    "api",
    "panel",
    "checkout",
    "lift",
    "Settings",
    "configure_logging",
    "Read",
    "Sleep",
    "Unsubscribe",
)
