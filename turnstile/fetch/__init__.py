"""
Fetch — retry-with-exponential-backoff reads reporting into a FetchSlot.

    from turnstile import fetch as F

    slot = F.FetchSlot()
    chain = (
        F.fetch(lambda: client.get_event_tickets(event_id))
        .named("tickets")
        .extract(F.envelope("tickets", "tickets"))
        .retry(F.RetryPolicy().with_max_retries(5))
        .build()
        .run(slot)
    )

    chain.cancel()   # no further read, no further slot mutation

Attempt 0 runs immediately; after failed attempt n the chain sleeps
min(1 · 2ⁿ, 10) seconds. After the last attempt the slot holds the error.
"""

from turnstile.fetch._policy import RetryPolicy
from turnstile.fetch._slot import FetchSlot, SlotState
from turnstile.fetch._builder import (
    Extract,
    Fetch,
    ResilientFetch,
    RetryChain,
    envelope,
    exhausted_message,
    fetch,
    no_data,
    present,
)

__all__ = (
    "RetryPolicy",
    "FetchSlot",
    "SlotState",
    "Extract",
    "Fetch",
    "ResilientFetch",
    "RetryChain",
    "envelope",
    "exhausted_message",
    "fetch",
    "no_data",
    "present",
)
