"""
Panel synchronizer — four independent retry chains for one admin event view.

    panel = PanelSynchronizer(client, event_id="42")   # WAITING: no company yet
    await panel.resolve_company(user_id="7")          # ACTIVE: all four chains run
    panel.refresh("tickets")                          # supersede one chain
    panel.close()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Protocol

import structlog
from kungfu import LazyCoroResult, Result, Ok, Error

from turnstile._types import Read, Sleep
from turnstile import fetch as F
from turnstile.api import ApiError, UserEvent
from turnstile.panel._types import PanelState, Resource

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# PanelApi — what the synchronizer needs from the client
# ═══════════════════════════════════════════════════════════════════════════════


class PanelApi(Protocol):
    def get_balances(self, company_id: str, event_id: str) -> LazyCoroResult[Any, ApiError]: ...

    def get_event_tickets(self, event_id: str) -> LazyCoroResult[Any, ApiError]: ...

    def get_transactions(self, event_id: str, company_id: str) -> LazyCoroResult[Any, ApiError]: ...

    def get_complementary(self, event_id: str) -> LazyCoroResult[Any, ApiError]: ...

    def get_user_events(self, user_id: str) -> LazyCoroResult[list[UserEvent], ApiError]: ...


def unpack(resource: Resource) -> F.Extract[Any, Any]:
    """Envelope lookup followed by parsing into the resource's types."""
    pull = F.envelope(resource.envelope_key, resource.value)

    def extract(payload: Any) -> Result[Any, str]:
        match pull(payload):
            case Ok(raw):
                try:
                    return Ok(resource.parse(raw))
                except (KeyError, TypeError, ValueError) as e:
                    return Error(f"Malformed {resource.value} data: {e!r}")
            case Error(cause):
                return Error(cause)

    return extract


# ═══════════════════════════════════════════════════════════════════════════════
# PanelSynchronizer
# ═══════════════════════════════════════════════════════════════════════════════


class PanelSynchronizer:
    """
    Data loading for one admin event view.

    Chains start only once both event_id and company_id are known. Any change
    of identifiers restarts all four; `close()` ends the synchronizer for good.

    Note: Creating it with both identifiers starts the chains, so it must be
    created inside a running event loop in that case.
    """

    def __init__(
        self,
        api: PanelApi,
        *,
        event_id: str | None = None,
        company_id: str | None = None,
        policy: F.RetryPolicy = F.RetryPolicy(),
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._api = api
        self._policy = policy
        self._sleep = sleep
        self._event_id: str | None = None
        self._company_id: str | None = None
        self._state = PanelState.WAITING
        self._chains: dict[Resource, F.RetryChain[Any]] = {}
        self.slots: dict[Resource, F.FetchSlot[Any]] = {r: F.FetchSlot() for r in Resource}
        self.set_identifiers(event_id=event_id, company_id=company_id)

    @property
    def state(self) -> PanelState:
        return self._state

    @property
    def event_id(self) -> str | None:
        return self._event_id

    @property
    def company_id(self) -> str | None:
        return self._company_id

    def slot(self, resource: Resource | str) -> F.FetchSlot[Any]:
        return self.slots[Resource.coerce(resource)]

    def chain(self, resource: Resource | str) -> F.RetryChain[Any] | None:
        return self._chains.get(Resource.coerce(resource))

    # ───────────────────────────────────────────────────────────────────────────
    # Identifiers
    # ───────────────────────────────────────────────────────────────────────────

    def set_identifiers(
        self,
        *,
        event_id: str | None = None,
        company_id: str | None = None,
    ) -> None:
        """Update known identifiers. A change restarts every chain."""
        if self._state is PanelState.CLOSED:
            raise RuntimeError("Panel synchronizer is closed")

        new_event = event_id if event_id is not None else self._event_id
        new_company = company_id if company_id is not None else self._company_id
        changed = (new_event, new_company) != (self._event_id, self._company_id)
        self._event_id, self._company_id = new_event, new_company

        if new_event is None or new_company is None:
            if self._state is PanelState.ACTIVE:
                self._cancel_all()
            self._state = PanelState.WAITING
            logger.debug("panel_waiting", event_id=new_event, company_id=new_company)
            return

        if changed or self._state is PanelState.WAITING:
            self._cancel_all()
            self._state = PanelState.ACTIVE
            logger.info("panel_active", event_id=new_event, company_id=new_company)
            for resource in Resource:
                self._start(resource)

    async def resolve_company(self, user_id: str) -> Result[str, str]:
        """
        Find the company owning this event among the user's events and adopt it.

        Error when the event is not mapped to the user or carries no company.
        """
        if self._event_id is None:
            return Error("Event id is not known yet")
        event_id = self._event_id

        match await self._api.get_user_events(user_id):
            case Error(e):
                logger.warning("panel_company_lookup_failed", user_id=user_id, cause=str(e))
                return Error(f"Failed to load event data: {e}")
            case Ok(events):
                pass

        found = next((e for e in events if e.id == event_id), None)
        if found is None:
            return Error("Event not found")
        if found.company_id is None:
            return Error("Event has no company")
        if self._state is not PanelState.CLOSED:
            self.set_identifiers(company_id=found.company_id)
        return Ok(found.company_id)

    # ───────────────────────────────────────────────────────────────────────────
    # Refresh / teardown
    # ───────────────────────────────────────────────────────────────────────────

    def refresh(self, resource: Resource | str) -> F.RetryChain[Any] | None:
        """
        Supersede one resource's chain.

        Returns the new chain, or None while identifiers are unresolved.
        """
        target = Resource.coerce(resource)
        if self._state is not PanelState.ACTIVE:
            return None
        previous = self._chains.pop(target, None)
        if previous is not None:
            previous.cancel()
        logger.info("panel_refresh", resource=target.value, event_id=self._event_id)
        return self._start(target)

    def close(self) -> None:
        self._cancel_all()
        self._state = PanelState.CLOSED
        logger.debug("panel_closed", event_id=self._event_id)

    async def settle(self) -> None:
        """Wait for every current chain to finish."""
        await asyncio.gather(*(chain.wait() for chain in list(self._chains.values())))

    # ───────────────────────────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────────────────────────

    def _read(self, resource: Resource) -> Read[Any, Any]:
        api = self._api
        event_id, company_id = self._event_id, self._company_id
        assert event_id is not None and company_id is not None

        reads: dict[Resource, Callable[[], LazyCoroResult[Any, ApiError]]] = {
            Resource.BALANCES: lambda: api.get_balances(company_id, event_id),
            Resource.TICKETS: lambda: api.get_event_tickets(event_id),
            Resource.TRANSACTIONS: lambda: api.get_transactions(event_id, company_id),
            Resource.COMPLEMENTARY: lambda: api.get_complementary(event_id),
        }
        return reads[resource]

    def _start(self, resource: Resource) -> F.RetryChain[Any]:
        chain = (
            F.fetch(self._read(resource))
            .named(resource.value)
            .extract(unpack(resource))
            .retry(self._policy)
            .clock(self._sleep)
            .build()
            .run(self.slots[resource])
        )
        self._chains[resource] = chain
        return chain

    def _cancel_all(self) -> None:
        for chain in self._chains.values():
            chain.cancel()
        self._chains.clear()
        for slot in self.slots.values():
            slot.reset()


__all__ = ("PanelApi", "PanelSynchronizer", "unpack")
