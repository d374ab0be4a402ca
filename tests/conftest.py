"""Shared fixtures: virtual clock, catalog, storage and a scripted payment gateway."""
# pylint: disable=redefined-outer-name

from __future__ import annotations

import asyncio
import heapq
from typing import Any

import pytest
import pytest_asyncio
from kungfu import Result, Ok, Error

from turnstile import lift as L
from turnstile.api import ApiError, ApiErrorKind, PurchaseReceipt, PurchaseRequest
from turnstile.cart import CartStore
from turnstile.domain import Event, ResolvedTicket, Settlement, TicketStatus, TicketType
from turnstile.orders import OrderStore
from turnstile.storage import MemoryStorage


# ═══════════════════════════════════════════════════════════════════════════════
# Virtual clock
# ═══════════════════════════════════════════════════════════════════════════════


class VirtualClock:
    """
    Deterministic replacement for asyncio.sleep.

    Sleepers wake in (due time, registration order); `advance` lets the loop
    run to quiescence after every wake-up.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []
        self._seq = 0
        self._sleepers: list[tuple[float, int, asyncio.Future[None]]] = []

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self.now + delay, self._seq, future))
        self._seq += 1
        await future

    @property
    def pending(self) -> int:
        return sum(1 for _, _, f in self._sleepers if not f.done())

    async def settle(self) -> None:
        for _ in range(100):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await self.settle()
        while self._sleepers and self._sleepers[0][0] <= target:
            due, _, future = heapq.heappop(self._sleepers)
            self.now = due
            if not future.done():
                future.set_result(None)
            await self.settle()
        self.now = target
        await self.settle()


@pytest.fixture()
def clock() -> VirtualClock:
    return VirtualClock()


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


VIP = TicketType(id="101", name="VIP", price=2500.0, quantity_available=10)
REGULAR = TicketType(id="102", name="Regular", price=1000.0, quantity_available=50)
EARLY_BIRD = TicketType(id="103", name="Early Bird", price=500.0, quantity_available=0)


def make_event(*ticket_types: TicketType, event_id: str = "42") -> Event:
    return Event(
        id=event_id,
        slug=f"event-{event_id}",
        name=f"Event {event_id}",
        date="2026-12-01T18:00:00",
        location="Nairobi",
        poster_url=f"https://cdn.example.com/{event_id}.png",
        ticket_types=ticket_types or (VIP, REGULAR),
    )


@pytest.fixture()
def event() -> Event:
    return make_event(VIP, REGULAR, EARLY_BIRD)


def disabled(ticket_type: TicketType) -> TicketType:
    return TicketType(
        id=ticket_type.id,
        name=ticket_type.name,
        price=ticket_type.price,
        quantity_available=ticket_type.quantity_available,
        status=TicketStatus.DISABLED,
    )


def settlement_for(group: str, *names: str) -> Settlement:
    tickets = tuple(
        ResolvedTicket(
            id=index,
            ticket_name=name,
            ticket_price=2500.0,
            ticket_group_code=group,
            customer_mobile="254712345678",
            status="VALID",
            created_at="2026-10-19T10:00:00",
            barcode=f"BC{index}",
        )
        for index, name in enumerate(names or ("VIP",), start=1)
    )
    return Settlement(
        tickets=tickets,
        total=sum(t.ticket_price for t in tickets),
        poster_url="https://cdn.example.com/42.png",
        event_name="Event 42",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Storage / stores
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest_asyncio.fixture()
async def cart(storage: MemoryStorage) -> CartStore:
    return await CartStore.load(storage)


@pytest.fixture()
def orders(storage: MemoryStorage) -> OrderStore:
    return OrderStore(storage)


# ═══════════════════════════════════════════════════════════════════════════════
# Payment gateway
# ═══════════════════════════════════════════════════════════════════════════════


class FakeGateway:
    """Scripted PaymentGateway recording every call with the virtual time."""

    def __init__(self, clock: VirtualClock, event: Event | None) -> None:
        self.clock = clock
        self.event = event
        self.event_result: Result[Event | None, ApiError] | None = None
        self.purchase_result: Result[PurchaseReceipt, ApiError] = Ok(PurchaseReceipt("TG-1001"))
        self.settlement: Settlement | None = None
        self.poll_error: ApiError | None = None
        self.purchases: list[PurchaseRequest] = []
        self.polls: list[float] = []

    def get_event(self, event_id: str) -> Any:
        if self.event_result is not None:
            return L.from_result(self.event_result)
        found = self.event if self.event is not None and self.event.id == event_id else None
        return L.from_result(Ok(found))

    def purchase_tickets(self, request: PurchaseRequest) -> Any:
        self.purchases.append(request)
        return L.from_result(self.purchase_result)

    def check_payment_status(self, ticket_group: str) -> Any:
        self.polls.append(self.clock.now)
        if self.poll_error is not None:
            return L.from_result(Error(self.poll_error))
        return L.from_result(Ok(self.settlement))


def transport_error(message: str = "Connection refused") -> ApiError:
    return ApiError(ApiErrorKind.TRANSPORT, message)


@pytest.fixture()
def gateway(clock: VirtualClock, event: Event) -> FakeGateway:
    return FakeGateway(clock, event)
