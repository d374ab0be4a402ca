"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import httpx

from turnstile.api import TicketingClient
from turnstile.config import Settings
from turnstile.log import configure_logging

BASE_URL = "https://api.example.com/api/v1"


# Fake remote API
@dataclass(slots=True)
class FakeRemote:
    """
    Scripted ticketing API.

    settle_after: polls of a ticket group before its tickets turn VALID.
    flaky: failures served per path before the path starts answering.
    """

    settle_after: int = 2
    flaky: dict[str, int] = field(default_factory=dict)
    polls: int = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        if self.flaky.get(path, 0) > 0:
            self.flaky[path] -= 1
            return httpx.Response(503, json={"message": "Service unavailable"})

        match path:
            case "/events/get/all":
                return httpx.Response(200, json={"events": [EVENT]})
            case "/event/ticket/purchase":
                return httpx.Response(200, json={"status": True, "ticketGroup": "TG-1001"})
            case "/event/ticket/group/get":
                self.polls += 1
                status = "VALID" if self.polls > self.settle_after else "PENDING"
                return httpx.Response(200, json=group(status))
            case "/transaction/ticket/balances":
                return httpx.Response(
                    200,
                    json={"balances": {"platform_fee": 120, "availableFunds": 2280, "grossFee": 2400}},
                )
            case "/event/ticket/get":
                return httpx.Response(200, json={"tickets": EVENT["tickets"]})
            case "/gl/global/get":
                return httpx.Response(200, json={"data": []})
            case "/event/complementary/get":
                return httpx.Response(200, json={"comps": []})
            case _:
                return httpx.Response(404, json={"message": f"Unknown path {path}"})


EVENT: dict[str, Any] = {
    "id": 42,
    "slug": "jazz-night",
    "eventName": "Jazz Night",
    "eventStartDate": "2026-12-01T18:00:00",
    "eventLocation": "Nairobi",
    "tickets": [
        {"id": 101, "ticketName": "VIP", "ticketPrice": 2500, "quantityAvailable": 10, "isActive": True},
        {"id": 102, "ticketName": "Regular", "ticketPrice": 1000, "quantityAvailable": 0, "isActive": True},
    ],
}


def group(status: str) -> dict[str, Any]:
    return {
        "tickets": [
            {
                "id": 1,
                "ticketName": "VIP",
                "ticketPrice": 2500,
                "ticketGroupCode": "TG-1001",
                "customerMobile": "254712345678",
                "status": status,
                "createdAt": "2026-10-19T10:00:00",
            }
        ],
        "ticketPrice": 2500,
        "event": "Jazz Night",
    }


def client(remote: FakeRemote) -> TicketingClient:
    settings = Settings().with_api(base_url=BASE_URL)
    return TicketingClient.from_settings(settings, transport=httpx.MockTransport(remote))


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    configure_logging("info")
    asyncio.run(main())
