"""Tests for the FastAPI surface."""
# pylint: disable=redefined-outer-name

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from turnstile.api import TicketingClient
from turnstile.config import Settings
from turnstile.storage import MemoryStorage
from turnstile.web import create_app

from tests.conftest import VirtualClock

BASE = "https://api.test/api/v1"


class RemoteApi:
    """The remote ticketing API, scripted per path."""

    def __init__(self) -> None:
        self.settled = False
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v1")
        match path:
            case "/events/get/all":
                return httpx.Response(200, json={"events": [self.event(42), self.event(77)]})
            case "/event/ticket/purchase":
                return httpx.Response(200, json={"status": True, "ticketGroup": "TG-1001"})
            case "/event/ticket/group/get":
                status = "VALID" if self.settled else "PENDING"
                return httpx.Response(
                    200,
                    json={
                        "tickets": [
                            {
                                "id": 1,
                                "ticketName": "VIP",
                                "ticketPrice": 2500,
                                "ticketGroupCode": request.url.params["ticketGroup"],
                                "customerMobile": "254712345678",
                                "status": status,
                                "createdAt": "2026-10-19T10:00:00",
                            }
                        ],
                        "ticketPrice": 2500,
                        "event": "Event 42",
                    },
                )
            case "/transaction/ticket/balances":
                return httpx.Response(
                    200, json={"balances": {"platform_fee": 5, "availableFunds": 90, "grossFee": 100}}
                )
            case "/event/ticket/get":
                return httpx.Response(200, json={"tickets": []})
            case "/gl/global/get":
                return httpx.Response(200, json={"data": []})
            case "/event/complementary/get":
                return httpx.Response(200, json={"comps": []})
            case "/event/issue/complementary":
                return httpx.Response(200, json={"status": True, "message": "Issued"})
            case _:
                return httpx.Response(404, json={"message": f"No route {path}"})

    @staticmethod
    def event(event_id: int) -> dict[str, Any]:
        return {
            "id": event_id,
            "slug": f"event-{event_id}",
            "eventName": f"Event {event_id}",
            "tickets": [
                {
                    "id": event_id * 10 + 1,
                    "ticketName": "VIP",
                    "ticketPrice": 2500,
                    "quantityAvailable": 10,
                    "isActive": True,
                }
            ],
        }


@pytest.fixture()
def remote() -> RemoteApi:
    return RemoteApi()


@pytest_asyncio.fixture()
async def http(remote: RemoteApi, clock: VirtualClock) -> AsyncIterator[httpx.AsyncClient]:
    api = httpx.AsyncClient(base_url=BASE, transport=httpx.MockTransport(remote))
    app: FastAPI = create_app(
        Settings().with_api(base_url=BASE),
        storage=MemoryStorage(),
        client=TicketingClient(api),
        sleep=clock.sleep,
    )
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    await api.aclose()


CHECKOUT = {
    "name": "Wanjiru Kamau",
    "email": "wanjiru@example.com",
    "phone": "0712345678",
    "terms_accepted": True,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio()
async def test_add_items_and_switch_event(http: httpx.AsyncClient) -> None:
    response = await http.post("/cart/items", json={"event_id": "42", "ticket_type_id": "421"})
    assert response.status_code == 200
    await http.post("/cart/items", json={"event_id": "42", "ticket_type_id": "421", "quantity": 2})

    cart = (await http.get("/cart")).json()
    assert cart["item_count"] == 3
    assert cart["cart_total"] == 7500.0

    switched = (
        await http.post("/cart/items", json={"event_id": "77", "ticket_type_id": "771"})
    ).json()
    assert switched["notice"]["title"] == "Cart Cleared"
    assert switched["event_id"] == "77"
    assert switched["item_count"] == 1


@pytest.mark.asyncio()
async def test_add_unknown_ticket_type(http: httpx.AsyncClient) -> None:
    response = await http.post("/cart/items", json={"event_id": "42", "ticket_type_id": "999"})

    assert response.status_code == 404


@pytest.mark.asyncio()
async def test_add_non_positive_quantity_is_rejected(http: httpx.AsyncClient) -> None:
    response = await http.post(
        "/cart/items", json={"event_id": "42", "ticket_type_id": "421", "quantity": 0}
    )

    assert response.status_code == 422


@pytest.mark.asyncio()
async def test_update_and_remove_items(http: httpx.AsyncClient) -> None:
    await http.post("/cart/items", json={"event_id": "42", "ticket_type_id": "421"})

    updated = (await http.patch("/cart/items/421", json={"quantity": 4})).json()
    assert updated["item_count"] == 4

    removed = (await http.delete("/cart/items/421")).json()
    assert removed["items"] == []


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio()
async def test_checkout_validation_failure(http: httpx.AsyncClient) -> None:
    await http.post("/cart/items", json={"event_id": "42", "ticket_type_id": "421"})

    response = await http.post("/checkout", json={**CHECKOUT, "terms_accepted": False})

    assert response.status_code == 422
    body = response.json()
    assert body["status"] == "idle"
    assert "terms_accepted" in body["failure"]["fields"]


@pytest.mark.asyncio()
async def test_checkout_to_order(
    http: httpx.AsyncClient, remote: RemoteApi, clock: VirtualClock
) -> None:
    await http.post("/cart/items", json={"event_id": "42", "ticket_type_id": "421"})

    response = await http.post("/checkout", json={**CHECKOUT, "channel": "card"})
    assert response.status_code == 202
    assert response.json()["status"] == "awaiting_verification"
    assert response.json()["ticket_group"] == "TG-1001"

    purchase = next(r for r in remote.requests if r.url.path.endswith("/purchase"))
    assert json.loads(purchase.content)["channel"] == "card"

    conflict = await http.post("/checkout", json=CHECKOUT)
    assert conflict.status_code == 409

    remote.settled = True
    await clock.advance(5)

    state = (await http.get("/checkout")).json()
    assert state["status"] == "success"
    assert state["order_id"] == "TG-1001"
    assert (await http.get("/cart")).json()["items"] == []

    order = (await http.get("/orders/TG-1001")).json()
    assert order["customer_name"] == "Wanjiru Kamau"
    assert order["tickets"][0]["status"] == "VALID"


@pytest.mark.asyncio()
async def test_abandon_checkout(http: httpx.AsyncClient) -> None:
    await http.post("/cart/items", json={"event_id": "42", "ticket_type_id": "421"})
    await http.post("/checkout", json=CHECKOUT)

    state = (await http.post("/checkout/abandon")).json()

    assert state["status"] == "idle"
    assert state["ticket_group"] is None


@pytest.mark.asyncio()
async def test_remote_order_fallback(http: httpx.AsyncClient) -> None:
    order = (await http.get("/orders/TG-2002")).json()

    assert order["id"] == "TG-2002"
    assert order["customer_name"] == ""


# ═══════════════════════════════════════════════════════════════════════════════
# Admin
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio()
async def test_panel_loads_all_resources(http: httpx.AsyncClient, clock: VirtualClock) -> None:
    waiting = (await http.get("/admin/events/42/panel")).json()
    assert waiting["state"] == "waiting"

    await http.get("/admin/events/42/panel", params={"company_id": "7"})
    await clock.advance(0)

    panel = (await http.get("/admin/events/42/panel")).json()
    assert panel["state"] == "active"
    assert {name: slot["state"] for name, slot in panel["resources"].items()} == {
        "balances": "ready",
        "tickets": "ready",
        "transactions": "ready",
        "complementary": "ready",
    }
    assert panel["resources"]["balances"]["data"]["gross_fee"] == 100.0


@pytest.mark.asyncio()
async def test_panel_refresh(http: httpx.AsyncClient, clock: VirtualClock) -> None:
    missing = await http.post("/admin/events/42/panel/refresh/tickets")
    assert missing.status_code == 404

    await http.get("/admin/events/42/panel", params={"company_id": "7"})
    unknown = await http.post("/admin/events/42/panel/refresh/promotions")
    assert unknown.status_code == 404

    refreshed = await http.post("/admin/events/42/panel/refresh/tickets")
    assert refreshed.json()["resources"]["tickets"]["state"] == "loading"
    await clock.advance(0)

    closed = await http.delete("/admin/events/42/panel")
    assert closed.status_code == 204


@pytest.mark.asyncio()
async def test_issue_complementary(http: httpx.AsyncClient) -> None:
    rejected = await http.post("/admin/events/42/complementary", json={"ticket_id": "421"})
    assert rejected.status_code == 422

    issued = await http.post(
        "/admin/events/42/complementary",
        json={"ticket_id": "421", "quantity": 2, "email": "guest@example.com"},
    )
    assert issued.status_code == 200
    assert issued.json()["issued"] is True
