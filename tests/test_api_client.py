"""Tests for the ticketing API client."""
# pylint: disable=redefined-outer-name

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from kungfu import Ok, Error
from respx import MockRouter

from turnstile.api import (
    ApiErrorKind,
    ComplementaryRequest,
    PurchaseLine,
    PurchaseRequest,
    TicketingClient,
)
from turnstile.config import Settings

BASE = "https://api.test/api/v1"

EVENTS: dict[str, Any] = {
    "events": [
        {
            "id": 42,
            "slug": "jazz-night",
            "eventName": "Jazz Night",
            "eventStartDate": "2026-12-01T18:00:00",
            "eventLocation": "Nairobi",
            "eventPosterUrl": "https://cdn.example.com/42.png",
            "tickets": [
                {
                    "id": 101,
                    "ticketName": "VIP",
                    "ticketPrice": 2500,
                    "quantityAvailable": 10,
                    "isActive": True,
                },
                {
                    "id": 102,
                    "ticketName": "Regular",
                    "ticketPrice": 1000,
                    "quantityAvailable": 0,
                    "isActive": True,
                },
            ],
        },
        {"id": 43, "slug": "comedy", "eventName": "Comedy Hour", "tickets": []},
    ]
}


def ticket(status: str, index: int = 1) -> dict[str, Any]:
    return {
        "id": index,
        "ticketName": "VIP",
        "ticketPrice": 2500,
        "ticketGroupCode": "TG-1001",
        "customerMobile": "254712345678",
        "status": status,
        "createdAt": "2026-10-19T10:00:00",
        "barcode": f"BC{index}",
    }


@pytest_asyncio.fixture()
async def client() -> AsyncIterator[TicketingClient]:
    settings = Settings().with_api(base_url=BASE, username="storefront", password="secret")
    client = TicketingClient.from_settings(settings)
    yield client
    await client.aclose()


# ═══════════════════════════════════════════════════════════════════════════════
# Storefront
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio()
async def test_get_event_filters_catalog(client: TicketingClient, respx_mock: MockRouter) -> None:
    route = respx_mock.get(f"{BASE}/events/get/all").mock(
        return_value=httpx.Response(200, json=EVENTS)
    )

    match await client.get_event("42"):
        case Ok(event) if event is not None:
            assert event.name == "Jazz Night"
            assert [t.id for t in event.ticket_types] == ["101", "102"]
            vip = event.ticket_type("101")
            regular = event.ticket_type("102")
            assert vip is not None and vip.is_purchasable
            assert regular is not None and not regular.is_purchasable
        case other:
            pytest.fail(f"Unexpected result: {other!r}")

    match await client.get_event("99"):
        case Ok(event):
            assert event is None
        case Error(e):
            pytest.fail(str(e))

    request = route.calls.last.request
    assert request.headers["Authorization"].startswith("Basic ")
    assert route.call_count == 2


@pytest.mark.asyncio()
async def test_get_event_by_slug(client: TicketingClient, respx_mock: MockRouter) -> None:
    respx_mock.get(f"{BASE}/events/get/all").mock(return_value=httpx.Response(200, json=EVENTS))

    match await client.get_event_by_slug("comedy"):
        case Ok(event) if event is not None:
            assert event.id == "43"
        case other:
            pytest.fail(f"Unexpected result: {other!r}")


@pytest.mark.asyncio()
async def test_purchase_posts_payload(client: TicketingClient, respx_mock: MockRouter) -> None:
    route = respx_mock.post(f"{BASE}/event/ticket/purchase").mock(
        return_value=httpx.Response(
            200, json={"status": True, "message": "STK push sent", "ticketGroup": "TG-1001"}
        )
    )
    request = PurchaseRequest(
        event_id="42",
        amount=6000.0,
        channel="mpesa",
        email="wanjiru@example.com",
        mobile_number="254712345678",
        lines=(PurchaseLine("101", 2), PurchaseLine("102", 1)),
    )

    match await client.purchase_tickets(request):
        case Ok(receipt):
            assert receipt.ticket_group == "TG-1001"
            assert receipt.message == "STK push sent"
        case Error(e):
            pytest.fail(str(e))

    assert json.loads(route.calls.last.request.content) == {
        "eventId": 42,
        "amountDisplayed": 6000.0,
        "coupon_code": "",
        "channel": "mpesa",
        "customer": {"email": "wanjiru@example.com", "mobile_number": "254712345678"},
        "tickets": [{"ticketId": 101, "quantity": 2}, {"ticketId": 102, "quantity": 1}],
    }


@pytest.mark.asyncio()
async def test_purchase_without_ticket_group(
    client: TicketingClient, respx_mock: MockRouter
) -> None:
    respx_mock.post(f"{BASE}/event/ticket/purchase").mock(
        return_value=httpx.Response(200, json={})
    )
    request = PurchaseRequest("42", 2500.0, "card", "w@example.com", "254712345678", ())

    match await client.purchase_tickets(request):
        case Ok(receipt):
            assert receipt.ticket_group is None
        case Error(e):
            pytest.fail(str(e))


@pytest.mark.asyncio()
async def test_status_error_message(client: TicketingClient, respx_mock: MockRouter) -> None:
    respx_mock.post(f"{BASE}/event/ticket/purchase").mock(
        return_value=httpx.Response(400, json={"message": "Insufficient tickets"})
    )
    request = PurchaseRequest("42", 2500.0, "mpesa", "w@example.com", "254712345678", ())

    match await client.purchase_tickets(request):
        case Error(e):
            assert e.kind is ApiErrorKind.STATUS
            assert e.status == 400
            assert str(e) == "API call failed with status 400: Insufficient tickets"
        case Ok(_):
            pytest.fail("expected an error")


@pytest.mark.asyncio()
async def test_status_error_without_body(client: TicketingClient, respx_mock: MockRouter) -> None:
    respx_mock.get(f"{BASE}/events/get/all").mock(return_value=httpx.Response(503, text="down"))

    match await client.get_events():
        case Error(e):
            assert e.message == "API call failed with status 503: Unknown error"
        case Ok(_):
            pytest.fail("expected an error")


@pytest.mark.asyncio()
async def test_transport_error(client: TicketingClient, respx_mock: MockRouter) -> None:
    respx_mock.get(f"{BASE}/events/get/all").mock(
        side_effect=httpx.ConnectError("Connection refused")
    )

    match await client.get_events():
        case Error(e):
            assert e.kind is ApiErrorKind.TRANSPORT
            assert e.message == "Connection refused"
        case Ok(_):
            pytest.fail("expected an error")


@pytest.mark.asyncio()
async def test_malformed_body_is_decode_error(
    client: TicketingClient, respx_mock: MockRouter
) -> None:
    respx_mock.get(f"{BASE}/events/get/all").mock(
        return_value=httpx.Response(200, json={"items": []})
    )

    match await client.get_events():
        case Error(e):
            assert e.kind is ApiErrorKind.DECODE
        case Ok(_):
            pytest.fail("expected an error")


# ═══════════════════════════════════════════════════════════════════════════════
# Settlement
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "body",
    [
        {"tickets": []},
        {"tickets": [ticket("PENDING")]},
        {"status": False},
    ],
)
async def test_unsettled_group(
    client: TicketingClient, respx_mock: MockRouter, body: dict[str, Any]
) -> None:
    respx_mock.get(f"{BASE}/event/ticket/group/get").mock(
        return_value=httpx.Response(200, json=body)
    )

    match await client.check_payment_status("TG-1001"):
        case Ok(settlement):
            assert settlement is None
        case Error(e):
            pytest.fail(str(e))


@pytest.mark.asyncio()
async def test_settled_group(client: TicketingClient, respx_mock: MockRouter) -> None:
    route = respx_mock.get(f"{BASE}/event/ticket/group/get").mock(
        return_value=httpx.Response(
            200,
            json={
                "tickets": [ticket("PENDING", 1), ticket("VALID", 2)],
                "ticketPrice": 5000,
                "posterUrl": "https://cdn.example.com/42.png",
                "event": "Jazz Night",
            },
        )
    )

    match await client.check_payment_status("TG-1001"):
        case Ok(settlement) if settlement is not None:
            assert len(settlement.tickets) == 2
            assert settlement.total == 5000.0
            assert settlement.event_name == "Jazz Night"
        case other:
            pytest.fail(f"Unexpected result: {other!r}")

    assert route.calls.last.request.url.params["ticketGroup"] == "TG-1001"


@pytest.mark.asyncio()
async def test_order_details(client: TicketingClient, respx_mock: MockRouter) -> None:
    respx_mock.get(f"{BASE}/event/ticket/group/get").mock(
        return_value=httpx.Response(200, json={"tickets": [ticket("VALID")], "event": "Jazz Night"})
    )

    match await client.get_order_details("TG-1001"):
        case Ok(order) if order is not None:
            assert order.id == "TG-1001"
            assert order.event_name == "Jazz Night"
            assert order.order_date.year == 2026
        case other:
            pytest.fail(f"Unexpected result: {other!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# Admin
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio()
async def test_user_events(client: TicketingClient, respx_mock: MockRouter) -> None:
    respx_mock.get(f"{BASE}/event/map/get").mock(
        return_value=httpx.Response(
            200,
            json={"status": True, "events": [{"id": 42, "eventName": "Jazz", "companyId": 7}]},
        )
    )

    match await client.get_user_events("5"):
        case Ok(events):
            assert [(e.id, e.company_id) for e in events] == [("42", "7")]
        case Error(e):
            pytest.fail(str(e))


@pytest.mark.asyncio()
async def test_user_events_without_status(client: TicketingClient, respx_mock: MockRouter) -> None:
    respx_mock.get(f"{BASE}/event/map/get").mock(
        return_value=httpx.Response(200, json={"events": []})
    )

    match await client.get_user_events("5"):
        case Error(e):
            assert e.kind is ApiErrorKind.DECODE
        case Ok(_):
            pytest.fail("expected an error")


@pytest.mark.asyncio()
async def test_issue_complementary(client: TicketingClient, respx_mock: MockRouter) -> None:
    route = respx_mock.post(f"{BASE}/event/issue/complementary").mock(
        return_value=httpx.Response(200, json={"status": True})
    )

    await client.issue_complementary(
        ComplementaryRequest(event_id="42", ticket_id="101", quantity=2, email="guest@example.com")
    )

    assert json.loads(route.calls.last.request.content) == {
        "eventId": 42,
        "customer": {"email": "guest@example.com"},
        "tickets": [{"ticketId": 101, "quantity": 2}],
    }


def test_complementary_requires_a_contact() -> None:
    with pytest.raises(ValueError, match="mobile number or an email"):
        ComplementaryRequest(event_id="42", ticket_id="101", quantity=1)
