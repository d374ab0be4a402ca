"""
Ticketing API client — httpx over the remote ticketing API.

Every call returns a LazyCoroResult. Nothing is sent until it is awaited, and
every exception on the way (transport, status, decode) becomes an ApiError.

    client = TicketingClient.from_settings(settings)

    match await client.check_payment_status(group):
        case Ok(None):
            ...                      # not settled yet
        case Ok(settlement):
            ...
        case Error(e):
            ...                      # e.kind, e.message

    await client.aclose()
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import structlog
from kungfu import LazyCoroResult

from turnstile import lift as L
from turnstile.api._transform import (
    events_from_wire,
    order_from_group,
    settlement_from_wire,
)
from turnstile.api._types import (
    ApiError,
    ApiErrorKind,
    ComplementaryRequest,
    PurchaseReceipt,
    PurchaseRequest,
    UserEvent,
)
from turnstile.config import Settings
from turnstile.domain import Event, Settlement
from turnstile.orders import Order

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Error mapping
# ═══════════════════════════════════════════════════════════════════════════════


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "Unknown error"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or "Unknown error")
    return "Unknown error"


def to_api_error(path: str) -> Callable[[Exception], ApiError]:
    """Map an exception raised during a call into an ApiError."""

    def on_error(e: Exception) -> ApiError:
        match e:
            case httpx.HTTPStatusError(response=response):
                code = response.status_code
                error = ApiError(
                    ApiErrorKind.STATUS,
                    f"API call failed with status {code}: {_error_message(response)}",
                    status=code,
                )
            case httpx.HTTPError():
                error = ApiError(ApiErrorKind.TRANSPORT, str(e) or type(e).__name__)
            case ValueError() | KeyError() | TypeError():
                error = ApiError(ApiErrorKind.DECODE, f"Unexpected response from {path}: {e!r}")
            case _:
                error = ApiError(ApiErrorKind.TRANSPORT, str(e) or type(e).__name__)
        logger.warning("api_call_failed", path=path, kind=error.kind.name, message=error.message)
        return error

    return on_error


# ═══════════════════════════════════════════════════════════════════════════════
# Client
# ═══════════════════════════════════════════════════════════════════════════════


class TicketingClient:
    """
    Basic-auth JSON client for the ticketing API.

    Note: The client owns `http` only when built with `from_settings`.
    """

    def __init__(self, http: httpx.AsyncClient, *, owns_http: bool = False) -> None:
        self._http = http
        self._owns_http = owns_http

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> TicketingClient:
        auth = (
            httpx.BasicAuth(settings.api_username, settings.api_password)
            if settings.has_credentials
            else None
        )
        http = httpx.AsyncClient(
            base_url=settings.api_base_url,
            auth=auth,
            timeout=settings.http_timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        return cls(http, owns_http=True)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ───────────────────────────────────────────────────────────────────────────
    # Storefront
    # ───────────────────────────────────────────────────────────────────────────

    def get_events(self) -> LazyCoroResult[list[Event], ApiError]:
        return self._call("GET", "/events/get/all", transform=events_from_wire)

    def get_event(self, event_id: str) -> LazyCoroResult[Event | None, ApiError]:
        """Current catalog entry for one event, None when not listed."""

        def find(payload: Any) -> Event | None:
            return next((e for e in events_from_wire(payload) if e.id == str(event_id)), None)

        return self._call("GET", "/events/get/all", transform=find)

    def get_event_by_slug(self, slug: str) -> LazyCoroResult[Event | None, ApiError]:
        def find(payload: Any) -> Event | None:
            return next((e for e in events_from_wire(payload) if e.slug == slug), None)

        return self._call("GET", "/events/get/all", transform=find)

    def purchase_tickets(
        self, request: PurchaseRequest
    ) -> LazyCoroResult[PurchaseReceipt, ApiError]:
        return self._call(
            "POST",
            "/event/ticket/purchase",
            json=request.to_wire(),
            transform=PurchaseReceipt.from_wire,
        )

    def check_payment_status(
        self, ticket_group: str
    ) -> LazyCoroResult[Settlement | None, ApiError]:
        return self._call(
            "GET",
            "/event/ticket/group/get",
            params={"ticketGroup": ticket_group},
            transform=settlement_from_wire,
        )

    def get_order_details(self, ticket_group: str) -> LazyCoroResult[Order | None, ApiError]:
        return self._call(
            "GET",
            "/event/ticket/group/get",
            params={"ticketGroup": ticket_group},
            transform=order_from_group,
        )

    # ───────────────────────────────────────────────────────────────────────────
    # Admin — raw envelopes, unpacked by the panel
    # ───────────────────────────────────────────────────────────────────────────

    def get_balances(self, company_id: str, event_id: str) -> LazyCoroResult[Any, ApiError]:
        return self._call(
            "GET",
            "/transaction/ticket/balances",
            params={"companyId": company_id, "eventId": event_id},
        )

    def get_event_tickets(self, event_id: str) -> LazyCoroResult[Any, ApiError]:
        return self._call("GET", "/event/ticket/get", params={"eventId": event_id})

    def get_transactions(self, event_id: str, company_id: str) -> LazyCoroResult[Any, ApiError]:
        return self._call(
            "GET",
            "/gl/global/get",
            params={"eventId": event_id, "companyId": company_id},
        )

    def get_complementary(self, event_id: str) -> LazyCoroResult[Any, ApiError]:
        return self._call("GET", "/event/complementary/get", params={"eventId": event_id})

    def get_user_events(self, user_id: str) -> LazyCoroResult[list[UserEvent], ApiError]:
        def unpack(payload: Any) -> list[UserEvent]:
            if not payload.get("status"):
                raise ValueError("User events response has no status")
            return [UserEvent.from_wire(e) for e in payload.get("events") or ()]

        return self._call("GET", "/event/map/get", params={"userId": user_id}, transform=unpack)

    def issue_complementary(self, request: ComplementaryRequest) -> LazyCoroResult[Any, ApiError]:
        return self._call("POST", "/event/issue/complementary", json=request.to_wire())

    # ───────────────────────────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────────────────────────

    def _call[T](
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        transform: Callable[[Any], T] = lambda payload: payload,
    ) -> LazyCoroResult[T, ApiError]:
        http = self._http

        async def send() -> T:
            response = await http.request(method, path, params=params, json=json)
            response.raise_for_status()
            logger.debug("api_call", method=method, path=path, status=response.status_code)
            return transform(response.json())

        return L.catching_async(send, on_error=to_api_error(path))


__all__ = ("TicketingClient", "to_api_error")
