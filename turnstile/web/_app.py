"""
Web app — FastAPI surface for one storefront session.

Run yourself with uvicorn:
    uvicorn turnstile.web:app --factory
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Annotated, Any

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from kungfu import Ok, Error
from sqlalchemy.ext.asyncio import AsyncEngine

from turnstile._types import Sleep
from turnstile.api import TicketingClient
from turnstile.cart import CartStore
from turnstile.checkout import CheckoutOrchestrator, FailureKind
from turnstile.config import Settings
from turnstile.log import configure_logging
from turnstile.orders import OrderStore
from turnstile.panel import PanelSynchronizer, Resource
from turnstile.storage import Storage, create_storage
from turnstile.web._models import (
    CartItemIn,
    CartOut,
    CheckoutIn,
    CheckoutOut,
    ComplementaryIn,
    OrderOut,
    PanelOut,
    QuantityIn,
)

logger = structlog.get_logger(__name__)

_FAILURE_STATUS = {
    FailureKind.VALIDATION: 422,
    FailureKind.CONFLICT: 409,
    FailureKind.TRANSPORT: 502,
    FailureKind.PROTOCOL: 502,
    FailureKind.TIMEOUT: 504,
    FailureKind.ABANDONED: 409,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Session — components wired for the app's lifetime
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class Session:
    settings: Settings
    client: TicketingClient
    cart: CartStore
    orders: OrderStore
    checkout: CheckoutOrchestrator
    sleep: Sleep
    panels: dict[str, PanelSynchronizer] = field(default_factory=dict)

    def panel(self, event_id: str) -> PanelSynchronizer:
        panel = self.panels.get(event_id)
        if panel is None:
            panel = PanelSynchronizer(self.client, event_id=event_id, sleep=self.sleep)
            self.panels[event_id] = panel
        return panel

    def close(self) -> None:
        self.checkout.close()
        for panel in self.panels.values():
            panel.close()
        self.panels.clear()


def get_session(request: Request) -> Session:
    return request.app.state.session


SessionDep = Annotated[Session, Depends(get_session)]


# ═══════════════════════════════════════════════════════════════════════════════
# App factory
# ═══════════════════════════════════════════════════════════════════════════════


def create_app(
    settings: Settings | None = None,
    *,
    storage: Storage | None = None,
    client: TicketingClient | None = None,
    sleep: Sleep = asyncio.sleep,
) -> FastAPI:
    """
    Build the app. Storage and client are created from settings unless given;
    given ones are not closed by the app.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level, json=settings.log_json)

        engine: AsyncEngine | None = None
        store = storage
        if store is None:
            store, engine = await create_storage(settings.database_url)
        api = client or TicketingClient.from_settings(settings)

        cart = await CartStore.load(store, settings.cart_key)
        orders = OrderStore(store)
        session = Session(
            settings=settings,
            client=api,
            cart=cart,
            orders=orders,
            checkout=CheckoutOrchestrator(api, cart, orders, sleep=sleep),
            sleep=sleep,
        )
        app.state.session = session
        logger.info("app_started", api=settings.api_base_url, cart_lines=len(cart.items))
        try:
            yield
        finally:
            session.close()
            if client is None:
                await api.aclose()
            if engine is not None:
                await engine.dispose()
            logger.info("app_stopped")

    app = FastAPI(title="turnstile", lifespan=lifespan)
    _mount_cart(app)
    _mount_checkout(app)
    _mount_orders(app)
    _mount_admin(app)
    return app


# ═══════════════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════════════


def _mount_cart(app: FastAPI) -> None:
    @app.get("/cart")
    async def get_cart(session: SessionDep) -> CartOut:
        return CartOut.from_domain(session.cart)

    @app.delete("/cart")
    async def clear_cart(session: SessionDep) -> CartOut:
        changed = await session.cart.clear()
        return CartOut.from_domain(session.cart, changed)

    @app.post("/cart/items")
    async def add_item(body: CartItemIn, session: SessionDep) -> CartOut:
        match await session.client.get_event(body.event_id):
            case Error(e):
                raise HTTPException(status_code=502, detail=e.message)
            case Ok(None):
                raise HTTPException(status_code=404, detail="Event not found")
            case Ok(event):
                pass

        ticket_type = event.ticket_type(body.ticket_type_id)
        if ticket_type is None:
            raise HTTPException(status_code=404, detail="Ticket type not found")
        changed = await session.cart.add_item(event.id, event.name, ticket_type, body.quantity)
        return CartOut.from_domain(session.cart, changed)

    @app.patch("/cart/items/{ticket_type_id}")
    async def update_item(ticket_type_id: str, body: QuantityIn, session: SessionDep) -> CartOut:
        changed = await session.cart.update_quantity(ticket_type_id, body.quantity)
        return CartOut.from_domain(session.cart, changed)

    @app.delete("/cart/items/{ticket_type_id}")
    async def remove_item(ticket_type_id: str, session: SessionDep) -> CartOut:
        changed = await session.cart.remove_item(ticket_type_id)
        return CartOut.from_domain(session.cart, changed)


def _mount_checkout(app: FastAPI) -> None:
    @app.get("/checkout")
    async def get_checkout(session: SessionDep) -> CheckoutOut:
        return CheckoutOut.from_domain(session.checkout.state)

    @app.post("/checkout")
    async def submit(body: CheckoutIn, session: SessionDep, response: Response) -> CheckoutOut:
        checkout = session.checkout
        channel = body.to_channel()
        if channel is not None:
            match checkout.select_channel(channel):
                case Error(failure):
                    response.status_code = _FAILURE_STATUS[failure.kind]
                    return CheckoutOut.from_domain(checkout.state, failure)
                case Ok(_):
                    pass

        match await checkout.submit(body.to_domain()):
            case Ok(_):
                response.status_code = 202
                return CheckoutOut.from_domain(checkout.state)
            case Error(failure):
                response.status_code = _FAILURE_STATUS[failure.kind]
                return CheckoutOut.from_domain(checkout.state, failure)

    @app.post("/checkout/abandon")
    async def abandon(session: SessionDep) -> CheckoutOut:
        session.checkout.abandon()
        return CheckoutOut.from_domain(session.checkout.state)


def _mount_orders(app: FastAPI) -> None:
    @app.get("/orders/{order_id}")
    async def get_order(order_id: str, session: SessionDep) -> OrderOut:
        match await session.orders.get(order_id):
            case Ok(None):
                pass
            case Ok(order):
                return OrderOut.from_domain(order)
            case Error(e):
                logger.warning("order_lookup_failed", order_id=order_id, cause=str(e))

        match await session.client.get_order_details(order_id):
            case Ok(None):
                raise HTTPException(status_code=404, detail="Order not found")
            case Ok(remote):
                return OrderOut.from_domain(remote)
            case Error(e):
                raise HTTPException(status_code=502, detail=e.message)


def _mount_admin(app: FastAPI) -> None:
    @app.get("/admin/events/{event_id}/panel")
    async def get_panel(
        event_id: str,
        session: SessionDep,
        company_id: str | None = None,
        user_id: str | None = None,
    ) -> PanelOut:
        panel = session.panel(event_id)
        if company_id is not None:
            panel.set_identifiers(company_id=company_id)
        elif user_id is not None and panel.company_id is None:
            match await panel.resolve_company(user_id):
                case Error(cause):
                    raise HTTPException(status_code=404, detail=cause)
                case Ok(_):
                    pass
        return PanelOut.from_domain(panel)

    @app.post("/admin/events/{event_id}/panel/refresh/{resource}")
    async def refresh(event_id: str, resource: str, session: SessionDep) -> PanelOut:
        panel = session.panels.get(event_id)
        if panel is None:
            raise HTTPException(status_code=404, detail="Panel not open")
        try:
            panel.refresh(resource)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        return PanelOut.from_domain(panel)

    @app.delete("/admin/events/{event_id}/panel", status_code=204)
    async def close_panel(event_id: str, session: SessionDep) -> None:
        panel = session.panels.pop(event_id, None)
        if panel is not None:
            panel.close()

    @app.post("/admin/events/{event_id}/complementary")
    async def issue_complementary(
        event_id: str, body: ComplementaryIn, session: SessionDep
    ) -> dict[str, Any]:
        try:
            request = body.to_domain(event_id)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        match await session.client.issue_complementary(request):
            case Error(e):
                raise HTTPException(status_code=502, detail=e.message)
            case Ok(payload):
                pass

        panel = session.panels.get(event_id)
        if panel is not None:
            panel.refresh(Resource.COMPLEMENTARY)
        logger.info("complementary_issued", event_id=event_id, quantity=request.quantity)
        return {"issued": True, "response": payload}


__all__ = ("Session", "create_app", "get_session")
