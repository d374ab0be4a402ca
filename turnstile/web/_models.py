"""
Web models — pydantic request/response bodies mapped to and from domain types.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field

from turnstile.api import ComplementaryRequest
from turnstile.cart import CartChanged, CartItem, CartNotice, CartStore
from turnstile.checkout import (
    Channel,
    CheckoutFailure,
    CheckoutForm,
    CheckoutState,
)
from turnstile.domain import ResolvedTicket
from turnstile.fetch import FetchSlot
from turnstile.orders import Order
from turnstile.panel import PanelSynchronizer


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class CartItemIn(BaseModel):
    event_id: str
    ticket_type_id: str
    quantity: int = Field(default=1, gt=0)


class QuantityIn(BaseModel):
    quantity: int


class CartItemOut(BaseModel):
    event_id: str
    event_name: str
    ticket_type_id: str
    ticket_type_name: str
    price: float
    quantity: int
    line_total: float

    @classmethod
    def from_domain(cls, item: CartItem) -> CartItemOut:
        return cls(
            event_id=item.event_id,
            event_name=item.event_name,
            ticket_type_id=item.ticket_type_id,
            ticket_type_name=item.ticket_type_name,
            price=item.price,
            quantity=item.quantity,
            line_total=item.line_total,
        )


class NoticeOut(BaseModel):
    title: str
    description: str

    @classmethod
    def from_domain(cls, notice: CartNotice) -> NoticeOut:
        return cls(title=notice.title, description=notice.description)


class CartOut(BaseModel):
    event_id: str | None
    items: list[CartItemOut]
    cart_total: float
    item_count: int
    notice: NoticeOut | None = None
    persisted: bool = True

    @classmethod
    def from_domain(cls, cart: CartStore, changed: CartChanged | None = None) -> CartOut:
        return cls(
            event_id=cart.event_id,
            items=[CartItemOut.from_domain(i) for i in cart.items],
            cart_total=cart.cart_total,
            item_count=cart.item_count,
            notice=NoticeOut.from_domain(changed.notice) if changed and changed.notice else None,
            persisted=changed is None or changed.error is None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutIn(BaseModel):
    name: str
    email: str
    phone: str
    coupon_code: str = ""
    terms_accepted: bool = False
    channel: Literal["mpesa", "card"] | None = None

    def to_domain(self) -> CheckoutForm:
        return CheckoutForm(
            name=self.name,
            email=self.email,
            phone=self.phone,
            coupon_code=self.coupon_code,
            terms_accepted=self.terms_accepted,
        )

    def to_channel(self) -> Channel | None:
        return Channel(self.channel) if self.channel else None


class FailureOut(BaseModel):
    kind: str
    title: str
    message: str
    fields: dict[str, str] = {}

    @classmethod
    def from_domain(cls, failure: CheckoutFailure) -> FailureOut:
        return cls(
            kind=failure.kind.name,
            title=failure.title,
            message=failure.message,
            fields=dict(failure.fields),
        )


class CheckoutOut(BaseModel):
    status: str
    channel: str
    ticket_group: str | None
    checkout_url: str | None
    order_id: str | None
    failure: FailureOut | None = None

    @classmethod
    def from_domain(
        cls,
        state: CheckoutState,
        failure: CheckoutFailure | None = None,
    ) -> CheckoutOut:
        shown = failure or state.failure
        return cls(
            status=state.status.value,
            channel=state.channel.value,
            ticket_group=state.ticket_group,
            checkout_url=state.checkout_url,
            order_id=state.order_id,
            failure=FailureOut.from_domain(shown) if shown else None,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class TicketOut(BaseModel):
    id: int
    ticket_name: str
    ticket_price: float
    barcode: str | None
    ticket_group_code: str
    customer_mobile: str
    is_complementary: bool
    status: str
    created_at: str

    @classmethod
    def from_domain(cls, ticket: ResolvedTicket) -> TicketOut:
        return cls(**asdict(ticket))


class OrderOut(BaseModel):
    id: str
    customer_name: str
    customer_email: str
    ticket_group: str
    tickets: list[TicketOut]
    total: float
    poster_url: str
    event_name: str
    order_date: str
    coupon_code: str | None

    @classmethod
    def from_domain(cls, order: Order) -> OrderOut:
        return cls(
            id=order.id,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            ticket_group=order.ticket_group,
            tickets=[TicketOut.from_domain(t) for t in order.tickets],
            total=order.total,
            poster_url=order.poster_url,
            event_name=order.event_name,
            order_date=order.order_date.isoformat(),
            coupon_code=order.coupon_code,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Admin panel
# ═══════════════════════════════════════════════════════════════════════════════


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (tuple, list)):
        return [_jsonable(v) for v in value]
    return value


class SlotOut(BaseModel):
    state: str
    data: Any = None
    error: str | None = None

    @classmethod
    def from_domain(cls, slot: FetchSlot[Any]) -> SlotOut:
        return cls(state=slot.state.value, data=_jsonable(slot.data), error=slot.error)


class PanelOut(BaseModel):
    event_id: str | None
    company_id: str | None
    state: str
    resources: dict[str, SlotOut]

    @classmethod
    def from_domain(cls, panel: PanelSynchronizer) -> PanelOut:
        return cls(
            event_id=panel.event_id,
            company_id=panel.company_id,
            state=panel.state.value,
            resources={r.value: SlotOut.from_domain(s) for r, s in panel.slots.items()},
        )


class ComplementaryIn(BaseModel):
    ticket_id: str
    quantity: int = Field(default=1, gt=0)
    mobile_number: str | None = None
    email: str | None = None

    def to_domain(self, event_id: str) -> ComplementaryRequest:
        """Raises ValueError when neither mobile number nor email is given."""
        return ComplementaryRequest(
            event_id=event_id,
            ticket_id=self.ticket_id,
            quantity=self.quantity,
            mobile_number=self.mobile_number or None,
            email=self.email or None,
        )


__all__ = (
    "CartItemIn",
    "QuantityIn",
    "CartItemOut",
    "NoticeOut",
    "CartOut",
    "CheckoutIn",
    "FailureOut",
    "CheckoutOut",
    "TicketOut",
    "OrderOut",
    "SlotOut",
    "PanelOut",
    "ComplementaryIn",
)
