"""
Checkout orchestrator — payment initiation and settlement polling.

    checkout = CheckoutOrchestrator(client, cart, orders, navigate=go_to_confirmation)

    match await checkout.submit(form):
        case Ok(ticket_group):
            ...                         # AWAITING_VERIFICATION, polling
        case Error(failure):
            ...                         # back in IDLE, failure.message for the user

    match await checkout.settled():
        case Ok(order):
            ...
        case Error(failure):
            ...                         # TIMEOUT, ABANDONED, ...

Timers (poll, timeout, navigation) live in one TimerSet. Leaving
AWAITING_VERIFICATION drains poll and timeout; `close()` drains everything.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog
from kungfu import Result, Ok, Error

from turnstile._timers import Timer, TimerSet
from turnstile._types import Sleep, Unsubscribe
from turnstile.api import ApiError, PurchaseLine, PurchaseReceipt, PurchaseRequest
from turnstile.cart import CartItem, CartStore
from turnstile.checkout._types import (
    EMPTY_CART,
    EVENT_UNAVAILABLE,
    GENERIC_PAYMENT_FAILURE,
    MISSING_CONFIRMATION,
    PAYMENT_TIMED_OUT,
    Channel,
    CheckoutFailure,
    CheckoutForm,
    CheckoutPolicy,
    CheckoutState,
    FailureKind,
    PaymentStatus,
    tickets_unavailable,
)
from turnstile.checkout._validate import normalize_phone, validate_form
from turnstile.domain import Event, Settlement
from turnstile.orders import Order, OrderExists, OrderStore

logger = structlog.get_logger(__name__)

type StateListener = Callable[[CheckoutState], None]
type Navigate = Callable[[str], Awaitable[None]]


# ═══════════════════════════════════════════════════════════════════════════════
# PaymentGateway — remote calls the orchestrator makes
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentGateway(Protocol):
    """Satisfied by TicketingClient."""

    def get_event(self, event_id: str) -> Awaitable[Result[Event | None, ApiError]]: ...

    def purchase_tickets(
        self, request: PurchaseRequest
    ) -> Awaitable[Result[PurchaseReceipt, ApiError]]: ...

    def check_payment_status(
        self, ticket_group: str
    ) -> Awaitable[Result[Settlement | None, ApiError]]: ...


def unavailable_lines(event: Event, items: tuple[CartItem, ...]) -> list[CartItem]:
    """Cart lines whose ticket type is gone, disabled or out of stock."""
    invalid: list[CartItem] = []
    for item in items:
        ticket_type = event.ticket_type(item.ticket_type_id)
        if ticket_type is None or not ticket_type.is_purchasable:
            invalid.append(item)
    return invalid


# ═══════════════════════════════════════════════════════════════════════════════
# CheckoutOrchestrator
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutOrchestrator:
    """
    One storefront session's checkout.

    Note: At most one payment attempt exists at a time. `submit` and
    `select_channel` are refused outside IDLE.
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        cart: CartStore,
        orders: OrderStore,
        *,
        channel: Channel = Channel.MPESA,
        policy: CheckoutPolicy = CheckoutPolicy(),
        sleep: Sleep = asyncio.sleep,
        navigate: Navigate | None = None,
    ) -> None:
        self._gateway = gateway
        self._cart = cart
        self._orders = orders
        self._policy = policy
        self._navigate = navigate
        self._timers = TimerSet(sleep=sleep, owner="checkout")
        self._state = CheckoutState(channel=channel)
        self._listeners: list[StateListener] = []
        self._outcome: asyncio.Future[Result[Order, CheckoutFailure]] | None = None
        self._poll: Timer | None = None
        self._deadline: Timer | None = None
        self._closed = False

    @property
    def state(self) -> CheckoutState:
        return self._state

    @property
    def status(self) -> PaymentStatus:
        return self._state.status

    @property
    def policy(self) -> CheckoutPolicy:
        return self._policy

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Receive every state snapshot, including transient ERROR."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ───────────────────────────────────────────────────────────────────────────
    # User operations
    # ───────────────────────────────────────────────────────────────────────────

    def select_channel(self, channel: Channel) -> Result[Channel, CheckoutFailure]:
        if self._state.status is not PaymentStatus.IDLE or self._closed:
            return Error(self._conflict())
        if channel is not self._state.channel:
            self._set(self._state.to(PaymentStatus.IDLE, channel=channel))
        return Ok(channel)

    async def submit(self, form: CheckoutForm) -> Result[str, CheckoutFailure]:
        """
        Start a payment attempt from IDLE.

        Returns the ticket group once the attempt is awaiting verification.
        Every failure has already returned the machine to IDLE.
        """
        if self._state.status is not PaymentStatus.IDLE or self._closed:
            return Error(self._conflict())

        invalid = validate_form(form)
        if invalid is not None:
            return Error(invalid)
        if self._cart.is_empty:
            return Error(CheckoutFailure(FailureKind.VALIDATION, EMPTY_CART))

        self._outcome = asyncio.get_running_loop().create_future()
        self._set(self._state.to(PaymentStatus.PROCESSING, failure=None, checkout_url=None))

        try:
            initiated = await self._initiate(form)
        except asyncio.CancelledError:
            if self._state.status is PaymentStatus.PROCESSING:
                logger.warning("payment_initiation_cancelled")
                self._fail(CheckoutFailure(FailureKind.ABANDONED, "Payment was cancelled"))
            raise
        except Exception as e:
            logger.exception("payment_initiation_crashed")
            initiated = Error(
                CheckoutFailure(FailureKind.TRANSPORT, str(e) or GENERIC_PAYMENT_FAILURE)
            )

        if self._closed:
            return Error(CheckoutFailure(FailureKind.ABANDONED, "Checkout was closed"))

        match initiated:
            case Error(failure):
                self._fail(failure)
                return Error(failure)
            case Ok((group, checkout_url)):
                self._await_verification(group, checkout_url, form)
                return Ok(group)

    def abandon(self) -> bool:
        """Drop the attempt being verified and return to IDLE."""
        if self._state.status is not PaymentStatus.AWAITING_VERIFICATION:
            return False
        group = self._state.ticket_group
        self._stop_verification()
        self._set(self._state.to(PaymentStatus.IDLE, ticket_group=None, checkout_url=None))
        self._resolve(Error(CheckoutFailure(FailureKind.ABANDONED, "Payment was abandoned")))
        logger.info("payment_abandoned", ticket_group=group)
        return True

    def close(self) -> None:
        """Teardown: drain every timer. The orchestrator accepts nothing afterwards."""
        self._closed = True
        self._timers.cancel_all()
        self._poll = self._deadline = None
        if self._state.status is PaymentStatus.PROCESSING:
            self._fail(CheckoutFailure(FailureKind.ABANDONED, "Checkout was closed"))
            return
        self._resolve(Error(CheckoutFailure(FailureKind.ABANDONED, "Checkout was closed")))

    async def settled(self) -> Result[Order, CheckoutFailure]:
        """Terminal outcome of the current or most recent attempt."""
        if self._outcome is None:
            return Error(CheckoutFailure(FailureKind.CONFLICT, "No payment attempt has been made"))
        return await asyncio.shield(self._outcome)

    # ───────────────────────────────────────────────────────────────────────────
    # Processing
    # ───────────────────────────────────────────────────────────────────────────

    async def _initiate(
        self, form: CheckoutForm
    ) -> Result[tuple[str, str | None], CheckoutFailure]:
        """(ticket group, checkout url) of an initiated payment."""
        items = self._cart.items
        event_id = items[0].event_id
        amount = self._cart.cart_total

        match await self._gateway.get_event(event_id):
            case Error(e):
                return Error(CheckoutFailure(FailureKind.TRANSPORT, str(e) or EVENT_UNAVAILABLE))
            case Ok(None):
                return Error(CheckoutFailure(FailureKind.VALIDATION, EVENT_UNAVAILABLE))
            case Ok(event):
                pass

        invalid = unavailable_lines(event, items)
        if invalid:
            names = [item.ticket_type_name for item in invalid]
            logger.info("checkout_tickets_unavailable", event_id=event_id, tickets=names)
            return Error(CheckoutFailure(FailureKind.VALIDATION, tickets_unavailable(names)))
        if self._closed:
            return Error(CheckoutFailure(FailureKind.ABANDONED, "Checkout was closed"))

        request = PurchaseRequest(
            event_id=event_id,
            amount=amount,
            channel=self._state.channel.value,
            email=form.email.strip(),
            mobile_number=normalize_phone(form.phone),
            lines=tuple(PurchaseLine(i.ticket_type_id, i.quantity) for i in items),
            coupon_code=form.coupon_code.strip(),
        )
        logger.info(
            "payment_initiating",
            event_id=event_id,
            amount=amount,
            channel=request.channel,
            lines=len(request.lines),
        )

        match await self._gateway.purchase_tickets(request):
            case Error(e):
                return Error(CheckoutFailure(FailureKind.TRANSPORT, str(e) or GENERIC_PAYMENT_FAILURE))
            case Ok(PurchaseReceipt(ticket_group=str(group), checkout_url=checkout_url)):
                return Ok((group, checkout_url))
            case Ok(_):
                logger.error("payment_missing_ticket_group", event_id=event_id)
                return Error(CheckoutFailure(FailureKind.PROTOCOL, MISSING_CONFIRMATION))

    # ───────────────────────────────────────────────────────────────────────────
    # Verification
    # ───────────────────────────────────────────────────────────────────────────

    def _await_verification(
        self, group: str, checkout_url: str | None, form: CheckoutForm
    ) -> None:
        self._set(
            self._state.to(
                PaymentStatus.AWAITING_VERIFICATION,
                ticket_group=group,
                checkout_url=checkout_url,
            )
        )
        logger.info("payment_awaiting_verification", ticket_group=group)

        policy = self._policy
        # Deadline first: at equal due times the timeout wins over a poll
        self._deadline = self._timers.once(
            policy.timeout, lambda: self._on_timeout(group), name="timeout"
        )
        self._poll = self._timers.every(
            policy.poll_interval,
            lambda: self._poll_once(group, form),
            immediate=True,
            name="poll",
        )

    def _is_current(self, group: str) -> bool:
        return (
            not self._closed
            and self._state.status is PaymentStatus.AWAITING_VERIFICATION
            and self._state.ticket_group == group
        )

    async def _poll_once(self, group: str, form: CheckoutForm) -> None:
        if not self._is_current(group):
            return
        try:
            result = await self._gateway.check_payment_status(group)
        except Exception as e:
            cause = str(e) or type(e).__name__
            logger.warning("payment_poll_failed", ticket_group=group, cause=cause)
            return

        if not self._is_current(group):
            logger.debug("payment_poll_stale", ticket_group=group)
            return

        match result:
            case Ok(None):
                logger.debug("payment_pending", ticket_group=group)
            case Ok(settlement):
                await self._on_settled(group, form, settlement)
            case Error(e):
                logger.warning("payment_poll_failed", ticket_group=group, cause=str(e))

    async def _on_timeout(self, group: str) -> None:
        if not self._is_current(group):
            return
        logger.warning("payment_timed_out", ticket_group=group, after=self._policy.timeout)
        self._fail(CheckoutFailure(FailureKind.TIMEOUT, PAYMENT_TIMED_OUT))

    async def _on_settled(self, group: str, form: CheckoutForm, settlement: Settlement) -> None:
        self._stop_verification()

        order = Order.from_settlement(
            group,
            settlement,
            customer_name=form.name.strip(),
            customer_email=form.email.strip(),
            coupon_code=form.coupon_code.strip() or None,
        )
        self._set(
            self._state.to(
                PaymentStatus.SUCCESS,
                ticket_group=None,
                checkout_url=None,
                order_id=order.id,
            )
        )
        logger.info("payment_settled", ticket_group=group, tickets=len(order.tickets))

        match await self._orders.create(order):
            case Ok(_):
                pass
            case Error(OrderExists()):
                logger.warning("order_already_recorded", order_id=order.id)
            case Error(e):
                logger.error("order_record_failed", order_id=order.id, cause=str(e))

        await self._cart.clear()
        self._resolve(Ok(order))

        if not self._closed:
            self._timers.once(
                self._policy.success_delay,
                lambda: self._finish(order.id),
                name="navigate",
            )

    async def _finish(self, order_id: str) -> None:
        if self._navigate is not None:
            await self._navigate(order_id)
        if self._state.status is PaymentStatus.SUCCESS:
            self._set(self._state.to(PaymentStatus.IDLE))

    # ───────────────────────────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────────────────────────

    def _stop_verification(self) -> None:
        self._timers.cancel(self._poll)
        self._timers.cancel(self._deadline)
        self._poll = self._deadline = None

    def _fail(self, failure: CheckoutFailure) -> None:
        """Surface the failure in ERROR, then return to IDLE."""
        self._stop_verification()
        self._set(
            self._state.to(
                PaymentStatus.ERROR,
                ticket_group=None,
                checkout_url=None,
                failure=failure,
            )
        )
        self._set(self._state.to(PaymentStatus.IDLE))
        self._resolve(Error(failure))

    def _conflict(self) -> CheckoutFailure:
        if self._closed:
            return CheckoutFailure(FailureKind.CONFLICT, "Checkout is closed")
        return CheckoutFailure(
            FailureKind.CONFLICT,
            f"A payment is already {self._state.status.value.replace('_', ' ')}",
        )

    def _resolve(self, outcome: Result[Order, CheckoutFailure]) -> None:
        if self._outcome is not None and not self._outcome.done():
            self._outcome.set_result(outcome)

    def _set(self, state: CheckoutState) -> None:
        previous = self._state.status
        self._state = state
        if previous is not state.status:
            logger.debug(
                "checkout_state_changed",
                previous=previous.value,
                status=state.status.value,
                ticket_group=state.ticket_group,
            )
        for listener in list(self._listeners):
            listener(state)


__all__ = (
    "PaymentGateway",
    "CheckoutOrchestrator",
    "unavailable_lines",
)
