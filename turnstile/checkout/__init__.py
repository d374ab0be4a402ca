"""
Checkout — payment initiation and settlement polling for the cart.

    from turnstile import checkout as Co

    orchestrator = Co.CheckoutOrchestrator(
        client, cart, orders,
        policy=Co.CheckoutPolicy().with_timeout(120),
        navigate=show_confirmation,
    )
    await orchestrator.submit(Co.CheckoutForm(name, email, phone, terms_accepted=True))
    outcome = await orchestrator.settled()

States: IDLE → PROCESSING → AWAITING_VERIFICATION → SUCCESS | ERROR → IDLE.
"""

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
from turnstile.checkout._orchestrator import (
    CheckoutOrchestrator,
    Navigate,
    PaymentGateway,
    StateListener,
    unavailable_lines,
)

__all__ = (
    "EMPTY_CART",
    "EVENT_UNAVAILABLE",
    "GENERIC_PAYMENT_FAILURE",
    "MISSING_CONFIRMATION",
    "PAYMENT_TIMED_OUT",
    "Channel",
    "CheckoutFailure",
    "CheckoutForm",
    "CheckoutPolicy",
    "CheckoutState",
    "FailureKind",
    "PaymentStatus",
    "tickets_unavailable",
    "normalize_phone",
    "validate_form",
    "CheckoutOrchestrator",
    "Navigate",
    "PaymentGateway",
    "StateListener",
    "unavailable_lines",
)
