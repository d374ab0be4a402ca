"""
Checkout types — states, failures, form and timing policy.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# State Machine
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentStatus(Enum):
    """
    Lifecycle:
        IDLE → PROCESSING → AWAITING_VERIFICATION → SUCCESS → (navigate) IDLE
                          ↘ ERROR → IDLE          ↘ ERROR → IDLE
    """

    IDLE = "idle"
    PROCESSING = "processing"
    AWAITING_VERIFICATION = "awaiting_verification"
    SUCCESS = "success"
    ERROR = "error"


class Channel(Enum):
    MPESA = "mpesa"
    CARD = "card"


# ═══════════════════════════════════════════════════════════════════════════════
# Failures
# ═══════════════════════════════════════════════════════════════════════════════


class FailureKind(Enum):
    """
    VALIDATION: form or cart/inventory mismatch, nothing was sent.
    TRANSPORT: payment initiation failed on the wire or with a non-2xx.
    PROTOCOL: initiation succeeded but carried no ticket group.
    TIMEOUT: no settlement observed within the deadline.
    CONFLICT: operation not allowed in the current state.
    ABANDONED: the attempt was dropped by the user or by teardown.
    """

    VALIDATION = auto()
    TRANSPORT = auto()
    PROTOCOL = auto()
    TIMEOUT = auto()
    CONFLICT = auto()
    ABANDONED = auto()


GENERIC_PAYMENT_FAILURE = "There was a problem processing your payment. Please try again."
MISSING_CONFIRMATION = "Payment initiated but missing confirmation code"
EVENT_UNAVAILABLE = "Event not found or no longer available"
PAYMENT_TIMED_OUT = "We did not receive payment confirmation in time. Please try again."
EMPTY_CART = "Your cart is empty."


def tickets_unavailable(names: list[str]) -> str:
    return f"Some tickets are no longer available: {', '.join(names)}"


_TITLES = {
    FailureKind.VALIDATION: "Payment Failed",
    FailureKind.TRANSPORT: "Payment Failed",
    FailureKind.PROTOCOL: "Payment Failed",
    FailureKind.TIMEOUT: "Payment Timed Out",
    FailureKind.CONFLICT: "Payment In Progress",
    FailureKind.ABANDONED: "Payment Cancelled",
}


@dataclass(frozen=True, slots=True)
class CheckoutFailure:
    """
    User-facing failure of one checkout operation.

    fields: per-field messages for form validation failures.
    """

    kind: FailureKind
    message: str
    fields: tuple[tuple[str, str], ...] = ()

    @property
    def title(self) -> str:
        return _TITLES[self.kind]

    def __str__(self) -> str:
        return self.message


# ═══════════════════════════════════════════════════════════════════════════════
# Form
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutForm:
    name: str
    email: str
    phone: str
    coupon_code: str = ""
    terms_accepted: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# State Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutState:
    """
    What a view renders.

    ticket_group: set only while a payment attempt is being verified.
    failure: last failure, kept after the return to IDLE.
    order_id: last completed order.
    """

    status: PaymentStatus = PaymentStatus.IDLE
    channel: Channel = Channel.MPESA
    ticket_group: str | None = None
    checkout_url: str | None = None
    failure: CheckoutFailure | None = None
    order_id: str | None = None

    def to(self, status: PaymentStatus, **changes: object) -> CheckoutState:
        return replace(self, status=status, **changes)  # type: ignore[arg-type]


# ═══════════════════════════════════════════════════════════════════════════════
# Policy
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutPolicy:
    """
    Verification timings, in seconds.

    Example:
        policy = CheckoutPolicy().with_poll_interval(3).with_timeout(90)
    """

    poll_interval: float = 5.0
    timeout: float = 120.0
    success_delay: float = 1.5

    def with_poll_interval(self, seconds: float) -> CheckoutPolicy:
        return replace(self, poll_interval=seconds)

    def with_timeout(self, seconds: float) -> CheckoutPolicy:
        return replace(self, timeout=seconds)

    def with_success_delay(self, seconds: float) -> CheckoutPolicy:
        return replace(self, success_delay=seconds)


__all__ = (
    "PaymentStatus",
    "Channel",
    "FailureKind",
    "GENERIC_PAYMENT_FAILURE",
    "MISSING_CONFIRMATION",
    "EVENT_UNAVAILABLE",
    "PAYMENT_TIMED_OUT",
    "EMPTY_CART",
    "tickets_unavailable",
    "CheckoutFailure",
    "CheckoutForm",
    "CheckoutState",
    "CheckoutPolicy",
)
