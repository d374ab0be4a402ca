"""
Resilient fetch — fluent builder and retry chain.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from kungfu import Result, Ok, Error

from turnstile._types import Read, Sleep
from turnstile.fetch._policy import RetryPolicy
from turnstile.fetch._slot import FetchSlot

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Extract — payload validation step
# ═══════════════════════════════════════════════════════════════════════════════

type Extract[R, T] = Callable[[R], Result[T, str]]
"""
Turn a raw payload into the slot value.

Error(cause) counts as a failed attempt and is retried.
"""


def exhausted_message(resource: str, attempts: int, cause: str) -> str:
    return f"Failed to load {resource} after {attempts} attempts: {cause}"


# ═══════════════════════════════════════════════════════════════════════════════
# RetryChain — one running chain bound to one slot
# ═══════════════════════════════════════════════════════════════════════════════


class RetryChain[T]:
    """
    Running retry chain.

    Note: After `cancel()` the chain makes no further read and never touches
    the slot again, whichever await it was suspended on.
    """

    def __init__(
        self,
        *,
        resource: str,
        read: Read[Any, Any],
        extract: Extract[Any, T],
        policy: RetryPolicy,
        sleep: Sleep,
        slot: FetchSlot[T],
    ) -> None:
        self.resource = resource
        self.slot = slot
        self.attempts = 0
        self.cancelled = False
        self.outcome: Result[T, str] | None = None
        self._read = read
        self._extract = extract
        self._policy = policy
        self._sleep = sleep

        slot.start()
        self._task = asyncio.get_running_loop().create_task(
            self._drive(), name=f"fetch:{resource}"
        )

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        if self.cancelled or self._task.done():
            self.cancelled = True
            return
        self.cancelled = True
        logger.debug("fetch_cancelled", resource=self.resource, attempts=self.attempts)
        if self._task is not asyncio.current_task():
            self._task.cancel()

    async def wait(self) -> Result[T, str] | None:
        """Wait for the chain to finish. None if it was cancelled."""
        await asyncio.wait({self._task})
        return self.outcome

    async def _attempt(self) -> Result[T, str]:
        try:
            result = await self._read()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return Error(str(e) or type(e).__name__)

        match result:
            case Ok(payload):
                return self._extract(payload)
            case Error(e):
                return Error(str(e))

    async def _drive(self) -> None:
        policy = self._policy
        cause = ""
        for attempt in range(policy.max_attempts):
            self.attempts += 1
            outcome = await self._attempt()
            if self.cancelled:
                return

            match outcome:
                case Ok(value):
                    self.outcome = Ok(value)
                    self.slot.succeed(value)
                    logger.debug("fetch_succeeded", resource=self.resource, attempts=self.attempts)
                    return
                case Error(failure):
                    cause = failure

            if attempt + 1 >= policy.max_attempts:
                break

            delay = policy.delay_after(attempt)
            logger.warning(
                "fetch_attempt_failed",
                resource=self.resource,
                attempt=attempt,
                delay=delay,
                cause=cause,
            )
            await self._sleep(delay)
            if self.cancelled:
                return

        message = exhausted_message(self.resource, self.attempts, cause)
        self.outcome = Error(message)
        self.slot.fail(message)
        logger.error(
            "fetch_exhausted",
            resource=self.resource,
            attempts=self.attempts,
            cause=cause,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ResilientFetch — compiled executor
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class ResilientFetch[R, T]:
    """
    Compiled fetch. Each `run` starts an independent chain.

    Note: No deduplication. Two runs against the same resource are two chains.
    """

    resource: str
    read: Read[R, Any]
    extract: Extract[R, T]
    policy: RetryPolicy
    sleep: Sleep

    def run(self, slot: FetchSlot[T] | None = None) -> RetryChain[T]:
        """Start a chain reporting into `slot`. Requires a running event loop."""
        return RetryChain(
            resource=self.resource,
            read=self.read,
            extract=self.extract,
            policy=self.policy,
            sleep=self.sleep,
            slot=slot if slot is not None else FetchSlot(),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Fetch Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Fetch[R, T]:
    """Fluent fetch builder."""

    _read: Read[R, Any]
    _resource: str
    _extract: Extract[R, T] | None
    _policy: RetryPolicy
    _sleep: Sleep

    def named(self, resource: str) -> Fetch[R, T]:
        """Resource name used in logs and the exhaustion message."""
        return Fetch(self._read, resource, self._extract, self._policy, self._sleep)

    def extract[U](self, fn: Extract[R, U]) -> Fetch[R, U]:
        """Validate the payload; Error(cause) is a failed attempt."""
        return Fetch(self._read, self._resource, fn, self._policy, self._sleep)

    def retry(self, policy: RetryPolicy) -> Fetch[R, T]:
        return Fetch(self._read, self._resource, self._extract, policy, self._sleep)

    def clock(self, sleep: Sleep) -> Fetch[R, T]:
        """Inject the sleep used between attempts."""
        return Fetch(self._read, self._resource, self._extract, self._policy, sleep)

    def build(self) -> ResilientFetch[R, T]:
        """Without an explicit extract step, a None payload is a failed attempt."""
        extract = self._extract if self._extract is not None else present(self._resource)
        return ResilientFetch(
            resource=self._resource,
            read=self._read,
            extract=extract,
            policy=self._policy,
            sleep=self._sleep,
        )


def fetch[R](read: Read[R, Any]) -> Fetch[R, R]:
    """
    Create a resilient fetch for one read.

    Example:
        chain = (
            F.fetch(lambda: client.get_balances(company_id, event_id))
            .named("balances")
            .extract(F.envelope("balances", "balances"))
            .retry(F.RetryPolicy())
            .build()
            .run(slot)
        )

        await chain.wait()
        slot.state   # READY or ERROR
    """
    return Fetch(
        _read=read,
        _resource="resource",
        _extract=None,
        _policy=RetryPolicy(),
        _sleep=asyncio.sleep,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Envelope extraction
# ═══════════════════════════════════════════════════════════════════════════════


def no_data(resource: str) -> str:
    return f"No {resource} data available"


def present(resource: str) -> Extract[Any, Any]:
    """Accept any payload but None."""

    def extract(payload: Any) -> Result[Any, str]:
        if payload is None:
            return Error(no_data(resource))
        return Ok(payload)

    return extract


def envelope(key: str, resource: str) -> Extract[Any, Any]:
    """
    Pull `key` out of a JSON object payload.

    Missing key or non-object payload fails with "No {resource} data available".
    """

    def extract(payload: Any) -> Result[Any, str]:
        if isinstance(payload, dict) and payload.get(key) is not None:
            return Ok(payload[key])
        return Error(no_data(resource))

    return extract


__all__ = (
    "Extract",
    "exhausted_message",
    "RetryChain",
    "ResilientFetch",
    "Fetch",
    "fetch",
    "no_data",
    "present",
    "envelope",
)
