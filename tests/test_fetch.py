"""Tests for resilient fetch chains."""
# pylint: disable=redefined-outer-name

from __future__ import annotations

from typing import Any

import pytest
from kungfu import Ok, Error

from turnstile import fetch as F
from turnstile import lift as L

from tests.conftest import VirtualClock


class FlakyRead:
    """Fails the first `failures` calls, then returns `value`."""

    def __init__(self, failures: int, value: Any = None) -> None:
        self.failures = failures
        self.value = value
        self.calls = 0

    def __call__(self) -> Any:
        self.calls += 1
        if self.calls <= self.failures:
            return L.from_result(Error(f"HTTP 503 on call {self.calls}"))
        return L.from_result(Ok(self.value))


def build(read: Any, clock: VirtualClock, **kwargs: Any) -> F.ResilientFetch[Any, Any]:
    builder = F.fetch(read).named("balances").clock(clock.sleep)
    if "extract" in kwargs:
        builder = builder.extract(kwargs["extract"])
    return builder.build()


def test_default_policy_delays() -> None:
    policy = F.RetryPolicy()

    assert policy.max_attempts == 6
    assert policy.delays() == (1.0, 2.0, 4.0, 8.0, 10.0)


@pytest.mark.asyncio()
async def test_recovers_after_three_failures(clock: VirtualClock) -> None:
    read = FlakyRead(failures=3, value={"ok": True})
    slot: F.FetchSlot[Any] = F.FetchSlot()

    chain = build(read, clock).run(slot)
    assert slot.state is F.SlotState.LOADING

    await clock.advance(60)

    assert read.calls == 4
    assert clock.sleeps == [1.0, 2.0, 4.0]
    assert slot.is_loading is False
    assert slot.error is None
    assert slot.data == {"ok": True}
    match await chain.wait():
        case Ok(value):
            assert value == {"ok": True}
        case other:
            pytest.fail(f"Unexpected outcome: {other!r}")


@pytest.mark.asyncio()
async def test_gives_up_after_six_attempts(clock: VirtualClock) -> None:
    read = FlakyRead(failures=100)
    slot: F.FetchSlot[Any] = F.FetchSlot()

    chain = build(read, clock).run(slot)
    await clock.advance(600)

    assert read.calls == 6
    assert clock.sleeps == [1.0, 2.0, 4.0, 8.0, 10.0]
    assert clock.pending == 0
    assert chain.done
    assert slot.is_loading is False
    assert slot.data is None
    assert slot.error == "Failed to load balances after 6 attempts: HTTP 503 on call 6"
    assert slot.state is F.SlotState.ERROR


@pytest.mark.asyncio()
async def test_raised_exception_counts_as_failed_attempt(clock: VirtualClock) -> None:
    calls = 0

    def read() -> Any:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise ConnectionError("reset by peer")
        return L.from_result(Ok([1, 2]))

    slot: F.FetchSlot[Any] = F.FetchSlot()
    build(read, clock).run(slot)
    await clock.advance(5)

    assert calls == 2
    assert slot.data == [1, 2]


@pytest.mark.asyncio()
async def test_missing_envelope_key_is_retried(clock: VirtualClock) -> None:
    read = FlakyRead(failures=0, value={"status": True})
    slot: F.FetchSlot[Any] = F.FetchSlot()

    build(read, clock, extract=F.envelope("balances", "balances")).run(slot)
    await clock.advance(600)

    assert read.calls == 6
    assert slot.error == (
        "Failed to load balances after 6 attempts: No balances data available"
    )


@pytest.mark.asyncio()
async def test_empty_payload_is_retried_by_default(clock: VirtualClock) -> None:
    read = FlakyRead(failures=0, value=None)
    slot: F.FetchSlot[Any] = F.FetchSlot()

    build(read, clock).run(slot)
    await clock.advance(600)

    assert read.calls == 6
    assert slot.state is F.SlotState.ERROR
    assert slot.error == (
        "Failed to load balances after 6 attempts: No balances data available"
    )


@pytest.mark.asyncio()
async def test_envelope_unpacks_payload(clock: VirtualClock) -> None:
    read = FlakyRead(failures=0, value={"balances": {"grossFee": 10}})
    slot: F.FetchSlot[Any] = F.FetchSlot()

    build(read, clock, extract=F.envelope("balances", "balances")).run(slot)
    await clock.advance(0)

    assert slot.data == {"grossFee": 10}


@pytest.mark.asyncio()
async def test_cancel_stops_calls_and_slot_updates(clock: VirtualClock) -> None:
    read = FlakyRead(failures=100)
    slot: F.FetchSlot[Any] = F.FetchSlot()
    changes: list[F.SlotState] = []
    slot.on_change(lambda s: changes.append(s.state))

    chain = build(read, clock).run(slot)
    await clock.advance(1.5)
    assert read.calls == 2

    chain.cancel()
    await clock.advance(600)

    assert read.calls == 2
    assert chain.cancelled
    assert slot.is_loading is True
    assert changes == [F.SlotState.LOADING]
    assert await chain.wait() is None


@pytest.mark.asyncio()
async def test_runs_are_independent(clock: VirtualClock) -> None:
    read = FlakyRead(failures=0, value="x")
    executor = build(read, clock)
    first: F.FetchSlot[Any] = F.FetchSlot()
    second: F.FetchSlot[Any] = F.FetchSlot()

    executor.run(first)
    executor.run(second)
    await clock.advance(0)

    assert read.calls == 2
    assert first.data == second.data == "x"


def test_start_drops_stale_data() -> None:
    slot: F.FetchSlot[str] = F.FetchSlot()
    slot.succeed("old")

    slot.start()

    assert slot.data is None
    assert slot.state is F.SlotState.LOADING


def test_policy_helpers() -> None:
    policy = F.RetryPolicy().with_max_retries(2).with_backoff(base=0.5, cap=1.0)

    assert policy.max_attempts == 3
    assert policy.delays() == (0.5, 1.0)
    with pytest.raises(ValueError):
        F.RetryPolicy().with_max_retries(-1)
