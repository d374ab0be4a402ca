"""
Timers — explicit set of pending callbacks owned by one component.

Every delayed or periodic callback is an asyncio task tracked here, so a
component can drain all of its timers on a state transition or teardown.

    timers = TimerSet(sleep=asyncio.sleep)
    poll = timers.every(5.0, check_status, immediate=True)
    deadline = timers.once(120.0, on_timeout)
    ...
    timers.cancel(poll)
    timers.cancel_all()
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from turnstile._types import Sleep

logger = structlog.get_logger(__name__)

type Callback = Callable[[], Awaitable[None]]


# ═══════════════════════════════════════════════════════════════════════════════
# Timer — one scheduled callback
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, eq=False)
class Timer:
    """
    Handle for one scheduled callback.

    Note: `active` is the source of truth. A timer cancelled from inside its
    own callback finishes that callback but never fires again.
    """

    name: str
    active: bool = True
    fired: int = 0
    task: asyncio.Task[None] | None = field(default=None, repr=False)


# ═══════════════════════════════════════════════════════════════════════════════
# TimerSet
# ═══════════════════════════════════════════════════════════════════════════════


class TimerSet:
    """Active timers of one component."""

    def __init__(self, sleep: Sleep = asyncio.sleep, owner: str = "timers") -> None:
        self._sleep = sleep
        self._owner = owner
        self._timers: set[Timer] = set()

    def __len__(self) -> int:
        return len(self._timers)

    def __contains__(self, timer: object) -> bool:
        return timer in self._timers

    def once(self, delay: float, callback: Callback, *, name: str = "once") -> Timer:
        """Run callback once after `delay` seconds."""
        timer = Timer(name=name)

        async def run() -> None:
            await self._sleep(delay)
            if not timer.active:
                return
            timer.active = False
            timer.fired += 1
            await callback()

        return self._spawn(timer, run)

    def every(
        self,
        interval: float,
        callback: Callback,
        *,
        immediate: bool = False,
        name: str = "every",
    ) -> Timer:
        """Run callback every `interval` seconds until cancelled."""
        timer = Timer(name=name)

        async def run() -> None:
            if not immediate:
                await self._sleep(interval)
            while timer.active:
                timer.fired += 1
                await callback()
                if not timer.active:
                    return
                await self._sleep(interval)

        return self._spawn(timer, run)

    def cancel(self, timer: Timer | None) -> None:
        """Cancel one timer. Safe to call twice or from inside the callback."""
        if timer is None:
            return
        timer.active = False
        self._timers.discard(timer)
        task = timer.task
        if task is None or task.done():
            return
        # Cancelling the running task would abort its own callback mid-way
        if task is not asyncio.current_task():
            task.cancel()

    def cancel_all(self) -> None:
        """Drain every pending timer."""
        for timer in list(self._timers):
            self.cancel(timer)

    def _spawn(self, timer: Timer, run: Callable[[], Awaitable[None]]) -> Timer:
        async def guarded() -> None:
            try:
                await run()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("timer_callback_failed", owner=self._owner, timer=timer.name)

        task = asyncio.get_running_loop().create_task(guarded(), name=f"{self._owner}:{timer.name}")
        timer.task = task
        self._timers.add(timer)

        def forget(_: asyncio.Task[None]) -> None:
            self._timers.discard(timer)
            timer.active = False

        task.add_done_callback(forget)
        return timer


__all__ = ("Timer", "TimerSet")
