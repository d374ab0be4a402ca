"""
FetchSlot — loading / error / ready cell for one resource.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum


class SlotState(Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"
    IDLE = "idle"


@dataclass(slots=True, eq=False)
class FetchSlot[T]:
    """
    Status of one synchronised resource.

    Exactly one of spinner, error or data is presentable at a time:
    `start()` drops stale data, `fail()` drops data, `succeed()` drops the error.
    """

    data: T | None = None
    is_loading: bool = False
    error: str | None = None
    _listeners: list[Callable[[FetchSlot[T]], None]] = field(default_factory=list, repr=False)

    @property
    def state(self) -> SlotState:
        if self.is_loading:
            return SlotState.LOADING
        if self.error is not None:
            return SlotState.ERROR
        if self.data is not None:
            return SlotState.READY
        return SlotState.IDLE

    def start(self) -> None:
        self.data = None
        self.error = None
        self.is_loading = True
        self._notify()

    def succeed(self, data: T) -> None:
        self.data = data
        self.error = None
        self.is_loading = False
        self._notify()

    def fail(self, error: str) -> None:
        self.data = None
        self.error = error
        self.is_loading = False
        self._notify()

    def reset(self) -> None:
        self.data = None
        self.error = None
        self.is_loading = False
        self._notify()

    def on_change(self, listener: Callable[[FetchSlot[T]], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


__all__ = ("SlotState", "FetchSlot")
