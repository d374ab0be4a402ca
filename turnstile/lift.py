"""
Lift — turning remote calls and ready values into LazyCoroResult.

    read = L.catching_async(lambda: http.get("/events/get/all"), on_error=to_api_error)
    cached = L.from_result(Ok(events))

Both are reads in the Resilient Fetch sense: nothing runs until awaited.
"""

from __future__ import annotations

from kungfu import LazyCoroResult, Result

from combinators.lift import catching_async


def from_result[T, E](result: Result[T, E]) -> LazyCoroResult[T, E]:
    """A read whose outcome is already known."""
    async def _run() -> Result[T, E]:
        return result
    return LazyCoroResult(_run)


__all__ = ("catching_async", "from_result")
