"""
Core type aliases shared across turnstile.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from kungfu import Result

# ═══════════════════════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════════════════════

type Read[T, E] = Callable[[], Awaitable[Result[T, E]]]
"""
Zero-argument factory for one remote read. Called once per attempt.

Note: Usually returns a LazyCoroResult; any awaitable Result works.
"""

# ═══════════════════════════════════════════════════════════════════════════════
# Scheduling
# ═══════════════════════════════════════════════════════════════════════════════

type Sleep = Callable[[float], Awaitable[None]]
"""
Suspend for N seconds.

Note: asyncio.sleep in production, a virtual clock in tests.
"""

type Unsubscribe = Callable[[], None]

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Read",
    "Sleep",
    "Unsubscribe",
)
