"""
Retry policy — bounded exponential backoff.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Backoff settings for one retry chain.

    Example:
        policy = RetryPolicy().with_max_retries(3).with_backoff(base=0.5, cap=4.0)

    Attempt 0 runs immediately; after failed attempt n the chain waits
    `delay_after(n)` seconds, for at most `max_retries` retries.
    Defaults: 6 attempts, delays 1, 2, 4, 8, 10 seconds.
    """

    max_retries: int = 5
    base_delay: float = 1.0
    factor: float = 2.0
    max_delay: float = 10.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_after(self, attempt: int) -> float:
        """Seconds to wait after failed attempt `attempt` (0-based)."""
        return min(self.base_delay * self.factor**attempt, self.max_delay)

    def delays(self) -> tuple[float, ...]:
        return tuple(self.delay_after(n) for n in range(self.max_retries))

    def with_max_retries(self, retries: int) -> RetryPolicy:
        if retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {retries}")
        return replace(self, max_retries=retries)

    def with_backoff(
        self,
        *,
        base: float | None = None,
        factor: float | None = None,
        cap: float | None = None,
    ) -> RetryPolicy:
        return replace(
            self,
            base_delay=self.base_delay if base is None else base,
            factor=self.factor if factor is None else factor,
            max_delay=self.max_delay if cap is None else cap,
        )


__all__ = ("RetryPolicy",)
