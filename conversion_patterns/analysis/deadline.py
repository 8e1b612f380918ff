"""Wall-clock budget for a search run."""

import math
import time
from typing import Callable, Optional


class Deadline:
    """
    Opaque stop signal handed to the search loop.

    Expires when less than `margin_seconds` of the budget remain, or after
    `cancel()`. An unbounded deadline only expires when cancelled.
    """

    def __init__(
        self,
        budget_seconds: Optional[float] = None,
        margin_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if budget_seconds is not None and budget_seconds <= 0:
            raise ValueError("budget_seconds must be positive")
        if margin_seconds < 0:
            raise ValueError("margin_seconds must be >= 0")
        self.budget_seconds = budget_seconds
        self.margin_seconds = margin_seconds
        self._clock = clock
        self._started = clock()
        self._cancelled = False

    @classmethod
    def unbounded(cls) -> "Deadline":
        return cls(budget_seconds=None)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop the search at the next chunk boundary."""
        self._cancelled = True

    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> float:
        """Seconds left in the budget (inf when unbounded)."""
        if self.budget_seconds is None:
            return math.inf
        return self.budget_seconds - self.elapsed()

    def expired(self) -> bool:
        if self._cancelled:
            return True
        return self.remaining() <= self.margin_seconds
