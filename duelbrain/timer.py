from __future__ import annotations

import time
from typing import Callable, Optional

from .config import DECISION_WINDOW_MS


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class RoundTimer:
    """Tracks the decision window of the current round.

    Read-only with respect to the match: it answers questions about a start
    timestamp owned by MatchState and never mutates anything itself.
    """

    def __init__(self, window_ms: int = DECISION_WINDOW_MS, clock: Callable[[], float] = monotonic_ms):
        self.window_ms = window_ms
        self.clock = clock

    def now(self) -> float:
        return float(self.clock())

    def elapsed_since(self, started_at: float) -> float:
        return max(0.0, self.now() - started_at)

    def remaining(self, started_at: float, window_ms: Optional[int] = None) -> float:
        window = self.window_ms if window_ms is None else window_ms
        return max(0.0, window - self.elapsed_since(started_at))

    def committed_fast(self, started_at: float, window_ms: Optional[int] = None) -> bool:
        window = self.window_ms if window_ms is None else window_ms
        return self.elapsed_since(started_at) <= window
