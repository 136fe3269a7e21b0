"""
Deferred continuations for the match engine.

The engine never sleeps: every delayed step (reveal, clear, automatic reset)
is handed to a Scheduler and can be cancelled through the returned handle.
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class CancelHandle:
    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self.cancelled = False
        self.fired = False
        self._on_cancel: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        if not self.pending:
            return
        self.cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    def _run(self) -> None:
        if not self.pending:
            return
        self.fired = True
        self._callback()


class Scheduler(ABC):
    """Abstract base class for deferred task runners."""

    @abstractmethod
    def schedule_after(self, delay_ms: float, fn: Callable[[], None]) -> CancelHandle:
        """Run fn once after delay_ms unless the handle is cancelled first."""
        pass


class ManualScheduler(Scheduler):
    """Virtual-time scheduler driven by advance().

    Also exposes clock() so a RoundTimer can share the same notion of time,
    which keeps scripted matches and tests fully deterministic.
    """

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = float(start_ms)
        self._queue: List[Tuple[float, int, CancelHandle]] = []
        self._seq = itertools.count()

    def clock(self) -> float:
        return self.now_ms

    def schedule_after(self, delay_ms: float, fn: Callable[[], None]) -> CancelHandle:
        handle = CancelHandle(fn)
        heapq.heappush(self._queue, (self.now_ms + max(0.0, float(delay_ms)), next(self._seq), handle))
        return handle

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, h in self._queue if h.pending)

    def advance(self, ms: float) -> int:
        """Move virtual time forward, firing due tasks in order. Returns how many ran."""
        target = self.now_ms + max(0.0, float(ms))
        ran = 0
        # tasks scheduled by a firing task are picked up if they fall due before target
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now_ms = max(self.now_ms, due)
            if handle.pending:
                handle._run()
                ran += 1
        self.now_ms = target
        return ran

    def run_all(self, limit: int = 1000) -> int:
        ran = 0
        while self._queue and ran < limit:
            due = self._queue[0][0]
            ran += self.advance(max(0.0, due - self.now_ms))
        return ran


class AsyncioScheduler(Scheduler):
    """Scheduler backed by loop.call_later; must be used from the loop's thread."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_after(self, delay_ms: float, fn: Callable[[], None]) -> CancelHandle:
        handle = CancelHandle(fn)

        def _fire() -> None:
            try:
                handle._run()
            except Exception:
                logger.exception("Scheduled continuation failed")

        timer = self._get_loop().call_later(max(0.0, float(delay_ms)) / 1000.0, _fire)
        handle._on_cancel = timer.cancel
        return handle
