import heapq
import itertools
from typing import Callable, List, Optional, Tuple

from nextwatch.core.interfaces.subscription import Subscription
from nextwatch.core.time.scheduler import Scheduler


class _ManualTimer(Subscription):
    def __init__(self, callback: Callable[[], None], interval_ms: Optional[float]):
        self.callback = callback
        self.interval_ms = interval_ms
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Test scheduler.
    Time only moves through ``advance``; due timers fire in due-time order,
    ties in registration order.
    """

    def __init__(self, start_ms: float = 0.0, wall_origin_ms: int = 1_700_000_000_000):
        self._now = float(start_ms)
        self._wall_origin = wall_origin_ms - int(start_ms)
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _ManualTimer]] = []

    def monotonic_ms(self) -> float:
        return self._now

    def wall_time_ms(self) -> int:
        return self._wall_origin + int(self._now)

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Subscription:
        timer = _ManualTimer(callback, None)
        self._push(self._now + max(0.0, delay_ms), timer)
        return timer

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Subscription:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        timer = _ManualTimer(callback, interval_ms)
        self._push(self._now + interval_ms, timer)
        return timer

    def advance(self, delta_ms: float) -> None:
        target = self._now + delta_ms
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = due
            if timer.interval_ms is not None:
                self._push(due + timer.interval_ms, timer)
            timer.callback()
        self._now = target

    def run_pending(self) -> None:
        """Fire everything due now, including call_soon callbacks."""
        self.advance(0)

    def pending_count(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def _push(self, due: float, timer: _ManualTimer) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), timer))
