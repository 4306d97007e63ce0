import asyncio
import time
from typing import Callable, Optional

from nextwatch.core.interfaces.subscription import Subscription
from nextwatch.core.time.scheduler import Scheduler


class _LoopTimer(Subscription):
    def __init__(self):
        self._handle: Optional[asyncio.Handle] = None
        self._cancelled = False

    def bind(self, handle: asyncio.Handle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """
    Production scheduler on top of an asyncio event loop.
    Monotonic time counts from scheduler creation.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._origin = time.monotonic()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def monotonic_ms(self) -> float:
        return (time.monotonic() - self._origin) * 1000.0

    def wall_time_ms(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Subscription:
        timer = _LoopTimer()
        timer.bind(self.loop.call_later(max(0.0, delay_ms) / 1000.0, callback))
        return timer

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Subscription:
        timer = _LoopTimer()
        delay = max(0.0, interval_ms) / 1000.0

        def _tick():
            if timer.cancelled:
                return
            timer.bind(self.loop.call_later(delay, _tick))
            callback()

        timer.bind(self.loop.call_later(delay, _tick))
        return timer

    def call_soon(self, callback: Callable[[], None]) -> Subscription:
        timer = _LoopTimer()
        timer.bind(self.loop.call_soon(callback))
        return timer
