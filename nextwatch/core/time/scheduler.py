from abc import ABC, abstractmethod
from typing import Callable

from nextwatch.core.interfaces.subscription import Subscription


class Scheduler(ABC):
    """
    Abstract source of time and timers.
    All observer callbacks run on the single context this scheduler drives.
    """

    @abstractmethod
    def monotonic_ms(self) -> float:
        pass

    @abstractmethod
    def wall_time_ms(self) -> int:
        """Wall-clock epoch milliseconds."""
        pass

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Subscription:
        pass

    @abstractmethod
    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> Subscription:
        """First call happens one interval from now."""
        pass

    def call_soon(self, callback: Callable[[], None]) -> Subscription:
        """Run after the current callback returns."""
        return self.call_later(0, callback)
