from abc import ABC, abstractmethod
from typing import Callable, Optional


class Subscription(ABC):
    """
    Handle for a registered listener, timer or observer.
    Cancelling twice is a no-op.
    """
    @abstractmethod
    def cancel(self) -> None:
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class CallbackSubscription(Subscription):
    """Runs ``on_cancel`` the first time the subscription is cancelled."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None):
        self._on_cancel = on_cancel
        self._cancelled = False

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled
