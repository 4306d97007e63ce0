from abc import ABC, abstractmethod
from typing import Any


class ObserverEventSink(ABC):
    """
    Hook interface for recording published observer events.
    Implementations must not have side effects on detection.
    """

    @abstractmethod
    def on_event(self, name: str, payload: Any) -> None:
        """Called for every event published on the bus the sink is attached to."""
        pass


class NullEventSink(ObserverEventSink):
    """
    Default no-op sink.
    """
    def on_event(self, name: str, payload: Any) -> None:
        pass
