from dataclasses import dataclass
from enum import Enum


class ObserverPhase(str, Enum):
    IDLE = "idle"  # Waiting for the document to finish parsing
    OBSERVING = "observing"  # Triggers armed
    READY = "ready"  # Terminal, ready event emitted
    STOPPED = "stopped"  # Timed out without a trustworthy framework signal


class RoutePhase(str, Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"  # Route switched, waiting to start stabilization polling
    STABILIZING = "stabilizing"  # Polling route-sensitive signals


@dataclass(frozen=True)
class RouteTransition:
    """
    One in-app navigation. Lives from the first observed notification until
    the route-load cycle completes, times out or is abandoned.
    """
    from_route: str
    to_route: str
    start_time: float
