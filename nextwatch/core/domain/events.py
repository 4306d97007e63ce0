from dataclasses import dataclass
from typing import Any, Dict

from nextwatch.core.domain.observation_state import ObservationState


READY = "nextjs:ready"
ROUTE_BEFORE_CHANGE = "nextjs:route:before-change"
ROUTE_AFTER_LOAD = "nextjs:route:after-load"

EVENT_NAMES = (READY, ROUTE_BEFORE_CHANGE, ROUTE_AFTER_LOAD)


@dataclass(frozen=True)
class ReadyEvent:
    """
    Published once per observer when the application is judged interactive.
    ``timestamp`` is wall-clock epoch milliseconds, ``timing`` is monotonic
    milliseconds since the observer started.
    """
    state: ObservationState
    timestamp: int
    timing: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.to_dict(),
            "timestamp": self.timestamp,
            "timing": self.timing,
        }


@dataclass(frozen=True)
class RouteChangeEvent:
    from_route: str
    to_route: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.from_route, "to": self.to_route, "timestamp": self.timestamp}


@dataclass(frozen=True)
class RouteLoadEvent:
    route: str
    timestamp: int
    timing: float
    state: ObservationState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route": self.route,
            "timestamp": self.timestamp,
            "timing": self.timing,
            "state": self.state.to_dict(),
        }
