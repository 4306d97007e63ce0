from dataclasses import dataclass, replace, fields
from typing import Any, Dict, Tuple


# Signals re-earned after every client-side navigation.
ROUTE_SENSITIVE_SIGNALS: Tuple[str, ...] = (
    "content_loaded",
    "scripts_loaded",
    "images_loaded",
    "no_more_mutations",
)

# Facts about the hosting application, never reset.
APPLICATION_SIGNALS: Tuple[str, ...] = (
    "framework_detected",
    "first_paint",
)

SIGNALS: Tuple[str, ...] = (
    "framework_detected",
    "content_loaded",
    "scripts_loaded",
    "images_loaded",
    "no_more_mutations",
    "first_paint",
)

_WIRE_NAMES: Dict[str, str] = {
    "framework_detected": "frameworkDetected",
    "content_loaded": "contentLoaded",
    "scripts_loaded": "scriptsLoaded",
    "images_loaded": "imagesLoaded",
    "no_more_mutations": "noMoreMutations",
    "first_paint": "firstPaint",
    "route_change_in_progress": "routeChangeInProgress",
    "current_route": "currentRoute",
    "previous_route": "previousRoute",
}


@dataclass
class ObservationState:
    """
    Load-progress facts for one observed page.

    Signal booleans only move from False to True within one observation
    cycle. The route-sensitive subset is cleared by ``reset_for_route`` at the
    start of each navigation; nothing else ever writes False.
    """
    framework_detected: bool = False
    content_loaded: bool = False
    scripts_loaded: bool = False
    images_loaded: bool = False
    no_more_mutations: bool = False
    first_paint: bool = False

    route_change_in_progress: bool = False
    current_route: str = ""
    previous_route: str = ""

    def mark(self, signal: str) -> bool:
        """Set a signal to True. Returns True if the value changed."""
        if signal not in SIGNALS:
            raise KeyError(f"Unknown signal: {signal}")
        if getattr(self, signal):
            return False
        setattr(self, signal, True)
        return True

    def reset_for_route(self) -> None:
        for signal in ROUTE_SENSITIVE_SIGNALS:
            setattr(self, signal, False)

    def snapshot(self) -> "ObservationState":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {_WIRE_NAMES[f.name]: getattr(self, f.name) for f in fields(self)}
