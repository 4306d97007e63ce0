from typing import Callable

from nextwatch.config.settings import ObserverConfig
from nextwatch.core.domain.lifecycle import ObserverPhase, RoutePhase
from nextwatch.core.domain.observation_state import ObservationState


class ObserverControl:
    """
    Read-only debug handle for one observer.
    ``state`` returns a copy; the probes are the only way to act on the
    observer from outside.
    """

    def __init__(self, observer):
        self._observer = observer

    @property
    def state(self) -> ObservationState:
        return self._observer.state.snapshot()

    @property
    def config(self) -> ObserverConfig:
        return self._observer.config

    @property
    def phase(self) -> ObserverPhase:
        return self._observer.observation.phase

    @property
    def route_phase(self) -> RoutePhase:
        return self._observer.routes.phase

    @property
    def mutation_count(self) -> int:
        return self._observer.observation.mutation_count

    @property
    def ready_emitted(self) -> bool:
        return self._observer.ready_emitted

    def force_check(self) -> bool:
        return self._observer.force_check()

    def force_ready(self) -> None:
        self._observer.force_ready()

    def detect_framework(self) -> bool:
        return self._observer.detect_framework()

    def get_current_route(self) -> str:
        return self._observer.get_current_route()

    def on_route_change(self, callback: Callable[[str, str], None]) -> None:
        self._observer.on_route_change(callback)
