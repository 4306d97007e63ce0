from typing import Callable, List, Optional

from nextwatch.config.settings import ROUTE_LOAD_START_DELAY_MS, ObserverConfig
from nextwatch.core.domain.events import (
    ROUTE_AFTER_LOAD,
    ROUTE_BEFORE_CHANGE,
    RouteChangeEvent,
    RouteLoadEvent,
)
from nextwatch.core.domain.lifecycle import RoutePhase, RouteTransition
from nextwatch.core.domain.observation_state import ObservationState
from nextwatch.core.interfaces.page_environment import (
    ROUTER_CHANGE_COMPLETE,
    ROUTER_CHANGE_ERROR,
    ROUTER_CHANGE_START,
    PageEnvironment,
)
from nextwatch.core.interfaces.subscription import Subscription
from nextwatch.core.observability.event_bus import EventBus
from nextwatch.core.observability.structured_logger import StructuredObserverLogger
from nextwatch.core.services.readiness_aggregator import ReadinessAggregator
from nextwatch.core.time.scheduler import Scheduler


RouteChangeCallback = Callable[[str, str], None]


class RouteTransitionTracker:
    """
    Follows client-side navigation: IDLE -> NAVIGATING -> STABILIZING -> IDLE.

    Router events, popstate and history push/replace all funnel into
    ``on_route_change_start``; a notification for the route already current
    is dropped, which dedupes the overlapping producers. A newer navigation
    supersedes one that is still stabilizing.
    """

    def __init__(
        self,
        state: ObservationState,
        aggregator: ReadinessAggregator,
        environment: PageEnvironment,
        scheduler: Scheduler,
        event_bus: EventBus,
        config: ObserverConfig,
        logger: StructuredObserverLogger,
    ):
        self.state = state
        self.aggregator = aggregator
        self.environment = environment
        self.scheduler = scheduler
        self.event_bus = event_bus
        self.config = config
        self.logger = logger

        self.phase = RoutePhase.IDLE
        self.transition: Optional[RouteTransition] = None
        self._callbacks: List[RouteChangeCallback] = []
        self._hooks: List[Subscription] = []
        self._start_timer: Optional[Subscription] = None
        self._poll_timer: Optional[Subscription] = None

    def start(self) -> None:
        if not self.config.route_change_detection or self._hooks:
            return
        self.logger.emit("ROUTE_DETECTION_SETUP", "Setting up route change detection")
        self._hooks = [
            self.environment.on_router_event(self._on_router_event),
            self.environment.on_popstate(self._on_popstate),
            self.environment.on_history_change(self._on_history_change),
        ]

    def add_callback(self, callback: RouteChangeCallback) -> None:
        self._callbacks.append(callback)

    # --- Producers ---

    def _on_router_event(self, kind: str, url: str) -> None:
        if kind == ROUTER_CHANGE_START:
            self.on_route_change_start(url)
        elif kind == ROUTER_CHANGE_COMPLETE:
            self._schedule_stabilization(self._on_router_complete)
        elif kind == ROUTER_CHANGE_ERROR:
            self.on_route_error()

    def _on_popstate(self) -> None:
        self._navigate_to(self.environment.current_location())

    def _on_history_change(self, entry_point: str) -> None:
        # Let the navigation commit before reading the location.
        self.scheduler.call_soon(lambda: self._navigate_to(self.environment.current_location()))

    def _navigate_to(self, route: str) -> None:
        if route == self.state.current_route:
            return
        self.on_route_change_start(route)
        self._schedule_stabilization(self.start_route_load_observation)

    def _on_router_complete(self) -> None:
        self._start_timer = None
        if not self.state.route_change_in_progress:
            return
        if self.aggregator.check_route_signals():
            self.on_route_load_complete()
        else:
            self.start_route_load_observation()

    # --- Transitions ---

    def on_route_change_start(self, to: str) -> None:
        from_route = self.state.current_route
        if to == from_route:
            return

        self._cancel_timers()
        self.logger.emit("ROUTE_CHANGE_START", "Route change starting", from_route=from_route, to_route=to)

        self.state.previous_route = from_route
        self.state.current_route = to
        self.state.route_change_in_progress = True
        self.state.reset_for_route()
        self.transition = RouteTransition(
            from_route=from_route,
            to_route=to,
            start_time=self.scheduler.monotonic_ms(),
        )
        self.phase = RoutePhase.NAVIGATING

        self.event_bus.publish(
            ROUTE_BEFORE_CHANGE,
            RouteChangeEvent(from_route=from_route, to_route=to, timestamp=self.scheduler.wall_time_ms()),
        )

        for callback in list(self._callbacks):
            try:
                callback(from_route, to)
            except Exception as exc:
                self.logger.failure("ROUTE_CALLBACK_FAILED", exc, from_route=from_route, to_route=to)

    def start_route_load_observation(self) -> None:
        self._start_timer = None
        if not self.state.route_change_in_progress or self._poll_timer is not None:
            return
        self.logger.emit("ROUTE_OBSERVATION_STARTED", "Starting route load observation", route=self.state.current_route)
        self.phase = RoutePhase.STABILIZING

        max_checks = self.config.route_load_timeout_ms / self.config.check_interval_ms
        checks = 0

        def _tick():
            nonlocal checks
            checks += 1
            if self.aggregator.check_route_signals():
                self.on_route_load_complete()
                return
            if checks >= max_checks:
                self.logger.emit("ROUTE_TIMEOUT", "Route load timeout reached", route=self.state.current_route)
                self.on_route_load_complete()

        self._poll_timer = self.scheduler.call_every(self.config.check_interval_ms, _tick)

    def on_route_load_complete(self) -> None:
        if not self.state.route_change_in_progress:
            return
        self._cancel_timers()
        self.state.route_change_in_progress = False
        self.phase = RoutePhase.IDLE

        started = self.transition.start_time if self.transition else self.scheduler.monotonic_ms()
        self.transition = None
        event = RouteLoadEvent(
            route=self.state.current_route,
            timestamp=self.scheduler.wall_time_ms(),
            timing=self.scheduler.monotonic_ms() - started,
            state=self.state.snapshot(),
        )
        self.logger.emit("ROUTE_LOAD_COMPLETE", "Route load complete", route=event.route, timing_ms=event.timing)
        self.event_bus.publish(ROUTE_AFTER_LOAD, event)

    def on_route_error(self) -> None:
        self._cancel_timers()
        self.state.route_change_in_progress = False
        self.transition = None
        self.phase = RoutePhase.IDLE
        self.logger.emit("ROUTE_CHANGE_ERROR", "Route change error", route=self.state.current_route)

    # --- Helpers ---

    def _schedule_stabilization(self, step: Callable[[], None]) -> None:
        if self._start_timer is not None:
            self._start_timer.cancel()
        self._start_timer = self.scheduler.call_later(ROUTE_LOAD_START_DELAY_MS, step)

    def _cancel_timers(self) -> None:
        if self._start_timer is not None:
            self._start_timer.cancel()
            self._start_timer = None
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None
