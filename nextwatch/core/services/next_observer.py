from typing import Any, Callable, Mapping, Optional

from nextwatch.config.settings import ObserverConfig
from nextwatch.core.control.observer_control import ObserverControl
from nextwatch.core.domain.events import READY, ReadyEvent
from nextwatch.core.domain.observation_state import ObservationState
from nextwatch.core.interfaces.page_environment import PageEnvironment
from nextwatch.core.observability.event_bus import EventBus
from nextwatch.core.observability.structured_logger import StructuredObserverLogger
from nextwatch.core.services.observation_scheduler import ObservationScheduler
from nextwatch.core.services.readiness_aggregator import ReadinessAggregator
from nextwatch.core.services.route_transition_tracker import RouteTransitionTracker
from nextwatch.core.services.signal_evaluators import SignalEvaluators
from nextwatch.core.time.asyncio_scheduler import AsyncioScheduler
from nextwatch.core.time.scheduler import Scheduler


class NextObserver:
    """
    Detects when a Next.js application has finished bootstrapping, then
    follows its client-side navigations.

    Observation starts on construction: immediately if the document has been
    parsed, otherwise on DOM ready. Subscribe to the event bus before
    constructing to see a ready event raised by the initial check.
    """

    def __init__(
        self,
        environment: PageEnvironment,
        config: Optional[ObserverConfig] = None,
        scheduler: Optional[Scheduler] = None,
        event_bus: Optional[EventBus] = None,
        logger: Optional[StructuredObserverLogger] = None,
    ):
        self.environment = environment
        self.config = config or ObserverConfig()
        self.scheduler = scheduler or AsyncioScheduler()
        self.logger = logger or StructuredObserverLogger()
        self.logger.enabled = self.config.debug
        self.event_bus = event_bus or EventBus(self.logger)

        self.state = ObservationState(current_route=environment.current_location())
        self.ready_emitted = False
        self._started_at = self.scheduler.monotonic_ms()

        self.evaluators = SignalEvaluators(self.state, self.config, self.logger)
        self.aggregator = ReadinessAggregator(self.evaluators, environment, self.logger)
        self.observation = ObservationScheduler(
            state=self.state,
            aggregator=self.aggregator,
            environment=environment,
            scheduler=self.scheduler,
            config=self.config,
            logger=self.logger,
            on_ready=self._emit_ready,
        )
        self.routes = RouteTransitionTracker(
            state=self.state,
            aggregator=self.aggregator,
            environment=environment,
            scheduler=self.scheduler,
            event_bus=self.event_bus,
            config=self.config,
            logger=self.logger,
        )
        self.control = ObserverControl(self)

        self.logger.emit("OBSERVER_INITIALIZED", "Next.js Observer initialized", config=self.config.to_dict())
        self.routes.start()
        self.observation.start()

    @classmethod
    def from_options(
        cls,
        environment: PageEnvironment,
        options: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> "NextObserver":
        return cls(environment, config=ObserverConfig.from_options(options), **kwargs)

    def _emit_ready(self, forced: bool = False) -> None:
        if self.ready_emitted:
            return
        self.ready_emitted = True

        event = ReadyEvent(
            state=self.state.snapshot(),
            timestamp=self.scheduler.wall_time_ms(),
            timing=self.scheduler.monotonic_ms() - self._started_at,
        )
        self.logger.emit(
            "READY", "Next.js Application is READY",
            forced=forced, state=event.state.to_dict(), timing_ms=round(event.timing, 2),
        )
        self.event_bus.publish(READY, event)

    # --- Probes ---

    def force_check(self) -> bool:
        return self.aggregator.check()

    def force_ready(self) -> None:
        self.observation.force_ready()

    def detect_framework(self) -> bool:
        return self.aggregator.detect_framework()

    def get_current_route(self) -> str:
        return self.state.current_route

    def on_route_change(self, callback: Callable[[str, str], None]) -> None:
        self.routes.add_callback(callback)
