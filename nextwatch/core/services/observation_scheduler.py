from typing import Callable, Optional

from nextwatch.config.settings import MUTATION_QUIET_WINDOW_MS, ObserverConfig
from nextwatch.core.domain.lifecycle import ObserverPhase
from nextwatch.core.domain.observation_state import ObservationState
from nextwatch.core.interfaces.page_environment import PageEnvironment
from nextwatch.core.interfaces.subscription import Subscription
from nextwatch.core.observability.structured_logger import StructuredObserverLogger
from nextwatch.core.services.readiness_aggregator import ReadinessAggregator
from nextwatch.core.time.scheduler import Scheduler


class ObservationScheduler:
    """
    Drives initial-load detection: IDLE -> OBSERVING -> READY.

    Three triggers converge on the same aggregate check while observing:
    mutation quiescence, the poll interval and the page load event. The first
    positive check tears every trigger down and calls ``on_ready`` once.

    When the poll budget runs out the scheduler stops. It still reports ready
    if the framework was detected; otherwise it ends in STOPPED and stays
    silent.
    """

    def __init__(
        self,
        state: ObservationState,
        aggregator: ReadinessAggregator,
        environment: PageEnvironment,
        scheduler: Scheduler,
        config: ObserverConfig,
        logger: StructuredObserverLogger,
        on_ready: Callable[[bool], None],
    ):
        self.state = state
        self.aggregator = aggregator
        self.environment = environment
        self.scheduler = scheduler
        self.config = config
        self.logger = logger
        self._on_ready = on_ready

        self.phase = ObserverPhase.IDLE
        self.mutation_count = 0
        self.poll_count = 0

        self._dom_ready_sub: Optional[Subscription] = None
        self._load_sub: Optional[Subscription] = None
        self._mutation_sub: Optional[Subscription] = None
        self._quiet_timer: Optional[Subscription] = None
        self._poll_timer: Optional[Subscription] = None

    def start(self) -> None:
        if self.phase != ObserverPhase.IDLE or self._load_sub is not None:
            return
        self._load_sub = self.environment.on_load(self._on_load)
        if self.environment.is_loading():
            self._dom_ready_sub = self.environment.on_dom_ready(self._on_dom_ready)
        else:
            self._begin_observing()

    def force_ready(self) -> None:
        if self.phase == ObserverPhase.READY:
            return
        self._finish(forced=True)

    # --- Triggers ---

    def _on_dom_ready(self) -> None:
        self.logger.emit("DOM_CONTENT_LOADED", "DOMContentLoaded")
        self._begin_observing()

    def _begin_observing(self) -> None:
        if self.phase != ObserverPhase.IDLE:
            return
        self.phase = ObserverPhase.OBSERVING
        self.logger.emit("OBSERVATION_STARTED", "Starting observation")

        if self.aggregator.check():
            self._finish()
            return

        self._mutation_sub = self.environment.observe_mutations(self._on_mutations)
        self._poll_timer = self.scheduler.call_every(self.config.check_interval_ms, self._on_poll_tick)

    def _on_mutations(self, count: int = 1) -> None:
        if self.phase != ObserverPhase.OBSERVING:
            return
        self.mutation_count += max(1, count)

        if self._quiet_timer is not None:
            self._quiet_timer.cancel()
        self._quiet_timer = self.scheduler.call_later(MUTATION_QUIET_WINDOW_MS, self._on_mutations_stable)

        if self.aggregator.check():
            self._finish()

    def _on_mutations_stable(self) -> None:
        self._quiet_timer = None
        if self.phase != ObserverPhase.OBSERVING:
            return
        self.state.mark("no_more_mutations")
        self.logger.emit("MUTATIONS_STABLE", "DOM mutations stable", mutations=self.mutation_count)
        if self.aggregator.check():
            self._finish()

    def _on_poll_tick(self) -> None:
        if self.phase != ObserverPhase.OBSERVING:
            return
        self.poll_count += 1

        if self.aggregator.check():
            self._finish()
            return

        if self.poll_count * self.config.check_interval_ms >= self.config.timeout_ms:
            self._on_timeout()

    def _on_load(self) -> None:
        self.state.mark("images_loaded")
        self.logger.emit("WINDOW_LOAD", "Window load event")
        if self.phase == ObserverPhase.OBSERVING and self.aggregator.check():
            self._finish()

    def _on_timeout(self) -> None:
        self.logger.emit("TIMEOUT", "Timeout reached", polls=self.poll_count, state=self.state.to_dict())
        if self.state.framework_detected:
            self.logger.emit("FORCED_READY", "Forcing ready callback (Next.js detected)")
            self._finish(forced=True)
            return
        self._teardown()
        self.phase = ObserverPhase.STOPPED

    # --- Terminal transition ---

    def _finish(self, forced: bool = False) -> None:
        self._teardown()
        self.phase = ObserverPhase.READY
        self._on_ready(forced)

    def _teardown(self) -> None:
        for sub in (
            self._mutation_sub,
            self._quiet_timer,
            self._poll_timer,
            self._load_sub,
            self._dom_ready_sub,
        ):
            if sub is not None:
                sub.cancel()
        self._mutation_sub = None
        self._quiet_timer = None
        self._poll_timer = None
        self._dom_ready_sub = None
        self._load_sub = None
