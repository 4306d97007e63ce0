from typing import Optional

from nextwatch.core.domain.document_snapshot import DocumentSnapshot
from nextwatch.core.domain.exceptions import SnapshotUnavailable
from nextwatch.core.interfaces.page_environment import PageEnvironment
from nextwatch.core.observability.structured_logger import StructuredObserverLogger
from nextwatch.core.services.signal_evaluators import SignalEvaluators


class ReadinessAggregator:
    """
    Combines the evaluators into the readiness decision.

    Every evaluator runs on every check, even after one has returned False,
    so partial progress is cached in the state between checks.
    """

    def __init__(
        self,
        evaluators: SignalEvaluators,
        environment: PageEnvironment,
        logger: StructuredObserverLogger,
    ):
        self.evaluators = evaluators
        self.environment = environment
        self.logger = logger

    def _read(self) -> Optional[DocumentSnapshot]:
        try:
            return self.environment.snapshot()
        except SnapshotUnavailable as exc:
            self.logger.emit("SNAPSHOT_UNAVAILABLE", str(exc))
            return None

    def evaluate(self, doc: DocumentSnapshot) -> bool:
        results = [
            self.evaluators.detect_framework(doc),
            self.evaluators.check_content_loaded(doc),
            self.evaluators.check_scripts_loaded(doc),
            self.evaluators.check_first_paint(doc),
            self.evaluators.check_images_loaded(doc),
        ]
        return all(results)

    def check(self) -> bool:
        doc = self._read()
        if doc is None:
            return False
        return self.evaluate(doc)

    def check_route_signals(self) -> bool:
        """The subset re-earned after a navigation."""
        doc = self._read()
        if doc is None:
            return False
        results = [
            self.evaluators.check_content_loaded(doc),
            self.evaluators.check_scripts_loaded(doc),
            self.evaluators.check_images_loaded(doc),
        ]
        return all(results)

    def detect_framework(self) -> bool:
        doc = self._read()
        if doc is None:
            return self.evaluators.state.framework_detected
        return self.evaluators.detect_framework(doc)
