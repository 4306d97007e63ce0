import re

from nextwatch.config.settings import (
    BODY_CHILD_FALLBACK,
    CONTENT_ELEMENT_MIN_TEXT,
    CONTENT_TOTAL_MIN_TEXT,
    ObserverConfig,
)
from nextwatch.core.domain.document_snapshot import DocumentSnapshot
from nextwatch.core.domain.exceptions import EnvironmentUnavailable
from nextwatch.core.domain.observation_state import ObservationState
from nextwatch.core.observability.structured_logger import StructuredObserverLogger


FRAMEWORK_PATH = "/_next/"
FRAMEWORK_GENERATOR = "Next.js"
# Shared asset dirs sit beside the per-build dir under /_next/static/.
BUILD_ID_PATTERN = re.compile(r"/_next/static/(?!chunks/|css/|media/)[a-zA-Z0-9_-]+/")


def framework_scripts(doc: DocumentSnapshot) -> int:
    return sum(1 for src in doc.script_sources if FRAMEWORK_PATH in src)


class SignalEvaluators:
    """
    The five load-progress predicates.

    Each one reads a DocumentSnapshot, and on success sets its own field in
    the shared ObservationState. A signal that is already True is returned
    without looking at the document again, so a signal never flips back
    within a cycle.
    """

    def __init__(
        self,
        state: ObservationState,
        config: ObserverConfig,
        logger: StructuredObserverLogger,
    ):
        self.state = state
        self.config = config
        self.logger = logger

    def detect_framework(self, doc: DocumentSnapshot) -> bool:
        if self.state.framework_detected:
            return True

        method = None
        if doc.has_framework_data:
            method = "framework_data"
        elif any(BUILD_ID_PATTERN.search(src) for src in doc.script_sources):
            method = "build_id"
        elif framework_scripts(doc) > 0:
            method = "framework_scripts"
        elif doc.meta_generator and FRAMEWORK_GENERATOR in doc.meta_generator:
            method = "meta_generator"
        elif doc.has_route_announcer:
            method = "route_announcer"

        if method is None:
            return False
        self.state.mark("framework_detected")
        self.logger.emit("FRAMEWORK_DETECTED", "Detected Next.js", method=method)
        return True

    def check_content_loaded(self, doc: DocumentSnapshot) -> bool:
        if self.state.content_loaded:
            return True
        if not doc.has_body:
            return False

        lengths = doc.container_text_lengths
        if lengths:
            total = sum(lengths)
            qualifying = sum(1 for n in lengths if n > CONTENT_ELEMENT_MIN_TEXT)
            if qualifying >= self.config.min_content_check or total > CONTENT_TOTAL_MIN_TEXT:
                self.state.mark("content_loaded")
                self.logger.emit(
                    "CONTENT_LOADED", "Content loaded",
                    elements=qualifying, chars=total,
                )
                return True

        # A spinner-only shell has few root children.
        if doc.body_child_count > BODY_CHILD_FALLBACK:
            self.state.mark("content_loaded")
            self.logger.emit(
                "CONTENT_LOADED", "Content loaded via body children",
                body_children=doc.body_child_count,
            )
            return True
        return False

    def check_scripts_loaded(self, doc: DocumentSnapshot) -> bool:
        if self.state.scripts_loaded:
            return True
        if framework_scripts(doc) == 0:
            return False

        if doc.framework_data_has_props or doc.has_runtime:
            self.state.mark("scripts_loaded")
            self.logger.emit("SCRIPTS_LOADED", "Scripts loaded (runtime available)")
            return True

        if doc.has_hydration_markers or doc.has_obfuscated_classes:
            self.state.mark("scripts_loaded")
            self.logger.emit("SCRIPTS_LOADED", "Scripts loaded (hydration markers)")
            return True
        return False

    def check_images_loaded(self, doc: DocumentSnapshot) -> bool:
        if self.state.images_loaded:
            return True

        if not doc.images:
            self.state.mark("images_loaded")
            return True

        loaded = sum(1 for img in doc.images if img.is_loaded)
        ratio = loaded / len(doc.images)
        if ratio >= self.config.image_load_tolerance:
            self.state.mark("images_loaded")
            self.logger.emit(
                "IMAGES_LOADED", "Images loaded",
                loaded=loaded, total=len(doc.images),
            )
            return True
        return False

    def check_first_paint(self, doc: DocumentSnapshot) -> bool:
        if self.state.first_paint:
            return True

        try:
            entry = doc.first_contentful_paint()
        except EnvironmentUnavailable:
            # Degraded: any rendered root child counts as painted.
            if doc.has_body and doc.body_child_count > 0:
                self.state.mark("first_paint")
                self.logger.emit("FIRST_PAINT", "First paint assumed (paint timing unavailable)")
                return True
            return False

        if entry is None:
            return False
        self.state.mark("first_paint")
        self.logger.emit(
            "FIRST_PAINT", "First Contentful Paint",
            start_time_ms=round(entry.start_time, 2),
        )
        return True
