from typing import List

import pytest

from nextwatch.config.settings import ObserverConfig
from nextwatch.core.domain.document_snapshot import DocumentSnapshot, ImageInfo, PaintEntry
from nextwatch.core.domain.events import READY, ReadyEvent
from nextwatch.core.domain.lifecycle import ObserverPhase
from nextwatch.core.observability.event_bus import EventBus
from nextwatch.core.services.next_observer import NextObserver
from nextwatch.core.time.manual_scheduler import ManualScheduler
from nextwatch.environment.in_memory_environment import InMemoryPageEnvironment


NEXT_SCRIPT = "https://app.test/_next/static/build-7/pages/_app.js"

READY_FACTS = dict(
    has_framework_data=True,
    script_sources=(NEXT_SCRIPT,),
    has_runtime=True,
    container_text_lengths=(150, 40, 22),
    body_child_count=3,
    paint_entries=(PaintEntry("first-contentful-paint", 30.0),),
)


# --- Helpers ---

class Harness:
    def __init__(self, document: DocumentSnapshot, **options):
        self.page = InMemoryPageEnvironment(document)
        self.clock = ManualScheduler()
        self.bus = EventBus()
        self.ready: List[ReadyEvent] = []
        self.bus.subscribe(READY, self.ready.append)
        config = ObserverConfig(debug=False, route_change_detection=False, **options)
        self.observer = NextObserver(self.page, config=config, scheduler=self.clock, event_bus=self.bus)


def blank(**changes) -> DocumentSnapshot:
    facts = dict(ready_state="complete", paint_entries=())
    facts.update(changes)
    return DocumentSnapshot(**facts)


# --- Entry ---

def test_ready_on_immediate_check():
    h = Harness(blank(**READY_FACTS))
    assert h.observer.observation.phase == ObserverPhase.READY
    assert len(h.ready) == 1
    assert h.ready[0].timing == pytest.approx(0.0)
    assert h.clock.pending_count() == 0


def test_observation_deferred_until_dom_ready():
    h = Harness(DocumentSnapshot(ready_state="loading", **READY_FACTS))
    assert h.observer.observation.phase == ObserverPhase.IDLE
    h.clock.advance(1000)
    assert h.ready == []

    h.page.fire_dom_ready()
    assert h.observer.observation.phase == ObserverPhase.READY
    assert len(h.ready) == 1
    assert h.ready[0].timing == pytest.approx(1000.0)


# --- Triggers ---

def test_poll_trigger_detects_late_readiness():
    h = Harness(blank())
    assert h.observer.observation.phase == ObserverPhase.OBSERVING

    h.clock.advance(250)
    h.page.update(**READY_FACTS)
    assert h.ready == []
    h.clock.advance(50)
    assert len(h.ready) == 1
    assert h.ready[0].timing == pytest.approx(300.0)
    assert h.page.listener_count("mutation") == 0
    assert h.clock.pending_count() == 0


def test_mutation_batch_runs_check():
    h = Harness(blank(), check_interval_ms=1000)
    h.page.mutate(records=3, **READY_FACTS)
    assert len(h.ready) == 1
    assert h.observer.observation.mutation_count == 3


def test_quiescence_sets_no_more_mutations():
    h = Harness(blank(), check_interval_ms=1000, timeout_ms=60000)
    h.page.mutate()
    h.clock.advance(400)
    h.page.mutate()
    h.clock.advance(400)
    assert h.observer.state.no_more_mutations is False  # debounce restarted
    h.clock.advance(100)
    assert h.observer.state.no_more_mutations is True
    assert h.observer.observation.mutation_count == 2


def test_quiescence_alone_can_complete_observation():
    h = Harness(blank(), check_interval_ms=5000, timeout_ms=60000)
    h.page.mutate()
    h.page.update(**READY_FACTS)

    h.clock.advance(499)
    assert h.ready == []
    h.clock.advance(1)
    assert len(h.ready) == 1
    assert h.ready[0].state.no_more_mutations is True
    assert h.observer.observation.phase == ObserverPhase.READY
    assert h.clock.pending_count() == 0


def test_load_trigger_marks_images_loaded():
    facts = dict(READY_FACTS, images=(ImageInfo(False, 0), ImageInfo(False, 0)))
    h = Harness(blank(**facts), check_interval_ms=1000)
    assert h.ready == []

    h.page.fire_load()
    assert h.observer.state.images_loaded is True
    assert len(h.ready) == 1


def test_load_before_observing_is_remembered():
    facts = dict(READY_FACTS, images=(ImageInfo(False, 0),))
    h = Harness(DocumentSnapshot(ready_state="loading", **facts))
    h.page.fire_load()
    assert h.ready == []
    h.page.fire_dom_ready()
    assert len(h.ready) == 1


# --- One-shot ---

def test_ready_fires_once_across_triggers():
    h = Harness(blank())
    h.page.update(**READY_FACTS)
    h.page.mutate()
    h.page.fire_load()
    h.clock.advance(5000)
    h.observer.control.force_ready()
    assert len(h.ready) == 1
    assert h.observer.ready_emitted is True


def test_force_ready_emits_with_incomplete_state():
    h = Harness(blank())
    h.observer.control.force_ready()
    assert len(h.ready) == 1
    assert h.ready[0].state.framework_detected is False
    assert h.observer.observation.phase == ObserverPhase.READY
    assert h.clock.pending_count() == 0


# --- Timeout policy ---

def test_timeout_without_framework_stays_silent():
    h = Harness(blank(), timeout_ms=1000, check_interval_ms=100)
    h.clock.advance(1000)
    assert h.observer.observation.phase == ObserverPhase.STOPPED
    assert h.observer.observation.poll_count == 10

    h.page.mutate(**READY_FACTS)
    h.page.fire_load()
    h.clock.advance(10000)
    assert h.ready == []
    # the probe still answers, but nothing is emitted
    assert h.observer.control.force_check() is True
    assert h.ready == []


def test_timeout_never_ready_probe_returns_false():
    h = Harness(blank(), timeout_ms=1000, check_interval_ms=100)
    h.clock.advance(1200)
    assert h.ready == []
    assert h.observer.control.force_check() is False


def test_timeout_with_framework_forces_ready():
    h = Harness(blank(has_framework_data=True, images=(ImageInfo(False, 0),)), timeout_ms=500, check_interval_ms=100)
    h.clock.advance(400)
    assert h.ready == []
    h.clock.advance(100)
    assert len(h.ready) == 1
    event = h.ready[0]
    assert event.state.framework_detected is True
    assert event.state.content_loaded is False
    assert event.state.images_loaded is False
    assert event.timing == pytest.approx(500.0)

    h.clock.advance(5000)
    assert len(h.ready) == 1


def test_ready_event_carries_snapshot_not_live_state():
    h = Harness(blank(**READY_FACTS))
    h.observer.state.current_route = "/elsewhere"
    assert h.ready[0].state.current_route == "/"
