import pytest

from nextwatch.core.domain.document_snapshot import DocumentSnapshot, ImageInfo, PaintEntry
from nextwatch.core.domain.events import RouteChangeEvent, RouteLoadEvent
from nextwatch.core.domain.exceptions import EnvironmentUnavailable
from nextwatch.core.domain.observation_state import (
    APPLICATION_SIGNALS,
    ROUTE_SENSITIVE_SIGNALS,
    SIGNALS,
    ObservationState,
)


def test_mark_only_moves_forward():
    state = ObservationState()
    assert state.mark("content_loaded") is True
    assert state.mark("content_loaded") is False
    assert state.content_loaded is True


def test_mark_rejects_unknown_signal():
    with pytest.raises(KeyError):
        ObservationState().mark("current_route")


def test_reset_for_route_keeps_application_facts():
    state = ObservationState()
    for signal in SIGNALS:
        state.mark(signal)
    state.reset_for_route()
    assert all(getattr(state, s) for s in APPLICATION_SIGNALS)
    assert not any(getattr(state, s) for s in ROUTE_SENSITIVE_SIGNALS)


def test_snapshot_is_detached():
    state = ObservationState(current_route="/a")
    copy = state.snapshot()
    state.mark("framework_detected")
    state.current_route = "/b"
    assert copy.framework_detected is False
    assert copy.current_route == "/a"


def test_wire_shape():
    state = ObservationState(current_route="/x", previous_route="/")
    assert state.to_dict() == {
        "frameworkDetected": False,
        "contentLoaded": False,
        "scriptsLoaded": False,
        "imagesLoaded": False,
        "noMoreMutations": False,
        "firstPaint": False,
        "routeChangeInProgress": False,
        "currentRoute": "/x",
        "previousRoute": "/",
    }


def test_route_event_payloads():
    change = RouteChangeEvent(from_route="/", to_route="/docs", timestamp=42)
    assert change.to_dict() == {"from": "/", "to": "/docs", "timestamp": 42}

    load = RouteLoadEvent(route="/docs", timestamp=43, timing=12.5, state=ObservationState(current_route="/docs"))
    assert load.to_dict()["state"]["currentRoute"] == "/docs"
    assert load.to_dict()["timing"] == 12.5


def test_snapshot_from_page_record():
    doc = DocumentSnapshot.from_dict({
        "readyState": "interactive",
        "location": "/shop?page=2",
        "hasFrameworkData": True,
        "scriptSources": ["https://app.test/_next/static/x/main.js"],
        "metaGenerator": None,
        "hasBody": True,
        "containerTextLengths": [12, 400],
        "bodyChildCount": 2,
        "images": [{"complete": True, "naturalHeight": 20}, {"complete": False, "naturalHeight": 0}],
        "paintEntries": [{"name": "first-contentful-paint", "startTime": 88.2}],
        "somethingNew": 1,
    })
    assert doc.is_loading is False
    assert doc.location == "/shop?page=2"
    assert doc.container_text_lengths == (12, 400)
    assert doc.images == (ImageInfo(True, 20), ImageInfo(False, 0))
    assert doc.first_contentful_paint() == PaintEntry("first-contentful-paint", 88.2)


def test_snapshot_without_paint_timing():
    doc = DocumentSnapshot.from_dict({"paintEntries": None})
    assert doc.is_loading is True
    with pytest.raises(EnvironmentUnavailable):
        doc.first_contentful_paint()


def test_signal_groups_partition_all_signals():
    assert set(APPLICATION_SIGNALS) | set(ROUTE_SENSITIVE_SIGNALS) == set(SIGNALS)
    assert not set(APPLICATION_SIGNALS) & set(ROUTE_SENSITIVE_SIGNALS)
