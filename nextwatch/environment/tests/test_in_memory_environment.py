import pytest

from nextwatch.core.domain.document_snapshot import DocumentSnapshot
from nextwatch.core.domain.exceptions import SnapshotUnavailable
from nextwatch.core.interfaces.page_environment import (
    HISTORY_PUSH,
    HISTORY_REPLACE,
    ROUTER_CHANGE_COMPLETE,
    ROUTER_CHANGE_START,
)
from nextwatch.environment.in_memory_environment import InMemoryPageEnvironment


def test_dom_ready_and_load_advance_ready_state():
    page = InMemoryPageEnvironment()
    calls = []
    page.on_dom_ready(lambda: calls.append(("dom", page.document.ready_state)))
    page.on_load(lambda: calls.append(("load", page.document.ready_state)))

    assert page.is_loading() is True
    page.fire_dom_ready()
    page.fire_load()
    assert calls == [("dom", "interactive"), ("load", "complete")]
    assert page.is_loading() is False


def test_mutation_batches_carry_record_count():
    page = InMemoryPageEnvironment()
    batches = []
    page.observe_mutations(batches.append)
    page.mutate(records=7, body_child_count=9)
    assert batches == [7]
    assert page.snapshot().body_child_count == 9


def test_update_does_not_notify():
    page = InMemoryPageEnvironment()
    batches = []
    page.observe_mutations(batches.append)
    page.update(has_runtime=True)
    assert batches == []
    assert page.snapshot().has_runtime is True


def test_router_navigate_sequence():
    page = InMemoryPageEnvironment(DocumentSnapshot(location="/"))
    seen = []
    page.on_router_event(lambda kind, url: seen.append((kind, url, page.current_location())))
    page.on_history_change(lambda entry: seen.append((entry, page.current_location())))

    page.router_navigate("/docs")
    assert seen == [
        (ROUTER_CHANGE_START, "/docs", "/"),
        (HISTORY_PUSH, "/docs"),
        (ROUTER_CHANGE_COMPLETE, "/docs", "/docs"),
    ]


def test_history_and_popstate_update_location():
    page = InMemoryPageEnvironment()
    entries, pops = [], []
    page.on_history_change(entries.append)
    page.on_popstate(lambda: pops.append(page.current_location()))

    page.push_state("/a?x=1", entry_point=HISTORY_REPLACE)
    page.pop_state("/")
    assert entries == [HISTORY_REPLACE]
    assert pops == ["/"]


def test_cancelled_listener_is_removed():
    page = InMemoryPageEnvironment()
    batches = []
    sub = page.observe_mutations(batches.append)
    assert page.listener_count("mutation") == 1
    sub.cancel()
    page.mutate()
    assert batches == []
    assert page.listener_count("mutation") == 0


def test_closed_page_has_no_snapshot():
    page = InMemoryPageEnvironment()
    page.closed = True
    with pytest.raises(SnapshotUnavailable):
        page.snapshot()
