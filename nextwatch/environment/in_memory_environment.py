from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from nextwatch.core.domain.document_snapshot import DocumentSnapshot
from nextwatch.core.domain.exceptions import SnapshotUnavailable
from nextwatch.core.interfaces.page_environment import (
    HISTORY_PUSH,
    ROUTER_CHANGE_COMPLETE,
    ROUTER_CHANGE_START,
    HistoryListener,
    MutationListener,
    PageEnvironment,
    RouterListener,
)
from nextwatch.core.interfaces.subscription import CallbackSubscription, Subscription


class InMemoryPageEnvironment(PageEnvironment):
    """
    Scriptable page for tests and demos.
    The document is a DocumentSnapshot replaced wholesale on every change;
    the ``fire_*`` / ``navigate`` helpers play the part of the browser.
    """

    def __init__(self, document: Optional[DocumentSnapshot] = None):
        self.document = document or DocumentSnapshot()
        self.closed = False
        self._listeners: Dict[str, List[Callable[..., None]]] = {}

    # --- PageEnvironment ---

    def snapshot(self) -> DocumentSnapshot:
        if self.closed:
            raise SnapshotUnavailable("page closed")
        return self.document

    def is_loading(self) -> bool:
        return self.document.is_loading

    def current_location(self) -> str:
        return self.document.location

    def on_dom_ready(self, listener: Callable[[], None]) -> Subscription:
        return self._add("dom_ready", listener)

    def on_load(self, listener: Callable[[], None]) -> Subscription:
        return self._add("load", listener)

    def observe_mutations(self, listener: MutationListener) -> Subscription:
        return self._add("mutation", listener)

    def on_router_event(self, listener: RouterListener) -> Subscription:
        return self._add("router", listener)

    def on_popstate(self, listener: Callable[[], None]) -> Subscription:
        return self._add("popstate", listener)

    def on_history_change(self, listener: HistoryListener) -> Subscription:
        return self._add("history", listener)

    # --- Scripting ---

    def update(self, **changes: Any) -> DocumentSnapshot:
        """Change document facts without notifying anyone."""
        self.document = replace(self.document, **changes)
        return self.document

    def mutate(self, records: int = 1, **changes: Any) -> None:
        if changes:
            self.update(**changes)
        self._fire("mutation", records)

    def fire_dom_ready(self) -> None:
        if self.document.is_loading:
            self.update(ready_state="interactive")
        self._fire("dom_ready")

    def fire_load(self) -> None:
        self.update(ready_state="complete")
        self._fire("load")

    def push_state(self, location: str, entry_point: str = HISTORY_PUSH) -> None:
        self.update(location=location)
        self._fire("history", entry_point)

    def pop_state(self, location: str) -> None:
        self.update(location=location)
        self._fire("popstate")

    def router_event(self, kind: str, url: str) -> None:
        self._fire("router", kind, url)

    def router_navigate(self, url: str) -> None:
        """What the Next.js router does: start, commit the URL, complete."""
        self.router_event(ROUTER_CHANGE_START, url)
        self.push_state(url)
        self.router_event(ROUTER_CHANGE_COMPLETE, url)

    def listener_count(self, kind: str) -> int:
        return len(self._listeners.get(kind, []))

    def _add(self, kind: str, listener: Callable[..., None]) -> Subscription:
        listeners = self._listeners.setdefault(kind, [])
        listeners.append(listener)

        def _remove():
            if listener in listeners:
                listeners.remove(listener)

        return CallbackSubscription(_remove)

    def _fire(self, kind: str, *args: Any) -> None:
        for listener in list(self._listeners.get(kind, [])):
            listener(*args)
