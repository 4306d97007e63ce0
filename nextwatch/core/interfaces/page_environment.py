from abc import ABC, abstractmethod
from typing import Callable

from nextwatch.core.domain.document_snapshot import DocumentSnapshot
from nextwatch.core.interfaces.subscription import Subscription


# Router notification kinds passed to ``on_router_event`` listeners.
ROUTER_CHANGE_START = "routeChangeStart"
ROUTER_CHANGE_COMPLETE = "routeChangeComplete"
ROUTER_CHANGE_ERROR = "routeChangeError"

# History entry points reported to ``on_history_change`` listeners.
HISTORY_PUSH = "pushState"
HISTORY_REPLACE = "replaceState"

MutationListener = Callable[[int], None]
RouterListener = Callable[[str, str], None]
HistoryListener = Callable[[str], None]


class PageEnvironment(ABC):
    """
    Boundary between the observer and the page it watches.

    The observer reads the document only through ``snapshot`` and learns about
    change only through the listener registrations below. Listeners are called
    on the observer's event loop, never concurrently.
    """

    @abstractmethod
    def snapshot(self) -> DocumentSnapshot:
        """
        Current document facts.
        Raises SnapshotUnavailable when the document cannot be read.
        """
        pass

    @abstractmethod
    def is_loading(self) -> bool:
        """True while the document is still being parsed."""
        pass

    @abstractmethod
    def current_location(self) -> str:
        """Path plus query string of the current document location."""
        pass

    @abstractmethod
    def on_dom_ready(self, listener: Callable[[], None]) -> Subscription:
        pass

    @abstractmethod
    def on_load(self, listener: Callable[[], None]) -> Subscription:
        """Terminal "all resources fetched" event."""
        pass

    @abstractmethod
    def observe_mutations(self, listener: MutationListener) -> Subscription:
        """
        Subtree child-list changes under the document root.
        The listener receives the number of mutation records in the batch.
        """
        pass

    @abstractmethod
    def on_router_event(self, listener: RouterListener) -> Subscription:
        """Client-router notifications as ``(kind, url)``."""
        pass

    @abstractmethod
    def on_popstate(self, listener: Callable[[], None]) -> Subscription:
        pass

    @abstractmethod
    def on_history_change(self, listener: HistoryListener) -> Subscription:
        """
        Calls to the history push/replace entry points, reported with the entry
        point name after the call returned.
        """
        pass
