from typing import Any, Callable, Dict, List, Optional

from nextwatch.core.interfaces.subscription import CallbackSubscription, Subscription
from nextwatch.core.observability.event_sink import ObserverEventSink
from nextwatch.core.observability.structured_logger import StructuredObserverLogger


EventHandler = Callable[[Any], None]


class EventBus:
    """
    Publish/subscribe keyed by event name.

    Handlers run synchronously in subscription order. A failing handler is
    logged and skipped; it never stops delivery to the others or reaches the
    publisher.
    """

    def __init__(self, logger: Optional[StructuredObserverLogger] = None):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._sinks: List[ObserverEventSink] = []
        self._logger = logger or StructuredObserverLogger()

    def subscribe(self, name: str, handler: EventHandler) -> Subscription:
        self._handlers.setdefault(name, []).append(handler)

        def _remove():
            handlers = self._handlers.get(name, [])
            if handler in handlers:
                handlers.remove(handler)

        return CallbackSubscription(_remove)

    def attach_sink(self, sink: ObserverEventSink) -> Subscription:
        self._sinks.append(sink)

        def _detach():
            if sink in self._sinks:
                self._sinks.remove(sink)

        return CallbackSubscription(_detach)

    def publish(self, name: str, payload: Any) -> int:
        """Deliver to every handler. Returns the number that completed."""
        delivered = 0
        for handler in list(self._handlers.get(name, [])):
            try:
                handler(payload)
                delivered += 1
            except Exception as exc:
                self._logger.failure("EVENT_HANDLER_FAILED", exc, event=name)
        for sink in list(self._sinks):
            try:
                sink.on_event(name, payload)
            except Exception as exc:
                self._logger.failure("EVENT_SINK_FAILED", exc, event=name)
        return delivered

    def handler_count(self, name: str) -> int:
        return len(self._handlers.get(name, []))
