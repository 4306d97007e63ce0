import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredObserverLogger:
    """
    JSON-lines logger for observer milestones.
    Silent unless enabled (the observer's ``debug`` option).
    """

    def __init__(self, logger: Optional[logging.Logger] = None, enabled: bool = True):
        self._logger = logger or logging.getLogger("nextwatch")
        self.enabled = enabled

    def emit(self, event_type: str, message: str = "", **fields: Any) -> None:
        if not self.enabled:
            return
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        if message:
            payload["message"] = message
        payload.update(fields)
        self._logger.info(json.dumps(payload, default=str, ensure_ascii=True))

    def failure(self, event_type: str, error: BaseException, **fields: Any) -> None:
        """Record an isolated failure. Emitted at WARNING even when debug is off."""
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "error": f"{type(error).__name__}: {error}",
        }
        payload.update(fields)
        self._logger.warning(json.dumps(payload, default=str, ensure_ascii=True))
