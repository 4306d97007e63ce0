import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

from nextwatch.core.observability.event_sink import ObserverEventSink


logger = logging.getLogger("nextwatch")


class JsonlEventSink(ObserverEventSink):
    """
    Sink that appends every published event to a JSONL file.
    Write failures are logged and dropped.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def _serialize(self, obj: Any) -> Any:
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if isinstance(obj, datetime):
            return obj.isoformat()
        if hasattr(obj, "value"):  # Enum
            return obj.value
        return str(obj)

    def on_event(self, name: str, payload: Any) -> None:
        entry = {
            "recorded_at": datetime.now(timezone.utc).isoformat(),
            "event": name,
            "detail": payload,
        }
        try:
            with open(self.file_path, "a") as f:
                f.write(json.dumps(entry, default=self._serialize) + "\n")
        except OSError as exc:
            logger.warning("Event sink write failed (%s): %s", self.file_path, exc)
