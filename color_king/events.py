"""Append-only events stream."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

from .utils import now_utc_iso, sanitize_payload


@dataclass
class EventWriter:
    path: Path
    session_id: str
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, init=False)

    def emit(self, event_type: str, **payload: Any) -> dict[str, Any]:
        event = {
            "type": event_type,
            "session_id": self.session_id,
            "ts": now_utc_iso(),
        }
        event.update(sanitize_payload(payload))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = f"{json.dumps(event)}\n"
        with self._lock:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line)
        return event


def emit_event(events: EventWriter | None, event_type: str, **payload: Any) -> None:
    if events is None:
        return
    events.emit(event_type, **payload)
