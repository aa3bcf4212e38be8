"""JSONL event log for orchestrator runs."""

from __future__ import annotations

import json
import threading
import time
import uuid

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


def new_run_id() -> str:
    ts = time.strftime("%Y%m%d_%H%M%S")
    short = uuid.uuid4().hex[:8]
    return f"run_{ts}_{short}"


@dataclass
class EventRecord:
    kind: str
    data: Dict[str, Any]
    run_id: str
    ts: float = field(default_factory=time.time)

    def to_json_line(self) -> str:
        payload = {
            "ts": self.ts,
            "run_id": self.run_id,
            "kind": self.kind,
            "data": self.data,
        }
        return json.dumps(payload, ensure_ascii=False, default=str)


class RunEventLog:
    """Appends one JSON line per event; keeps an in-memory copy as well.

    With ``path=None`` events are only kept in memory.
    """

    def __init__(self, path: Optional[Path] = None, *, run_id: str) -> None:
        self.path = Path(path) if path is not None else None
        self.run_id = run_id
        self._lock = threading.Lock()
        self._records: List[EventRecord] = []
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def record(self, kind: str, **data: Any) -> EventRecord:
        event = EventRecord(kind=kind, data=data, run_id=self.run_id)
        with self._lock:
            self._records.append(event)
            if self.path is not None:
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(event.to_json_line() + "\n")
        return event

    @property
    def records(self) -> List[EventRecord]:
        with self._lock:
            return list(self._records)

    def kinds(self) -> List[str]:
        return [event.kind for event in self.records]
