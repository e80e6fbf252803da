from __future__ import annotations

import time
from collections import Counter, deque
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock

from .reconciler import Outcome, ReconcileResult


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class ActivityEntry:
    ts: str
    outcome: str
    container_id: str
    status: str
    record_name: str | None
    value: str | None
    action: str
    error: str
    reason: str


class RuntimeState:
    """In-memory view of recent reconciliations, shared with the HTTP API."""

    def __init__(self, history_size: int = 200) -> None:
        self.lock = Lock()
        self.started = time.monotonic()
        self.events_seen = 0
        self.last_event_at: str | None = None
        self.counts: Counter[str] = Counter()
        self.history: deque[ActivityEntry] = deque(maxlen=max(1, history_size))

    def record(self, result: ReconcileResult) -> None:
        entry = ActivityEntry(
            ts=utc_now(),
            outcome=result.outcome.value,
            container_id=result.container_id,
            status=result.status,
            record_name=result.target.record_name if result.target else None,
            value=result.target.value if result.target else None,
            action=result.action,
            error=result.error,
            reason=result.reason,
        )
        with self.lock:
            if result.status != "sync":
                self.events_seen += 1
                self.last_event_at = entry.ts
            self.counts[entry.outcome] += 1
            self.history.append(entry)

    def uptime_s(self) -> float:
        return round(time.monotonic() - self.started, 1)

    def latest(self, limit: int = 50) -> list[ActivityEntry]:
        with self.lock:
            items = list(self.history)
        return list(reversed(items))[: max(0, limit)]

    def stats(self) -> dict[str, int]:
        with self.lock:
            return {o.value: self.counts.get(o.value, 0) for o in Outcome}
