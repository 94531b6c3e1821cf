from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class PassResult:
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    @property
    def writes(self) -> int:
        return len(self.created) + len(self.updated) + len(self.deleted)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RuntimeState:
    """In-memory state shared by the reconciler thread and the status API."""

    def __init__(self, max_events: int = 500) -> None:
        self.lock = Lock()
        self.loop_state = "idle"  # idle|running|stopped|failed
        self.passes = 0
        self.last_started_at: str | None = None
        self.last_finished_at: str | None = None
        self.last_result: PassResult | None = None
        self.last_error: str | None = None
        self._next_event_id = 1
        self._events: deque[dict[str, Any]] = deque(maxlen=max_events)

    def log_event(self, level: str, message: str) -> None:
        with self.lock:
            self._events.append({"id": self._next_event_id, "ts": utc_now(), "level": level.upper(), "message": message})
            self._next_event_id += 1

    def latest_events(self, limit: int = 100) -> list[dict[str, Any]]:
        with self.lock:
            return list(reversed(self._events))[: max(0, limit)]

    def set_loop_state(self, state: str) -> None:
        with self.lock:
            self.loop_state = state

    def pass_started(self) -> None:
        with self.lock:
            self.passes += 1
            self.last_started_at = utc_now()

    def pass_succeeded(self, result: PassResult) -> None:
        with self.lock:
            self.last_finished_at = utc_now()
            self.last_result = result
            self.last_error = None

    def pass_failed(self, error: str, result: PassResult | None = None) -> None:
        """Record a failed pass; result holds the writes it made before failing."""
        with self.lock:
            self.last_finished_at = utc_now()
            self.last_result = result
            self.last_error = error

    def snapshot(self) -> dict[str, Any]:
        with self.lock:
            return {
                "loop_state": self.loop_state,
                "passes": self.passes,
                "last_started_at": self.last_started_at,
                "last_finished_at": self.last_finished_at,
                "last_result": self.last_result.to_dict() if self.last_result else None,
                "last_error": self.last_error,
            }
