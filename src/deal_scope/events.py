"""Structured analysis events.

The orchestrator reports what it did (lookups, cache use, how rent was
reconciled) as ``AnalysisEvent`` records. Tests assert on the records; the
same events are mirrored to the ``deal_scope.events`` logger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .log import kv

log = logging.getLogger(__name__)


class EventKind(str, Enum):
    LOOKUP_ATTEMPTED = "lookup_attempted"
    LOOKUP_SUCCEEDED = "lookup_succeeded"
    LOOKUP_FAILED = "lookup_failed"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    RENT_RECONCILED = "rent_reconciled"


_LEVELS: dict[EventKind, int] = {
    EventKind.LOOKUP_FAILED: logging.WARNING,
    EventKind.RENT_RECONCILED: logging.INFO,
}


@dataclass(frozen=True)
class AnalysisEvent:
    kind: EventKind
    fields: dict[str, Any]
    at: datetime = field(default_factory=datetime.utcnow)


class EventLog:
    """In-memory event sink. One per process or per test."""

    def __init__(self, max_events: int = 1000) -> None:
        self.max_events = max_events
        self._events: list[AnalysisEvent] = []

    def emit(self, kind: EventKind, **fields: Any) -> AnalysisEvent:
        event = AnalysisEvent(kind=kind, fields=fields)
        self._events.append(event)
        if len(self._events) > self.max_events:
            del self._events[: len(self._events) - self.max_events]
        log.log(_LEVELS.get(kind, logging.DEBUG), "%s %s", kind.value, kv(**fields))
        return event

    @property
    def events(self) -> list[AnalysisEvent]:
        return list(self._events)

    def of_kind(self, kind: EventKind) -> list[AnalysisEvent]:
        return [e for e in self._events if e.kind is kind]

    def clear(self) -> None:
        self._events.clear()
