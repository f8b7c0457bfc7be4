"""
Debug event sinks for the Grid Carbon integration.

The provider client, aggregator and scheduler report what they do through an
injected sink (anything with a ``record(event)`` method) instead of a global
log. The coordinator wires a MemoryEventSink (kept for inspection) together
with a LoggingEventSink.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import collections
import dataclasses
import enum
import logging
from datetime import datetime, timezone
from typing import Iterable, Protocol

from .const import DEBUG_EVENT_LIMIT

_LOGGER = logging.getLogger(__name__)


class EventKind(str, enum.Enum):
    INFO = "info"
    ERROR = "error"
    NETWORK = "network"


@dataclasses.dataclass(frozen=True)
class DebugEvent:
    message: str
    kind: EventKind = EventKind.INFO
    details: str | None = None
    timestamp: datetime = dataclasses.field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class EventSink(Protocol):
    def record(self, event: DebugEvent) -> None:
        ...


class LoggingEventSink:
    """Forward events to a standard logger (errors at WARNING, the rest at DEBUG)."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _LOGGER

    def record(self, event: DebugEvent) -> None:
        level = logging.WARNING if event.kind is EventKind.ERROR else logging.DEBUG
        if event.details:
            self._logger.log(level, "[%s] %s: %s", event.kind.value, event.message, event.details)
        else:
            self._logger.log(level, "[%s] %s", event.kind.value, event.message)


class MemoryEventSink:
    """Append-only, bounded in-memory event buffer."""

    def __init__(self, limit: int = DEBUG_EVENT_LIMIT) -> None:
        self._events: collections.deque[DebugEvent] = collections.deque(maxlen=limit)

    def record(self, event: DebugEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[DebugEvent]:
        return list(self._events)

    def of_kind(self, kind: EventKind) -> list[DebugEvent]:
        return [e for e in self._events if e.kind is kind]

    def clear(self) -> None:
        self._events.clear()


class FanOutSink:
    """Deliver every event to each of the wrapped sinks, in order."""

    def __init__(self, sinks: Iterable[EventSink]) -> None:
        self._sinks = tuple(sinks)

    def record(self, event: DebugEvent) -> None:
        for sink in self._sinks:
            sink.record(event)


def record(
    sink: EventSink | None,
    message: str,
    kind: EventKind = EventKind.INFO,
    details: str | None = None,
) -> None:
    """Shorthand used by the core modules; a missing sink is a no-op."""
    if sink is None:
        return
    sink.record(DebugEvent(message=message, kind=kind, details=details))
