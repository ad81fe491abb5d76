"""
SelfID — Identity Event Bus

The observable surface of an identity instance. Every state change an
instance commits is announced here exactly once; nothing is emitted
speculatively and nothing is re-emitted.

Subscribers are plain callables invoked synchronously in registration
order. A subscriber that raises is logged and skipped so that observers can
never abort the operation that produced the event.
"""

from __future__ import annotations

import enum
from collections import Counter, defaultdict, deque
from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog
from pydantic import Field

from selfid.primitives.common import SelfIDBaseModel, new_id, utc_now

logger = structlog.get_logger("selfid.identity.events")

_DEFAULT_BUFFER_SIZE: int = 100


class IdentityEventType(enum.StrEnum):
    """All event types emitted by identity instances and the factory."""

    # Keys
    KEY_ADDED = "key_added"
    KEY_REMOVED = "key_removed"

    # Service endpoints
    SERVICE_ADDED = "service_added"
    SERVICE_REMOVED = "service_removed"

    # Execution approval
    EXECUTION_REQUESTED = "execution_requested"
    APPROVED = "approved"
    EXECUTED = "executed"
    EXECUTION_FAILED = "execution_failed"
    THRESHOLD_CHANGED = "threshold_changed"

    # Assets
    RECEIVED_NATIVE = "received_native"
    WITHDRAWN_NATIVE = "withdrawn_native"
    WITHDRAWN_TOKEN = "withdrawn_token"

    # Factory
    IDENTITY_CREATED = "identity_created"


class IdentityEvent(SelfIDBaseModel):
    """A typed event emitted by an identity instance."""

    id: str = Field(default_factory=new_id)
    event_type: IdentityEventType
    source: str = ""
    timestamp: datetime = Field(default_factory=utc_now)
    data: dict[str, Any] = Field(default_factory=dict)


EventCallback = Callable[[IdentityEvent], None]


class EventBus:
    """
    Per-instance event log with in-memory subscribers.

    Keeps a ring buffer of recent events per type and an exact per-type
    emission count for auditing.
    """

    def __init__(self, source: str = "", buffer_size: int = _DEFAULT_BUFFER_SIZE) -> None:
        self._source = source
        self._subscribers: dict[IdentityEventType, list[EventCallback]] = defaultdict(list)
        self._global_subscribers: list[EventCallback] = []
        self._recent: dict[IdentityEventType, deque[IdentityEvent]] = defaultdict(
            lambda: deque(maxlen=buffer_size)
        )
        self._counts: Counter[IdentityEventType] = Counter()
        self._total_callback_errors: int = 0
        self._logger = logger.bind(component="event_bus")

    @property
    def source(self) -> str:
        return self._source

    def bind_source(self, source: str) -> None:
        """Set the address stamped on events emitted from now on."""
        self._source = source
        self._logger = logger.bind(component="event_bus", source=source)

    # ─── Subscription ────────────────────────────────────────────────

    def subscribe(self, event_type: IdentityEventType, callback: EventCallback) -> None:
        """Register a callback for a specific event type."""
        self._subscribers[event_type].append(callback)

    def subscribe_all(self, callback: EventCallback) -> None:
        """Register a callback that receives every event."""
        self._global_subscribers.append(callback)

    # ─── Emission ────────────────────────────────────────────────────

    def emit(self, event_type: IdentityEventType, **data: Any) -> IdentityEvent:
        """Record an event and fan it out to subscribers."""
        event = IdentityEvent(event_type=event_type, source=self._source, data=data)
        self._counts[event_type] += 1
        self._recent[event_type].append(event)

        callbacks = list(self._subscribers.get(event_type, []))
        callbacks.extend(self._global_subscribers)
        for callback in callbacks:
            try:
                callback(event)
            except Exception as exc:
                self._total_callback_errors += 1
                self._logger.error(
                    "event_callback_error",
                    event_type=event_type.value,
                    callback=getattr(callback, "__name__", str(callback)),
                    error=str(exc),
                )
        return event

    # ─── Queries ─────────────────────────────────────────────────────

    def recent(self, event_type: IdentityEventType, limit: int | None = None) -> list[IdentityEvent]:
        """Most recent events of one type, oldest first."""
        events = list(self._recent.get(event_type, ()))
        if limit is not None:
            events = events[-limit:]
        return events

    def last(self, event_type: IdentityEventType) -> IdentityEvent | None:
        buffer = self._recent.get(event_type)
        return buffer[-1] if buffer else None

    def count(self, event_type: IdentityEventType) -> int:
        """Exact number of events of this type ever emitted."""
        return self._counts[event_type]

    @property
    def total_emitted(self) -> int:
        return sum(self._counts.values())

    @property
    def callback_errors(self) -> int:
        return self._total_callback_errors
