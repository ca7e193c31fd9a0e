"""Event system for jetform.

This module provides the event data structure and the event emitter a
FormStateMachine uses to notify observers. Every state transition and
significant action (submission start, success, failure, reset, field
invalidation, discarded stale results) emits a typed FormEvent.

UI layers adapt this to their own reactivity model: subscribe once, and
re-render whenever a ``state.changed`` event arrives.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import json
import logging

from dateutil.parser import isoparse

from .types import FormEventType, FormStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single event in a form's lifecycle.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_01H8...")
        type: Event type from FormEventType
        form_id: ID of the form that emitted the event
        ts: UTC timestamp when the event occurred
        status: Form status after this event
        payload: Optional event-specific data (error details, field names)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=FormEventType.FORM_RESET,
        ...     form_id="login",
        ...     ts=datetime.now(timezone.utc),
        ...     status=FormStatus.IDLE,
        ... )
        >>> event.to_dict()["type"]
        'form.reset'
    """
    event_id: str
    type: FormEventType
    form_id: str
    ts: datetime
    status: FormStatus
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Normalize string enums."""
        if isinstance(self.type, str) and not isinstance(self.type, FormEventType):
            object.__setattr__(self, "type", FormEventType(self.type))
        if isinstance(self.status, str) and not isinstance(self.status, FormStatus):
            object.__setattr__(self, "status", FormStatus(self.status))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Returns:
            Dictionary with all event fields, suitable for JSON serialization.
            Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "formId": self.form_id,
            "ts": self.ts.isoformat(),
            "status": self.status.value,
        }
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to a single-line JSON string."""
        return json.dumps(self.to_dict(), separators=(',', ':'), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from dictionary (camelCase keys)."""
        return cls(
            event_id=data["eventId"],
            type=FormEventType(data["type"]),
            form_id=data["formId"],
            ts=isoparse(data["ts"]),
            status=FormStatus(data["status"]),
            payload=data.get("payload"),
        )


EventListener = Callable[[FormEvent], None]
"""Type alias for event listener callbacks.

Event listeners are called synchronously when events are emitted.
"""


class EventEmitter:
    """Event emitter for managing event listeners and dispatching events.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (a failing listener is logged, others still run)

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(FormEventType.FORM_RESET, seen.append)
        >>> emitter.listener_count(FormEventType.FORM_RESET)
        1
    """

    def __init__(self):
        """Initialize event emitter with empty listener registries."""
        self._listeners: Dict[FormEventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: FormEventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types (wildcard subscription)."""
        self._any_listeners.append(listener)

    def off(self, event_type: FormEventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type.

        Removing a listener that was never registered is a no-op.
        """
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe from the wildcard subscription."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to all registered listeners.

        Listeners are called synchronously in registration order:
        1. Type-specific listeners for this event type
        2. Wildcard listeners (subscribed to all events)

        A listener that raises is logged and skipped so it cannot affect
        other listeners or the emitting state machine.
        """
        listeners = list(self._listeners.get(event.type, ())) + list(self._any_listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener %r failed on %s event for form %s",
                    listener,
                    event.type.value,
                    event.form_id,
                )

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[FormEventType] = None) -> int:
        """Count registered listeners.

        Args:
            event_type: If provided, count listeners for this type only.
                        If None, count all listeners (including wildcard).
        """
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        total = len(self._any_listeners)
        for listeners in self._listeners.values():
            total += len(listeners)
        return total


__all__ = [
    "FormEvent",
    "FormEventType",
    "EventListener",
    "EventEmitter",
]
