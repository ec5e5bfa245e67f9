"""Change notifications for formstate.

Every mutating FormStore operation emits a FormEvent through the store's
EventEmitter. A binding layer subscribes here to re-render, and the store's
own ChangeScheduler subscribes to re-evaluate pending validation triggers.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from formstate.types import EventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single state change.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_1f0c...")
        type: Event type from EventType enum
        ts: UTC timestamp when the change was applied
        path: Canonical path the change applies to, or None for form-wide changes
        payload: Optional event-specific data (new value, error message...)

    Examples:
        >>> event = FormEvent.create(EventType.FIELD_TOUCHED, path="email", payload={"touched": True})
        >>> event.type
        <EventType.FIELD_TOUCHED: 'field.touched'>
    """
    event_id: str
    type: EventType
    ts: datetime
    path: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, "type", EventType(self.type))

    @classmethod
    def create(
        cls,
        event_type: EventType,
        path: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> "FormEvent":
        """Create an event stamped with a fresh id and the current UTC time."""
        return cls(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            ts=datetime.now(timezone.utc),
            path=path,
            payload=payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "ts": self.ts.isoformat(),
        }
        if self.path is not None:
            result["path"] = self.path
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to a single line of JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from dictionary (camelCase keys)."""
        return cls(
            event_id=data["eventId"],
            type=EventType(data["type"]),
            ts=date_parser.isoparse(data["ts"]),
            path=data.get("path"),
            payload=data.get("payload"),
        )


EventListener = Callable[[FormEvent], None]


class EventEmitter:
    """Observer registry dispatching FormEvents synchronously.

    Type-specific listeners run before wildcard listeners, each group in
    registration order. A listener that raises is logged and does not stop
    the others.

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on_any(seen.append)
        >>> emitter.emit(FormEvent.create(EventType.FORM_RESET))
        >>> len(seen)
        1
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe a wildcard listener. Unknown listeners are ignored."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to all registered listeners."""
        listeners = list(self._listeners.get(event.type, [])) + list(self._any_listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed while handling %s", listener, event.type.value)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Count listeners for one type, or all listeners including wildcards."""
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(items) for items in self._listeners.values())


__all__ = [
    "FormEvent",
    "EventListener",
    "EventEmitter",
]
