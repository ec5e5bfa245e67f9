"""Unit tests for the event system.

Tests cover:
- FormEvent creation and string enum normalization
- Serialization (to_dict, to_jsonl) and parsing (from_dict)
- EventEmitter subscriptions, ordering and listener isolation
"""

import json
import logging
from datetime import datetime, timezone

from formstate.events import EventEmitter, FormEvent
from formstate.types import EventType


class TestFormEventCreation:
    """Test FormEvent construction."""

    def test_create_stamps_id_and_time(self):
        """Should generate an id and a UTC timestamp."""
        event = FormEvent.create(EventType.FIELD_VALUE_CHANGED, path="email", payload={"value": "x"})
        assert event.event_id.startswith("evt_")
        assert event.ts.tzinfo is not None
        assert event.path == "email"
        assert event.payload == {"value": "x"}

    def test_create_generates_unique_ids(self):
        """Should not reuse event ids."""
        ids = {FormEvent.create(EventType.FORM_RESET).event_id for _ in range(50)}
        assert len(ids) == 50

    def test_string_type_normalized(self):
        """Should convert a string type to EventType."""
        event = FormEvent(event_id="evt_1", type="form.reset", ts=datetime.now(timezone.utc))
        assert event.type is EventType.FORM_RESET


class TestFormEventSerialization:
    """Test event serialization round trips."""

    def test_to_dict_omits_empty_fields(self):
        """Should leave out path and payload when unset."""
        ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        event = FormEvent(event_id="evt_1", type=EventType.FORM_RESET, ts=ts)
        assert event.to_dict() == {
            "eventId": "evt_1",
            "type": "form.reset",
            "ts": "2024-05-01T12:00:00+00:00",
        }

    def test_to_jsonl_is_single_line(self):
        """Should produce compact single-line JSON."""
        event = FormEvent.create(EventType.FIELD_ERROR_CHANGED, path="email", payload={"message": "Required"})
        line = event.to_jsonl()
        assert "\n" not in line
        assert json.loads(line)["payload"] == {"message": "Required"}

    def test_from_dict_parses_zulu_timestamps(self):
        """Should parse ISO 8601 timestamps with a Z suffix."""
        event = FormEvent.from_dict({
            "eventId": "evt_9",
            "type": "field.touched",
            "ts": "2024-05-01T12:00:00Z",
            "path": "email",
            "payload": {"touched": True},
        })
        assert event.type is EventType.FIELD_TOUCHED
        assert event.ts == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert event.payload == {"touched": True}

    def test_dict_round_trip(self):
        """Should rebuild an equal event from its dict form."""
        event = FormEvent.create(EventType.VALIDATION_FAILED, path="email", payload={"errors": []})
        assert FormEvent.from_dict(event.to_dict()) == event


class TestEventEmitter:
    """Test subscription and dispatch."""

    def test_type_listeners_before_wildcards(self):
        """Should call type-specific listeners first, then wildcard listeners."""
        emitter = EventEmitter()
        calls = []
        emitter.on_any(lambda e: calls.append("any"))
        emitter.on(EventType.FORM_RESET, lambda e: calls.append("reset"))
        emitter.emit(FormEvent.create(EventType.FORM_RESET))
        assert calls == ["reset", "any"]

    def test_only_matching_type_listeners_called(self):
        """Should not call listeners registered for other types."""
        emitter = EventEmitter()
        calls = []
        emitter.on(EventType.FIELD_TOUCHED, calls.append)
        emitter.emit(FormEvent.create(EventType.FORM_RESET))
        assert calls == []

    def test_off_and_off_any(self):
        """Should stop calling removed listeners and ignore unknown ones."""
        emitter = EventEmitter()
        calls = []
        emitter.on(EventType.FORM_RESET, calls.append)
        emitter.on_any(calls.append)
        emitter.off(EventType.FORM_RESET, calls.append)
        emitter.off_any(calls.append)
        emitter.off(EventType.FIELD_TOUCHED, calls.append)
        emitter.emit(FormEvent.create(EventType.FORM_RESET))
        assert calls == []

    def test_failing_listener_is_isolated_and_logged(self, caplog):
        """Should log a failing listener and keep dispatching."""
        emitter = EventEmitter()
        calls = []

        def broken(event):
            raise RuntimeError("listener failed")

        emitter.on(EventType.FORM_RESET, broken)
        emitter.on_any(calls.append)
        with caplog.at_level(logging.ERROR, logger="formstate.events"):
            emitter.emit(FormEvent.create(EventType.FORM_RESET))
        assert len(calls) == 1
        assert "form.reset" in caplog.text

    def test_listener_count_and_clear(self):
        """Should count listeners per type and in total."""
        emitter = EventEmitter()
        emitter.on(EventType.FORM_RESET, print)
        emitter.on(EventType.FIELD_TOUCHED, print)
        emitter.on_any(print)
        assert emitter.listener_count(EventType.FORM_RESET) == 1
        assert emitter.listener_count() == 3
        emitter.clear()
        assert emitter.listener_count() == 0
