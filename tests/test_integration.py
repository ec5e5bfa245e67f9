"""Integration tests for complete form lifecycles.

Tests cover end-to-end scenarios combining:
- FormStore mutations inside a running event loop
- Policy-driven validation dispatched as tasks
- JSON Schema and custom async schemas through the adapter
- Submission, reset and the event stream a binding layer would consume
"""

import asyncio
import json

from formstate import FormStore
from formstate.types import EventType, FieldStatus, FormStatus

EMAIL_IS_REQUIRED = "Email is required"
EMAIL_INVALID = "Email is invalid"

SIGNUP_SCHEMA = {
    "type": "object",
    "properties": {
        "email": {
            "type": "string",
            "minLength": 1,
            "format": "email",
            "errorMessage": {"minLength": EMAIL_IS_REQUIRED, "format": EMAIL_INVALID},
        },
        "username": {"type": "string", "maxLength": 16},
        "social": {
            "type": "object",
            "properties": {"twitter": {"type": "string", "maxLength": 15}},
        },
    },
    "required": ["email"],
}


def signup_form(**kwargs):
    kwargs.setdefault("initial_values", {"email": "", "username": "john.doe"})
    return FormStore(validation_schema=SIGNUP_SCHEMA, **kwargs)


class SlowSchema:
    """Async schema that yields to the loop before answering."""

    def __init__(self, delay=0.01):
        self.delay = delay
        self.calls = []

    async def validate(self, values, abort_early=True):
        self.calls.append(None)
        await asyncio.sleep(self.delay)

    async def validate_at(self, path, values):
        self.calls.append(path)
        await asyncio.sleep(self.delay)


class TestSignupScenarios:
    """Signup form walkthroughs."""

    def test_whole_form_validation_on_empty_email(self):
        """Should report the required email and nothing else."""
        form = signup_form()
        asyncio.run(form.validate())
        assert form.errors == {"email": EMAIL_IS_REQUIRED}
        assert form.is_valid is False
        assert form.is_validating is False

    def test_change_validation_in_event_loop(self):
        """Should dispatch a task per change and write the result when it settles."""

        async def main():
            form = signup_form(validate_on_change=True)
            form.set_field_value("email", "invalid.email")
            assert form.pending_validations == 1
            await form.wait_for_validations()
            return form

        form = asyncio.run(main())
        assert form.errors == {"email": EMAIL_INVALID}
        assert form.pending_validations == 0

    def test_blur_validation_only_touches_blurred_field(self):
        """Should validate the touched path without reporting other fields."""

        async def main():
            form = signup_form(
                initial_values={"email": "", "username": "x" * 20},
                validate_on_blur=True,
            )
            form.handle_blur("email")
            await form.wait_for_validations()
            return form

        form = asyncio.run(main())
        assert form.errors == {"email": EMAIL_IS_REQUIRED}
        assert form.field_status("email") is FieldStatus.TOUCHED_INVALID
        assert form.field_status("username") is FieldStatus.PRISTINE

    def test_reset_after_edits(self):
        """Should return to the initial values and keep the submit count."""

        async def main():
            form = signup_form(validate_on_change=True, on_submit=lambda v, f: None)
            form.set_field_value("email", "invalid.email")
            form.set_field_value("social.twitter", "@jane")
            form.handle_blur("email")
            await form.wait_for_validations()
            await form.submit()
            form.reset()
            return form

        form = asyncio.run(main())
        assert form.values == {"email": "", "username": "john.doe"}
        assert form.errors == {}
        assert form.touched == {}
        assert form.is_dirty is False
        assert form.submit_count == 1

    def test_invalid_submit_skips_handler(self):
        """Should validate, skip the handler and still count the submit."""
        calls = []
        form = signup_form(on_submit=lambda v, f: calls.append(v))
        asyncio.run(form.submit())
        assert calls == []
        assert form.errors == {"email": EMAIL_IS_REQUIRED}
        assert form.submit_count == 1
        assert form.is_submitting is False
        assert form.status is FormStatus.IDLE

    def test_fix_and_resubmit(self):
        """Should call the handler once the errors are fixed."""
        submitted = []

        async def on_submit(values, form):
            submitted.append(dict(values))

        async def main():
            form = signup_form(validate_on_change=True, on_submit=on_submit)
            await form.submit()
            form.set_field_value("email", "jane@example.com")
            await form.wait_for_validations()
            assert form.errors == {}
            await form.submit()
            return form

        form = asyncio.run(main())
        assert submitted == [{"email": "jane@example.com", "username": "john.doe"}]
        assert form.submit_count == 2


class TestSchedulingInEventLoop:
    """Policy flags and concurrent validations under a running loop."""

    def test_enabling_flag_dispatches_pending_validations(self):
        """Should run validations for edits made while the flag was off."""

        async def main():
            form = signup_form()
            form.set_field_value("email", "invalid.email")
            form.set_field_value("social.twitter", "x" * 20)
            await asyncio.sleep(0)
            assert form.errors == {}
            assert form.scheduled_validations == 2
            form.validate_on_change = True
            assert form.pending_validations == 2
            await form.wait_for_validations()
            return form

        form = asyncio.run(main())
        assert form.errors == {
            "email": EMAIL_INVALID,
            "social": {"twitter": "social.twitter must be at most 15 characters"},
        }

    def test_concurrent_validations_settle_independently(self):
        """Should clear one field's error without touching another's."""

        async def main():
            form = signup_form(validate_on_change=True)
            form.set_errors({"email": "stale", "username": "stale"})
            form.set_field_value("email", "jane@example.com")
            form.set_field_value("username", "x" * 20)
            await form.wait_for_validations()
            return form

        form = asyncio.run(main())
        assert form.errors == {"username": "username must be at most 16 characters"}

    def test_is_validating_while_tasks_pending(self):
        """Should report validating until the slow schema answers."""
        schema = SlowSchema()

        async def main():
            form = FormStore(
                initial_values={"email": ""},
                validation_schema=schema,
                validate_on_change=True,
            )
            form.set_field_value("email", "a")
            await asyncio.sleep(0)
            seen = (form.is_validating, form.status, form.field_status("email"))
            await form.wait_for_validations()
            return form, seen

        form, seen = asyncio.run(main())
        assert seen == (True, FormStatus.VALIDATING, FieldStatus.VALIDATING)
        assert form.is_validating is False
        assert schema.calls == ["email"]

    def test_flag_enabled_from_listener_dispatches_pending(self):
        """Should dispatch pending validations when a listener flips the flag."""
        schema = SlowSchema()

        async def main():
            form = FormStore(initial_values={}, validation_schema=schema)

            def on_passed(event):
                if event.path == "a":
                    form.validate_on_blur = True

            form.events.on(EventType.VALIDATION_PASSED, on_passed)
            form.set_field_touched("b", True)
            await form.validate("a")
            await form.wait_for_validations()
            return form

        form = asyncio.run(main())
        assert schema.calls == ["a", "b"]
        assert form.pending_validations == 0

    def test_submit_with_validations_in_flight(self):
        """Should submit with whole-form results regardless of pending field tasks."""
        calls = []

        async def main():
            form = signup_form(validate_on_change=True, on_submit=lambda v, f: calls.append(v))
            form.set_field_value("email", "jane@example.com")
            await form.submit()
            await form.wait_for_validations()
            return form

        form = asyncio.run(main())
        assert len(calls) == 1
        assert form.errors == {}


class TestEventStream:
    """The event stream a binding layer consumes."""

    def test_event_log_is_jsonl_serializable(self):
        """Should serialize every emitted event to one JSON line."""
        lines = []
        form = signup_form(on_submit=lambda v, f: None)
        form.events.on_any(lambda event: lines.append(event.to_jsonl()))
        form.set_field_value("email", "jane@example.com")
        form.handle_blur("email")
        asyncio.run(form.submit())

        types = [json.loads(line)["type"] for line in lines]
        assert types[:2] == ["field.value_changed", "field.touched"]
        assert types[-1] == "submit.completed"
        assert "validation.passed" in types

    def test_listener_sees_updated_state(self):
        """Should emit after the mutation has been applied."""
        seen = []
        form = signup_form()
        form.events.on(
            EventType.FIELD_VALUE_CHANGED,
            lambda event: seen.append((event.path, form.get_field_value(event.path), form.is_dirty)),
        )
        form.set_field_value("friends[0]", "ann")
        assert seen == [("friends.0", "ann", True)]
