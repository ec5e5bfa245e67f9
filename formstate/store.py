"""FormStore, the reactive form-state container.

FormStore owns a single FormState record and is the only thing that mutates
it. Every mutation applies synchronously, emits a FormEvent, and then asks
the ChangeScheduler to run validation once the relevant policy flag
(validate_on_change / validate_on_blur) holds. The flag is read when the
trigger is evaluated, not when the mutation happened, so toggling a flag
later still applies to edits made before the toggle.

Validation runs through a ValidationAdapter and writes its results back into
the errors tree. Scheduled validations are dispatched as tasks on the running
event loop; without a running loop they run to completion synchronously.

Usage:
    >>> form = FormStore(initial_values={"email": "", "username": "john.doe"})
    >>> form.set_field_value("email", "jane@example.com")
    >>> form.is_dirty
    True
    >>> form.reset()
    >>> form.values
    {'email': '', 'username': 'john.doe'}
"""

import asyncio
import inspect
import logging
from copy import deepcopy
from typing import Any, Dict, Optional, Set, Tuple

from formstate.coercion import value_for_checkbox
from formstate.config import FormOptions, SubmitHandler
from formstate.errors import AdapterDiagnostic
from formstate.events import EventEmitter, FormEvent
from formstate.paths import (
    delete_and_prune,
    expand_paths,
    get_in,
    normalize_path,
    prune_empty,
    set_in,
)
from formstate.scheduler import ChangeScheduler, Predicate
from formstate.state import FieldMeta, FormState, ResetState, derive_field_status
from formstate.types import EventType, FieldStatus, FormStatus, InputType
from formstate.validation import ValidationAdapter, ValidationOutcome

logger = logging.getLogger(__name__)


class FormStore:
    """Reactive state container for one form instance.

    Attributes:
        options: The configuration this store was built from
        events: Emitter a binding layer subscribes to for change notifications

    Examples:
        >>> schema = {
        ...     "type": "object",
        ...     "properties": {"email": {"type": "string", "minLength": 1}},
        ... }
        >>> form = FormStore(initial_values={"email": ""}, validation_schema=schema)
        >>> import asyncio
        >>> asyncio.run(form.validate())
        >>> form.is_valid
        False
    """

    def __init__(
        self,
        initial_values: Optional[Dict[str, Any]] = None,
        validation_schema: Any = None,
        validate_on_change: bool = False,
        validate_on_blur: bool = False,
        validate_on_submit: bool = True,
        on_submit: Optional[SubmitHandler] = None,
    ):
        """Initialize the store.

        Args:
            initial_values: Starting value tree; deep-copied, never mutated
            validation_schema: JSON Schema dict or schema object (see ValidationAdapter)
            validate_on_change: Validate a field after its value changes
            validate_on_blur: Validate a field after it is marked touched
            validate_on_submit: Validate the whole form before calling on_submit
            on_submit: Sync or async handler called with (values, form)
        """
        self.options = FormOptions(
            initial_values=initial_values if initial_values is not None else {},
            validation_schema=validation_schema,
            validate_on_change=validate_on_change,
            validate_on_blur=validate_on_blur,
            validate_on_submit=validate_on_submit,
            on_submit=on_submit,
        )
        self._state = FormState.from_options(self.options)
        self._adapter: Optional[ValidationAdapter] = None
        if validation_schema is not None:
            self._adapter = ValidationAdapter(validation_schema)

        self.events = EventEmitter()
        self._scheduler = ChangeScheduler()

        self._tasks: Set["asyncio.Task[None]"] = set()
        self._in_flight: Dict[Optional[str], int] = {}

    @classmethod
    def from_options(cls, options: FormOptions) -> "FormStore":
        """Create a store from a FormOptions instance."""
        return cls(
            initial_values=options.initial_values,
            validation_schema=options.validation_schema,
            validate_on_change=options.validate_on_change,
            validate_on_blur=options.validate_on_blur,
            validate_on_submit=options.validate_on_submit,
            on_submit=options.on_submit,
        )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "FormStore":
        """Create a store from a camelCase or snake_case config dict."""
        return cls.from_options(FormOptions.from_dict(config))

    # -- read access -------------------------------------------------------

    @property
    def state(self) -> FormState:
        """The live record. Read it freely; mutate it only through the store."""
        return self._state

    @property
    def values(self) -> Dict[str, Any]:
        return self._state.values

    @property
    def initial_values(self) -> Dict[str, Any]:
        return self._state.initial_values

    @property
    def errors(self) -> Dict[str, Any]:
        return self._state.errors

    @property
    def touched(self) -> Dict[str, Any]:
        return self._state.touched

    @property
    def is_submitting(self) -> bool:
        return self._state.is_submitting

    @property
    def is_validating(self) -> bool:
        return self._state.is_validating

    @property
    def submit_count(self) -> int:
        return self._state.submit_count

    @property
    def is_valid(self) -> bool:
        return self._state.is_valid

    @property
    def is_dirty(self) -> bool:
        return self._state.is_dirty

    @property
    def status(self) -> FormStatus:
        return self._state.status

    @property
    def pending_validations(self) -> int:
        """Validation tasks dispatched on the event loop and not yet finished."""
        return len(self._tasks)

    @property
    def scheduled_validations(self) -> int:
        """Validations waiting for their policy flag to be enabled."""
        return self._scheduler.pending_count

    def get_field_value(self, path: str, default: Any = None) -> Any:
        return get_in(self._state.values, path, default)

    def get_field_error(self, path: str) -> Optional[str]:
        error = get_in(self._state.errors, path)
        return error if isinstance(error, str) else None

    def is_field_touched(self, path: str) -> bool:
        return bool(get_in(self._state.touched, path))

    def field_status(self, path: str) -> FieldStatus:
        """Derived status of one field.

        A field counts as validating while a whole-form validation, or a
        validation of the field itself or one of its ancestors, is in flight.
        """
        path = normalize_path(path)
        validating = any(
            target is None or path == target or path.startswith(target + ".")
            for target in self._in_flight
        )
        error = get_in(self._state.errors, path)
        return derive_field_status(self.is_field_touched(path), error, validating)

    def field_meta(self, path: str) -> FieldMeta:
        path = normalize_path(path)
        return FieldMeta(
            path=path,
            value=self.get_field_value(path),
            error=self.get_field_error(path),
            touched=self.is_field_touched(path),
            status=self.field_status(path),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the full form state (camelCase keys)."""
        return self._state.to_dict()

    # -- policy flags ------------------------------------------------------

    @property
    def validate_on_change(self) -> bool:
        return self._state.validate_on_change

    @validate_on_change.setter
    def validate_on_change(self, enabled: bool) -> None:
        self._set_policy("validate_on_change", enabled)

    @property
    def validate_on_blur(self) -> bool:
        return self._state.validate_on_blur

    @validate_on_blur.setter
    def validate_on_blur(self, enabled: bool) -> None:
        self._set_policy("validate_on_blur", enabled)

    @property
    def validate_on_submit(self) -> bool:
        return self._state.validate_on_submit

    @validate_on_submit.setter
    def validate_on_submit(self, enabled: bool) -> None:
        self._set_policy("validate_on_submit", enabled)

    def _set_policy(self, name: str, enabled: bool) -> None:
        setattr(self._state, name, bool(enabled))
        self._emit(EventType.POLICY_CHANGED, payload={"name": name, "enabled": bool(enabled)})

    # -- mutations ---------------------------------------------------------

    def set_field_value(self, path: str, value: Any) -> None:
        """Set one value; validates ``path`` once validate_on_change holds."""
        path = normalize_path(path)
        set_in(self._state.values, path, value)
        self._emit(EventType.FIELD_VALUE_CHANGED, path, {"value": value})
        self._schedule(self._change_policy, path)

    def set_values(self, values: Dict[str, Any]) -> None:
        """Replace all values; validates the whole form once validate_on_change holds."""
        self._state.values = deepcopy(values)
        self._emit(EventType.VALUES_REPLACED)
        self._schedule(self._change_policy)

    def set_field_touched(self, path: str, is_touched: bool = True) -> None:
        """Mark one field touched; validates ``path`` once validate_on_blur holds."""
        path = normalize_path(path)
        set_in(self._state.touched, path, bool(is_touched), create_sequences=False)
        self._emit(EventType.FIELD_TOUCHED, path, {"touched": bool(is_touched)})
        self._schedule(self._blur_policy, path)

    def set_touched(self, touched: Dict[str, Any]) -> None:
        """Replace the touched tree; validates the whole form once validate_on_blur holds."""
        self._state.touched = expand_paths(touched)
        self._emit(EventType.TOUCHED_REPLACED)
        self._schedule(self._blur_policy)

    def set_errors(self, errors: Dict[str, Any]) -> None:
        """Replace the errors tree. Keys may be paths; None leaves are dropped."""
        self._state.errors = prune_empty(expand_paths(errors))
        self._emit(EventType.ERRORS_REPLACED, payload={"errors": deepcopy(self._state.errors)})

    def set_field_error(self, path: str, message: Optional[str]) -> None:
        """Set the error at ``path``, or clear it (pruning its parent) when message is None."""
        path = normalize_path(path)
        if message is not None:
            set_in(self._state.errors, path, message, create_sequences=False)
        else:
            delete_and_prune(self._state.errors, path)
        self._emit(EventType.FIELD_ERROR_CHANGED, path, {"message": message})

    def set_is_submitting(self, is_submitting: bool) -> None:
        self._state.is_submitting = bool(is_submitting)
        self._emit(EventType.SUBMITTING_CHANGED, payload={"isSubmitting": self._state.is_submitting})

    def handle_change(
        self,
        path: str,
        value: Any,
        input_type: Optional[InputType] = None,
        checked: Optional[bool] = None,
    ) -> None:
        """Apply a change coming from an input.

        Checkbox inputs derive the stored value from the current one (see
        value_for_checkbox); every other input stores ``value`` as-is.
        """
        if input_type == InputType.CHECKBOX:
            value = value_for_checkbox(self.get_field_value(path), bool(checked), value)
        self.set_field_value(path, value)

    def handle_blur(self, path: str) -> None:
        self.set_field_touched(path, True)

    def reset(self, next_state: Optional[ResetState] = None) -> None:
        """Restore values, errors and touched; clear the submitting/validating flags.

        submit_count and the policy flags are kept. In-flight validations are
        not cancelled and may still write errors when they settle.
        """
        next_state = next_state or {}
        values = next_state.get("values")
        self._state.is_validating = False
        self._state.is_submitting = False
        self._state.values = deepcopy(values if values is not None else self._state.initial_values)
        self._state.errors = prune_empty(expand_paths(next_state.get("errors") or {}))
        self._state.touched = expand_paths(next_state.get("touched") or {})
        self._emit(EventType.FORM_RESET)

    # -- validation --------------------------------------------------------

    async def validate(self, path: Optional[str] = None) -> None:
        """Validate one path, or the whole form when ``path`` is None.

        Success clears the path's errors (or the whole errors tree). Failure
        writes each reported error; a whole-form failure replaces the entire
        errors tree, even when no error names a path. An adapter diagnostic is logged and leaves the errors
        untouched. No-op when no schema is configured.
        """
        if self._adapter is None:
            return
        if path is not None:
            path = normalize_path(path)

        self._state.is_validating = True
        self._in_flight[path] = self._in_flight.get(path, 0) + 1
        self._emit(EventType.VALIDATION_STARTED, path)

        try:
            if path is None:
                outcome = await self._adapter.validate_all(self._state.values)
            else:
                outcome = await self._adapter.validate_one(path, self._state.values)
            event_type, payload = self._apply_outcome(path, outcome)
        except AdapterDiagnostic as diagnostic:
            logger.warning(
                "An unhandled error was caught during validation: %s", diagnostic, exc_info=True
            )
            event_type, payload = EventType.VALIDATION_DIAGNOSTIC, {"error": str(diagnostic)}
        finally:
            self._state.is_validating = False
            self._release(path)

        self._emit(event_type, path, payload)

    def _apply_outcome(
        self, path: Optional[str], outcome: ValidationOutcome
    ) -> Tuple[EventType, Optional[Dict[str, Any]]]:
        if outcome.is_valid:
            if path is None:
                self.set_errors({})
            else:
                self.set_field_error(path, None)
            return EventType.VALIDATION_PASSED, None

        payload = {"errors": [err.to_dict() for err in outcome.errors]}
        if not outcome.errors:
            logger.warning("Validation of %s failed without an addressable path", path or "the form")
        if path is None:
            errors: Dict[str, Any] = {}
            for err in outcome.errors:
                set_in(errors, err.path, err.message, create_sequences=False)
            self.set_errors(errors)
        else:
            for err in outcome.errors:
                self.set_field_error(err.path, err.message)
        return EventType.VALIDATION_FAILED, payload

    def _release(self, path: Optional[str]) -> None:
        remaining = self._in_flight.get(path, 0) - 1
        if remaining > 0:
            self._in_flight[path] = remaining
        else:
            self._in_flight.pop(path, None)

    async def wait_for_validations(self) -> None:
        """Wait until every dispatched validation task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # -- submission --------------------------------------------------------

    async def submit(self) -> None:
        """Validate (when validate_on_submit) and call the submit handler.

        The handler is skipped when validation leaves the form invalid.
        Exceptions from the handler propagate to the caller; is_submitting
        and submit_count are updated either way. No-op without a handler.
        """
        if self.options.on_submit is None:
            return

        self.set_is_submitting(True)
        self._emit(EventType.SUBMIT_STARTED)
        try:
            if self._state.validate_on_submit:
                await self.validate()
                if self._state.is_valid:
                    await self._call_submit_handler()
                else:
                    logger.debug("Submit handler skipped, form is invalid")
            else:
                await self._call_submit_handler()
        finally:
            self.set_is_submitting(False)
            self._state.submit_count += 1
            self._emit(EventType.SUBMIT_COMPLETED, payload={"submitCount": self._state.submit_count})

    async def _call_submit_handler(self) -> None:
        result = self.options.on_submit(self._state.values, self)
        if inspect.isawaitable(result):
            await result

    # -- lifecycle ---------------------------------------------------------

    def dispose(self) -> None:
        """Drop pending validation triggers and all subscribers."""
        self._scheduler.dispose()
        self.events.clear()

    def _emit(
        self,
        event_type: EventType,
        path: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = FormEvent.create(event_type, path=path, payload=payload)
        self.events.emit(event)
        self._scheduler.notify(event)

    def _change_policy(self) -> bool:
        return self._state.validate_on_change

    def _blur_policy(self) -> bool:
        return self._state.validate_on_blur

    def _schedule(self, predicate: Predicate, path: Optional[str] = None) -> None:
        if self._adapter is None:
            return
        self._scheduler.when(
            predicate,
            lambda: self._dispatch_validation(path),
            key=(predicate.__name__, path),
        )

    def _dispatch_validation(self, path: Optional[str]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, validating %s synchronously", path or "form")
            asyncio.run(self.validate(path))
            return

        task = loop.create_task(self.validate(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


__all__ = ["FormStore"]
