"""Core type definitions for the formstate engine.

This module defines the enumerations shared by the store, the event system and
the status derivation helpers:
- FormStatus: Derived status of the whole form
- FieldStatus: Derived status of a single field
- EventType: Change notifications emitted on every mutation
- InputType: Input kinds that affect how a changed value is stored

None of these states are stored; they are computed from the FormState record
on read.
"""

from enum import Enum


class FormStatus(str, Enum):
    """Status of the whole form.

    Submitting takes precedence over validating, since a submit with
    validate_on_submit enabled validates while it is submitting.
    """
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"


class FieldStatus(str, Enum):
    """Status of a single field, derived from touched, errors and in-flight validations."""
    PRISTINE = "pristine"
    TOUCHED_VALID = "touched_valid"
    TOUCHED_INVALID = "touched_invalid"
    VALIDATING = "validating"


class EventType(str, Enum):
    """Change notification types.

    Every FormStore mutation emits its change event before any validation it
    schedules is dispatched. Compound operations emit several: submit() emits
    SUBMITTING_CHANGED and SUBMIT_STARTED, then the validation events, then
    SUBMITTING_CHANGED and SUBMIT_COMPLETED.
    """
    FIELD_VALUE_CHANGED = "field.value_changed"
    VALUES_REPLACED = "values.replaced"
    FIELD_TOUCHED = "field.touched"
    TOUCHED_REPLACED = "touched.replaced"
    FIELD_ERROR_CHANGED = "field.error_changed"
    ERRORS_REPLACED = "errors.replaced"
    VALIDATION_STARTED = "validation.started"
    VALIDATION_PASSED = "validation.passed"
    VALIDATION_FAILED = "validation.failed"
    VALIDATION_DIAGNOSTIC = "validation.diagnostic"
    SUBMIT_STARTED = "submit.started"
    SUBMIT_COMPLETED = "submit.completed"
    SUBMITTING_CHANGED = "submitting.changed"
    FORM_RESET = "form.reset"
    POLICY_CHANGED = "policy.changed"


class InputType(str, Enum):
    """Input kinds understood by FormStore.handle_change."""
    TEXT = "text"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"


__all__ = [
    "FormStatus",
    "FieldStatus",
    "EventType",
    "InputType",
]
