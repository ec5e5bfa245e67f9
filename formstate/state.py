"""The FormState record and status derivation.

FormState is the single mutable record behind a FormStore. Only the store
writes to it; everything derived from it (is_valid, is_dirty, statuses) is
computed on read so it can never go stale.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from typing_extensions import NotRequired, TypedDict

from formstate.config import FormOptions
from formstate.paths import count_leaves, deep_equal
from formstate.types import FieldStatus, FormStatus


class ResetState(TypedDict):
    """Partial state accepted by FormStore.reset()."""
    values: NotRequired[Dict[str, Any]]
    errors: NotRequired[Dict[str, Any]]
    touched: NotRequired[Dict[str, Any]]


def derive_form_status(is_submitting: bool, is_validating: bool) -> FormStatus:
    """Status of the whole form; submitting wins over validating."""
    if is_submitting:
        return FormStatus.SUBMITTING
    if is_validating:
        return FormStatus.VALIDATING
    return FormStatus.IDLE


def derive_field_status(touched: bool, error: Optional[str], validating: bool) -> FieldStatus:
    """Status of one field.

    Examples:
        >>> derive_field_status(touched=True, error="Required", validating=False)
        <FieldStatus.TOUCHED_INVALID: 'touched_invalid'>
        >>> derive_field_status(touched=False, error="Required", validating=False)
        <FieldStatus.PRISTINE: 'pristine'>
    """
    if validating:
        return FieldStatus.VALIDATING
    if not touched:
        return FieldStatus.PRISTINE
    if error is not None:
        return FieldStatus.TOUCHED_INVALID
    return FieldStatus.TOUCHED_VALID


@dataclass(frozen=True)
class FieldMeta:
    """Read-only view of one field, as a binding layer would render it."""
    path: str
    value: Any
    error: Optional[str]
    touched: bool
    status: FieldStatus


@dataclass
class FormState:
    """Values, errors and touched trees plus the form's flags.

    Attributes:
        values: Current value tree
        initial_values: Snapshot taken at construction, never mutated
        errors: Nested error messages, same path space as values
        touched: Nested booleans, same path space as values
        is_submitting: A submit() call is in flight
        is_validating: A validate() call is in flight
        submit_count: Number of completed submit() calls
        validate_on_change: Policy flag, validate after value changes
        validate_on_blur: Policy flag, validate after touched changes
        validate_on_submit: Policy flag, validate before submitting
    """
    values: Dict[str, Any]
    initial_values: Dict[str, Any]
    errors: Dict[str, Any] = field(default_factory=dict)
    touched: Dict[str, Any] = field(default_factory=dict)
    is_submitting: bool = False
    is_validating: bool = False
    submit_count: int = 0
    validate_on_change: bool = False
    validate_on_blur: bool = False
    validate_on_submit: bool = True

    @classmethod
    def from_options(cls, options: FormOptions) -> "FormState":
        """Create a fresh state; the caller's initial values are deep-copied."""
        return cls(
            values=deepcopy(options.initial_values),
            initial_values=deepcopy(options.initial_values),
            validate_on_change=options.validate_on_change,
            validate_on_blur=options.validate_on_blur,
            validate_on_submit=options.validate_on_submit,
        )

    @property
    def is_valid(self) -> bool:
        return count_leaves(self.errors) == 0

    @property
    def is_dirty(self) -> bool:
        return not deep_equal(self.values, self.initial_values)

    @property
    def status(self) -> FormStatus:
        return derive_form_status(self.is_submitting, self.is_validating)

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the whole record, derived flags included (camelCase keys)."""
        return {
            "values": deepcopy(self.values),
            "initialValues": deepcopy(self.initial_values),
            "errors": deepcopy(self.errors),
            "touched": deepcopy(self.touched),
            "isSubmitting": self.is_submitting,
            "isValidating": self.is_validating,
            "submitCount": self.submit_count,
            "isValid": self.is_valid,
            "isDirty": self.is_dirty,
            "status": self.status.value,
            "validateOnChange": self.validate_on_change,
            "validateOnBlur": self.validate_on_blur,
            "validateOnSubmit": self.validate_on_submit,
        }


__all__ = [
    "FieldMeta",
    "FormState",
    "ResetState",
    "derive_form_status",
    "derive_field_status",
]
