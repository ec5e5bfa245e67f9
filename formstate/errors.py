"""Error types and structured error records for formstate.

Three kinds of failure flow through the engine:

- Validation failures: expected and recoverable. A schema reports one or more
  (path, message) pairs, carried as FieldError records and written into the
  errors tree. SchemaValidationError is the exception shape schemas raise.
- Adapter diagnostics: anything else a schema raises. Wrapped in
  AdapterDiagnostic, logged by the store and never treated as a validation
  result.
- Submit handler failures: not represented here; they propagate unchanged out
  of FormStore.submit().
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class FormStateError(Exception):
    """Base class for all formstate exceptions."""


@dataclass(frozen=True)
class FieldError:
    """A single validation error for one path.

    Attributes:
        path: Canonical dotted path (e.g., "social.twitter", "friends.0")
        message: Human-readable error description

    Examples:
        >>> err = FieldError(path="email", message="Email is required")
        >>> err.to_dict()
        {'path': 'email', 'message': 'Email is required'}
    """
    path: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"path": self.path, "message": self.message}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldError":
        """Create FieldError from dict."""
        return cls(path=data["path"], message=data["message"])


class SchemaValidationError(FormStateError):
    """Raised by a schema when values fail validation.

    Mirrors the shape the adapter recognizes on any schema object: a ``name``
    of ``"ValidationError"``, a ``message``, an optional ``path`` and a list
    of ``inner`` errors (one per invalid leaf for whole-form validation).

    Attributes:
        message: Summary message, or the leaf message for a single-path error
        path: Path of the failing value, in bracket-index or dotted notation
        inner: Nested per-leaf errors, each itself a SchemaValidationError
    """

    name = "ValidationError"

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        inner: Optional[List["SchemaValidationError"]] = None,
    ):
        self.message = message
        self.path = path
        self.inner = list(inner or [])
        super().__init__(message)

    @property
    def errors(self) -> List[str]:
        """All leaf messages, in order."""
        if self.inner:
            return [err.message for err in self.inner]
        return [self.message]


class AdapterDiagnostic(FormStateError):
    """Raised when a schema fails with something other than a validation error.

    Attributes:
        original: The exception the schema raised
        path: The path being validated, or None for whole-form validation
    """

    def __init__(self, original: BaseException, path: Optional[str] = None):
        self.original = original
        self.path = path
        target = f"'{path}'" if path else "the whole form"
        super().__init__(
            f"Unhandled {type(original).__name__} while validating {target}: {original}"
        )


__all__ = [
    "FormStateError",
    "FieldError",
    "SchemaValidationError",
    "AdapterDiagnostic",
]
