"""Validation adapter and JSON Schema backed schema for formstate.

The store never talks to a schema library directly. It goes through
ValidationAdapter, which accepts any schema object exposing:

- ``validate(values, abort_early=False)``: validate the whole value tree
- ``validate_at(path, values)``: optional, validate a single path

Either method may be synchronous or return an awaitable. A schema signals a
validation failure by raising an exception with the recognized shape (a
``name`` of ``"ValidationError"``, a ``message``, an optional ``path`` and a
list of ``inner`` errors). Anything else it raises is an adapter diagnostic.

JsonSchemaValidator is the bundled schema object. It wraps the jsonschema
library and reports paths in bracket-index notation (``friends[0].name``),
which the adapter normalizes before results reach the errors tree.
"""

import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

import jsonschema
from jsonschema import Draft7Validator, FormatChecker

from formstate.errors import AdapterDiagnostic, FieldError, SchemaValidationError
from formstate.paths import get_in, normalize_path

# Empty strings pass; emptiness is the job of minLength or required
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

FORMAT_CHECKER = FormatChecker()


@FORMAT_CHECKER.checks("email")
def _is_email(instance: Any) -> bool:
    if not isinstance(instance, str) or instance == "":
        return True
    return EMAIL_PATTERN.match(instance) is not None


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of one adapter call.

    Attributes:
        is_valid: Whether the values passed
        errors: Field errors with canonical paths, in the order reported

    Examples:
        >>> outcome = ValidationOutcome.failure([FieldError("email", "Required")])
        >>> outcome.is_valid
        False
        >>> ValidationOutcome.success().errors
        []
    """
    is_valid: bool
    errors: List[FieldError] = field(default_factory=list)

    @classmethod
    def success(cls) -> "ValidationOutcome":
        return cls(is_valid=True)

    @classmethod
    def failure(cls, errors: List[FieldError]) -> "ValidationOutcome":
        return cls(is_valid=False, errors=list(errors))

    def for_path(self, path: str) -> "ValidationOutcome":
        """Keep only errors at ``path`` or below it."""
        target = normalize_path(path)
        matching = [
            err for err in self.errors
            if err.path == target or err.path.startswith(target + ".")
        ]
        if not matching:
            return ValidationOutcome.success()
        return ValidationOutcome.failure(matching)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "errors": [err.to_dict() for err in self.errors],
        }


def is_validation_error(exc: BaseException) -> bool:
    """Whether ``exc`` has the recognized validation-failure shape."""
    return isinstance(exc, SchemaValidationError) or getattr(exc, "name", None) == "ValidationError"


def _collect_errors(exc: BaseException, default_path: Optional[str]) -> List[FieldError]:
    errors = [
        FieldError(path=normalize_path(inner.path), message=str(inner.message))
        for inner in (getattr(exc, "inner", None) or [])
        if getattr(inner, "path", None)
    ]
    if errors:
        return errors

    path = getattr(exc, "path", None) or default_path
    if not path:
        return []
    message = getattr(exc, "message", None) or str(exc)
    return [FieldError(path=normalize_path(path), message=str(message))]


class ValidationAdapter:
    """Normalizes any schema object into ValidationOutcome results.

    A plain mapping is treated as a JSON Schema and wrapped in
    JsonSchemaValidator.

    Attributes:
        schema: The wrapped schema object

    Raises:
        TypeError: If the schema has no callable ``validate``
    """

    def __init__(self, schema: Any):
        if isinstance(schema, Mapping):
            schema = JsonSchemaValidator(dict(schema))
        if not callable(getattr(schema, "validate", None)):
            raise TypeError(
                f"Validation schema must expose a validate() method, got {type(schema).__name__}"
            )
        self.schema = schema

    @property
    def supports_single_field(self) -> bool:
        return callable(getattr(self.schema, "validate_at", None))

    async def validate_all(self, values: Any) -> ValidationOutcome:
        """Validate the whole value tree, collecting every leaf error.

        Raises:
            AdapterDiagnostic: If the schema failed with a non-validation error
        """
        return await self._run(None, self.schema.validate, values, abort_early=False)

    async def validate_one(self, path: str, values: Any) -> ValidationOutcome:
        """Validate a single path.

        Falls back to whole-form validation filtered to ``path`` when the
        schema has no ``validate_at``. A failure carries at most one error.

        Raises:
            AdapterDiagnostic: If the schema failed with a non-validation error
        """
        if self.supports_single_field:
            outcome = await self._run(path, self.schema.validate_at, path, values)
        else:
            outcome = (await self.validate_all(values)).for_path(path)
        if outcome.is_valid:
            return outcome
        return ValidationOutcome.failure(outcome.errors[:1])

    async def _run(
        self,
        path: Optional[str],
        method: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> ValidationOutcome:
        try:
            result = method(*args, **kwargs)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            if not is_validation_error(exc):
                raise AdapterDiagnostic(exc, path) from exc
            return ValidationOutcome.failure(_collect_errors(exc, path))
        return ValidationOutcome.success()


def _format_path(parts: Any) -> str:
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def _custom_message(schema: Any, keyword: str) -> Optional[str]:
    message = schema.get("errorMessage") if isinstance(schema, dict) else None
    if isinstance(message, dict):
        message = message.get(keyword)
    return message if isinstance(message, str) else None


class JsonSchemaValidator:
    """Schema object backed by a JSON Schema (Draft 7).

    Per-field messages can be set with an ``errorMessage`` keyword on a
    property schema: a string for every failure of that property, or a dict
    keyed by the failing keyword (``minLength``, ``format``, ``required``...).

    Examples:
        >>> schema = JsonSchemaValidator({
        ...     "type": "object",
        ...     "properties": {"email": {"type": "string", "format": "email"}},
        ...     "required": ["email"],
        ... })
        >>> [e.path for e in schema.field_errors({})]
        ['email']
    """

    def __init__(self, schema: Dict[str, Any]) -> None:
        """Initialize with a JSON Schema.

        Raises:
            jsonschema.SchemaError: If the provided schema is invalid
        """
        Draft7Validator.check_schema(schema)
        self.schema = schema
        self.validator = Draft7Validator(schema, format_checker=FORMAT_CHECKER)

    def field_errors(self, values: Any) -> List[FieldError]:
        """Translate all jsonschema errors, keeping the first one per path."""
        seen = set()
        errors: List[FieldError] = []
        for error in self.validator.iter_errors(values):
            field_error = self._translate_error(error)
            if field_error.path in seen:
                continue
            seen.add(field_error.path)
            errors.append(field_error)
        return errors

    def validate(self, values: Any, abort_early: bool = True) -> Any:
        """Validate the whole value tree.

        Raises:
            SchemaValidationError: With ``path`` set when aborting early,
                otherwise with one ``inner`` error per failing path
        """
        errors = self.field_errors(values)
        if not errors:
            return values
        if abort_early:
            raise SchemaValidationError(errors[0].message, path=errors[0].path)
        inner = [SchemaValidationError(err.message, path=err.path) for err in errors]
        raise SchemaValidationError(f"{len(inner)} errors occurred", inner=inner)

    def validate_at(self, path: str, values: Any) -> Any:
        """Validate the value at ``path`` (and anything below it).

        Raises:
            SchemaValidationError: For the first failing location under ``path``
        """
        target = normalize_path(path)
        for err in self.field_errors(values):
            if not err.path:
                continue
            canonical = normalize_path(err.path)
            if canonical == target or canonical.startswith(target + "."):
                raise SchemaValidationError(err.message, path=err.path)
        return get_in(values, path)

    def _translate_error(self, error: jsonschema.ValidationError) -> FieldError:
        """Translate a jsonschema ValidationError into a FieldError.

        Error mapping:
            - 'required' -> the missing property's path, "<path> is required"
            - 'type' -> "<path> must be a <type>"
            - 'format' -> "<path> must be a valid <format>"
            - 'enum'/'const' -> "<path> must be one of ..."
            - 'minLength'/'maxLength' -> length messages
            - anything else -> jsonschema's own message
        """
        path = _format_path(error.absolute_path)

        if error.validator == "required":
            missing_prop = error.message.split("'")[1] if "'" in error.message else "field"
            full_path = f"{path}.{missing_prop}" if path else missing_prop
            prop_schema = error.schema.get("properties", {}).get(missing_prop, {})
            message = _custom_message(prop_schema, "required")
            return FieldError(
                path=full_path,
                message=message or f"{full_path} is required",
            )

        custom = _custom_message(error.schema, error.validator)
        if custom:
            return FieldError(path=path, message=custom)

        label = path or "value"
        if error.validator == "type":
            message = f"{label} must be a {error.validator_value}"
        elif error.validator == "format":
            message = f"{label} must be a valid {error.validator_value}"
        elif error.validator in ("enum", "const"):
            message = f"{label} must be one of: {error.validator_value}"
        elif error.validator == "minLength":
            message = f"{label} must be at least {error.validator_value} characters"
        elif error.validator == "maxLength":
            message = f"{label} must be at most {error.validator_value} characters"
        elif error.validator == "pattern":
            message = f"{label} does not match pattern: {error.validator_value}"
        else:
            message = f"{label} is invalid: {error.message}"
        return FieldError(path=path, message=message)


__all__ = [
    "ValidationOutcome",
    "ValidationAdapter",
    "JsonSchemaValidator",
    "is_validation_error",
    "FORMAT_CHECKER",
]
