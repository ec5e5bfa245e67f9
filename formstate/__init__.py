"""formstate, a reactive form-state engine.

formstate tracks a form's values, validation errors and touched fields, and
keeps the derived flags (is_valid, is_dirty, submitting/validating status)
consistent as they change. It provides:
- Path-addressed mutations on nested value, error and touched trees
- Validation on change, on blur and on submit, through any schema object
- A JSON Schema backed schema out of the box
- Change events a UI binding layer can subscribe to

Basic usage:
    >>> import asyncio
    >>> from formstate import FormStore
    >>> schema = {
    ...     "type": "object",
    ...     "properties": {"email": {"type": "string", "format": "email"}},
    ...     "required": ["email"],
    ... }
    >>> form = FormStore(initial_values={"username": "john.doe"}, validation_schema=schema)
    >>> asyncio.run(form.validate())
    >>> form.errors
    {'email': 'email is required'}
"""

__version__ = "0.1.0"
__author__ = "formstate contributors"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formstate.config import FormOptions
from formstate.errors import AdapterDiagnostic, FieldError, SchemaValidationError
from formstate.store import FormStore
from formstate.types import EventType, FieldStatus, FormStatus, InputType
from formstate.validation import JsonSchemaValidator, ValidationAdapter

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormStore",
    "FormOptions",
    "ValidationAdapter",
    "JsonSchemaValidator",
    "FieldError",
    "SchemaValidationError",
    "AdapterDiagnostic",
    "EventType",
    "FieldStatus",
    "FormStatus",
    "InputType",
]
