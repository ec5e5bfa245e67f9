"""Form configuration.

FormOptions holds everything a FormStore is constructed from. It can be built
directly or from a plain dict using either the camelCase keys a JavaScript
style config would carry (``initialValues``, ``validateOnChange``...) or
their snake_case equivalents.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Union

SubmitHandler = Callable[[Dict[str, Any], Any], Union[None, Awaitable[None]]]

_CAMEL_TO_SNAKE: Dict[str, str] = {
    "initialValues": "initial_values",
    "validationSchema": "validation_schema",
    "validateOnChange": "validate_on_change",
    "validateOnBlur": "validate_on_blur",
    "validateOnSubmit": "validate_on_submit",
    "onSubmit": "on_submit",
}


@dataclass
class FormOptions:
    """Constructor input for a FormStore.

    Attributes:
        initial_values: Starting value tree; deep-copied by the store
        validation_schema: JSON Schema dict or any object exposing
            validate(values, abort_early=False) and optionally validate_at(path, values)
        validate_on_change: Validate a field after its value changes
        validate_on_blur: Validate a field after it is marked touched
        validate_on_submit: Validate the whole form before calling on_submit
        on_submit: Sync or async handler called with (values, form)

    Examples:
        >>> options = FormOptions.from_dict({"initialValues": {"email": ""}, "validateOnBlur": True})
        >>> options.validate_on_blur, options.validate_on_submit
        (True, True)
    """
    initial_values: Dict[str, Any] = field(default_factory=dict)
    validation_schema: Any = None
    validate_on_change: bool = False
    validate_on_blur: bool = False
    validate_on_submit: bool = True
    on_submit: Optional[SubmitHandler] = None

    def __post_init__(self):
        if not isinstance(self.initial_values, dict):
            raise TypeError(
                f"initial_values must be a dict, got {type(self.initial_values).__name__}"
            )
        if self.on_submit is not None and not callable(self.on_submit):
            raise TypeError("on_submit must be callable")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormOptions":
        """Create FormOptions from a dict with camelCase or snake_case keys.

        Raises:
            ValueError: On unknown keys
        """
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_TO_SNAKE.get(key, key)
            if name not in _CAMEL_TO_SNAKE.values():
                raise ValueError(f"Unknown form option: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the serializable options to a camelCase dict."""
        return {
            "initialValues": self.initial_values,
            "validateOnChange": self.validate_on_change,
            "validateOnBlur": self.validate_on_blur,
            "validateOnSubmit": self.validate_on_submit,
        }


__all__ = [
    "FormOptions",
    "SubmitHandler",
]
