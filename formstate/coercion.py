"""Value derivation for checkbox-style inputs.

A checkbox either stands alone (its stored value is a boolean) or is one of a
group sharing a path (its stored value is the list of checked candidates).
"""

from typing import Any

_BOOLEAN_CANDIDATES = ("true", "false")


def value_for_checkbox(current_value: Any, checked: bool, candidate_value: Any) -> Any:
    """Return the value to store after a checkbox is toggled.

    Args:
        current_value: Value currently stored at the checkbox's path
        checked: Whether the checkbox is now checked
        candidate_value: The value attached to this particular checkbox

    Returns:
        A boolean for lone checkboxes, otherwise a new list of checked values.
        The input list is never mutated.

    Examples:
        >>> value_for_checkbox(["a"], True, "b")
        ['a', 'b']
        >>> value_for_checkbox(["a", "b", "a"], False, "a")
        ['b', 'a']
        >>> value_for_checkbox("", True, "true")
        True
        >>> value_for_checkbox("yes", False, "x")
        True
    """
    if candidate_value in _BOOLEAN_CANDIDATES:
        return bool(checked)

    if checked:
        if isinstance(current_value, list):
            return current_value + [candidate_value]
        return [candidate_value]

    if not isinstance(current_value, list):
        return bool(current_value)

    try:
        index = current_value.index(candidate_value)
    except ValueError:
        return current_value
    return current_value[:index] + current_value[index + 1:]


__all__ = ["value_for_checkbox"]
