"""Typed readers for run-spec step arguments.

Each reader returns the Python value a step option needs or raises
``NodekitRunSpecError`` naming the offending field.
"""

from __future__ import annotations

from typing import Mapping, TypeVar

from core.errors import NodekitRunSpecError

_ChoiceT = TypeVar("_ChoiceT", bound=str)
_ValueT = TypeVar("_ValueT")


def required_string(args: Mapping[str, object], field_name: str) -> str:
    """Read a non-blank string that must be present."""
    value = optional_string(args, field_name)
    if value is None:
        raise NodekitRunSpecError(f"Run-spec step needs a value for '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read a string; blank values count as absent."""
    value = _typed(args, field_name, str, "a string")
    if value is None:
        return None
    return value.strip() or None


def optional_positive_int(args: Mapping[str, object], field_name: str) -> int | None:
    """Read an integer greater than zero, rejecting booleans."""
    value = args.get(field_name)
    if isinstance(value, bool):
        raise NodekitRunSpecError(f"Run-spec field '{field_name}' must be an integer.")
    number = _typed(args, field_name, int, "an integer")
    if number is not None and number <= 0:
        raise NodekitRunSpecError(
            f"Run-spec field '{field_name}' must be a positive integer, got {number}."
        )
    return number


def positive_int_with_default(
    args: Mapping[str, object], field_name: str, default_value: int
) -> int:
    """Read a positive integer, falling back to ``default_value`` when absent."""
    value = optional_positive_int(args, field_name)
    return default_value if value is None else value


def string_with_default(args: Mapping[str, object], field_name: str, default_value: str) -> str:
    """Read a string verbatim; an explicit empty string is kept."""
    value = _typed(args, field_name, str, "a string")
    return default_value if value is None else value


def optional_bool(args: Mapping[str, object], field_name: str, default_value: bool) -> bool:
    """Read a true/false flag."""
    value = _typed(args, field_name, bool, "true or false")
    return default_value if value is None else value


def string_list(args: Mapping[str, object], field_name: str) -> tuple[str, ...]:
    """Read a list of strings; a single string is one item."""
    value = args.get(field_name)
    if value is None:
        return ()
    items = [value] if isinstance(value, str) else value
    if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
        raise NodekitRunSpecError(f"Run-spec field '{field_name}' must be a list of strings.")
    return tuple(item.strip() for item in items if item.strip())


def choice_with_default(
    args: Mapping[str, object],
    field_name: str,
    choices: tuple[_ChoiceT, ...],
    default_value: _ChoiceT,
) -> _ChoiceT:
    """Read a string restricted to ``choices``."""
    value = optional_string(args, field_name)
    if value is None:
        return default_value
    matches = [choice for choice in choices if choice == value]
    if not matches:
        raise NodekitRunSpecError(
            f"Invalid {field_name} '{value}'. Use one of: {', '.join(choices)}."
        )
    return matches[0]


def _typed(
    args: Mapping[str, object],
    field_name: str,
    expected: type[_ValueT],
    description: str,
) -> _ValueT | None:
    value = args.get(field_name)
    if value is None:
        return None
    if not isinstance(value, expected):
        raise NodekitRunSpecError(f"Run-spec field '{field_name}' must be {description}.")
    return value
