"""Boundary validation helpers for typed resource configs."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from shared.errors import ValidationError

__all__ = [
    "at_least_one_of",
    "conflicts_with",
    "exactly_one_of",
    "get_bool",
    "get_int",
    "get_str",
    "is_set",
]

_MISSING = object()


def is_set(values: Mapping[str, Any], key: str) -> bool:
    """Mirror Terraform's ``GetOk``: absent, None and empty values are unset."""

    value = values.get(key, _MISSING)
    if value is _MISSING or value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def get_str(
    values: Mapping[str, Any],
    key: str,
    *,
    required: bool = False,
    default: Optional[str] = None,
) -> Optional[str]:
    if not is_set(values, key):
        if required:
            raise ValidationError(f"{key} is required", attribute=key)
        return default
    value = values[key]
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValidationError(f"{key} must be a string, got {value!r}", attribute=key)
    return str(value)


def get_int(
    values: Mapping[str, Any],
    key: str,
    *,
    required: bool = False,
    default: Optional[int] = None,
    min_value: Optional[int] = None,
) -> Optional[int]:
    if not is_set(values, key):
        if required:
            raise ValidationError(f"{key} is required", attribute=key)
        return default
    raw = values[key]
    if isinstance(raw, bool):
        raise ValidationError(f"{key} must be an integer, got {raw!r}", attribute=key)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer, got {raw!r}", attribute=key) from None
    if min_value is not None and value < min_value:
        raise ValidationError(
            f"expected {key} to be at least ({min_value}), got {value}", attribute=key
        )
    return value


def get_bool(values: Mapping[str, Any], key: str, *, default: bool = False) -> bool:
    if not is_set(values, key):
        return default
    value = values[key]
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValidationError(f"{key} must be a boolean, got {value!r}", attribute=key)


def exactly_one_of(values: Mapping[str, Any], keys: Iterable[str]) -> str:
    keys = tuple(keys)
    present = [key for key in keys if is_set(values, key)]
    if len(present) != 1:
        raise ValidationError(
            f"exactly one of `{', '.join(keys)}` must be specified",
            attribute=keys[0],
        )
    return present[0]


def at_least_one_of(values: Mapping[str, Any], keys: Iterable[str]) -> None:
    keys = tuple(keys)
    if not any(is_set(values, key) for key in keys):
        raise ValidationError(
            f"one of `{', '.join(keys)}` must be specified", attribute=keys[0]
        )


def conflicts_with(values: Mapping[str, Any], first: str, second: str) -> None:
    if is_set(values, first) and is_set(values, second):
        raise ValidationError(
            f"{first}: conflicts with {second}", attribute=first
        )
