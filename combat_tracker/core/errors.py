"""
Error taxonomy and validation helpers.

Configuration and invariant errors surface synchronously to the caller. The
validation helpers log the offending value with its context and then raise;
they never correct the input.
"""

from typing import Any, Optional

from combat_tracker.core.logging import log_error


class CombatError(Exception):
    """Base class for every error raised by the combat engine."""


class ConfigurationError(CombatError):
    """An unknown initiative system, damage-type tag or setting."""


class InvariantViolation(CombatError):
    """An operation would break a combatant invariant, or was called out of state."""


class NoOpError(InvariantViolation):
    """A zero or negative amount was explicitly rejected."""


class RollSourceExhausted(CombatError):
    """A scripted roll source ran out of values."""


def _fail(
    error_class: type[CombatError],
    message: str,
    param_name: str,
    value: Any,
    context: Optional[dict[str, Any]],
) -> None:
    log_error(
        message,
        {
            **(context or {}),
            "param_name": param_name,
            "value": value,
        },
    )
    raise error_class(message)


def require_int(
    value: Any, param_name: str, context: Optional[dict[str, Any]] = None
) -> int:
    """
    Validates that a value is an integer (booleans excluded).

    Raises:
        InvariantViolation: If validation fails.

    """
    if isinstance(value, bool) or not isinstance(value, int):
        _fail(
            InvariantViolation,
            f"{param_name} must be an integer, got: {value!r}",
            param_name,
            value,
            context,
        )
    return value


def require_positive_int(
    value: Any,
    param_name: str,
    context: Optional[dict[str, Any]] = None,
    error_class: type[CombatError] = InvariantViolation,
) -> int:
    """
    Validates that a value is an integer strictly greater than zero.

    Args:
        value: The value to validate
        param_name: Human-readable parameter name for error messages
        context: Additional context for logging
        error_class: The error raised when the value is not positive

    Returns:
        int: The validated value

    Raises:
        InvariantViolation: If the value is not an integer.
        error_class: If the value is zero or negative.

    """
    require_int(value, param_name, context)
    if value <= 0:
        _fail(
            error_class,
            f"{param_name} must be positive, got: {value}",
            param_name,
            value,
            context,
        )
    return value


def require_non_negative_int(
    value: Any, param_name: str, context: Optional[dict[str, Any]] = None
) -> int:
    """
    Validates that a value is an integer greater than or equal to zero.

    Raises:
        InvariantViolation: If validation fails.

    """
    require_int(value, param_name, context)
    if value < 0:
        _fail(
            InvariantViolation,
            f"{param_name} must be non-negative, got: {value}",
            param_name,
            value,
            context,
        )
    return value


def require_int_in_range(
    value: Any,
    param_name: str,
    min_val: int,
    max_val: Optional[int] = None,
    context: Optional[dict[str, Any]] = None,
) -> int:
    """
    Validates that a value is an integer within the inclusive range.

    Args:
        value: The value to validate
        param_name: Human-readable parameter name for error messages
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive), None for no maximum
        context: Additional context for logging

    Raises:
        InvariantViolation: If validation fails.

    """
    require_int(value, param_name, context)
    if value < min_val or (max_val is not None and value > max_val):
        range_desc = (
            f">= {min_val}" if max_val is None else f"between {min_val} and {max_val}"
        )
        _fail(
            InvariantViolation,
            f"{param_name} must be {range_desc}, got: {value}",
            param_name,
            value,
            context,
        )
    return value


def require_non_empty_string(
    value: Any, param_name: str, context: Optional[dict[str, Any]] = None
) -> str:
    """
    Validates that a value is a non-empty string.

    Raises:
        InvariantViolation: If validation fails.

    """
    if not isinstance(value, str) or not value.strip():
        _fail(
            InvariantViolation,
            f"{param_name} must be a non-empty string, got: {value!r}",
            param_name,
            value,
            context,
        )
    return value
