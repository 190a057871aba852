"""Internal validation helpers for API misuse.

Every check here raises ``ArgumentError`` directly at the call site. These
errors describe programming mistakes and must never end up inside a ``Try``.
"""

from __future__ import annotations

import typing

from attempt.errors import ArgumentError


def _require(
    *,
    condition: bool,
    message: str,
    field_name: str | None = None,
    hint: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise ArgumentError(f"{field_name}: {message}", hint=hint)
        raise ArgumentError(message, hint=hint)


def _require_callable(func: typing.Any, field_name: str) -> None:
    _require(
        condition=callable(func),
        message=f"must be callable, got {type(func).__name__}",
        field_name=field_name,
    )


def _require_exception(exc: typing.Any, field_name: str) -> None:
    """Validate ``exc`` is an exception *instance* (not None, not a class)."""
    _require(
        condition=exc is not None, message="must not be None", field_name=field_name
    )
    if isinstance(exc, type) and issubclass(exc, BaseException):
        raise ArgumentError(
            f"{field_name}: expected an exception instance, "
            f"got the class {exc.__name__}",
            hint=f"Instantiate it first, e.g. {exc.__name__}('...').",
        )
    _require(
        condition=isinstance(exc, BaseException),
        message=f"expected an exception instance, got {type(exc).__name__}",
        field_name=field_name,
    )
