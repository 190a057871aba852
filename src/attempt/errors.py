"""Exception hierarchy for attempt.

Only API misuse, configuration, and dataflow problems live here. Exceptions
raised by wrapped computations are never converted into these types; a
``Try`` stores them as-is.
"""

from __future__ import annotations


class AttemptError(Exception):
    """Base exception for all attempt errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ArgumentError(AttemptError, TypeError):
    """An operation was called with an invalid argument.

    Raised immediately to the caller and never captured into a ``Try``.
    """


class ConfigurationError(AttemptError):
    """Configuration validation or resolution failed."""


class DataflowError(AttemptError):
    """A dataflow block was used incorrectly."""


class BlockCompletedError(DataflowError):
    """No more output can be received because the block has finished."""
