"""``Try``: a wrapper for either an exception or a value.

A ``Try`` is always already resolved. ``create`` runs a computation right away
and captures whatever it raises, so callers can chain further steps with
``map``/``bind`` and only decide how to react to an exception at the end, via
``match``, ``deconstruct``, or ``value`` (which re-raises it).

Example:
    total = (
        Try.create(lambda: int(raw))
        .map(lambda n: n * 2)
        .match(lambda exc: -1, lambda n: n)
    )

Contract notes:
- ``map`` captures exceptions raised by its function; ``bind`` does not. Bind
  functions are combinators that already return a ``Try`` and are trusted not
  to raise, so anything they raise reaches the caller of ``bind`` directly.
- Only ``Exception`` subclasses are captured. ``KeyboardInterrupt``,
  ``SystemExit`` and ``asyncio.CancelledError`` always propagate.
- Invalid arguments (non-callables, ``None`` instead of an exception) raise
  ``ArgumentError`` immediately and are never captured.
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
import logging
from typing import TYPE_CHECKING, Any

from attempt.core._validation import _require, _require_callable
from attempt.core.result_primitives import Failure, Success

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator

    from attempt.core.result_primitives import Outcome

log = logging.getLogger(__name__)


def _describe(func: Any) -> str:
    return getattr(func, "__qualname__", None) or repr(func)


def _captured[T](cls: type[Try[T]], func: Any, exc: Exception) -> Try[T]:
    log.debug("Captured %s from %s: %s", type(exc).__name__, _describe(func), exc)
    return cls(Failure(exc))


@dataclasses.dataclass(frozen=True, slots=True, repr=False)
class Try[T]:
    """Holds exactly one of: a value, or the exception a computation raised.

    Build instances with ``from_value``, ``from_exception``, ``create`` or
    ``create_async``. Instances are immutable; every combinator returns a new
    ``Try``.
    """

    outcome: Outcome[T]

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.outcome, (Success, Failure)),
            message=f"expected Success or Failure, got {type(self.outcome).__name__}",
            field_name="outcome",
            hint="Use Try.from_value() or Try.from_exception() instead.",
        )

    # --- Construction ---

    @classmethod
    def from_value(cls, value: T) -> Try[T]:
        """Wrap ``value`` as-is. ``None`` is a legitimate value."""
        return cls(Success(value))

    @classmethod
    def from_exception(cls, exc: BaseException) -> Try[T]:
        """Wrap an exception instance.

        Raises:
            ArgumentError: ``exc`` is None, an exception class, or not an exception.
        """
        return cls(Failure(exc))

    @classmethod
    def create(cls, func: Callable[[], T]) -> Try[T]:
        """Call ``func`` now and wrap either its return value or what it raised."""
        _require_callable(func, "func")
        try:
            result = func()
        except Exception as exc:
            return _captured(cls, func, exc)
        return cls(Success(result))

    @classmethod
    async def create_async(cls, func: Callable[[], Awaitable[T]]) -> Try[T]:
        """Await ``func()`` and wrap either its result or what it raised.

        The only suspension point is awaiting the awaitable ``func`` returns.
        An exception raised by ``func`` before it returns an awaitable is
        captured the same way.

        Raises:
            ArgumentError: ``func`` is not callable or did not return an awaitable.
        """
        _require_callable(func, "func")
        try:
            awaitable = func()
        except Exception as exc:
            return _captured(cls, func, exc)
        _require(
            condition=inspect.isawaitable(awaitable),
            message=f"must return an awaitable, got {type(awaitable).__name__}",
            field_name="func",
            hint="Use Try.create() for synchronous functions.",
        )
        try:
            result = await awaitable
        except Exception as exc:
            return _captured(cls, func, exc)
        return cls(Success(result))

    # --- Transforms ---

    def map[U](self, func: Callable[[T], U]) -> Try[U]:
        """Transform the value, capturing anything ``func`` raises.

        If this instance holds an exception, ``func`` is not called and the
        same exception object is carried into the result.
        """
        _require_callable(func, "func")
        return self.bind(lambda value: Try.create(functools.partial(func, value)))

    async def map_async[U](self, func: Callable[[T], Awaitable[U]]) -> Try[U]:
        """Async form of ``map``; suspends only when this instance holds a value."""
        _require_callable(func, "func")
        return await self.bind_async(
            lambda value: Try.create_async(functools.partial(func, value))
        )

    def bind[U](self, func: Callable[[T], Try[U]]) -> Try[U]:
        """Chain a function that itself returns a ``Try``.

        If this instance holds an exception, ``func`` is not called and the
        same exception object is carried into the result. Otherwise the
        ``Try`` returned by ``func`` is returned unchanged. Exceptions raised
        by ``func`` are not captured.
        """
        _require_callable(func, "func")
        outcome = self.outcome
        if isinstance(outcome, Failure):
            return Try(outcome)
        return _checked_bind_result(func(outcome.value))

    async def bind_async[U](self, func: Callable[[T], Awaitable[Try[U]]]) -> Try[U]:
        """Async form of ``bind``; suspends only when this instance holds a value."""
        _require_callable(func, "func")
        outcome = self.outcome
        if isinstance(outcome, Failure):
            return Try(outcome)
        awaitable = func(outcome.value)
        _require(
            condition=inspect.isawaitable(awaitable),
            message=f"must return an awaitable, got {type(awaitable).__name__}",
            field_name="func",
            hint="Use bind() for synchronous functions.",
        )
        return _checked_bind_result(await awaitable)

    # Comprehension-style aliases.

    def select[U](self, func: Callable[[T], U]) -> Try[U]:
        return self.map(func)

    def select_many[U, R](
        self, bind: Callable[[T], Try[U]], project: Callable[[T, U], R]
    ) -> Try[R]:
        _require_callable(bind, "bind")
        _require_callable(project, "project")
        return self.bind(
            lambda a: _checked_bind_result(bind(a)).select(lambda b: project(a, b))
        )

    # --- Extraction ---

    def match[R](
        self,
        when_exception: Callable[[BaseException], R],
        when_value: Callable[[T], R],
    ) -> R:
        """Call exactly one handler and return its result.

        Exceptions raised by the handlers propagate.
        """
        _require_callable(when_exception, "when_exception")
        _require_callable(when_value, "when_value")
        outcome = self.outcome
        if isinstance(outcome, Failure):
            return when_exception(outcome.error)
        return when_value(outcome.value)

    def deconstruct(self) -> tuple[BaseException | None, T | None]:
        """Return ``(exception, None)`` or ``(None, value)``. Never raises."""
        outcome = self.outcome
        if isinstance(outcome, Failure):
            return outcome.error, None
        return None, outcome.value

    def __iter__(self) -> Iterator[Any]:
        return iter(self.deconstruct())

    @property
    def is_exception(self) -> bool:
        return isinstance(self.outcome, Failure)

    @property
    def is_value(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def exception(self) -> BaseException | None:
        """The held exception, or None if this instance holds a value."""
        outcome = self.outcome
        return outcome.error if isinstance(outcome, Failure) else None

    @property
    def value(self) -> T:
        """The held value. If an exception is held, that same exception is raised.

        The exception object is re-raised as-is, so its traceback still
        reaches back to where it was originally raised.
        """
        outcome = self.outcome
        if isinstance(outcome, Success):
            return outcome.value
        error = outcome.error
        try:
            raise error
        finally:
            # The traceback keeps this frame alive; drop locals referencing the error.
            del error, outcome, self

    def __str__(self) -> str:
        """Return a debugging representation; not a stable format."""
        outcome = self.outcome
        if isinstance(outcome, Failure):
            return f"Exception: {outcome.error!r}"
        return f"Value: {outcome.value!r}"

    __repr__ = __str__


def _checked_bind_result(result: Any) -> Try[Any]:
    _require(
        condition=isinstance(result, Try),
        message=f"must return a Try, got {type(result).__name__}",
        field_name="func",
        hint="Use map() for functions that return plain values.",
    )
    return result
