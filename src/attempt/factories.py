"""Module-level factories for ``Try``.

Thin forwards to the ``Try`` classmethods so call sites can read
``attempt.create(fn)`` without naming the class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from attempt.result import Try

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

__all__ = ["create", "create_async", "from_exception", "from_value"]


def from_value[T](value: T) -> Try[T]:
    return Try.from_value(value)


def from_exception[T](exc: BaseException) -> Try[T]:
    return Try.from_exception(exc)


def create[T](func: Callable[[], T]) -> Try[T]:
    return Try.create(func)


async def create_async[T](func: Callable[[], Awaitable[T]]) -> Try[T]:
    return await Try.create_async(func)
