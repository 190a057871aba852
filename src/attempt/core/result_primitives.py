"""Two-case outcome type backing ``Try``.

A ``Try`` never keeps a nullable exception next to a value; it holds exactly
one of these primitives, and the primitive's type is the discriminant.
"""

from __future__ import annotations

import dataclasses
import typing

from attempt.core._validation import _require_exception

TSuccess = typing.TypeVar("TSuccess")


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A computation that produced a value."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure:
    """A computation that raised, holding the raised exception."""

    error: BaseException

    def __post_init__(self) -> None:
        _require_exception(self.error, "error")


Outcome = Success[TSuccess] | Failure
