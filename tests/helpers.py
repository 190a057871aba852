"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists so suites can assert on
whether, and with what, a callback ran without redefining closures per test.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any


class Boom(Exception):
    """Distinct exception type so tests never match an unrelated error."""


@dataclass
class Recorder:
    """Callable that records its arguments and returns or raises on demand."""

    returns: Any = None
    raises: BaseException | None = None
    calls: list[tuple[Any, ...]] = field(default_factory=list)

    def __call__(self, *args: Any) -> Any:
        self.calls.append(args)
        if self.raises is not None:
            raise self.raises
        return self.returns

    @property
    def called(self) -> bool:
        return bool(self.calls)


@dataclass
class AsyncRecorder(Recorder):
    """Async variant of Recorder; yields to the loop once before answering."""

    async def __call__(self, *args: Any) -> Any:  # type: ignore[override]
        self.calls.append(args)
        await asyncio.sleep(0)
        if self.raises is not None:
            raise self.raises
        return self.returns
