"""Asyncio dataflow blocks.

A ``TransformBlock`` runs a function over every item posted to it and hands
the results, in input order, to whatever it is linked to. If the function
raises, the whole block faults: pending input is dropped, further input is
declined, and the fault travels down the link. Wrapping each item's work in a
``Try`` keeps a single bad item from doing that:

    parse = TransformBlock(lambda raw: Try.create(lambda: int(raw)))
    double = TransformBlock(lambda t: t.map(lambda n: n * 2))
    parse.link_to(double)

Each block owns two tasks: a dispatcher that starts transforms (bounded by
``max_degree_of_parallelism``) and an emitter that awaits them in order.
Blocks must be created inside a running event loop and are not thread-safe.
"""

from __future__ import annotations

import asyncio
import collections
import inspect
import logging
from typing import TYPE_CHECKING, Any, Protocol

from attempt.config import BlockOptions, resolve_block_options
from attempt.core._validation import _require_callable, _require_exception
from attempt.errors import ArgumentError, BlockCompletedError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = logging.getLogger(__name__)

_END = object()


class DataflowTarget[T](Protocol):
    """Anything a block can be linked to."""

    def post(self, item: T) -> bool: ...

    async def send(self, item: T) -> bool: ...

    def complete(self) -> None: ...

    def fault(self, exc: BaseException) -> None: ...


def _consume_future_exception(fut: asyncio.Future[Any]) -> None:
    """Avoid 'exception was never retrieved' for futures nobody awaits."""
    try:
        _ = fut.exception()
    except asyncio.CancelledError:
        return


class TransformBlock[TIn, TOut]:
    """Applies ``func`` to each input and emits the results in order.

    ``func`` may be synchronous or return an awaitable.
    """

    def __init__(
        self,
        func: Callable[[TIn], TOut | Awaitable[TOut]],
        *,
        options: BlockOptions | None = None,
        name: str | None = None,
    ) -> None:
        _require_callable(func, "func")
        self._func = func
        self.options = options if options is not None else resolve_block_options()
        self.name = name or getattr(func, "__qualname__", None) or type(self).__name__

        loop = asyncio.get_running_loop()
        self._input: asyncio.Queue[Any] = asyncio.Queue()
        self._inflight: asyncio.Queue[Any] = asyncio.Queue()
        self._output: collections.deque[Any] = collections.deque()
        self._output_ready = asyncio.Event()
        self._slots = asyncio.Semaphore(self.options.max_degree_of_parallelism)
        self._space = asyncio.Event()
        self._declining = False
        self._target: DataflowTarget[TOut] | None = None
        self._propagate_completion = False
        self._relay: asyncio.Task[None] | None = None

        self._completion: asyncio.Future[None] = loop.create_future()
        self._completion.add_done_callback(_consume_future_exception)
        self._dispatcher = loop.create_task(
            self._dispatch(), name=f"{self.name}:dispatch"
        )
        self._emitter = loop.create_task(self._emit(), name=f"{self.name}:emit")

    # --- Input ---

    def post(self, item: TIn) -> bool:
        """Offer ``item`` without waiting. Returns False if the block declines it."""
        if self._declining or self._is_full():
            return False
        self._input.put_nowait(item)
        return True

    async def send(self, item: TIn) -> bool:
        """Offer ``item``, waiting for buffer space if the block is bounded."""
        while not self._declining and self._is_full():
            self._space.clear()
            await self._space.wait()
        return self.post(item)

    def complete(self) -> None:
        """Stop accepting input; the block completes once buffered input drains."""
        if self._declining:
            return
        self._declining = True
        self._input.put_nowait(_END)
        self._space.set()

    def fault(self, exc: BaseException) -> None:
        """Fault the block with ``exc``, dropping all pending work."""
        _require_exception(exc, "exc")
        if self._completion.done():
            return
        log.debug("Block %s faulted: %r", self.name, exc)
        self._declining = True
        self._space.set()
        current = asyncio.current_task()
        for task in (self._dispatcher, self._emitter):
            if task is not current:
                task.cancel()
        for queue in (self._input, self._inflight):
            while not queue.empty():
                pending = queue.get_nowait()
                if isinstance(pending, asyncio.Task):
                    pending.cancel()
        self._completion.set_exception(exc)
        self._output_ready.set()
        if self._target is not None and self._propagate_completion:
            self._target.fault(exc)

    # --- Output ---

    def link_to(
        self, target: DataflowTarget[TOut], *, propagate_completion: bool = True
    ) -> None:
        """Forward every output to ``target``, flushing buffered output first."""
        if self._target is not None:
            raise ArgumentError(
                f"Block '{self.name}' is already linked",
                hint="Each block forwards to a single target.",
            )
        self._target = target
        self._propagate_completion = propagate_completion

        # Output stays in order: stop at the first item the target declines.
        while self._output and target.post(self._output[0]):
            self._output.popleft()

        if not self._completion.done():
            return
        if self._output:
            self._relay = asyncio.get_running_loop().create_task(
                self._relay_after_completion(), name=f"{self.name}:relay"
            )
            self._relay.add_done_callback(_consume_future_exception)
        elif propagate_completion:
            self._propagate()

    async def receive(self) -> TOut:
        """Wait for the next output of an unlinked (or declined) item.

        Raises:
            BlockCompletedError: The block finished and no output remains.
        """
        while not self._output:
            if self._completion.done():
                raise BlockCompletedError(
                    f"Block '{self.name}' has completed and holds no more output"
                )
            self._output_ready.clear()
            await self._output_ready.wait()
        return self._output.popleft()

    @property
    def completion(self) -> asyncio.Future[None]:
        """Resolves when the block finishes; raises the fault if it faulted."""
        return self._completion

    @property
    def is_completed(self) -> bool:
        return self._completion.done()

    @property
    def is_faulted(self) -> bool:
        fut = self._completion
        return fut.done() and not fut.cancelled() and fut.exception() is not None

    # --- Internals ---

    def _is_full(self) -> bool:
        capacity = self.options.bounded_capacity
        return capacity is not None and self._input.qsize() >= capacity

    async def _dispatch(self) -> None:
        while True:
            item = await self._input.get()
            self._space.set()
            if item is _END:
                self._inflight.put_nowait(_END)
                return
            await self._slots.acquire()
            task = asyncio.get_running_loop().create_task(self._transform(item))
            task.add_done_callback(lambda _: self._slots.release())
            task.add_done_callback(_consume_future_exception)
            self._inflight.put_nowait(task)

    async def _transform(self, item: TIn) -> TOut:
        result = self._func(item)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _emit(self) -> None:
        try:
            while True:
                task = await self._inflight.get()
                if task is _END:
                    break
                self._output.append(await task)
                self._output_ready.set()
                await self._forward()
            # Retry anything the target declined when it was linked.
            await self._forward()
        except Exception as exc:
            self.fault(exc)
            return
        log.debug("Block %s completed", self.name)
        self._completion.set_result(None)
        self._output_ready.set()
        if self._propagate_completion:
            self._propagate()

    async def _forward(self) -> None:
        """Send buffered output to the target, oldest first."""
        target = self._target
        if target is None:
            return
        while self._output:
            item = self._output.popleft()
            try:
                accepted = await target.send(item)
            except BaseException:
                self._output.appendleft(item)
                raise
            if not accepted:
                self._output.appendleft(item)
                return

    async def _relay_after_completion(self) -> None:
        try:
            await self._forward()
        except Exception as exc:
            log.warning(
                "Block %s could not forward buffered output: %r", self.name, exc
            )
            if self._propagate_completion and self._target is not None:
                self._target.fault(exc)
            return
        if self._propagate_completion:
            self._propagate()

    def _propagate(self) -> None:
        target = self._target
        if target is None:
            return
        fut = self._completion
        if fut.cancelled() or fut.exception() is None:
            target.complete()
        else:
            target.fault(fut.exception())
