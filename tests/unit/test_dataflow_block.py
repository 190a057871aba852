"""Unit tests for TransformBlock mechanics."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from attempt import ArgumentError, BlockCompletedError, BlockOptions, TransformBlock
from tests.helpers import Boom

pytestmark = pytest.mark.unit


async def _drain(block: TransformBlock, count: int) -> list[object]:
    return [await block.receive() for _ in range(count)]


@pytest.mark.asyncio
async def test_transforms_items_in_order() -> None:
    block = TransformBlock(lambda x: x * 10)
    for i in range(3):
        assert block.post(i)
    block.complete()

    assert await _drain(block, 3) == [0, 10, 20]
    await block.completion
    assert block.is_completed
    assert not block.is_faulted


@pytest.mark.asyncio
async def test_async_function_results_are_awaited() -> None:
    async def double(x: int) -> int:
        await asyncio.sleep(0)
        return x * 2

    block = TransformBlock(double)
    block.post(21)
    block.complete()

    assert await block.receive() == 42
    await block.completion


@pytest.mark.asyncio
async def test_parallel_transforms_keep_input_order() -> None:
    delays = {0: 0.03, 1: 0.0, 2: 0.01}
    running = 0
    peak = 0

    async def slow(x: int) -> int:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(delays[x])
        running -= 1
        return x

    block = TransformBlock(slow, options=BlockOptions(max_degree_of_parallelism=3))
    for i in range(3):
        block.post(i)
    block.complete()

    assert await _drain(block, 3) == [0, 1, 2]
    assert peak > 1
    await block.completion


@pytest.mark.asyncio
async def test_receive_after_completion_raises() -> None:
    block = TransformBlock(lambda x: x)
    block.complete()
    await block.completion

    with pytest.raises(BlockCompletedError):
        await block.receive()


@pytest.mark.asyncio
async def test_post_after_complete_is_declined() -> None:
    block = TransformBlock(lambda x: x)
    block.complete()

    assert block.post(1) is False
    assert await block.send(1) is False
    await block.completion


@pytest.mark.asyncio
async def test_raising_function_faults_block() -> None:
    err = Boom("bad item")

    def check(x: int) -> int:
        if x == 2:
            raise err
        return x

    block = TransformBlock(check)
    for i in (1, 2, 3):
        block.post(i)

    with pytest.raises(Boom) as exc:
        await block.completion
    assert exc.value is err
    assert block.is_faulted
    assert block.post(4) is False


@pytest.mark.asyncio
async def test_external_fault_propagates_to_target() -> None:
    source = TransformBlock(lambda x: x)
    target = TransformBlock(lambda x: x)
    source.link_to(target)

    source.fault(Boom("stop"))

    with pytest.raises(Boom):
        await target.completion
    assert source.is_faulted and target.is_faulted


@pytest.mark.asyncio
async def test_bounded_post_declines_when_full() -> None:
    gate = asyncio.Event()

    async def wait_for_gate(x: int) -> int:
        await gate.wait()
        return x

    block = TransformBlock(wait_for_gate, options=BlockOptions(bounded_capacity=1))
    assert block.post(1)
    await asyncio.sleep(0)  # dispatcher starts item 1
    assert block.post(2)
    await asyncio.sleep(0)  # dispatcher holds item 2 until a slot frees up
    assert block.post(3)
    assert block.post(4) is False

    sent = asyncio.ensure_future(block.send(4))
    await asyncio.sleep(0)
    assert not sent.done()

    gate.set()
    assert await _drain(block, 3) == [1, 2, 3]
    assert await sent is True
    block.complete()
    assert await block.receive() == 4
    await block.completion


@pytest.mark.asyncio
async def test_link_flushes_buffered_output() -> None:
    source = TransformBlock(lambda x: x + 1)
    source.post(1)
    source.complete()
    await source.completion

    target = TransformBlock(lambda x: x * 2)
    source.link_to(target)

    assert await target.receive() == 4
    await target.completion


@pytest.mark.asyncio
async def test_linking_twice_is_rejected() -> None:
    source = TransformBlock(lambda x: x)
    target = TransformBlock(lambda x: x)
    other = TransformBlock(lambda x: x)
    source.link_to(target)

    with pytest.raises(ArgumentError, match="already linked"):
        source.link_to(other)

    source.complete()
    other.complete()
    await asyncio.gather(target.completion, other.completion)


@pytest.mark.asyncio
async def test_options_come_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ATTEMPT_MAX_DEGREE_OF_PARALLELISM", "5")

    block = TransformBlock(lambda x: x)

    assert block.options.max_degree_of_parallelism == 5
    block.complete()
    await block.completion


def test_non_callable_is_rejected() -> None:
    with pytest.raises(ArgumentError):
        TransformBlock(None)  # type: ignore[arg-type]


@dataclass
class ListTarget:
    """Linkable target that can decline its first few ``post`` calls."""

    declined_posts: int = 0
    send_raises: BaseException | None = None
    items: list[object] = field(default_factory=list)
    faults: list[BaseException] = field(default_factory=list)
    done: asyncio.Event = field(default_factory=asyncio.Event)

    def post(self, item: object) -> bool:
        if self.declined_posts:
            self.declined_posts -= 1
            return False
        self.items.append(item)
        return True

    async def send(self, item: object) -> bool:
        await asyncio.sleep(0)
        if self.send_raises is not None:
            raise self.send_raises
        self.items.append(item)
        return True

    def complete(self) -> None:
        self.done.set()

    def fault(self, exc: BaseException) -> None:
        self.faults.append(exc)
        self.done.set()


@pytest.mark.asyncio
async def test_declined_buffered_output_is_forwarded_in_order() -> None:
    source = TransformBlock(lambda x: x * 10)
    for i in range(3):
        source.post(i)
    await asyncio.sleep(0.01)  # let results buffer before linking

    target = ListTarget(declined_posts=1)
    source.link_to(target)
    source.post(3)
    source.complete()

    await asyncio.wait_for(target.done.wait(), 1)
    assert target.items == [0, 10, 20, 30]
    await source.completion


@pytest.mark.asyncio
async def test_declined_output_of_completed_block_is_forwarded_in_order() -> None:
    source = TransformBlock(lambda x: x * 10)
    for i in range(3):
        source.post(i)
    source.complete()
    await source.completion

    target = ListTarget(declined_posts=1)
    source.link_to(target)

    await asyncio.wait_for(target.done.wait(), 1)
    assert target.items == [0, 10, 20]
    assert target.faults == []


@pytest.mark.asyncio
async def test_raising_target_faults_the_block() -> None:
    err = Boom("target broke")
    target = ListTarget(send_raises=err)
    block = TransformBlock(lambda x: x)
    block.link_to(target)

    block.post(1)
    block.complete()

    with pytest.raises(Boom) as exc:
        await asyncio.wait_for(block.completion, 1)
    assert exc.value is err
    assert block.is_faulted
    assert target.faults == [err]
    assert await block.receive() == 1
