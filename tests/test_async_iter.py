"""Tests for the lazy asynchronous sequence."""

import asyncio
import logging
from collections.abc import AsyncIterator

import pytest

import pyofold as pf


async def _countdown(start: int) -> AsyncIterator[int]:
    for value in range(start, 0, -1):
        await asyncio.sleep(0)
        yield value


async def _double(value: int) -> int:
    await asyncio.sleep(0)
    return value * 2


class _Ticks:
    """A re-iterable async source."""

    def __init__(self, amount: int) -> None:
        self.amount = amount

    def __aiter__(self) -> AsyncIterator[int]:
        return _countdown(self.amount)


class TestSources:
    def test_sync_rejects_iterator(self) -> None:
        """Test that a Sync source rejects one-shot iterators."""
        with pytest.raises(pf.NotIterableError):
            pf.Sync(iter([1, 2]))

    def test_async_rejects_async_generator(self) -> None:
        """Test that an Async source rejects one-shot async generators."""
        with pytest.raises(pf.NotIterableError):
            pf.Async(_countdown(2))

    def test_async_iter_rejects_untagged_source(self) -> None:
        """Test that AsyncIter only wraps tagged sources."""
        with pytest.raises(pf.NotIterableError):
            pf.AsyncIter([1, 2])  # type: ignore[arg-type]

    def test_async_iter_rejects_nesting(self) -> None:
        """Test that an AsyncIter can not wrap another AsyncIter."""
        with pytest.raises(pf.NestingError):
            pf.AsyncIter(pf.AsyncIter.of(1))  # type: ignore[arg-type]

    def test_from_iterable_tags_once(self) -> None:
        """Test that from_iterable picks the right tag."""
        assert isinstance(pf.AsyncIter.from_iterable([1]).inner(), pf.Sync)
        assert isinstance(pf.AsyncIter.from_iterable(_Ticks(1)).inner(), pf.Async)

    def test_repr_does_not_consume(self) -> None:
        """Test that the repr shows the source without iterating it."""
        assert repr(pf.AsyncIter.of(1, 2)) == "AsyncIter(Sync(data=(1, 2)))"


class TestConstructors:
    @pytest.mark.asyncio
    async def test_reiteration(self) -> None:
        """Test that an AsyncIter can be iterated twice."""
        data = pf.AsyncIter.from_iterator(lambda: _countdown(3)).map(_double)
        assert await data.to_list() == [6, 4, 2]
        assert await data.to_list() == [6, 4, 2]

    @pytest.mark.asyncio
    async def test_async_source(self) -> None:
        """Test iterating a re-iterable async source."""
        assert await pf.AsyncIter.from_iterable(_Ticks(2)).to_list() == [2, 1]

    @pytest.mark.asyncio
    async def test_empty_and_of(self) -> None:
        """Test the simplest constructors."""
        assert await pf.AsyncIter.empty().to_list() == []
        assert await pf.AsyncIter.of(1, 2).to_list() == [1, 2]

    @pytest.mark.asyncio
    async def test_from_awaitable_awaits_once(self) -> None:
        """Test that the awaitable is awaited once for all iterations."""
        calls: list[int] = []

        async def _compute() -> int:
            calls.append(1)
            return 42

        data = pf.AsyncIter.from_awaitable(_compute())
        assert await data.to_list() == [42]
        assert await data.to_list() == [42]
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_from_single_callback(self) -> None:
        """Test that only the first value passed to the callback is yielded."""

        def _register(callback: object) -> None:
            loop = asyncio.get_running_loop()
            loop.call_soon(callback, "first")
            loop.call_soon(callback, "second")

        assert await pf.AsyncIter.from_single_callback(_register).to_list() == ["first"]

    @pytest.mark.asyncio
    async def test_generate_and_unfold(self) -> None:
        """Test generated sequences, with sync and async callbacks."""
        doubled = pf.AsyncIter.generate(1, lambda v: _double(v) if v < 8 else None)
        assert await doubled.to_list() == [1, 2, 4, 8]
        counted = pf.AsyncIter.unfold(0, lambda s: (s, s + 1) if s < 3 else None)
        assert await counted.to_list() == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_from_lazy(self) -> None:
        """Test a lazily created single element."""
        assert await pf.AsyncIter.from_lazy(lambda: _double(5)).to_list() == [10]

    @pytest.mark.asyncio
    async def test_flatten_mixed(self) -> None:
        """Test flattening a mix of sync and async iterables."""
        assert await pf.AsyncIter.flatten([[1], _Ticks(2), ()]).to_list() == [1, 2, 1]

    @pytest.mark.asyncio
    async def test_flatten_rejects_non_iterable_element(self) -> None:
        """Test that flattening fails on an element that is neither a sync nor an async iterable."""
        with pytest.raises(pf.NotIterableError, match="got int"):
            await pf.AsyncIter.flatten([[1], 5]).to_list()


class TestOperators:
    @pytest.mark.asyncio
    async def test_map_filter(self) -> None:
        """Test mapping with an async function, then filtering."""
        data = pf.AsyncIter.of(1, 2, 3, 4).map(_double).filter(lambda v: v > 4)
        assert await data.to_list() == [6, 8]

    @pytest.mark.asyncio
    async def test_flat_map(self) -> None:
        """Test flat mapping to sync and async iterables."""
        assert await pf.AsyncIter.of(1, 2).flat_map(lambda v: [v] * v).to_list() == [1, 2, 2]
        assert await pf.AsyncIter.of(2).flat_map(_Ticks).to_list() == [2, 1]

    @pytest.mark.asyncio
    async def test_slices(self) -> None:
        """Test taking and dropping elements."""
        data = pf.AsyncIter.of(0, 1, 2, 3, 4)
        assert await data.take(2).to_list() == [0, 1]
        assert await data.drop(3).to_list() == [3, 4]
        assert await data.take_last(2).to_list() == [3, 4]
        assert await data.drop_last(2).to_list() == [0, 1, 2]
        assert await data.slice(1, 2).to_list() == [1, 2]
        assert await data.take_while(lambda v: v < 2).to_list() == [0, 1]
        assert await data.drop_while(lambda v: v < 3).to_list() == [3, 4]

    @pytest.mark.asyncio
    async def test_take_does_not_overpull(self) -> None:
        """Test that take never pulls more elements than it yields."""
        pulled: list[int] = []
        data = pf.AsyncIter.generate(0, lambda v: v + 1).monitor("", lambda v, *_: pulled.append(v))
        assert await data.take(3).to_list() == [0, 1, 2]
        assert pulled == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_concat_append_prepend(self) -> None:
        """Test adding elements around a sequence."""
        data = pf.AsyncIter.of(2).concat(_Ticks(1), [3]).append(4).prepend(0)
        assert await data.to_list() == [0, 2, 1, 3, 4]

    @pytest.mark.asyncio
    async def test_zip(self) -> None:
        """Test zipping stops at the shortest source."""
        data = pf.AsyncIter.from_iterable(_Ticks(3)).zip("ab")
        assert await data.to_list() == [(3, "a"), (2, "b")]

    @pytest.mark.asyncio
    async def test_zip_all(self) -> None:
        """Test zip_all pads exhausted sources."""
        data = pf.AsyncIter.of(1).zip_all(_Ticks(2))
        assert await data.to_list() == [(1, 2), (pf.NO_VALUE, 1)]

    @pytest.mark.asyncio
    async def test_zip_with(self) -> None:
        """Test combining zipped elements with sync and async functions."""
        assert await pf.AsyncIter.of(1, 2).zip_with(lambda a, b: a + b, [10, 20]).to_list() == [11, 22]
        assert await pf.AsyncIter.of(1).zip_all_with(lambda a, b: (a, b), [5, 6]).to_list() == [
            (1, 5),
            (pf.NO_VALUE, 6),
        ]

    @pytest.mark.asyncio
    async def test_zip_with_index_and_indices(self) -> None:
        """Test indexing elements."""
        assert await pf.AsyncIter.of("a", "b").zip_with_index().to_list() == [("a", 0), ("b", 1)]
        assert await pf.AsyncIter.from_iterable("abcb").indices_of("b").to_list() == [1, 3]

    @pytest.mark.asyncio
    async def test_interleave(self) -> None:
        """Test interleaving sources."""
        assert await pf.AsyncIter.from_iterable("abc").interleave("12").join() == "a1b2"
        assert await pf.AsyncIter.from_iterable("abc").interleave_all("1").join() == "a1bc"

    @pytest.mark.asyncio
    async def test_repeat(self) -> None:
        """Test repeating a sequence."""
        assert await pf.AsyncIter.of(1, 2).repeat(2).to_list() == [1, 2, 1, 2]
        assert await pf.AsyncIter.of(7).repeat().take(3).to_list() == [7, 7, 7]
        assert await pf.AsyncIter.empty().repeat().to_list() == []

    @pytest.mark.asyncio
    async def test_distinct_and_changed(self) -> None:
        """Test removing duplicates."""
        data = pf.AsyncIter.of(1, 1, 2, 1, 3)
        assert await data.distinct().to_list() == [1, 2, 3]
        assert await data.filter_changed().to_list() == [1, 2, 1, 3]
        assert await pf.AsyncIter.from_iterable(["a", "bb", "c"]).distinct_by(len).to_list() == ["a", "bb"]

    @pytest.mark.asyncio
    async def test_sliding_and_sample(self) -> None:
        """Test windows and sampling."""
        data = pf.AsyncIter.from_iterable(range(5))
        assert await data.sliding(3, 1).to_list() == [[0, 1, 2], [1, 2, 3], [2, 3, 4]]
        assert await data.sliding(2).to_list() == [[0, 1], [2, 3], [4]]
        assert await data.sample(2).to_list() == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_split_where(self) -> None:
        """Test splitting on matching elements."""
        data = pf.AsyncIter.of(1, 2, 3)
        assert await data.split_where(lambda v: v % 2 == 1).to_list() == [[], [2], []]
        assert await pf.AsyncIter.empty().split_where(bool).to_list() == []

    @pytest.mark.asyncio
    async def test_patches(self) -> None:
        """Test the patch primitives."""
        data = pf.AsyncIter.from_iterable("abcb")
        assert await data.patch_elem("b", 1, _Ticks(1)).join() == "a1c1"
        assert await data.patch_at(1, 2, "XY").join() == "aXYb"
        assert await data.patch_at(-1, 0, "<").join() == "<abcb"
        assert await data.patch_at(10, 0, ">").join() == "abcb>"
        assert await data.intersperse("-").join() == "a-b-c-b"
        assert await data.mk_group("(", ",", ")").join() == "(a,b,c,b)"

    @pytest.mark.asyncio
    async def test_delay(self) -> None:
        """Test that delay keeps the elements."""
        assert await pf.AsyncIter.of(1, 2).delay(0).to_list() == [1, 2]

    @pytest.mark.asyncio
    async def test_monitor(self) -> None:
        """Test that monitors see elements with their index."""
        seen: list[tuple[int, int, str]] = []
        await pf.AsyncIter.of(5, 6).monitor("m", lambda v, i, tag: seen.append((v, i, tag))).for_each()
        assert seen == [(5, 0, "m"), (6, 1, "m")]


class TestTerminal:
    @pytest.mark.asyncio
    async def test_collect(self) -> None:
        """Test folding with a collector."""
        assert await pf.AsyncIter.from_iterable(_Ticks(4)).collect(pf.ops.sum) == 10

    @pytest.mark.asyncio
    async def test_collect_escapes(self) -> None:
        """Test that an escaping collector stops an infinite sequence."""
        nats = pf.AsyncIter.generate(0, lambda v: v + 1)
        assert await nats.collect(pf.ops.find(lambda v: v > 5)) == 6
        assert await nats.collect(pf.Collector.fixed("x")) == "x"

    @pytest.mark.asyncio
    async def test_collect_logs_escape(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that an escaping fold is logged at debug level with the amount of elements seen."""
        with caplog.at_level(logging.DEBUG, logger="pyofold"):
            assert await pf.AsyncIter.of(1, 2, 3, 4).collect(pf.ops.sum.take_input(2)) == 3
        assert "Collector escaped after 2 elements" in caplog.messages

    @pytest.mark.asyncio
    async def test_collect_iter(self) -> None:
        """Test lazily scanning."""
        assert await pf.AsyncIter.of(1, 2, 3).collect_iter(pf.ops.sum).to_list() == [1, 3, 6]

    @pytest.mark.asyncio
    async def test_reduce(self) -> None:
        """Test reduce with and without fallback."""
        assert await pf.AsyncIter.of(1, 2, 3).reduce(lambda a, b: a * b) == 6
        assert await pf.AsyncIter.empty().reduce(lambda a, b: a + b, otherwise=0) == 0
        with pytest.raises(pf.EmptyInputError):
            await pf.AsyncIter.empty().reduce(lambda a, b: a + b)

    @pytest.mark.asyncio
    async def test_for_each_awaits_effect(self) -> None:
        """Test that async effects are awaited."""
        seen: list[int] = []

        async def _effect(value: int) -> None:
            await asyncio.sleep(0)
            seen.append(value)

        await pf.AsyncIter.of(1, 2).for_each(_effect)
        assert seen == [1, 2]

    @pytest.mark.asyncio
    async def test_to_set_and_join(self) -> None:
        """Test collecting in a set and joining."""
        assert await pf.AsyncIter.of(1, 1, 2).to_set() == {1, 2}
        assert await pf.AsyncIter.of(1, 2).join(",", "[", "]") == "[1,2]"

    @pytest.mark.asyncio
    async def test_from_sync_iter(self) -> None:
        """Test converting a sync Iter."""
        assert await pf.Iter.range(0, 3).to_async().map(_double).to_list() == [0, 2, 4]
