"""Async iterator state machines behind the `AsyncIter` operators.

Callbacks may return awaitables, which are awaited before being used.
"""

from __future__ import annotations

import asyncio
import inspect
from abc import abstractmethod
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, Iterator, Sequence
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from .._common import NO_VALUE, MonitorEffect, is_async_iterable, is_iterable
from .._errors import NotIterableError

if TYPE_CHECKING:
    from .._collector import Collector


async def resolve[T](value: T | Awaitable[T]) -> T:
    """Await `value` if it is awaitable, return it as is otherwise."""
    if inspect.isawaitable(value):
        return await value
    return value


async def pull[T](iterator: AsyncIterator[T]) -> tuple[bool, T | None]:
    """Pull the next element, returning `(False, None)` instead of raising once exhausted."""
    try:
        return True, await anext(iterator)
    except StopAsyncIteration:
        return False, None


async def _exhausted() -> tuple[bool, None]:
    return False, None


def to_async_iterator[T](data: Iterable[T] | AsyncIterable[T]) -> AsyncIterator[T]:
    """Get an async iterator over any sync or async iterable, one-shot ones included."""
    if is_async_iterable(data):
        return aiter(data)
    if is_iterable(data):
        return FromSync(iter(data))
    msg = f"Expected a sync or async iterable, got {type(data).__name__}"
    raise NotIterableError(msg)


class AsyncStateful[T](AsyncIterator[T]):
    __slots__ = ("_done",)

    def __init__(self) -> None:
        self._done = False

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration
        try:
            return await self._step()
        except StopAsyncIteration:
            self._done = True
            raise

    @abstractmethod
    async def _step(self) -> T:
        """Produce the next element, or raise `StopAsyncIteration`."""
        raise NotImplementedError


class FromSync[T](AsyncStateful[T]):
    __slots__ = ("_source",)

    def __init__(self, source: Iterator[T]) -> None:
        super().__init__()
        self._source = source

    async def _step(self) -> T:
        try:
            return next(self._source)
        except StopIteration:
            raise StopAsyncIteration from None


class Flattened[T](AsyncStateful[T]):
    __slots__ = ("_current", "_source")

    def __init__(self, source: AsyncIterable[Iterable[T] | AsyncIterable[T]]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._current: AsyncIterator[T] | None = None

    async def _step(self) -> T:
        while True:
            if self._current is not None:
                with suppress(StopAsyncIteration):
                    return await anext(self._current)
                self._current = None
            self._current = to_async_iterator(await anext(self._source))


def chain[T](*parts: Iterable[T] | AsyncIterable[T]) -> AsyncIterator[T]:
    return Flattened(FromSync(iter(parts)))


class Scan[T, R](AsyncStateful[R]):
    __slots__ = ("_collector", "_escaped", "_index", "_source", "_state")

    def __init__(self, source: AsyncIterable[T], collector: Collector[T, Any, R]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._collector = collector
        self._state = collector.create_init_state()
        self._index = 0
        self._escaped = collector.should_escape(self._state, 0)

    async def _step(self) -> R:
        if self._escaped:
            raise StopAsyncIteration
        elem = await anext(self._source)
        self._state = self._collector.next_state(self._state, elem, self._index)
        self._index += 1
        self._escaped = self._collector.should_escape(self._state, self._index)
        return self._collector.state_to_result(self._state, self._index)


class Mapped[T, R](AsyncStateful[R]):
    __slots__ = ("_func", "_source")

    def __init__(self, source: AsyncIterable[T], func: Callable[[T], R | Awaitable[R]]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._func = func

    async def _step(self) -> R:
        return await resolve(self._func(await anext(self._source)))


class Indexed[T](AsyncStateful[tuple[T, int]]):
    __slots__ = ("_index", "_source")

    def __init__(self, source: AsyncIterable[T]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._index = 0

    async def _step(self) -> tuple[T, int]:
        elem = await anext(self._source)
        index = self._index
        self._index += 1
        return elem, index


class Monitored[T](AsyncStateful[T]):
    __slots__ = ("_effect", "_index", "_source", "_tag")

    def __init__(self, source: AsyncIterable[T], tag: str, effect: MonitorEffect[T]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._tag = tag
        self._effect = effect
        self._index = 0

    async def _step(self) -> T:
        elem = await anext(self._source)
        self._effect(elem, self._index, self._tag)
        self._index += 1
        return elem


class Delayed[T](AsyncStateful[T]):
    __slots__ = ("_seconds", "_source")

    def __init__(self, source: AsyncIterable[T], seconds: float) -> None:
        super().__init__()
        self._source = aiter(source)
        self._seconds = seconds

    async def _step(self) -> T:
        elem = await anext(self._source)
        await asyncio.sleep(self._seconds)
        return elem


class Take[T](AsyncStateful[T]):
    __slots__ = ("_remaining", "_source")

    def __init__(self, source: AsyncIterable[T], amount: int) -> None:
        super().__init__()
        self._source = aiter(source)
        self._remaining = amount

    async def _step(self) -> T:
        if self._remaining <= 0:
            raise StopAsyncIteration
        self._remaining -= 1
        return await anext(self._source)


class TakeLast[T](AsyncStateful[T]):
    __slots__ = ("_amount", "_buffer", "_source")

    def __init__(self, source: AsyncIterable[T], amount: int) -> None:
        super().__init__()
        self._source = aiter(source)
        self._amount = amount
        self._buffer: deque[T] | None = None

    async def _step(self) -> T:
        if self._buffer is None:
            self._buffer = deque(maxlen=self._amount)
            async for elem in self._source:
                self._buffer.append(elem)
        if not self._buffer:
            raise StopAsyncIteration
        return self._buffer.popleft()


class DropLast[T](AsyncStateful[T]):
    __slots__ = ("_amount", "_buffer", "_source")

    def __init__(self, source: AsyncIterable[T], amount: int) -> None:
        super().__init__()
        self._source = aiter(source)
        self._amount = amount
        self._buffer: deque[T] = deque()

    async def _step(self) -> T:
        while len(self._buffer) <= self._amount:
            self._buffer.append(await anext(self._source))
        return self._buffer.popleft()


class TakeWhile[T](AsyncStateful[T]):
    __slots__ = ("_predicate", "_source")

    def __init__(self, source: AsyncIterable[T], predicate: Callable[[T], bool]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._predicate = predicate

    async def _step(self) -> T:
        elem = await anext(self._source)
        if not self._predicate(elem):
            raise StopAsyncIteration
        return elem


class DropWhile[T](AsyncStateful[T]):
    __slots__ = ("_dropping", "_predicate", "_source")

    def __init__(self, source: AsyncIterable[T], predicate: Callable[[T], bool]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._predicate = predicate
        self._dropping = True

    async def _step(self) -> T:
        while True:
            elem = await anext(self._source)
            if not self._dropping:
                return elem
            if not self._predicate(elem):
                self._dropping = False
                return elem


class Distinct[T](AsyncStateful[T]):
    __slots__ = ("_key", "_seen", "_source")

    def __init__(self, source: AsyncIterable[T], key: Callable[[T], Any]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._key = key
        self._seen: set[Any] = set()

    async def _step(self) -> T:
        while True:
            elem = await anext(self._source)
            k = self._key(elem)
            if k not in self._seen:
                self._seen.add(k)
                return elem


class FilterWithPrevious[T](AsyncStateful[T]):
    __slots__ = ("_predicate", "_previous", "_source")

    def __init__(self, source: AsyncIterable[T], predicate: Callable[[T, Any], bool]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._predicate = predicate
        self._previous: Any = NO_VALUE

    async def _step(self) -> T:
        while True:
            elem = await anext(self._source)
            keep = self._predicate(elem, self._previous)
            self._previous = elem
            if keep:
                return elem


class Sampled[T](AsyncStateful[T]):
    __slots__ = ("_index", "_nth", "_source")

    def __init__(self, source: AsyncIterable[T], nth: int) -> None:
        super().__init__()
        self._source = aiter(source)
        self._nth = nth
        self._index = 0

    async def _step(self) -> T:
        while True:
            elem = await anext(self._source)
            index = self._index
            self._index += 1
            if index % self._nth == 0:
                return elem


class Repeat[T](AsyncStateful[T]):
    __slots__ = ("_iterator", "_non_empty", "_remaining", "_source")

    def __init__(self, source: AsyncIterable[T], times: int | None) -> None:
        super().__init__()
        self._source = source
        self._iterator = aiter(source)
        self._remaining = times
        self._non_empty = False

    async def _step(self) -> T:
        while True:
            try:
                elem = await anext(self._iterator)
            except StopAsyncIteration:
                if not self._non_empty:
                    raise
                if self._remaining is not None:
                    self._remaining -= 1
                    if self._remaining <= 0:
                        raise
                self._iterator = aiter(self._source)
                continue
            self._non_empty = True
            return elem


class Zip(AsyncStateful[tuple[Any, ...]]):
    """Advance all sources together, each step awaiting all of them concurrently."""

    __slots__ = ("_iterators",)

    def __init__(self, sources: Sequence[AsyncIterable[Any]]) -> None:
        super().__init__()
        self._iterators = [aiter(source) for source in sources]

    async def _step(self) -> tuple[Any, ...]:
        pulled = await asyncio.gather(*(pull(it) for it in self._iterators))
        if not all(ok for ok, _ in pulled):
            raise StopAsyncIteration
        return tuple(value for _, value in pulled)


class ZipAll(AsyncStateful[tuple[Any, ...]]):
    """Same as `Zip`, padding exhausted sources with `NO_VALUE` until all of them are exhausted."""

    __slots__ = ("_active", "_iterators")

    def __init__(self, sources: Sequence[AsyncIterable[Any]]) -> None:
        super().__init__()
        self._iterators = [aiter(source) for source in sources]
        self._active = [True] * len(self._iterators)

    async def _step(self) -> tuple[Any, ...]:
        pulled = await asyncio.gather(
            *(pull(it) if active else _exhausted() for it, active in zip(self._iterators, self._active, strict=True)),
        )
        self._active = [ok for ok, _ in pulled]
        if not any(self._active):
            raise StopAsyncIteration
        return tuple(value if ok else NO_VALUE for ok, value in pulled)


class Sliding[T](AsyncStateful[list[T]]):
    __slots__ = ("_bucket", "_exhausted", "_size", "_source", "_stride", "_to_skip")

    def __init__(self, source: AsyncIterable[T], size: int, stride: int) -> None:
        super().__init__()
        self._source = aiter(source)
        self._size = size
        self._stride = stride
        self._bucket: list[T] = []
        self._to_skip = 0
        self._exhausted = False

    async def _step(self) -> list[T]:
        while not self._exhausted:
            ok, elem = await pull(self._source)
            if not ok:
                self._exhausted = True
                break
            if self._to_skip <= 0:
                self._bucket.append(elem)
            self._to_skip -= 1
            if len(self._bucket) >= self._size:
                window = self._bucket
                self._bucket = window[self._stride :]
                self._to_skip = self._stride - self._size
                return window
        window, self._bucket = self._bucket, []
        if window and len(window) > self._size - self._stride:
            return window
        raise StopAsyncIteration


class SplitWhere[T](AsyncStateful[list[T]]):
    __slots__ = ("_bucket", "_predicate", "_seen", "_source")

    def __init__(self, source: AsyncIterable[T], predicate: Callable[[T], bool]) -> None:
        super().__init__()
        self._source = aiter(source)
        self._predicate = predicate
        self._bucket: list[T] = []
        self._seen = False

    async def _step(self) -> list[T]:
        async for elem in self._source:
            self._seen = True
            if self._predicate(elem):
                bucket, self._bucket = self._bucket, []
                return bucket
            self._bucket.append(elem)
        if not self._seen:
            raise StopAsyncIteration
        self._seen = False
        return self._bucket


class PatchWhere[T](AsyncStateful[T]):
    __slots__ = ("_amount_left", "_index", "_insert", "_pending", "_predicate", "_remove", "_skip", "_source")

    def __init__(
        self,
        source: AsyncIterable[T],
        predicate: Callable[[T, int], bool],
        remove: int,
        insert: Callable[[T, int], Iterable[T] | AsyncIterable[T]] | None,
        amount: int | None,
    ) -> None:
        super().__init__()
        self._source = aiter(source)
        self._predicate = predicate
        self._remove = remove
        self._insert = insert
        self._amount_left = amount
        self._index = 0
        self._skip = 0
        self._pending: AsyncIterator[T] | None = None

    async def _step(self) -> T:
        while True:
            if self._pending is not None:
                with suppress(StopAsyncIteration):
                    return await anext(self._pending)
                self._pending = None
            elem = await anext(self._source)
            index = self._index
            self._index += 1
            if self._skip > 0:
                self._skip -= 1
                continue
            if not self._matches(elem, index):
                return elem
            inserted = () if self._insert is None else self._insert(elem, index)
            self._skip = self._remove
            if self._skip > 0:
                self._skip -= 1
                self._pending = to_async_iterator(inserted)
            else:
                self._pending = chain(inserted, (elem,))

    def _matches(self, elem: T, index: int) -> bool:
        if self._amount_left is not None and self._amount_left <= 0:
            return False
        if not self._predicate(elem, index):
            return False
        if self._amount_left is not None:
            self._amount_left -= 1
        return True


class PatchAt[T](AsyncStateful[T]):
    __slots__ = ("_at", "_index", "_insert", "_patched", "_pending", "_remove", "_skip", "_source")

    def __init__(self, source: AsyncIterable[T], at: int, remove: int, insert: AsyncIterable[T]) -> None:
        super().__init__()
        self._source: AsyncIterator[T] | None = aiter(source)
        self._at = at
        self._remove = remove
        self._insert = insert
        self._index = 0
        self._skip = 0
        self._patched = False
        self._pending: AsyncIterator[T] | None = None
        if at < 0:
            self._patch()

    def _patch(self) -> None:
        self._patched = True
        self._pending = aiter(self._insert)
        self._skip = self._remove

    async def _step(self) -> T:
        while True:
            if self._pending is not None:
                with suppress(StopAsyncIteration):
                    return await anext(self._pending)
                self._pending = None
            if self._source is None:
                raise StopAsyncIteration
            ok, elem = await pull(self._source)
            if not ok:
                self._source = None
                if not self._patched:
                    # past the end: insert once, after the last element
                    self._patch()
                continue
            index = self._index
            self._index += 1
            if not self._patched and index == self._at:
                self._patch()
                if self._skip <= 0:
                    self._pending = chain(self._insert, (elem,))
                    continue
            if self._skip > 0:
                self._skip -= 1
                continue
            return elem


class Generate[T](AsyncStateful[T]):
    __slots__ = ("_init", "_next", "_previous", "_started")

    def __init__(self, init: T | Awaitable[T], next_value: Callable[[T], T | None | Awaitable[T | None]]) -> None:
        super().__init__()
        self._init = init
        self._next = next_value
        self._previous: T | None = None
        self._started = False

    async def _step(self) -> T:
        if self._started:
            value = await resolve(self._next(self._previous))
        else:
            self._started = True
            value = await resolve(self._init)
        if value is None:
            raise StopAsyncIteration
        self._previous = value
        return value


class Unfold[S, T](AsyncStateful[T]):
    __slots__ = ("_next", "_state")

    def __init__(self, init: S, next_value: Callable[[S], Any]) -> None:
        super().__init__()
        self._state = init
        self._next = next_value

    async def _step(self) -> T:
        produced = await resolve(self._next(self._state))
        if produced is None:
            raise StopAsyncIteration
        value, self._state = produced
        return value


class Once[T](AsyncStateful[T]):
    __slots__ = ("_create",)

    def __init__(self, create: Callable[[], T | Awaitable[T]]) -> None:
        super().__init__()
        self._create = create

    async def _step(self) -> T:
        self._done = True
        return await resolve(self._create())
