"""Iterator state machines behind the `Iter` operators.

Each class is a plain iterator with explicit state fields.

Once exhausted, an iterator stays exhausted, whatever its source does afterwards.
"""

from __future__ import annotations

import itertools
from abc import abstractmethod
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from .._common import NO_VALUE, MonitorEffect

if TYPE_CHECKING:
    from .._collector import Collector


class Stateful[T](Iterator[T]):
    __slots__ = ("_done",)

    def __init__(self) -> None:
        self._done = False

    def __next__(self) -> T:
        if self._done:
            raise StopIteration
        try:
            return self._step()
        except StopIteration:
            self._done = True
            raise

    @abstractmethod
    def _step(self) -> T:
        """Produce the next element, or raise `StopIteration`."""
        raise NotImplementedError


class Scan[T, R](Stateful[R]):
    __slots__ = ("_collector", "_escaped", "_index", "_source", "_state")

    def __init__(self, source: Iterable[T], collector: Collector[T, Any, R]) -> None:
        super().__init__()
        self._source = iter(source)
        self._collector = collector
        self._state = collector.create_init_state()
        self._index = 0
        self._escaped = collector.should_escape(self._state, 0)

    def _step(self) -> R:
        if self._escaped:
            raise StopIteration
        elem = next(self._source)
        self._state = self._collector.next_state(self._state, elem, self._index)
        self._index += 1
        self._escaped = self._collector.should_escape(self._state, self._index)
        return self._collector.state_to_result(self._state, self._index)


class PatchWhere[T](Stateful[T]):
    __slots__ = ("_amount_left", "_index", "_insert", "_pending", "_predicate", "_remove", "_skip", "_source")

    def __init__(
        self,
        source: Iterable[T],
        predicate: Callable[[T, int], bool],
        remove: int,
        insert: Callable[[T, int], Iterable[T]] | None,
        amount: int | None,
    ) -> None:
        super().__init__()
        self._source = iter(source)
        self._predicate = predicate
        self._remove = remove
        self._insert = insert
        self._amount_left = amount
        self._index = 0
        self._skip = 0
        self._pending: Iterator[T] = iter(())

    def _step(self) -> T:
        while True:
            with suppress(StopIteration):
                return next(self._pending)
            elem = next(self._source)
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
                self._pending = iter(inserted)
            else:
                self._pending = itertools.chain(inserted, (elem,))

    def _matches(self, elem: T, index: int) -> bool:
        if self._amount_left is not None and self._amount_left <= 0:
            return False
        if not self._predicate(elem, index):
            return False
        if self._amount_left is not None:
            self._amount_left -= 1
        return True


class PatchAt[T](Stateful[T]):
    __slots__ = ("_at", "_index", "_insert", "_patched", "_pending", "_remove", "_skip", "_source")

    def __init__(self, source: Iterable[T], at: int, remove: int, insert: Iterable[T]) -> None:
        super().__init__()
        self._source = iter(source)
        self._at = at
        self._remove = remove
        self._insert = insert
        self._index = 0
        self._skip = 0
        self._patched = False
        self._pending: Iterator[T] = iter(())
        if at < 0:
            self._patch()

    def _patch(self) -> None:
        self._patched = True
        self._pending = iter(self._insert)
        self._skip = self._remove

    def _step(self) -> T:
        while True:
            with suppress(StopIteration):
                return next(self._pending)
            try:
                elem = next(self._source)
            except StopIteration:
                if self._patched:
                    raise
                # past the end: insert once, after the last element
                self._patch()
                self._source = iter(())
                continue
            index = self._index
            self._index += 1
            if not self._patched and index == self._at:
                self._patch()
                if self._skip <= 0:
                    self._pending = itertools.chain(self._pending, (elem,))
                    continue
            if self._skip > 0:
                self._skip -= 1
                continue
            return elem


class TakeLast[T](Stateful[T]):
    __slots__ = ("_amount", "_buffer", "_source")

    def __init__(self, source: Iterable[T], amount: int) -> None:
        super().__init__()
        self._source = iter(source)
        self._amount = amount
        self._buffer: deque[T] | None = None

    def _step(self) -> T:
        if self._buffer is None:
            self._buffer = deque(self._source, maxlen=self._amount)
        if not self._buffer:
            raise StopIteration
        return self._buffer.popleft()


class DropLast[T](Stateful[T]):
    __slots__ = ("_amount", "_buffer", "_source")

    def __init__(self, source: Iterable[T], amount: int) -> None:
        super().__init__()
        self._source = iter(source)
        self._amount = amount
        self._buffer: deque[T] = deque()

    def _step(self) -> T:
        while len(self._buffer) <= self._amount:
            self._buffer.append(next(self._source))
        return self._buffer.popleft()


class Repeat[T](Stateful[T]):
    __slots__ = ("_iterator", "_non_empty", "_remaining", "_source")

    def __init__(self, source: Iterable[T], times: int | None) -> None:
        super().__init__()
        self._source = source
        self._iterator = iter(source)
        self._remaining = times
        self._non_empty = False

    def _step(self) -> T:
        while True:
            try:
                elem = next(self._iterator)
            except StopIteration:
                if not self._non_empty:
                    raise
                if self._remaining is not None:
                    self._remaining -= 1
                    if self._remaining <= 0:
                        raise
                self._iterator = iter(self._source)
                continue
            self._non_empty = True
            return elem


class FilterWithPrevious[T](Stateful[T]):
    __slots__ = ("_predicate", "_previous", "_source")

    def __init__(self, source: Iterable[T], predicate: Callable[[T, Any], bool]) -> None:
        super().__init__()
        self._source = iter(source)
        self._predicate = predicate
        self._previous: Any = NO_VALUE

    def _step(self) -> T:
        for elem in self._source:
            keep = self._predicate(elem, self._previous)
            self._previous = elem
            if keep:
                return elem
        raise StopIteration


class Sliding[T](Stateful[list[T]]):
    __slots__ = ("_bucket", "_size", "_source", "_stride", "_to_skip")

    def __init__(self, source: Iterable[T], size: int, stride: int) -> None:
        super().__init__()
        self._source = iter(source)
        self._size = size
        self._stride = stride
        self._bucket: list[T] = []
        self._to_skip = 0

    def _step(self) -> list[T]:
        for elem in self._source:
            if self._to_skip <= 0:
                self._bucket.append(elem)
            self._to_skip -= 1
            if len(self._bucket) >= self._size:
                window = self._bucket
                self._bucket = window[self._stride :]
                self._to_skip = self._stride - self._size
                return window
        # a tail no longer than the overlap was already part of the last window
        window, self._bucket = self._bucket, []
        if window and len(window) > self._size - self._stride:
            return window
        raise StopIteration


class SplitWhere[T](Stateful[list[T]]):
    __slots__ = ("_bucket", "_predicate", "_seen", "_source")

    def __init__(self, source: Iterable[T], predicate: Callable[[T], bool]) -> None:
        super().__init__()
        self._source = iter(source)
        self._predicate = predicate
        self._bucket: list[T] = []
        self._seen = False

    def _step(self) -> list[T]:
        for elem in self._source:
            self._seen = True
            if self._predicate(elem):
                bucket, self._bucket = self._bucket, []
                return bucket
            self._bucket.append(elem)
        if not self._seen:
            raise StopIteration
        self._seen = False
        return self._bucket


class Monitored[T](Stateful[T]):
    __slots__ = ("_effect", "_index", "_source", "_tag")

    def __init__(self, source: Iterable[T], tag: str, effect: MonitorEffect[T]) -> None:
        super().__init__()
        self._source = iter(source)
        self._tag = tag
        self._effect = effect
        self._index = 0

    def _step(self) -> T:
        elem = next(self._source)
        self._effect(elem, self._index, self._tag)
        self._index += 1
        return elem


class Generate[T](Stateful[T]):
    __slots__ = ("_next", "_previous", "_started")

    def __init__(self, init: T, next_value: Callable[[T], T | None]) -> None:
        super().__init__()
        self._previous: T | None = init
        self._next = next_value
        self._started = False

    def _step(self) -> T:
        if self._started:
            value = None if self._previous is None else self._next(self._previous)
        else:
            self._started = True
            value = self._previous
        if value is None:
            raise StopIteration
        self._previous = value
        return value


class Unfold[S, T](Stateful[T]):
    __slots__ = ("_next", "_state")

    def __init__(self, init: S, next_value: Callable[[S], tuple[T, S] | None]) -> None:
        super().__init__()
        self._state = init
        self._next = next_value

    def _step(self) -> T:
        produced = self._next(self._state)
        if produced is None:
            raise StopIteration
        value, self._state = produced
        return value


class Once[T](Stateful[T]):
    __slots__ = ("_create",)

    def __init__(self, create: Callable[[], T]) -> None:
        super().__init__()
        self._create = create

    def _step(self) -> T:
        self._done = True
        return self._create()
