from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, Iterator
from typing import TYPE_CHECKING, Any, Concatenate, overload

import cytoolz as cz

from .._common import NO_VALUE, MonitorEffect, NoValue, OptLazy, is_async_iterable, log_monitor, to_value
from .._core import CommonBase
from .._errors import EmptyInputError, NestingError, NotIterableError
from . import _iterators as its
from ._sources import Async, FromIterator, SharedAwaitable, SingleCallback, Source, Sync

if TYPE_CHECKING:
    from .._collector import Collector

logger = logging.getLogger(__name__)

type SyncOrAsync[T] = Iterable[T] | AsyncIterable[T]
"""Anything an `AsyncIter` can be built from."""
type MaybeAwaitable[T] = T | Awaitable[T]


class AsyncIter[T](CommonBase[Source[T]], AsyncIterable[T]):
    """A lazy, re-iterable asynchronous sequence, with the same chainable operators as `Iter`.

    An `AsyncIter` wraps a tagged source, either `Sync` or `Async`, so the kind of the source is decided once, when it is
    wrapped.

    `AsyncIter.from_iterable` builds the right tag from any sync or async iterable.

    Each `async for` over it creates fresh iteration state, so the same `AsyncIter` can be iterated any number of times.

    Terminal operations (`collect`, `to_list`, `reduce`...) are coroutines.

    Args:
        source (Source[T]): The tagged source to wrap.

    Raises:
        NestingError: If `source` is already an `AsyncIter`.
        NotIterableError: If `source` is not a `Sync` or `Async` source.

    Example:
    ```python
    >>> import asyncio
    >>> import pyofold as pf
    >>> data = pf.AsyncIter(pf.Sync([1, 2, 3]))
    >>> data
    AsyncIter(Sync(data=[1, 2, 3]))
    >>> asyncio.run(data.map(lambda v: v * 2).to_list())
    [2, 4, 6]

    ```
    """

    __slots__ = ()

    def __init__(self, source: Source[T]) -> None:
        if isinstance(source, AsyncIter):
            msg = "AsyncIter can not wrap another AsyncIter, use AsyncIter.from_iterable instead"
            raise NestingError(msg)
        if not isinstance(source, Sync | Async):
            msg = f"AsyncIter expects a Sync or Async source, got {type(source).__name__}"
            raise NotIterableError(msg)
        super().__init__(source)

    def __aiter__(self) -> AsyncIterator[T]:
        return aiter(self._inner)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._inner!r})"

    def _aiter[**P, U](
        self,
        factory: Callable[Concatenate[AsyncIterable[T], P], AsyncIterator[U]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> AsyncIter[U]:
        def _() -> AsyncIterator[U]:
            return factory(self._inner, *args, **kwargs)

        return AsyncIter.from_iterator(_)

    # constructors ---------------------------------------------------------
    @staticmethod
    def empty[U]() -> AsyncIter[U]:
        """Create an `AsyncIter` without elements."""
        return AsyncIter(Sync(()))

    @staticmethod
    def of[U](*values: U) -> AsyncIter[U]:
        """Create an `AsyncIter` of the given values."""
        return AsyncIter(Sync(values))

    @staticmethod
    def from_iterable[U](data: SyncOrAsync[U] | Source[U]) -> AsyncIter[U]:
        """Wrap any sync or async re-iterable, tagging it once.

        An `AsyncIter` is returned unchanged.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.AsyncIter.from_iterable("ab")
        AsyncIter(Sync(data='ab'))

        ```
        """
        if isinstance(data, AsyncIter):
            return data
        if isinstance(data, Sync | Async):
            return AsyncIter(data)
        if is_async_iterable(data):
            return AsyncIter(Async(data))
        return AsyncIter(Sync(data))

    @staticmethod
    def from_iterator[U](factory: Callable[[], Iterator[U] | AsyncIterator[U]]) -> AsyncIter[U]:
        """Create an `AsyncIter` calling `factory` each time it is iterated.

        `factory` may return a sync iterator or an async one, such as an async generator.

        Example:
        ```python
        >>> import asyncio
        >>> import pyofold as pf
        >>> async def countdown():
        ...     for v in range(3, 0, -1):
        ...         yield v
        >>> asyncio.run(pf.AsyncIter.from_iterator(countdown).to_list())
        [3, 2, 1]

        ```
        """
        return AsyncIter(Async(FromIterator(factory)))

    @staticmethod
    def from_awaitable[U](awaitable: Awaitable[U]) -> AsyncIter[U]:
        """Create an `AsyncIter` of the single result of `awaitable`.

        The awaitable is awaited at most once, every iteration yielding the same result.
        """
        shared = SharedAwaitable(awaitable)
        return AsyncIter.from_lazy(lambda: shared)

    @staticmethod
    def from_single_callback[U](register: Callable[[Callable[[U], None]], object]) -> AsyncIter[U]:
        """Create an `AsyncIter` of the first value passed to a callback.

        On each iteration, `register` is called with a new callback, and the sequence yields the first value it receives.

        Example:
        ```python
        >>> import asyncio
        >>> import pyofold as pf
        >>> def register(callback):
        ...     asyncio.get_running_loop().call_soon(callback, "done")
        >>> asyncio.run(pf.AsyncIter.from_single_callback(register).to_list())
        ['done']

        ```
        """

        async def _wait() -> U:
            callback: SingleCallback[U] = SingleCallback()
            await its.resolve(register(callback.emit))
            return await callback.wait()

        return AsyncIter.from_lazy(_wait)

    @staticmethod
    def generate[U](init: MaybeAwaitable[U], next_value: Callable[[U], MaybeAwaitable[U | None]]) -> AsyncIter[U]:
        """Create an `AsyncIter` starting with `init`, each next element computed from the previous one.

        The sequence ends when `next_value` returns `None`.
        """
        return AsyncIter.from_iterator(lambda: its.Generate(init, next_value))

    @staticmethod
    def unfold[S, U](init: S, next_value: Callable[[S], MaybeAwaitable[tuple[U, S] | None]]) -> AsyncIter[U]:
        """Create an `AsyncIter` from a state, `next_value` returning the next `(element, state)` pair.

        The sequence ends when `next_value` returns `None`.
        """
        return AsyncIter.from_iterator(lambda: its.Unfold(init, next_value))

    @staticmethod
    def from_lazy[U](create: Callable[[], MaybeAwaitable[U]]) -> AsyncIter[U]:
        """Create an `AsyncIter` of a single element, created by `create` each time the sequence is iterated."""
        return AsyncIter.from_iterator(lambda: its.Once(create))

    @staticmethod
    def flatten[U](data: SyncOrAsync[SyncOrAsync[U]]) -> AsyncIter[U]:
        """Create an `AsyncIter` of the elements of each sync or async iterable of `data`, in order."""
        return AsyncIter.from_iterable(data)._aiter(its.Flattened)

    # folds ----------------------------------------------------------------
    async def collect[R](self, collector: Collector[T, Any, R]) -> R:
        """Fold the elements with `collector`, stopping as soon as it escapes.

        Example:
        ```python
        >>> import asyncio
        >>> import pyofold as pf
        >>> asyncio.run(pf.AsyncIter.of(2, 3, 4).collect(pf.ops.product))
        24

        ```
        """
        state = collector.create_init_state()
        index = 0
        if not collector.should_escape(state, index):
            async for elem in self:
                state = collector.next_state(state, elem, index)
                index += 1
                if collector.should_escape(state, index):
                    logger.debug("Collector escaped after %d elements", index)
                    break
        return collector.state_to_result(state, index)

    def collect_iter[R](self, collector: Collector[T, Any, R]) -> AsyncIter[R]:
        """Lazily yield the result of `collector` after each element, until it escapes."""
        return self._aiter(its.Scan, collector)

    async def for_each(self, effect: Callable[[T], MaybeAwaitable[object]] | None = None) -> None:
        """Pull all elements, calling `effect` on each one if given, and awaiting its result when needed."""
        async for elem in self:
            if effect is not None:
                await its.resolve(effect(elem))

    async def reduce(self, func: Callable[[T, T], T], otherwise: OptLazy[T] | NoValue = NO_VALUE) -> T:
        """Combine the elements pairwise with `func`, from the first to the last.

        Raises:
            EmptyInputError: If there are no elements and no fallback was given.
        """
        acc: T | NoValue = NO_VALUE
        async for elem in self:
            acc = elem if acc is NO_VALUE else func(acc, elem)
        if acc is not NO_VALUE:
            return acc
        if otherwise is NO_VALUE:
            msg = "reduce of an empty AsyncIter without fallback"
            raise EmptyInputError(msg)
        return to_value(otherwise)

    async def join(self, sep: str = "", start: str = "", end: str = "") -> str:
        """Concatenate the string form of the elements, with `sep` in between, between `start` and `end`."""
        return start + sep.join([str(elem) async for elem in self]) + end

    async def to_list(self) -> list[T]:
        """Collect the elements in a new list."""
        return [elem async for elem in self]

    async def to_set(self) -> set[T]:
        """Collect the elements in a new set."""
        return {elem async for elem in self}

    def apply_custom_operation[R](self, factory: Callable[[AsyncIterable[T]], AsyncIterator[R]]) -> AsyncIter[R]:
        """Create an `AsyncIter` from a function turning the source into a new async iterator, on each iteration."""
        return self._aiter(factory)

    # maps -----------------------------------------------------------------
    def map[R](self, func: Callable[[T], MaybeAwaitable[R]]) -> AsyncIter[R]:
        """Apply `func` to each element, awaiting its result when it is a coroutine function.

        Example:
        ```python
        >>> import asyncio
        >>> import pyofold as pf
        >>> async def double(v):
        ...     await asyncio.sleep(0)
        ...     return v * 2
        >>> asyncio.run(pf.AsyncIter.of(1, 2).map(double).to_list())
        [2, 4]

        ```
        """
        return self._aiter(its.Mapped, func)

    def flat_map[R](self, func: Callable[[T], MaybeAwaitable[SyncOrAsync[R]]]) -> AsyncIter[R]:
        """Apply `func` to each element, yielding the elements of each sync or async result in order."""
        return self._aiter(lambda data: its.Flattened(its.Mapped(data, func)))

    def monitor(self, tag: str = "", effect: MonitorEffect[T] = log_monitor) -> AsyncIter[T]:
        """Call `effect` with each element, its index and `tag`, as it is pulled."""
        return self._aiter(its.Monitored, tag, effect)

    def delay(self, seconds: float) -> AsyncIter[T]:
        """Pause for `seconds` before yielding each element."""
        return self._aiter(its.Delayed, seconds)

    # filters --------------------------------------------------------------
    def filter(self, predicate: Callable[[T], bool]) -> AsyncIter[T]:
        """Only keep the elements satisfying `predicate`."""
        return self.filter_not(cz.functoolz.complement(predicate))

    def filter_not(self, predicate: Callable[[T], bool]) -> AsyncIter[T]:
        """Remove the elements satisfying `predicate`."""
        return self.patch_where(lambda elem, _: predicate(elem), 1)

    def filter_with_previous(self, predicate: Callable[[T, T | NoValue], bool]) -> AsyncIter[T]:
        """Only keep the elements for which `predicate(elem, previous)` is `True`, `previous` being `NO_VALUE` at first."""
        return self._aiter(its.FilterWithPrevious, predicate)

    def filter_changed(self) -> AsyncIter[T]:
        """Remove the elements equal to the element preceding them."""
        return self.filter_with_previous(lambda elem, previous: previous is NO_VALUE or elem != previous)

    def distinct(self) -> AsyncIter[T]:
        """Only keep the first occurrence of each element."""
        return self.distinct_by(cz.functoolz.identity)

    def distinct_by(self, key: Callable[[T], Any]) -> AsyncIter[T]:
        """Only keep the first element of each distinct `key`."""
        return self._aiter(its.Distinct, key)

    def sample(self, nth: int) -> AsyncIter[T]:
        """Only keep every `nth` element, starting with the first one."""
        if nth <= 0:
            msg = f"sample expects a positive step, got {nth}"
            raise ValueError(msg)
        return self._aiter(its.Sampled, nth)

    def indices_where(self, predicate: Callable[[T], bool]) -> AsyncIter[int]:
        """Yield the index of each element satisfying `predicate`."""
        return self.zip_with_index().filter(lambda pair: predicate(pair[0])).map(lambda pair: pair[1])

    def indices_of(self, elem: T) -> AsyncIter[int]:
        """Yield the index of each element equal to `elem`."""
        return self.indices_where(lambda e: e == elem)

    # slices ---------------------------------------------------------------
    def take(self, amount: int) -> AsyncIter[T]:
        """Only keep the first `amount` elements, never pulling more than that."""
        if amount <= 0:
            return AsyncIter.empty()
        return self._aiter(its.Take, amount)

    def take_last(self, amount: int) -> AsyncIter[T]:
        """Only keep the last `amount` elements."""
        if amount <= 0:
            return AsyncIter.empty()
        return self._aiter(its.TakeLast, amount)

    def drop(self, amount: int) -> AsyncIter[T]:
        """Skip the first `amount` elements."""
        return self.patch_at(0, amount)

    def drop_last(self, amount: int) -> AsyncIter[T]:
        """Skip the last `amount` elements."""
        if amount <= 0:
            return self
        return self._aiter(its.DropLast, amount)

    def slice(self, start: int, amount: int) -> AsyncIter[T]:
        """Only keep `amount` elements, starting at the index `start`."""
        return self.drop(start).take(amount)

    def take_while(self, predicate: Callable[[T], bool]) -> AsyncIter[T]:
        """Keep elements as long as they satisfy `predicate`."""
        return self._aiter(its.TakeWhile, predicate)

    def drop_while(self, predicate: Callable[[T], bool]) -> AsyncIter[T]:
        """Skip elements as long as they satisfy `predicate`, then keep all remaining ones."""
        return self._aiter(its.DropWhile, predicate)

    # combinations -------------------------------------------------------------
    def concat(self, *others: SyncOrAsync[T]) -> AsyncIter[T]:
        """Yield the elements of this `AsyncIter`, then those of each of `others`."""
        sources = [AsyncIter.from_iterable(other) for other in others]
        return self._aiter(lambda data: its.chain(data, *sources))

    def append(self, *elems: T) -> AsyncIter[T]:
        """Yield `elems` after the last element."""
        return self.concat(elems)

    def prepend(self, *elems: T) -> AsyncIter[T]:
        """Yield `elems` before the first element."""
        return AsyncIter.of(*elems).concat(self)

    @overload
    def zip[T1](self, other: SyncOrAsync[T1], /) -> AsyncIter[tuple[T, T1]]: ...
    @overload
    def zip[T1, T2](self, other1: SyncOrAsync[T1], other2: SyncOrAsync[T2], /) -> AsyncIter[tuple[T, T1, T2]]: ...
    @overload
    def zip(self, *others: SyncOrAsync[Any]) -> AsyncIter[tuple[Any, ...]]: ...
    def zip(self, *others: SyncOrAsync[Any]) -> AsyncIter[tuple[Any, ...]]:
        """Yield tuples of one element of each source, stopping at the first exhausted one.

        Each step awaits the next element of all sources concurrently.

        Example:
        ```python
        >>> import asyncio
        >>> import pyofold as pf
        >>> asyncio.run(pf.AsyncIter.of(1, 2).zip("abc").to_list())
        [(1, 'a'), (2, 'b')]

        ```
        """
        sources = [AsyncIter.from_iterable(other) for other in others]
        return self._aiter(lambda data: its.Zip([data, *sources]))

    def zip_with[R](self, func: Callable[..., MaybeAwaitable[R]], *others: SyncOrAsync[Any]) -> AsyncIter[R]:
        """Same as `zip`, calling `func` with the elements instead of building tuples."""
        return self.zip(*others).map(lambda values: func(*values))

    def zip_with_index(self) -> AsyncIter[tuple[T, int]]:
        """Yield each element paired with its index."""
        return self._aiter(its.Indexed)

    def zip_all(self, *others: SyncOrAsync[Any]) -> AsyncIter[tuple[Any, ...]]:
        """Yield tuples of one element of each source, until all of them are exhausted, padding with `NO_VALUE`."""
        sources = [AsyncIter.from_iterable(other) for other in others]
        return self._aiter(lambda data: its.ZipAll([data, *sources]))

    def zip_all_with[R](self, func: Callable[..., MaybeAwaitable[R]], *others: SyncOrAsync[Any]) -> AsyncIter[R]:
        """Same as `zip_all`, calling `func` with the elements instead of building tuples."""
        return self.zip_all(*others).map(lambda values: func(*values))

    def interleave(self, *others: SyncOrAsync[T]) -> AsyncIter[T]:
        """Alternate between the elements of each source, stopping at the first exhausted one."""
        return AsyncIter.flatten(self.zip(*others))

    def interleave_all(self, *others: SyncOrAsync[T]) -> AsyncIter[T]:
        """Alternate between the elements of each source, skipping the exhausted ones."""
        return AsyncIter.flatten(self.zip_all(*others)).filter_not(lambda elem: elem is NO_VALUE)

    def repeat(self, times: int | None = None) -> AsyncIter[T]:
        """Iterate the source `times` times, or forever. An empty source yields nothing."""
        if times is not None:
            if times <= 0:
                return AsyncIter.empty()
            if times == 1:
                return self
        return self._aiter(its.Repeat, times)

    # windows --------------------------------------------------------------
    def sliding(self, size: int, step: int | None = None) -> AsyncIter[list[T]]:
        """Yield windows of `size` elements, each one starting `step` elements after the previous one."""
        stride = size if step is None else step
        if size <= 0 or stride <= 0:
            return AsyncIter.empty()
        return self._aiter(its.Sliding, size, stride)

    def split_where(self, predicate: Callable[[T], bool]) -> AsyncIter[list[T]]:
        """Yield the lists of elements between those satisfying `predicate`, which are dropped."""
        return self._aiter(its.SplitWhere, predicate)

    def split_on_elem(self, elem: T) -> AsyncIter[list[T]]:
        """Same as `split_where`, splitting on the elements equal to `elem`."""
        return self.split_where(lambda e: e == elem)

    def intersperse(self, separator: SyncOrAsync[T]) -> AsyncIter[T]:
        """Yield the elements of `separator` between each pair of consecutive elements.

        Example:
        ```python
        >>> import asyncio
        >>> import pyofold as pf
        >>> asyncio.run(pf.AsyncIter.from_iterable("abc").intersperse(", ").join())
        'a, b, c'

        ```
        """
        sep = AsyncIter.from_iterable(separator)
        return self.patch_where(lambda _, index: index > 0, 0, lambda *_: sep)

    def mk_group(
        self,
        start: SyncOrAsync[T] = (),
        sep: SyncOrAsync[T] = (),
        end: SyncOrAsync[T] = (),
    ) -> AsyncIter[T]:
        """Yield `start`, then the elements interspersed with `sep`, then `end`."""
        return AsyncIter.from_iterable(start).concat(self.intersperse(sep), end)

    # patches --------------------------------------------------------------
    def patch_where(
        self,
        predicate: Callable[[T, int], bool],
        remove: int,
        insert: Callable[[T, int], SyncOrAsync[T]] | None = None,
        amount: int | None = None,
    ) -> AsyncIter[T]:
        """Splice the sequence each time an element satisfies `predicate`.

        Same rules as `Iter.patch_where`, `insert` may return a sync or async iterable.
        """
        if amount is not None and amount <= 0:
            return self
        return self._aiter(its.PatchWhere, predicate, remove, insert, amount)

    def patch_at(self, index: int, remove: int, insert: SyncOrAsync[T] = ()) -> AsyncIter[T]:
        """Insert the elements of `insert` at `index`, then skip `remove` elements from there.

        A negative `index` inserts before the first element, an `index` past the end after the last one.
        """
        return self._aiter(its.PatchAt, index, remove, AsyncIter.from_iterable(insert))

    def patch_elem(
        self,
        elem: T,
        remove: int,
        insert: SyncOrAsync[T] = (),
        amount: int | None = None,
    ) -> AsyncIter[T]:
        """Same as `patch_where`, matching the elements equal to `elem`, and always inserting `insert`."""
        inserted = AsyncIter.from_iterable(insert)
        return self.patch_where(lambda e, _: e == elem, remove, lambda *_: inserted, amount)
