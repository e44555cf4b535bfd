from __future__ import annotations

import functools
import itertools
from collections.abc import Callable, Iterable, Iterator, Sequence
from functools import partial
from random import Random
from typing import TYPE_CHECKING, Any, Concatenate, overload

import cytoolz as cz
import more_itertools as mit

from .._collector import Collector, collect
from .._common import NO_VALUE, MonitorEffect, NoValue, OptLazy, check_reiterable, log_monitor, to_value
from .._core import CommonBase, get_config
from .._errors import EmptyInputError, NestingError
from . import _iterators as its

if TYPE_CHECKING:
    from .._aiter import AsyncIter


class _FromIterator[T]:
    """Re-iterable source calling a factory for each new iterator."""

    __slots__ = ("_factory",)

    def __init__(self, factory: Callable[[], Iterator[T]]) -> None:
        self._factory = factory

    def __iter__(self) -> Iterator[T]:
        return self._factory()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._factory!r})"


class Iter[T](CommonBase[Iterable[T]], Iterable[T]):
    """A lazy, re-iterable sequence, with a rich set of chainable operators.

    An `Iter` wraps exactly one re-iterable source (a list, a string, a range, a dict view, another collection...).

    Each call to `iter()` on it creates fresh iteration state, so the same `Iter` can be iterated any number of times.

    Operators never pull elements: they return a new `Iter`, and the work happens when the result is iterated or collected.

    One-shot iterators and generators are rejected, since iterating them twice would silently yield nothing.

    Wrap the function creating them with `Iter.from_iterator` instead.

    Args:
        data (Iterable[T]): A re-iterable source to wrap.

    Raises:
        NestingError: If `data` is already an `Iter`. Use `Iter.from_iterable` to accept both.
        NotIterableError: If `data` is not iterable, or is a one-shot iterator.

    Example:
    ```python
    >>> import pyofold as pf
    >>> evens = pf.Iter(range(10)).filter(lambda v: v % 2 == 0)
    >>> evens.to_list()
    [0, 2, 4, 6, 8]
    >>> evens.map(str).join(",")
    '0,2,4,6,8'

    ```
    """

    __slots__ = ()

    def __init__(self, data: Iterable[T]) -> None:
        if isinstance(data, Iter):
            msg = "Iter can not wrap another Iter, use Iter.from_iterable instead"
            raise NestingError(msg)
        check_reiterable(data)
        super().__init__(data)

    def __iter__(self) -> Iterator[T]:
        return iter(self._inner)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({get_config().iter_repr(self)})"

    def _iter[**P, U](
        self,
        factory: Callable[Concatenate[Iterable[T], P], Iterator[U]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> Iter[U]:
        def _() -> Iterator[U]:
            return factory(self._inner, *args, **kwargs)

        return Iter.from_iterator(_)

    # constructors ---------------------------------------------------------
    @staticmethod
    def empty[U]() -> Iter[U]:
        """Create an `Iter` without elements."""
        return Iter(())

    @staticmethod
    def of[U](*values: U) -> Iter[U]:
        """Create an `Iter` of the given values.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2, 3).to_list()
        [1, 2, 3]

        ```
        """
        return Iter(values)

    @staticmethod
    def from_iterable[U](data: Iterable[U]) -> Iter[U]:
        """Wrap `data`, returning it unchanged if it is already an `Iter`."""
        if isinstance(data, Iter):
            return data
        return Iter(data)

    @staticmethod
    def from_iterator[U](factory: Callable[[], Iterator[U]]) -> Iter[U]:
        """Create an `Iter` calling `factory` each time it is iterated.

        This is the way to wrap one-shot iterators and generators.

        Example:
        ```python
        >>> import pyofold as pf
        >>> def squares():
        ...     for v in range(4):
        ...         yield v * v
        >>> it = pf.Iter.from_iterator(squares)
        >>> it.to_list(), it.to_list()
        ([0, 1, 4, 9], [0, 1, 4, 9])

        ```
        """
        return Iter(_FromIterator(factory))

    @staticmethod
    def generate[U](init: U, next_value: Callable[[U], U | None]) -> Iter[U]:
        """Create an `Iter` starting with `init`, each next element computed from the previous one.

        The sequence ends when `next_value` returns `None`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.generate(1, lambda v: v * 3 if v < 50 else None).to_list()
        [1, 3, 9, 27, 81]

        ```
        """
        return Iter.from_iterator(lambda: its.Generate(init, next_value))

    @staticmethod
    def unfold[S, U](init: S, next_value: Callable[[S], tuple[U, S] | None]) -> Iter[U]:
        """Create an `Iter` from a state, `next_value` returning the next `(element, state)` pair.

        The sequence ends when `next_value` returns `None`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.unfold(0, lambda v: (v * 2, v + 1)).take(3).to_list()
        [0, 2, 4]

        ```
        """
        return Iter.from_iterator(lambda: its.Unfold(init, next_value))

    @staticmethod
    def from_lazy[U](create: Callable[[], U]) -> Iter[U]:
        """Create an `Iter` of a single element, created by `create` each time the sequence is iterated."""
        return Iter.from_iterator(lambda: its.Once(create))

    @staticmethod
    def nats() -> Iter[int]:
        """Create an infinite `Iter` of the natural numbers, starting at `0`.

        **Warning** ⚠️
            This creates an infinite sequence.
            Be sure to use `Iter.take()` or `Iter.slice()` to limit the number of items taken.
        """
        return Iter.from_iterator(itertools.count)

    @staticmethod
    def range(start: int, until: int | None = None, step: int = 1) -> Iter[int]:
        """Create an `Iter` of numbers from `start` (inclusive) to `until` (exclusive), by `step`.

        Without `until`, the sequence is infinite.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.range(0, 6, 2).to_list()
        [0, 2, 4]
        >>> pf.Iter.range(6, 0, -2).to_list()
        [6, 4, 2]

        ```
        """
        if until is None:
            return Iter.from_iterator(lambda: itertools.count(start, step))
        return Iter(range(start, until, step))

    @staticmethod
    def random(low: float = 0.0, high: float = 1.0, rng: Random | None = None) -> Iter[float]:
        """Create an infinite `Iter` of random floats between `low` and `high`.

        Args:
            low (float): Lower bound.
            high (float): Upper bound.
            rng (Random | None): Optional generator, to control the seed.

        Returns:
            Iter[float]: A different sequence each time it is iterated, unless `rng` is reseeded.
        """
        source = rng or Random()  # noqa: S311
        return Iter.from_lazy(lambda: source.uniform(low, high)).repeat()

    @staticmethod
    def random_int(low: int, high: int, rng: Random | None = None) -> Iter[int]:
        """Create an infinite `Iter` of random integers between `low` and `high`, both inclusive."""
        source = rng or Random()  # noqa: S311
        return Iter.from_lazy(lambda: source.randint(low, high)).repeat()

    @staticmethod
    def indexed_reversed[U](data: Sequence[U]) -> Iter[U]:
        """Create an `Iter` of the elements of `data`, last to first, using indices.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.indexed_reversed("abc").join()
        'cba'

        ```
        """
        return Iter.range(len(data) - 1, -1, -1).map(data.__getitem__)

    @staticmethod
    def indexed_bounce[U](data: Sequence[U]) -> Iter[U]:
        """Create an `Iter` going from the first element of `data` to the last, then back, stopping before the first.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.indexed_bounce("abcd").join()
        'abcdcb'

        ```
        """
        return Iter(data).concat(Iter.range(len(data) - 2, 0, -1).map(data.__getitem__))

    @staticmethod
    def flatten[U](data: Iterable[Iterable[U]]) -> Iter[U]:
        """Create an `Iter` of the elements of each iterable of `data`, in order."""
        return Iter.from_iterable(data)._iter(itertools.chain.from_iterable)

    # folds ----------------------------------------------------------------
    def collect[R](self, collector: Collector[T, Any, R]) -> R:
        """Fold the elements with `collector`, stopping as soon as it escapes.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.nats().collect(pf.ops.find(lambda v: v * v > 50))
        8

        ```
        """
        return collect(self, collector)

    def collect_iter[R](self, collector: Collector[T, Any, R]) -> Iter[R]:
        """Lazily yield the result of `collector` after each element.

        The sequence ends after the element on which `collector` escapes.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 3, 6).collect_iter(pf.ops.sum).to_list()
        [1, 4, 10]

        ```
        """
        return self._iter(its.Scan, collector)

    def for_each(self, effect: Callable[[T], object] | None = None) -> None:
        """Pull all elements, calling `effect` on each one if given."""
        if effect is None:
            mit.consume(self)
            return
        for elem in self:
            effect(elem)

    def reduce(self, func: Callable[[T, T], T], otherwise: OptLazy[T] | NoValue = NO_VALUE) -> T:
        """Combine the elements pairwise with `func`, from the first to the last.

        Args:
            func (Callable[[T, T], T]): Combines the accumulated value with the next element.
            otherwise (OptLazy[T] | NoValue): Fallback when there are no elements.

        Returns:
            T: The accumulated value.

        Raises:
            EmptyInputError: If there are no elements and no fallback was given.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2, 3).reduce(lambda a, b: a * 10 + b)
        123
        >>> pf.Iter.empty().reduce(lambda a, b: a + b, otherwise=0)
        0

        ```
        """
        iterator = iter(self)
        first = next(iterator, NO_VALUE)
        if first is NO_VALUE:
            if otherwise is NO_VALUE:
                msg = "reduce of an empty Iter without fallback"
                raise EmptyInputError(msg)
            return to_value(otherwise)
        return functools.reduce(func, iterator, first)

    def join(self, sep: str = "", start: str = "", end: str = "") -> str:
        """Concatenate the string form of the elements, with `sep` in between, between `start` and `end`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2, 3).join(", ", "[", "]")
        '[1, 2, 3]'

        ```
        """
        return start + sep.join(map(str, self)) + end

    def to_list(self) -> list[T]:
        """Collect the elements in a new list."""
        return list(self)

    def to_set(self) -> set[T]:
        """Collect the elements in a new set."""
        return set(self)

    def to_async(self) -> AsyncIter[T]:
        """Convert to an `AsyncIter`, yielding the same elements."""
        from .._aiter import AsyncIter

        return AsyncIter.from_iterable(self)

    def apply_custom_operation[R](self, factory: Callable[[Iterable[T]], Iterator[R]]) -> Iter[R]:
        """Create an `Iter` from a function turning the source into a new iterator, called on each iteration.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("abc").apply_custom_operation(reversed).join()
        'cba'

        ```
        """
        return self._iter(factory)

    # maps -----------------------------------------------------------------
    def map[R](self, func: Callable[[T], R]) -> Iter[R]:
        """Apply `func` to each element.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2).map(lambda v: v * 10).to_list()
        [10, 20]

        ```
        """
        return self._iter(partial(map, func))

    def flat_map[R](self, func: Callable[[T], Iterable[R]]) -> Iter[R]:
        """Apply `func` to each element, yielding the elements of each result in order.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2).flat_map(lambda v: [v] * v).to_list()
        [1, 2, 2]

        ```
        """
        return self._iter(lambda data: itertools.chain.from_iterable(map(func, data)))

    def monitor(self, tag: str = "", effect: MonitorEffect[T] = log_monitor) -> Iter[T]:
        """Call `effect` with each element, its index and `tag`, as it is pulled.

        By default, elements are logged with the `logging` module, at the level of `Config.monitor_level`.

        Monitors compose: each new one wraps the previous ones, and they fire in the order they were added.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.nats().monitor("nats", lambda v, i, tag: print(f"{tag}[{i}]: {v}")).take(2).to_list()
        nats[0]: 0
        nats[1]: 1
        [0, 1]

        ```
        """
        return self._iter(its.Monitored, tag, effect)

    # filters --------------------------------------------------------------
    def filter(self, predicate: Callable[[T], bool]) -> Iter[T]:
        """Only keep the elements satisfying `predicate`."""
        return self.filter_not(cz.functoolz.complement(predicate))

    def filter_not(self, predicate: Callable[[T], bool]) -> Iter[T]:
        """Remove the elements satisfying `predicate`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(0, 1, 5, 2).filter_not(lambda v: v % 2 == 0).to_list()
        [1, 5]

        ```
        """
        return self.patch_where(lambda elem, _: predicate(elem), 1)

    def filter_with_previous(self, predicate: Callable[[T, T | NoValue], bool]) -> Iter[T]:
        """Only keep the elements for which `predicate(elem, previous)` is `True`.

        `previous` is the preceding element of the source, whether it was kept or not, and `NO_VALUE` for the first element.
        """
        return self._iter(its.FilterWithPrevious, predicate)

    def filter_changed(self) -> Iter[T]:
        """Remove the elements equal to the element preceding them.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 3, 3, 2, 5, 5, 2, 3).filter_changed().to_list()
        [1, 3, 2, 5, 2, 3]

        ```
        """
        return self.filter_with_previous(lambda elem, previous: previous is NO_VALUE or elem != previous)

    def distinct(self) -> Iter[T]:
        """Only keep the first occurrence of each element."""
        return self.distinct_by(cz.functoolz.identity)

    def distinct_by(self, key: Callable[[T], Any]) -> Iter[T]:
        """Only keep the first element of each distinct `key`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of("cat", "mouse", "dog", "hen").distinct_by(len).to_list()
        ['cat', 'mouse']

        ```
        """
        return self._iter(cz.itertoolz.unique, key=key)

    def sample(self, nth: int) -> Iter[T]:
        """Only keep every `nth` element, starting with the first one.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.nats().sample(10).take(3).to_list()
        [0, 10, 20]

        ```
        """
        if nth <= 0:
            msg = f"sample expects a positive step, got {nth}"
            raise ValueError(msg)
        return self._iter(itertools.islice, 0, None, nth)

    def indices_where(self, predicate: Callable[[T], bool]) -> Iter[int]:
        """Yield the index of each element satisfying `predicate`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("a b c").indices_where(str.isspace).to_list()
        [1, 3]

        ```
        """
        return self._iter(lambda data: itertools.compress(itertools.count(), map(predicate, data)))

    def indices_of(self, elem: T) -> Iter[int]:
        """Yield the index of each element equal to `elem`."""
        return self.indices_where(lambda e: e == elem)

    # slices ---------------------------------------------------------------
    def take(self, amount: int) -> Iter[T]:
        """Only keep the first `amount` elements.

        Never pulls more elements than the ones it yields.
        """
        if amount <= 0:
            return Iter.empty()
        return self._iter(partial(cz.itertoolz.take, amount))

    def take_last(self, amount: int) -> Iter[T]:
        """Only keep the last `amount` elements.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.range(0, 10).take_last(3).to_list()
        [7, 8, 9]

        ```
        """
        if amount <= 0:
            return Iter.empty()
        return self._iter(its.TakeLast, amount)

    def drop(self, amount: int) -> Iter[T]:
        """Skip the first `amount` elements."""
        return self.patch_at(0, amount)

    def drop_last(self, amount: int) -> Iter[T]:
        """Skip the last `amount` elements.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.range(0, 5).drop_last(2).to_list()
        [0, 1, 2]

        ```
        """
        if amount <= 0:
            return self
        return self._iter(its.DropLast, amount)

    def slice(self, start: int, amount: int) -> Iter[T]:
        """Only keep `amount` elements, starting at the index `start`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("abcdef").slice(1, 3).join()
        'bcd'

        ```
        """
        return self.drop(start).take(amount)

    def take_while(self, predicate: Callable[[T], bool]) -> Iter[T]:
        """Keep elements as long as they satisfy `predicate`."""
        return self._iter(partial(itertools.takewhile, predicate))

    def drop_while(self, predicate: Callable[[T], bool]) -> Iter[T]:
        """Skip elements as long as they satisfy `predicate`, then keep all remaining ones."""
        return self._iter(partial(itertools.dropwhile, predicate))

    # combinations -------------------------------------------------------------
    def concat(self, *others: Iterable[T]) -> Iter[T]:
        """Yield the elements of this `Iter`, then those of each of `others`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2).concat([3], (4, 5)).to_list()
        [1, 2, 3, 4, 5]

        ```
        """
        sources = [Iter.from_iterable(other) for other in others]
        return self._iter(lambda data: itertools.chain(data, *sources))

    def append(self, *elems: T) -> Iter[T]:
        """Yield `elems` after the last element."""
        return self.concat(elems)

    def prepend(self, *elems: T) -> Iter[T]:
        """Yield `elems` before the first element."""
        return Iter(elems).concat(self)

    @overload
    def zip[T1](self, other: Iterable[T1], /) -> Iter[tuple[T, T1]]: ...
    @overload
    def zip[T1, T2](self, other1: Iterable[T1], other2: Iterable[T2], /) -> Iter[tuple[T, T1, T2]]: ...
    @overload
    def zip(self, *others: Iterable[Any]) -> Iter[tuple[Any, ...]]: ...
    def zip(self, *others: Iterable[Any]) -> Iter[tuple[Any, ...]]:
        """Yield tuples of one element of this `Iter` and of each of `others`, stopping at the first exhausted one.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("ab").zip(pf.Iter.nats()).to_list()
        [('a', 0), ('b', 1)]

        ```
        """
        sources = [Iter.from_iterable(other) for other in others]
        return self._iter(lambda data: zip(data, *sources))

    def zip_with[R](self, func: Callable[..., R], *others: Iterable[Any]) -> Iter[R]:
        """Same as `zip`, calling `func` with the elements instead of building tuples."""
        sources = [Iter.from_iterable(other) for other in others]
        return self._iter(lambda data: map(func, data, *sources))

    def zip_with_index(self) -> Iter[tuple[T, int]]:
        """Yield each element paired with its index.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("ab").zip_with_index().to_list()
        [('a', 0), ('b', 1)]

        ```
        """
        return self.zip(Iter.nats())

    def zip_all(self, *others: Iterable[Any]) -> Iter[tuple[Any, ...]]:
        """Yield tuples of one element of this `Iter` and of each of `others`, until all of them are exhausted.

        Exhausted sources are padded with `NO_VALUE`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("ab").zip_all("x").to_list()
        [('a', 'x'), ('b', NO_VALUE)]

        ```
        """
        sources = [Iter.from_iterable(other) for other in others]
        return self._iter(lambda data: itertools.zip_longest(data, *sources, fillvalue=NO_VALUE))

    def zip_all_with[R](self, func: Callable[..., R], *others: Iterable[Any]) -> Iter[R]:
        """Same as `zip_all`, calling `func` with the elements instead of building tuples."""
        return self.zip_all(*others).map(lambda values: func(*values))

    def interleave(self, *others: Iterable[T]) -> Iter[T]:
        """Alternate between the elements of this `Iter` and of each of `others`, stopping at the first exhausted one.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2, 3).interleave(pf.Iter.nats()).to_list()
        [1, 0, 2, 1, 3, 2]

        ```
        """
        return Iter.flatten(self.zip(*others))

    def interleave_all(self, *others: Iterable[T]) -> Iter[T]:
        """Alternate between the elements of this `Iter` and of each of `others`, skipping the exhausted ones.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("abcba").interleave_all("QWQ").join()
        'aQbWcQba'

        ```
        """
        return Iter.flatten(self.zip_all(*others)).filter_not(lambda elem: elem is NO_VALUE)

    def interleave_round(self, *others: Iterable[T]) -> Iter[T]:
        """Alternate between the elements of this `Iter` and of each of `others`, cycling through each of them forever.

        Stops immediately if any of them is empty.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("abc").interleave_round("QW").take(10).join()
        'aQbWcQaWbQ'

        ```
        """
        cycled = [Iter.from_iterable(other).repeat() for other in others]
        return Iter.flatten(self.repeat().zip(*cycled))

    def repeat(self, times: int | None = None) -> Iter[T]:
        """Iterate the source `times` times, or forever.

        An empty source yields nothing, instead of looping forever.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 3).repeat(3).to_list()
        [1, 3, 1, 3, 1, 3]
        >>> pf.Iter.empty().repeat().to_list()
        []

        ```
        """
        if times is not None:
            if times <= 0:
                return Iter.empty()
            if times == 1:
                return self
        return self._iter(its.Repeat, times)

    # windows --------------------------------------------------------------
    def sliding(self, size: int, step: int | None = None) -> Iter[list[T]]:
        """Yield windows of `size` elements, each one starting `step` elements after the previous one.

        `step` defaults to `size`.

        The last window may be shorter, and is only yielded if it contains elements not already seen.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2, 3).sliding(2).to_list()
        [[1, 2], [3]]
        >>> pf.Iter.of(1, 2, 3).sliding(2, 1).to_list()
        [[1, 2], [2, 3]]
        >>> pf.Iter.nats().sliding(2, 4).take(2).to_list()
        [[0, 1], [4, 5]]

        ```
        """
        stride = size if step is None else step
        if size <= 0 or stride <= 0:
            return Iter.empty()
        return self._iter(its.Sliding, size, stride)

    def split_where(self, predicate: Callable[[T], bool]) -> Iter[list[T]]:
        """Yield the lists of elements between those satisfying `predicate`, which are dropped.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("a test  foo").split_where(str.isspace).map("".join).to_list()
        ['a', 'test', '', 'foo']

        ```
        """
        return self._iter(its.SplitWhere, predicate)

    def split_on_elem(self, elem: T) -> Iter[list[T]]:
        """Same as `split_where`, splitting on the elements equal to `elem`."""
        return self.split_where(lambda e: e == elem)

    def intersperse(self, separator: Iterable[T]) -> Iter[T]:
        """Yield the elements of `separator` between each pair of consecutive elements.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("abc").intersperse("|").join()
        'a|b|c'

        ```
        """
        sep = Iter.from_iterable(separator)
        return self.patch_where(lambda _, index: index > 0, 0, lambda *_: sep)

    def mk_group(self, start: Iterable[T] = (), sep: Iterable[T] = (), end: Iterable[T] = ()) -> Iter[T]:
        """Yield `start`, then the elements interspersed with `sep`, then `end`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 3, 4).mk_group([10], [100], [90, 80]).to_list()
        [10, 1, 100, 3, 100, 4, 90, 80]

        ```
        """
        return Iter.from_iterable(start).concat(self.intersperse(sep), end)

    # patches --------------------------------------------------------------
    def patch_where(
        self,
        predicate: Callable[[T, int], bool],
        remove: int,
        insert: Callable[[T, int], Iterable[T]] | None = None,
        amount: int | None = None,
    ) -> Iter[T]:
        """Splice the sequence each time an element satisfies `predicate`.

        On a match, the elements returned by `insert` are yielded first, then `remove` elements are skipped,
        starting with the matching one.

        With `remove=0`, the matching element is yielded after the inserted ones.

        Matching is suspended while elements are being skipped.

        Args:
            predicate (Callable[[T, int], bool]): Called with each candidate element and its index in the source.
            remove (int): Amount of elements to skip on a match.
            insert (Callable[[T, int], Iterable[T]] | None): Optional function building the elements to insert on a match.
            amount (int | None): Maximum amount of matches. Unlimited by default.

        Returns:
            Iter[T]: The patched sequence.

        Example:
        ```python
        >>> import pyofold as pf
        >>> data = pf.Iter.of(0, 1, 5, 2)
        >>> is_even = lambda v, _: v % 2 == 0
        >>> data.patch_where(is_even, 1, lambda *_: [10, 11]).to_list()
        [10, 11, 1, 5, 10, 11]
        >>> data.patch_where(is_even, 0, lambda *_: [10, 11]).to_list()
        [10, 11, 0, 1, 5, 10, 11, 2]
        >>> data.patch_where(is_even, 2).to_list()
        [5]
        >>> data.patch_where(is_even, 1, amount=1).to_list()
        [1, 5, 2]

        ```
        """
        if amount is not None and amount <= 0:
            return self
        return self._iter(its.PatchWhere, predicate, remove, insert, amount)

    def patch_at(self, index: int, remove: int, insert: Iterable[T] = ()) -> Iter[T]:
        """Insert the elements of `insert` at `index`, then skip `remove` elements from there.

        A negative `index` inserts before the first element, an `index` past the end after the last one.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("abc").patch_at(1, 1, "QW").join()
        'aQWc'
        >>> pf.Iter("abc").patch_at(10, 0, "!").join()
        'abc!'

        ```
        """
        return self._iter(its.PatchAt, index, remove, Iter.from_iterable(insert))

    def patch_elem(self, elem: T, remove: int, insert: Iterable[T] = (), amount: int | None = None) -> Iter[T]:
        """Same as `patch_where`, matching the elements equal to `elem`, and always inserting `insert`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter("abcba").patch_elem("b", 1, "--").join()
        'a--c--a'

        ```
        """
        inserted = Iter.from_iterable(insert)
        return self.patch_where(lambda e, _: e == elem, remove, lambda *_: inserted, amount)
