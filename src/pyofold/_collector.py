from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import cytoolz as cz

from ._common import NO_VALUE, MonitorEffect, OptLazy, log_input, to_factory
from ._core import Pipeable

if TYPE_CHECKING:
    from ._iter import Iter

logger = logging.getLogger(__name__)

type NextState[A, S] = Callable[[S, A, int], S]
"""Transition from a state, given an element and its index, to the next state."""
type StateToResult[S, R] = Callable[[S, int], R]
"""Projection of a state, given the amount of elements it was fed, to a result."""
type Escape[S] = Callable[[S, int], bool]
"""Predicate telling that further elements can not change the result."""


@dataclass(slots=True)
class _Tracked[S]:
    state: S
    index: int = 0


@dataclass(slots=True)
class _Buffered[A, S]:
    state: S
    buffer: deque[A]
    index: int = 0


@dataclass(slots=True)
class _Flagged[S]:
    state: S
    fired: bool = False
    index: int = 0


@dataclass(slots=True)
class _Seen[S]:
    state: S
    seen: set[Any] = field(default_factory=set)
    index: int = 0


@dataclass(slots=True)
class _Previous[S]:
    state: S
    previous: Any = NO_VALUE
    index: int = 0


@dataclass(slots=True)
class _Patching[S]:
    state: S
    amount_left: int | None
    to_remove: int = 0
    index: int = 0


@dataclass(slots=True, frozen=True)
class Collector[A, S, R](Pipeable):
    """A reusable accumulator, folding elements of type `A` into a state `S`, projected to a result `R`.

    A collector holds no data: each pass creates its own state with `create_init_state`.

    The same collector can thus be used by any number of folds, one after the other or interleaved.

    Collectors are composed either by transforming their input (`map_input`, `filter_input`, `take_input`...),
    by transforming their result (`map_result`),
    or by running several of them over a single pass (`combine`, `combine_with`, `pipe`).

    Attributes:
        create_init_state (Callable[[], S]): Factory of the initial state of a pass.
        next_state (NextState[A, S]): Transition called for each element, with its index in the pass.
        state_to_result (StateToResult[S, R]): Projection of a state to the result.
            Can be called any number of times on the same state.
        escape (Escape[S] | None): Optional predicate, `True` once no further element can change the result.

    Example:
    ```python
    >>> import pyofold as pf
    >>> longest = pf.Collector.create(0, lambda acc, word, _: max(acc, len(word)))
    >>> pf.Iter.of("a", "abc", "ab").collect(longest)
    3
    >>> pf.Iter.of("a", "abc", "ab").collect(longest.take_input(1))
    1

    ```
    """

    create_init_state: Callable[[], S]
    next_state: NextState[A, S]
    state_to_result: StateToResult[S, R]
    escape: Escape[S] | None = None

    @staticmethod
    def create[T, U](
        init: OptLazy[U],
        next_state: NextState[T, U],
        escape: Escape[U] | None = None,
    ) -> Collector[T, U, U]:
        """Create a collector whose result is its state.

        Args:
            init (OptLazy[U]): Initial state, or a factory of it.
                Mutable states should always be given as a factory, like `list` instead of `[]`.
            next_state (NextState[T, U]): Transition from a state, an element and its index.
            escape (Escape[U] | None): Optional early termination predicate.

        Returns:
            Collector[T, U, U]: The new collector.

        Example:
        ```python
        >>> import pyofold as pf
        >>> joined = pf.Collector.create("", lambda acc, c, i: acc + c * (i + 1))
        >>> pf.Iter("abc").collect(joined)
        'abbccc'

        ```
        """
        return Collector(to_factory(init, stacklevel=2), next_state, _state_as_result, escape)

    @staticmethod
    def create_state[T, U, V](
        init: OptLazy[U],
        next_state: NextState[T, U],
        state_to_result: StateToResult[U, V],
        escape: Escape[U] | None = None,
    ) -> Collector[T, U, V]:
        """Create a collector with distinct state and result types.

        Args:
            init (OptLazy[U]): Initial state, or a factory of it.
            next_state (NextState[T, U]): Transition from a state, an element and its index.
            state_to_result (StateToResult[U, V]): Projection of a state and the amount of elements fed to the result.
            escape (Escape[U] | None): Optional early termination predicate.

        Returns:
            Collector[T, U, V]: The new collector.

        Example:
        ```python
        >>> import pyofold as pf
        >>> mean = pf.Collector.create_state(0, lambda acc, v, _: acc + v, lambda acc, n: acc / n if n else 0.0)
        >>> pf.Iter.of(1, 2, 3, 6).collect(mean)
        3.0

        ```
        """
        return Collector(to_factory(init, stacklevel=2), next_state, state_to_result, escape)

    @staticmethod
    def create_mono[T](
        init: OptLazy[T],
        next_state: NextState[T, T],
        escape: Escape[T] | None = None,
    ) -> Collector[T, T, T]:
        """Create a collector whose elements, state and result share the same type."""
        return Collector(to_factory(init, stacklevel=2), next_state, _state_as_result, escape)

    @staticmethod
    def fixed[T](value: OptLazy[T]) -> Collector[Any, T, T]:
        """Create a collector ignoring its input, and always escaping immediately.

        A fold with this collector never pulls a single element.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.nats().collect(pf.Collector.fixed("done"))
        'done'

        ```
        """
        return Collector(to_factory(value, stacklevel=2), _keep_state, _state_as_result, _always)

    def should_escape(self, state: S, index: int) -> bool:
        """Check the optional escape predicate, `False` when there is none."""
        return self.escape is not None and self.escape(state, index)

    def collect(self, data: Iterable[A]) -> R:
        """Fold `data` with this collector.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.sum.collect([1, 2, 3])
        6

        ```
        """
        return collect(data, self)

    def collect_iter(self, data: Iterable[A]) -> Iter[R]:
        """Lazily yield the result of this collector after each element of `data`."""
        from ._iter import Iter

        return Iter.from_iterable(data).collect_iter(self)

    # results ------------------------------------------------------------
    def map_result[V](self, func: Callable[[R], V]) -> Collector[A, S, V]:
        """Apply `func` to the result of this collector.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.sum.map_result(str).collect([1, 2])
        '3'

        ```
        """
        state_to_result = self.state_to_result

        def _result(state: S, index: int) -> V:
            return func(state_to_result(state, index))

        return replace(self, state_to_result=_result)

    # inputs -------------------------------------------------------------
    def map_input[T](self, func: Callable[[T], A]) -> Collector[T, S, R]:
        """Convert each element with `func` before feeding it to this collector.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.sum.map_input(len).collect(["ab", "c"])
        3

        ```
        """
        next_state = self.next_state

        def _next(state: S, elem: T, index: int) -> S:
            return next_state(state, func(elem), index)

        return replace(self, next_state=_next)

    def monitor_input(
        self,
        tag: str = "",
        effect: MonitorEffect[tuple[A, S]] = log_input,
    ) -> Collector[A, S, R]:
        """Call `effect` with each element and the state it is about to be fed into.

        By default, the element and the state are logged with the `tag`.

        Monitors compose: each new one wraps the previous ones, so the most recently added one fires first,
        each one seeing the state before the element is fed.
        """
        next_state = self.next_state

        def _next(state: S, elem: A, index: int) -> S:
            effect((elem, state), index, tag)
            return next_state(state, elem, index)

        return replace(self, next_state=_next)

    def filter_input(self, predicate: Callable[[A], bool]) -> Collector[A, Any, R]:
        """Only feed the elements satisfying `predicate`.

        The index given to this collector only counts the accepted elements.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.count.filter_input(str.isupper).collect("aBcD")
        2

        ```
        """
        return self._filter_indexed(lambda elem, _: predicate(elem))

    def take_input(self, amount: int) -> Collector[A, Any, R]:
        """Only feed the first `amount` elements, escaping once they have been seen."""
        filtered = self._filter_indexed(lambda _, index: index < amount)
        inner = filtered.escape

        def _escape(tracked: _Tracked[S], index: int) -> bool:
            return index >= amount or (inner is not None and inner(tracked, index))

        return replace(filtered, escape=_escape)

    def drop_input(self, amount: int) -> Collector[A, Any, R]:
        """Skip the first `amount` elements."""
        return self._filter_indexed(lambda _, index: index >= amount)

    def slice_input(self, start: int, amount: int) -> Collector[A, Any, R]:
        """Only feed `amount` elements, starting at the index `start`."""
        return self.drop_input(start).take_input(start + amount)

    def sample_input(self, nth: int) -> Collector[A, Any, R]:
        """Only feed every `nth` element, starting with the first one.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.string_append.sample_input(3).collect("abcdefg")
        'adg'

        ```
        """
        if nth <= 0:
            msg = f"sample_input expects a positive step, got {nth}"
            raise ValueError(msg)
        return self._filter_indexed(lambda _, index: index % nth == 0)

    def take_last_input(self, amount: int) -> Collector[A, Any, R]:
        """Only feed the last `amount` elements.

        Elements are buffered, and fed to a new pass of this collector each time the result is requested.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2, 3).collect_iter(pf.ops.to_list().take_last_input(2)).to_list()
        [[1], [1, 2], [2, 3]]

        ```
        """

        def _init() -> _Buffered[A, S]:
            return _Buffered(self.create_init_state(), deque(maxlen=max(amount, 0)))

        def _next(buffered: _Buffered[A, S], elem: A, _: int) -> _Buffered[A, S]:
            buffered.buffer.append(elem)
            return buffered

        def _result(buffered: _Buffered[A, S], _: int) -> R:
            # buffered.state only serves the escape check
            state = self.create_init_state()
            for index, elem in enumerate(buffered.buffer):
                state = self.next_state(state, elem, index)
            return self.state_to_result(state, len(buffered.buffer))

        def _escape(buffered: _Buffered[A, S], _: int) -> bool:
            return self.should_escape(buffered.state, 0)

        return Collector(_init, _next, _result, _escape)

    def drop_last_input(self, amount: int) -> Collector[A, Any, R]:
        """Skip the last `amount` elements.

        Each element is held back until `amount` more elements have been seen.
        """

        def _init() -> _Buffered[A, S]:
            return _Buffered(self.create_init_state(), deque())

        def _next(buffered: _Buffered[A, S], elem: A, _: int) -> _Buffered[A, S]:
            buffered.buffer.append(elem)
            if len(buffered.buffer) > amount:
                _feed(self, buffered, buffered.buffer.popleft())
            return buffered

        return Collector(_init, _next, _tracked_result(self), _tracked_escape(self))

    def take_while_input(self, predicate: Callable[[A], bool]) -> Collector[A, Any, R]:
        """Feed elements as long as they satisfy `predicate`, and escape on the first one that does not."""

        def _init() -> _Flagged[S]:
            return _Flagged(self.create_init_state())

        def _next(flagged: _Flagged[S], elem: A, _: int) -> _Flagged[S]:
            if not flagged.fired:
                flagged.fired = not predicate(elem)
            if not flagged.fired:
                _feed(self, flagged, elem)
            return flagged

        def _escape(flagged: _Flagged[S], _: int) -> bool:
            return flagged.fired or self.should_escape(flagged.state, flagged.index)

        return Collector(_init, _next, _tracked_result(self), _escape)

    def drop_while_input(self, predicate: Callable[[A], bool]) -> Collector[A, Any, R]:
        """Skip elements as long as they satisfy `predicate`, then feed all remaining ones."""

        def _init() -> _Flagged[S]:
            return _Flagged(self.create_init_state())

        def _next(flagged: _Flagged[S], elem: A, _: int) -> _Flagged[S]:
            if not flagged.fired:
                flagged.fired = not predicate(elem)
            if flagged.fired:
                _feed(self, flagged, elem)
            return flagged

        return Collector(_init, _next, _tracked_result(self), _tracked_escape(self))

    def distinct_input(self) -> Collector[A, Any, R]:
        """Only feed the first occurrence of each element."""
        return self.distinct_by_input(cz.functoolz.identity)

    def distinct_by_input(self, key: Callable[[A], Any]) -> Collector[A, Any, R]:
        """Only feed the first element of each distinct `key`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.sum.distinct_by_input(lambda v: v % 3).collect([1, 3, 5, 3, 1])
        9

        ```
        """

        def _init() -> _Seen[S]:
            return _Seen(self.create_init_state())

        def _next(seen: _Seen[S], elem: A, _: int) -> _Seen[S]:
            k = key(elem)
            if k not in seen.seen:
                seen.seen.add(k)
                _feed(self, seen, elem)
            return seen

        return Collector(_init, _next, _tracked_result(self), _tracked_escape(self))

    def filter_changed_input(self) -> Collector[A, Any, R]:
        """Only feed elements different from the element preceding them in the input."""

        def _init() -> _Previous[S]:
            return _Previous(self.create_init_state())

        def _next(prev: _Previous[S], elem: A, _: int) -> _Previous[S]:
            if prev.previous is NO_VALUE or elem != prev.previous:
                _feed(self, prev, elem)
            prev.previous = elem
            return prev

        return Collector(_init, _next, _tracked_result(self), _tracked_escape(self))

    def patch_where_input(
        self,
        predicate: Callable[[A, int], bool],
        remove: int,
        insert: Callable[[A, int], Iterable[A]] | None = None,
        amount: int | None = None,
    ) -> Collector[A, Any, R]:
        """Splice the input each time an element satisfies `predicate`.

        On a match, the elements returned by `insert` are fed first, then `remove` elements are skipped,
        starting with the matching one.

        Matching is suspended while elements are being skipped.

        Args:
            predicate (Callable[[A, int], bool]): Called with each candidate element and its index in the patched input.
            remove (int): Amount of elements to skip on a match. With `0`, the matching element is fed after the inserted ones.
            insert (Callable[[A, int], Iterable[A]] | None): Optional function building the elements to feed on a match.
            amount (int | None): Maximum amount of matches. Unlimited by default.

        Returns:
            Collector[A, Any, R]: The patched collector.

        Example:
        ```python
        >>> import pyofold as pf
        >>> triple = pf.ops.to_list().patch_where_input(lambda v, _: v % 3 == 0, 1, lambda v, _: [v * 2, v * 3])
        >>> triple.collect([1, 3, 5])
        [1, 6, 9, 5]

        ```
        """

        def _init() -> _Patching[S]:
            return _Patching(self.create_init_state(), amount)

        def _next(patching: _Patching[S], elem: A, _: int) -> _Patching[S]:
            if patching.to_remove <= 0:
                has_budget = patching.amount_left is None or patching.amount_left > 0
                if has_budget and predicate(elem, patching.index):
                    patching.to_remove = remove
                    if patching.amount_left is not None:
                        patching.amount_left -= 1
                    if insert is not None:
                        for inserted in insert(elem, patching.index):
                            _feed(self, patching, inserted)
                if patching.to_remove <= 0:
                    _feed(self, patching, elem)
            patching.to_remove -= 1
            return patching

        return Collector(_init, _next, _tracked_result(self), _tracked_escape(self))

    def patch_elem_input(
        self,
        elem: A,
        remove: int,
        insert: Iterable[A] = (),
        amount: int | None = None,
    ) -> Collector[A, Any, R]:
        """Same as `patch_where_input`, matching the elements equal to `elem`, and always inserting `insert`.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.string_append.patch_elem_input("a", 1, "b", 1).collect("abab")
        'bbab'

        ```
        """
        return self.patch_where_input(lambda e, _: e == elem, remove, lambda *_: insert, amount)

    def prepend_input(self, *elems: A) -> Collector[A, S, R]:
        """Feed `elems` before the first element of each pass.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.string_append.prepend_input("abc").collect("11")
        'abc11'

        ```
        """
        offset = len(elems)

        def _init() -> S:
            state = self.create_init_state()
            for index, elem in enumerate(elems):
                state = self.next_state(state, elem, index)
            return state

        def _next(state: S, elem: A, index: int) -> S:
            return self.next_state(state, elem, index + offset)

        def _result(state: S, index: int) -> R:
            return self.state_to_result(state, index + offset)

        def _escape(state: S, index: int) -> bool:
            return self.should_escape(state, index + offset)

        return Collector(_init, _next, _result, _escape)

    def append_input(self, *elems: A) -> Collector[A, S, R]:
        """Feed `elems` after the last element, each time the result is requested.

        The elements are fed into the current state, so with a mutable state,
        requesting the result twice feeds them twice.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.ops.sum.append_input(100, 200).collect([1, 2, 3])
        306

        ```
        """

        def _result(state: S, index: int) -> R:
            for offset, elem in enumerate(elems):
                state = self.next_state(state, elem, index + offset)
            return self.state_to_result(state, index + len(elems))

        return replace(self, state_to_result=_result)

    def _filter_indexed(self, predicate: Callable[[A, int], bool]) -> Collector[A, _Tracked[S], R]:
        def _init() -> _Tracked[S]:
            return _Tracked(self.create_init_state())

        def _next(tracked: _Tracked[S], elem: A, index: int) -> _Tracked[S]:
            if predicate(elem, index):
                _feed(self, tracked, elem)
            return tracked

        return Collector(_init, _next, _tracked_result(self), _tracked_escape(self))


def _state_as_result[S](state: S, _: int) -> S:
    return state


def _keep_state[S](state: S, *_: object) -> S:
    return state


def _always(*_: object) -> bool:
    return True


def _feed[A](collector: Collector[A, Any, Any], tracked: Any, elem: A) -> None:  # noqa: ANN401
    """Feed `elem` to the state held by `tracked`, advancing its virtual index."""
    tracked.state = collector.next_state(tracked.state, elem, tracked.index)
    tracked.index += 1


def _tracked_result[R](collector: Collector[Any, Any, R]) -> StateToResult[Any, R]:
    def _result(tracked: Any, _: int) -> R:  # noqa: ANN401
        return collector.state_to_result(tracked.state, tracked.index)

    return _result


def _tracked_escape(collector: Collector[Any, Any, Any]) -> Escape[Any]:
    def _escape(tracked: Any, _: int) -> bool:  # noqa: ANN401
        return collector.should_escape(tracked.state, tracked.index)

    return _escape


# composition --------------------------------------------------------------
def combine_with[A, R](
    func: Callable[..., R],
    *collectors: Collector[A, Any, Any],
) -> Collector[A, tuple[Any, ...], R]:
    """Run all `collectors` over a single pass, and merge their results with `func`.

    Each element is fed, with the same index, to every collector.

    The combined collector escapes only once all of them have escaped.

    Args:
        func (Callable[..., R]): Called with the result of each collector, in order.
        *collectors (Collector[A, Any, Any]): The collectors to run.

    Returns:
        Collector[A, tuple[Any, ...], R]: The combined collector.

    Example:
    ```python
    >>> import pyofold as pf
    >>> spread = pf.combine_with(lambda lo, hi: hi - lo, pf.ops.min(), pf.ops.max())
    >>> pf.Iter.of(4, 9, 1).collect(spread)
    8

    ```
    """

    def _init() -> tuple[Any, ...]:
        return tuple(col.create_init_state() for col in collectors)

    def _next(states: tuple[Any, ...], elem: A, index: int) -> tuple[Any, ...]:
        return tuple(col.next_state(state, elem, index) for col, state in zip(collectors, states, strict=True))

    def _result(states: tuple[Any, ...], index: int) -> R:
        return func(*(col.state_to_result(state, index) for col, state in zip(collectors, states, strict=True)))

    def _escape(states: tuple[Any, ...], index: int) -> bool:
        return all(col.should_escape(state, index) for col, state in zip(collectors, states, strict=True))

    return Collector(_init, _next, _result, _escape)


def combine[A](*collectors: Collector[A, Any, Any]) -> Collector[A, tuple[Any, ...], tuple[Any, ...]]:
    """Run all `collectors` over a single pass, returning the tuple of their results.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter.of(2, 3).collect(pf.combine(pf.ops.sum, pf.ops.product))
    (5, 6)

    ```
    """
    return combine_with(_as_tuple, *collectors)


def _as_tuple(*results: Any) -> tuple[Any, ...]:  # noqa: ANN401
    return results


def pipe[A, B, R](first: Collector[A, Any, B], second: Collector[B, Any, R]) -> Collector[A, tuple[Any, Any], R]:
    """Feed the result of `first` after each element into `second`.

    The piped collector escapes as soon as either of them escapes.

    Example:
    ```python
    >>> import pyofold as pf
    >>> running_max = pf.pipe(pf.ops.sum, pf.ops.max())
    >>> pf.Iter.of(3, -5, 4).collect(running_max)
    3

    ```
    """

    def _init() -> tuple[Any, Any]:
        return first.create_init_state(), second.create_init_state()

    def _next(states: tuple[Any, Any], elem: A, index: int) -> tuple[Any, Any]:
        state1 = first.next_state(states[0], elem, index)
        state2 = second.next_state(states[1], first.state_to_result(state1, index + 1), index)
        return state1, state2

    def _result(states: tuple[Any, Any], index: int) -> R:
        return second.state_to_result(states[1], index)

    def _escape(states: tuple[Any, Any], index: int) -> bool:
        return first.should_escape(states[0], index) or second.should_escape(states[1], index)

    return Collector(_init, _next, _result, _escape)


def collect[A, S, R](data: Iterable[A], collector: Collector[A, S, R]) -> R:
    """Fold `data` with `collector`, stopping early once it escapes.

    The escape predicate is checked on the initial state too, in which case nothing is pulled from `data`.
    """
    state = collector.create_init_state()
    index = 0
    if not collector.should_escape(state, index):
        for elem in data:
            state = collector.next_state(state, elem, index)
            index += 1
            if collector.should_escape(state, index):
                logger.debug("Collector escaped after %d elements", index)
                break
    return collector.state_to_result(state, index)


def collect_iter[A, R](data: Iterable[A], collector: Collector[A, Any, R]) -> Iter[R]:
    """Lazily yield the result of `collector` after each element of `data`, until it escapes."""
    return collector.collect_iter(data)
