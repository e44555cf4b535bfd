"""Ready-made collectors.

Parameterless collectors are plain values, the others are built by functions.

Example:
```python
>>> import pyofold as pf
>>> words = pf.Iter.of("This", "is", "a", "test")
>>> words.collect(pf.ops.sum.map_input(len))
11
>>> words.collect(pf.combine(pf.ops.count, pf.ops.string_append))
(4, 'Thisisatest')

```
"""

from __future__ import annotations

from collections import Counter, deque
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from operator import itemgetter
from typing import Any, Literal

import cytoolz as cz

from ._collector import Collector, combine
from ._common import NO_VALUE, NoValue, OptLazy, to_value
from ._errors import EmptyInputError

type SortBy = Literal["TOP", "BOTTOM"]
"""Sort order of `histogram`, most frequent first (`TOP`) or last (`BOTTOM`)."""


def _or_else[T](otherwise: OptLazy[T] | NoValue, what: str) -> Callable[[T | NoValue], T]:
    def _resolve(result: T | NoValue) -> T:
        if result is not NO_VALUE:
            return result
        if otherwise is NO_VALUE:
            msg = f"{what}: no element found, and no fallback given"
            raise EmptyInputError(msg)
        return to_value(otherwise)

    return _resolve


# strings ------------------------------------------------------------------
string_append: Collector[Any, str, str] = Collector.create("", lambda acc, elem, _: acc + str(elem))
"""Concatenate the string form of all elements."""
string_prepend: Collector[Any, str, str] = Collector.create("", lambda acc, elem, _: str(elem) + acc)
"""Concatenate the string form of all elements, in reverse order."""

# numbers ------------------------------------------------------------------
count: Collector[Any, int, int] = Collector.create(0, lambda _, __, index: index + 1)
"""Count the elements."""
sum: Collector[float, float, float] = Collector.create(0, lambda acc, elem, _: acc + elem)  # noqa: A001
"""Add up all elements, `0` when empty."""
product: Collector[float, float, float] = Collector.create(
    1,
    lambda acc, elem, _: acc * elem,
    lambda acc, _: acc == 0,
)
"""Multiply all elements, `1` when empty. Escapes as soon as the product is `0`."""
average: Collector[float, float, float] = Collector.create(
    0,
    lambda avg, elem, index: avg + (elem - avg) / (index + 1),
)
"""Running mean of all elements, `0` when empty."""


# search -------------------------------------------------------------------
def _find_indexed[T](
    predicate: Callable[[T, int], bool],
    otherwise: OptLazy[T] | NoValue,
    what: str,
) -> Collector[T, T | NoValue, T]:
    def _next(found: T | NoValue, elem: T, index: int) -> T | NoValue:
        if found is not NO_VALUE:
            return found
        return elem if predicate(elem, index) else NO_VALUE

    return Collector.create_state(
        NO_VALUE,
        _next,
        lambda found, _: _or_else(otherwise, what)(found),
        lambda found, _: found is not NO_VALUE,
    )


def find[T](predicate: Callable[[T], bool], otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:
    """Get the first element satisfying `predicate`, escaping as soon as it is found.

    Args:
        predicate (Callable[[T], bool]): Condition of the element to find.
        otherwise (OptLazy[T] | NoValue): Fallback when no element matches.

    Returns:
        Collector[T, Any, T]: A collector raising `EmptyInputError` on no match, unless `otherwise` is given.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter.of(1, 4, 6).collect(pf.ops.find(lambda v: v % 2 == 0))
    4
    >>> pf.Iter.of(1, 3).collect(pf.ops.find(lambda v: v % 2 == 0, otherwise=lambda: -1))
    -1

    ```
    """
    return _find_indexed(lambda elem, _: predicate(elem), otherwise, "find")


def _choose_opt[T](choice: Callable[[T | NoValue, T], bool]) -> Collector[T, T | NoValue, T | NoValue]:
    return Collector.create(NO_VALUE, lambda chosen, elem, _: elem if choice(chosen, elem) else chosen)


def find_last[T](predicate: Callable[[T], bool], otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:
    """Get the last element satisfying `predicate`."""
    return _choose_opt(lambda _, elem: predicate(elem)).map_result(_or_else(otherwise, "find_last"))


def first[T](otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:
    """Get the first element."""
    return _find_indexed(lambda *_: True, otherwise, "first")


def last[T](otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:
    """Get the last element."""
    return _choose_opt(lambda *_: True).map_result(_or_else(otherwise, "last"))


def elem_at[T](index: int, otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:
    """Get the element at `index`.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter("abc").collect(pf.ops.elem_at(1))
    'b'
    >>> pf.Iter("abc").collect(pf.ops.elem_at(5, "?"))
    '?'

    ```
    """
    return _find_indexed(lambda _, i: i == index, otherwise, "elem_at")


def choose[T](choice: Callable[[T, T], bool], otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:
    """Select an element by successive comparisons.

    The first element is chosen, then each following one replaces the chosen one when `choice(chosen, elem)` is `True`.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter.of(1, 3, 4, 7, 2).collect(pf.ops.choose(lambda chosen, elem: (chosen + elem) % 2 == 0))
    7

    ```
    """

    def _choice(chosen: T | NoValue, elem: T) -> bool:
        return chosen is NO_VALUE or choice(chosen, elem)

    return _choose_opt(_choice).map_result(_or_else(otherwise, "choose"))


def min[T](otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:  # noqa: A001
    """Get the smallest element, the first one on ties."""
    return choose(lambda chosen, elem: elem < chosen, otherwise)


def max[T](otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:  # noqa: A001
    """Get the largest element, the first one on ties."""
    return choose(lambda chosen, elem: elem > chosen, otherwise)


range: Collector[Any, Any, tuple[Any, Any]] = combine(min(), max())  # noqa: A001
"""Get the smallest and the largest elements, as a pair."""


@dataclass(slots=True)
class _Extreme[T]:
    elem: T
    key: Any


def _extreme_by[T](
    key: Callable[[T], Any],
    better: Callable[[Any, Any], bool],
    otherwise: OptLazy[T] | NoValue,
    what: str,
) -> Collector[T, Any, T]:
    def _next(current: _Extreme[T] | NoValue, elem: T, _: int) -> _Extreme[T] | NoValue:
        elem_key = key(elem)
        if current is NO_VALUE:
            return _Extreme(elem, elem_key)
        if better(elem_key, current.key):
            current.elem = elem
            current.key = elem_key
        return current

    def _result(current: _Extreme[T] | NoValue, _: int) -> T:
        return _or_else(otherwise, what)(current if current is NO_VALUE else current.elem)

    return Collector.create_state(NO_VALUE, _next, _result)


def min_by[T](key: Callable[[T], Any], otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:
    """Get the element with the smallest `key`, the first one on ties."""
    return _extreme_by(key, lambda a, b: a < b, otherwise, "min_by")


def max_by[T](key: Callable[[T], Any], otherwise: OptLazy[T] | NoValue = NO_VALUE) -> Collector[T, Any, T]:
    """Get the element with the largest `key`, the first one on ties."""
    return _extreme_by(key, lambda a, b: a > b, otherwise, "max_by")


def range_by[T](key: Callable[[T], Any]) -> Collector[T, Any, tuple[T, T]]:
    """Get the elements with the smallest and the largest `key`, as a pair.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter.of("aa", "a", "aaa").collect(pf.ops.range_by(len))
    ('a', 'aaa')

    ```
    """
    return combine(min_by(key), max_by(key))


# booleans -----------------------------------------------------------------
def some[T](predicate: Callable[[T], bool]) -> Collector[T, bool, bool]:
    """Check if any element satisfies `predicate`, escaping on the first one that does."""
    return Collector.create(
        False,  # noqa: FBT003
        lambda state, elem, _: state or bool(predicate(elem)),
        lambda state, _: state,
    )


def every[T](predicate: Callable[[T], bool]) -> Collector[T, bool, bool]:
    """Check if all elements satisfy `predicate`, escaping on the first one that does not."""
    return Collector.create(
        True,  # noqa: FBT003
        lambda state, elem, _: state and bool(predicate(elem)),
        lambda state, _: not state,
    )


def contains[T](elem: T) -> Collector[T, bool, bool]:
    """Check if an element equals `elem`."""
    return some(lambda e: e == elem)


def contains_any[T: Hashable](*elems: T) -> Collector[T, bool, bool]:
    """Check if an element equals any of `elems`.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter("hello").collect(pf.ops.contains_any("x", "l"))
    True

    ```
    """
    targets = frozenset(elems)
    return some(lambda e: e in targets)


and_: Collector[Any, bool, bool] = every(bool)
"""Check if all elements are truthy, `True` when empty."""
or_: Collector[Any, bool, bool] = some(bool)
"""Check if any element is truthy, `False` when empty."""
has_value: Collector[Any, bool, bool] = some(lambda _: True)
"""Check if there is at least one element, pulling at most one."""
no_value: Collector[Any, bool, bool] = every(lambda _: False)
"""Check if there are no elements, pulling at most one."""


# containers ---------------------------------------------------------------
def to_list[T](*, reverse: bool = False) -> Collector[T, deque[T], list[T]]:
    """Collect the elements in a new list, optionally in reverse order."""

    def _next(acc: deque[T], elem: T, _: int) -> deque[T]:
        if reverse:
            acc.appendleft(elem)
        else:
            acc.append(elem)
        return acc

    return Collector.create_state(deque, _next, lambda acc, _: list(acc))


def to_set[T: Hashable]() -> Collector[T, set[T], set[T]]:
    """Collect the elements in a new set."""

    def _next(acc: set[T], elem: T, _: int) -> set[T]:
        acc.add(elem)
        return acc

    return Collector.create(set, _next)


def to_dict[K, V]() -> Collector[tuple[K, V], dict[K, V], dict[K, V]]:
    """Collect `(key, value)` pairs in a new dict, the last value winning on duplicate keys."""

    def _next(acc: dict[K, V], pair: tuple[K, V], _: int) -> dict[K, V]:
        key, value = pair
        acc[key] = value
        return acc

    return Collector.create(dict, _next)


# grouping -----------------------------------------------------------------
@dataclass(slots=True)
class _Group[S]:
    state: S
    length: int = 0


def group_by_gen[T, K, R](key: Callable[[T], K], collector: Collector[T, Any, R]) -> Collector[T, Any, dict[K, R]]:
    """Group the elements by `key`, and fold each group with its own pass of `collector`.

    Args:
        key (Callable[[T], K]): Computes the group of each element.
        collector (Collector[T, Any, R]): Folds the elements of each group, indexed from `0` within the group.

    Returns:
        Collector[T, Any, dict[K, R]]: A collector of the result of each group, in order of first appearance.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter.of(1, 2, 3, 4, 5).collect(pf.ops.group_by_gen(lambda v: v % 2, pf.ops.sum))
    {1: 9, 0: 6}

    ```
    """

    def _next(groups: dict[K, _Group[Any]], elem: T, _: int) -> dict[K, _Group[Any]]:
        k = key(elem)
        group = groups.get(k)
        if group is None:
            group = groups[k] = _Group(collector.create_init_state())
        group.state = collector.next_state(group.state, elem, group.length)
        group.length += 1
        return groups

    def _result(groups: dict[K, _Group[Any]], _: int) -> dict[K, R]:
        return cz.dicttoolz.valmap(lambda g: collector.state_to_result(g.state, g.length), groups)

    return Collector.create_state(dict, _next, _result)


def group_by[T, K](key: Callable[[T], K]) -> Collector[T, Any, dict[K, list[T]]]:
    """Group the elements by `key` in lists.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter.of("ab", "c", "de").collect(pf.ops.group_by(len))
    {2: ['ab', 'de'], 1: ['c']}

    ```
    """
    return group_by_gen(key, to_list())


def group_by_unique[T: Hashable, K](key: Callable[[T], K]) -> Collector[T, Any, dict[K, set[T]]]:
    """Group the elements by `key` in sets."""
    return group_by_gen(key, to_set())


def histogram[T: Hashable](sort_by: SortBy | None = None, amount: int | None = None) -> Collector[T, Any, dict[T, int]]:
    """Count the occurrences of each element.

    Args:
        sort_by (SortBy | None): Optional order of the result, by count.
        amount (int | None): Maximum amount of entries kept once sorted.

    Returns:
        Collector[T, Any, dict[T, int]]: A collector of the count of each element.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter("abcbcc").collect(pf.ops.histogram())
    {'a': 1, 'b': 2, 'c': 3}
    >>> pf.Iter("abcbcc").collect(pf.ops.histogram("TOP", 2))
    {'c': 3, 'b': 2}

    ```
    """
    if amount is not None and amount <= 0:
        return Collector.fixed(dict)

    def _next(counter: Counter[T], elem: T, _: int) -> Counter[T]:
        counter[elem] += 1
        return counter

    def _result(counter: Counter[T], _: int) -> dict[T, int]:
        match sort_by:
            case None:
                return dict(counter)
            case "TOP":
                return dict(counter.most_common(amount))
            case "BOTTOM":
                return dict(sorted(counter.items(), key=itemgetter(1))[:amount])

    return Collector.create_state(Counter, _next, _result)


def elements_by_freq[T: Hashable]() -> Collector[T, Any, dict[int, set[T]]]:
    """Group the distinct elements by their amount of occurrences."""

    def _by_freq(hist: dict[T, int]) -> dict[int, set[T]]:
        result: dict[int, set[T]] = {}
        for elem, freq in hist.items():
            result.setdefault(freq, set()).add(elem)
        return result

    return histogram().map_result(_by_freq)


def partition_gen[T, R](predicate: Callable[[T], bool], collector: Collector[T, Any, R]) -> Collector[T, Any, tuple[R, R]]:
    """Fold the elements satisfying `predicate` and the other ones in two separate passes of `collector`.

    Returns:
        Collector[T, Any, tuple[R, R]]: A collector of the pair (satisfying, not satisfying).
    """

    def _empty() -> R:
        return collector.state_to_result(collector.create_init_state(), 0)

    def _pair(groups: dict[bool, R]) -> tuple[R, R]:
        return (
            groups[True] if True in groups else _empty(),
            groups[False] if False in groups else _empty(),
        )

    return group_by_gen(lambda elem: bool(predicate(elem)), collector).map_result(_pair)


def partition[T](predicate: Callable[[T], bool]) -> Collector[T, Any, tuple[list[T], list[T]]]:
    """Split the elements in two lists, (satisfying, not satisfying) `predicate`.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.Iter.range(0, 6).collect(pf.ops.partition(lambda v: v % 3 == 0))
    ([0, 3], [1, 2, 4, 5])

    ```
    """
    return partition_gen(predicate, to_list())


def split_at_gen[T, R](index: int, collector: Collector[T, Any, R]) -> Collector[T, Any, tuple[R, R]]:
    """Fold the elements before `index` and the other ones in two separate passes of `collector`."""
    return combine(collector.take_input(index), collector.drop_input(index))


def split_at[T](index: int) -> Collector[T, Any, tuple[list[T], list[T]]]:
    """Split the elements in two lists, before and after `index`."""
    return split_at_gen(index, to_list())
