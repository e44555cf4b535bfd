from __future__ import annotations

import logging
import warnings
from collections.abc import AsyncIterable, AsyncIterator, Callable, Hashable, Iterable, Iterator
from enum import Enum, auto
from typing import Any, Final

import cytoolz as cz

from ._core import get_config
from ._errors import NotIterableError, SharedInitStateWarning

logger = logging.getLogger(__name__)

type OptLazy[T] = T | Callable[[], T]
"""A value, or a zero-argument callable producing it."""
type MonitorEffect[T] = Callable[[T, int, str], object]
"""Side effect called with the value, its index and the monitor tag."""


class NoValue(Enum):
    """Marker type for an absent value, distinct from `None`."""

    NO_VALUE = auto()

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Final = NoValue.NO_VALUE
"""The unique absent value.

Used to pad exhausted sources in `Iter.zip_all`, and as the default of every `otherwise` fallback.
"""


def to_value[T](value: OptLazy[T]) -> T:
    """Resolve an optionally lazy value.

    Callables are called without arguments, anything else is returned as is.
    """
    return value() if callable(value) else value


def to_factory[T](init: OptLazy[T], stacklevel: int = 2) -> Callable[[], T]:
    """Turn an optionally lazy initial state into a factory.

    A literal initial state is returned by every call of the factory.

    When it is unhashable (a list, dict, set...), every pass shares it, and a `SharedInitStateWarning` is emitted.
    """
    if callable(init):
        return init
    if not isinstance(init, Hashable):
        warnings.warn(
            f"Literal initial state {init!r} is mutable and will be shared between passes, "
            "pass a factory instead (e.g. `list` instead of `[]`).",
            SharedInitStateWarning,
            stacklevel=stacklevel + 1,
        )

    def _factory() -> T:
        return init

    return _factory


def check_reiterable(data: object) -> None:
    """Reject values a sequence can not iterate more than once.

    Raises:
        NotIterableError: If `data` is not iterable, or is a one-shot iterator.
    """
    if isinstance(data, Iterator):
        msg = f"{type(data).__name__} is a one-shot iterator, wrap a factory with `from_iterator` instead"
        raise NotIterableError(msg)
    if not (isinstance(data, Iterable) or cz.itertoolz.isiterable(data)):
        msg = f"Expected an iterable, got {type(data).__name__}"
        raise NotIterableError(msg)


def check_async_reiterable(data: object) -> None:
    """Same as `check_reiterable`, for async sources."""
    if not isinstance(data, AsyncIterable):
        msg = f"Expected an async iterable, got {type(data).__name__}"
        raise NotIterableError(msg)
    if isinstance(data, AsyncIterator):
        msg = f"{type(data).__name__} is a one-shot async iterator, wrap a factory with `from_iterator` instead"
        raise NotIterableError(msg)


def is_iterable(data: object) -> bool:
    return cz.itertoolz.isiterable(data)


def is_async_iterable(data: object) -> bool:
    return isinstance(data, AsyncIterable)


def log_monitor(value: object, index: int, tag: str = "") -> None:
    """Default monitor effect, logging each value with its index."""
    logger.log(get_config().monitor_level, "%s[%d]: %r", tag, index, value)


def log_input(values: tuple[Any, Any], index: int, tag: str = "") -> None:
    """Default collector monitor effect, logging each input element and the state it is fed into."""
    elem, state = values
    logger.log(
        get_config().monitor_level,
        "%s[%d]: input: %r, prevState: %r",
        tag,
        index,
        elem,
        state,
    )
