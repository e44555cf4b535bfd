"""Sources an `AsyncIter` can wrap.

A source is explicitly tagged as synchronous (`Sync`) or asynchronous (`Async`), so that the kind of each source is
decided once, when it is wrapped, instead of being checked again on each iteration.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass

from .._common import check_async_reiterable, check_reiterable
from ._iterators import FromSync, to_async_iterator


@dataclass(slots=True, frozen=True)
class Sync[T]:
    """A re-iterable synchronous source.

    Raises:
        NotIterableError: If `data` is not iterable, or is a one-shot iterator.
    """

    data: Iterable[T]

    def __post_init__(self) -> None:
        check_reiterable(self.data)

    def __aiter__(self) -> AsyncIterator[T]:
        return FromSync(iter(self.data))


@dataclass(slots=True, frozen=True)
class Async[T]:
    """A re-iterable asynchronous source.

    Raises:
        NotIterableError: If `data` is not an async iterable, or is a one-shot async iterator.
    """

    data: AsyncIterable[T]

    def __post_init__(self) -> None:
        check_async_reiterable(self.data)

    def __aiter__(self) -> AsyncIterator[T]:
        return aiter(self.data)


type Source[T] = Sync[T] | Async[T]


class FromIterator[T]:
    """Re-iterable async source calling a factory for each new iterator.

    The factory may create a sync iterator as well as an async one.
    """

    __slots__ = ("_factory",)

    def __init__(self, factory: Callable[[], Iterator[T] | AsyncIterator[T]]) -> None:
        self._factory = factory

    def __aiter__(self) -> AsyncIterator[T]:
        return to_async_iterator(self._factory())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._factory!r})"


class SharedAwaitable[T]:
    """Awaitable starting its underlying work once, on first use, every later await getting the same result."""

    __slots__ = ("_awaitable", "_future")

    def __init__(self, awaitable: Awaitable[T]) -> None:
        self._awaitable = awaitable
        self._future: asyncio.Future[T] | None = None

    def __await__(self):  # noqa: ANN204
        if self._future is None:
            self._future = asyncio.ensure_future(self._awaitable)
        return self._future.__await__()


class SingleCallback[T]:
    """Awaitable resolved by the first call to `emit`, later calls being ignored."""

    __slots__ = ("_future",)

    def __init__(self) -> None:
        self._future: asyncio.Future[tuple[T]] | None = None

    def _get_future(self) -> asyncio.Future[tuple[T]]:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    def emit(self, value: T) -> None:
        future = self._get_future()
        if not future.done():
            future.set_result((value,))

    async def wait(self) -> T:
        (value,) = await self._get_future()
        return value
