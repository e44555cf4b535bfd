from __future__ import annotations

from abc import ABC
from collections.abc import Callable
from typing import Concatenate, Self


class Pipeable:
    __slots__ = ()

    def into[**P, R](
        self,
        func: Callable[Concatenate[Self, P], R],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> R:
        """Convert `Self` to `R`.

        This method allows to pipe the instance into a function that converts `Self` into another type.

        Conceptually, this allows to write `x.into(f)` instead of `f(x)`, keeping a chaining style.

        Args:
            func (Callable[Concatenate[Self, P], R]): Function for conversion.
            *args (P.args): Positional arguments to pass to the function.
            **kwargs (P.kwargs): Keyword arguments to pass to the function.

        Returns:
            R: The converted value.

        Example:
        ```python
        >>> import pyofold as pf
        >>> def total_len(words: pf.Iter[str]) -> int:
        ...     return words.map(len).collect(pf.ops.sum)
        >>>
        >>> pf.Iter.of("ab", "cde").into(total_len)
        5

        ```
        """
        return func(self, *args, **kwargs)

    def inspect[**P](
        self,
        func: Callable[Concatenate[Self, P], object],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> Self:
        """Pass the instance to a function to perform side effects without altering the data.

        Args:
            func (Callable[Concatenate[Self, P], object]): Function to apply to the instance for side effects.
            *args (P.args): Positional arguments to pass to the function.
            **kwargs (P.kwargs): Keyword arguments to pass to the function.

        Returns:
            Self: The instance itself for chaining.

        Example:
        ```python
        >>> import pyofold as pf
        >>> pf.Iter.of(1, 2, 3).inspect(print).to_list()
        Iter(1, 2, 3)
        [1, 2, 3]

        ```
        """
        func(self, *args, **kwargs)
        return self


class CommonBase[T](ABC, Pipeable):
    """Base class for the sequence wrappers.

    A wrapper holds exactly one underlying source, which is never mutated by the wrapper itself.

    Args:
        data (T): The underlying source to wrap.
    """

    _inner: T

    __slots__ = ("_inner",)

    def __init__(self, data: T) -> None:
        self._inner = data

    def inner(self) -> T:
        """Get the underlying source.

        Returns:
            T: The underlying source.
        """
        return self._inner
