from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

import cytoolz as cz


@dataclass(slots=True, frozen=True)
class Config:
    """Global display and monitoring settings.

    Attributes:
        repr_max_items (int): Number of leading elements rendered by `Iter.__repr__`.
        monitor_level (int): Logging level used by the default monitor effects.
    """

    repr_max_items: int = 10
    monitor_level: int = logging.INFO

    def iter_repr(self, v: Iterable[Any]) -> str:
        head = tuple(cz.itertoolz.take(self.repr_max_items + 1, v))
        suffix = ", ..." if len(head) > self.repr_max_items else ""
        return ", ".join(repr(x) for x in head[: self.repr_max_items]) + suffix


_CONFIG = Config()


def get_config() -> Config:
    """Get the active configuration."""
    return _CONFIG


def set_config(**changes: Any) -> Config:  # noqa: ANN401
    """Replace the active configuration with an updated copy.

    Args:
        **changes (Any): Fields of `Config` to change.

    Returns:
        Config: The new active configuration.

    Example:
    ```python
    >>> import pyofold as pf
    >>> pf.set_config(repr_max_items=2)
    Config(repr_max_items=2, monitor_level=20)
    >>> pf.Iter.range(0, 5)
    Iter(0, 1, ...)
    >>> pf.set_config(repr_max_items=10).repr_max_items
    10

    ```
    """
    global _CONFIG  # noqa: PLW0603
    _CONFIG = replace(_CONFIG, **changes)
    return _CONFIG
