from . import ops
from ._aiter import Async, AsyncIter, Sync
from ._collector import Collector, collect, collect_iter, combine, combine_with, pipe
from ._common import NO_VALUE, NoValue, OptLazy
from ._core import Config, get_config, set_config
from ._errors import EmptyInputError, NestingError, NotIterableError, PyofoldError, SharedInitStateWarning
from ._iter import Iter

__all__ = [
    "NO_VALUE",
    "Async",
    "AsyncIter",
    "Collector",
    "Config",
    "EmptyInputError",
    "Iter",
    "NestingError",
    "NoValue",
    "NotIterableError",
    "OptLazy",
    "PyofoldError",
    "SharedInitStateWarning",
    "Sync",
    "collect",
    "collect_iter",
    "combine",
    "combine_with",
    "get_config",
    "ops",
    "pipe",
    "set_config",
]
