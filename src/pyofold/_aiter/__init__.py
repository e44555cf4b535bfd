from ._main import AsyncIter
from ._sources import Async, Source, Sync

__all__ = ["Async", "AsyncIter", "Source", "Sync"]
