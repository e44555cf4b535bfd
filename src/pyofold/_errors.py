class PyofoldError(Exception):
    """Base class for all errors raised by pyofold."""


class NestingError(PyofoldError, TypeError):
    """Raised when wrapping a value that is already wrapped by the same sequence type."""


class NotIterableError(PyofoldError, TypeError):
    """Raised when a source lacks the iteration capability required by a sequence.

    One-shot iterators (where `iter(x) is x`) are rejected as well, since a sequence must be iterable more than once.

    Use `Iter.from_iterator` with a factory to wrap them.
    """


class EmptyInputError(PyofoldError, ValueError):
    """Raised by operations that need at least one element when no fallback was given."""


class SharedInitStateWarning(UserWarning):
    """A collector was given a literal mutable initial state, shared by every pass."""
