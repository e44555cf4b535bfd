"""Tests for the errors raised at API boundaries."""

import pytest

import pyofold as pf
from pyofold import ops


def test_iter_rejects_nesting() -> None:
    """Test that an Iter can not wrap another Iter."""
    with pytest.raises(pf.NestingError):
        pf.Iter(pf.Iter.of(1))


def test_nesting_error_is_type_error() -> None:
    """Test that NestingError can be caught as a TypeError and as a PyofoldError."""
    with pytest.raises(TypeError):
        pf.Iter(pf.Iter.of(1))
    assert issubclass(pf.NestingError, pf.PyofoldError)


def test_iter_rejects_generator() -> None:
    """Test that a one-shot generator is rejected."""
    with pytest.raises(pf.NotIterableError, match="from_iterator"):
        pf.Iter(v for v in range(3))


def test_iter_rejects_non_iterable() -> None:
    """Test that a non iterable value is rejected."""
    with pytest.raises(pf.NotIterableError):
        pf.Iter(42)  # type: ignore[arg-type]


def test_generator_through_factory() -> None:
    """Test that a generator is accepted through a factory."""
    assert pf.Iter.from_iterator(lambda: (v for v in range(3))).to_list() == [0, 1, 2]


def test_empty_input_error() -> None:
    """Test that folds needing an element raise EmptyInputError on empty input."""
    for collector in (ops.first(), ops.last(), ops.min(), ops.max(), ops.find(bool), ops.elem_at(0)):
        with pytest.raises(pf.EmptyInputError):
            pf.Iter.empty().collect(collector)


def test_empty_input_error_is_value_error() -> None:
    """Test that EmptyInputError can be caught as a ValueError."""
    with pytest.raises(ValueError, match="without fallback"):
        pf.Iter.empty().reduce(lambda a, b: a + b)


def test_fallbacks() -> None:
    """Test that fallbacks replace the error, lazy ones being called."""
    assert pf.Iter.empty().collect(ops.first("x")) == "x"
    assert pf.Iter.empty().collect(ops.last(lambda: "y")) == "y"
    assert pf.Iter.empty().collect(ops.min_by(len, otherwise="z")) == "z"


def test_callback_errors_propagate() -> None:
    """Test that errors raised by callbacks are not swallowed."""

    def _fail(value: int) -> int:
        msg = f"bad value {value}"
        raise RuntimeError(msg)

    with pytest.raises(RuntimeError, match="bad value 1"):
        pf.Iter.of(1).map(_fail).to_list()
