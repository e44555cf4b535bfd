"""Tests for the lazy synchronous sequence."""

from random import Random

import pytest

import pyofold as pf


def _odd(value: int) -> bool:
    return value % 2 == 1


class TestConstruction:
    def test_reiteration_is_idempotent(self) -> None:
        """Test that iterating the same Iter twice gives the same elements."""
        data = pf.Iter.range(0, 10).filter(_odd).map(lambda v: v * 3).sliding(2)
        assert data.to_list() == data.to_list()

    def test_from_iterator_restarts(self) -> None:
        """Test that a factory source is called on each iteration."""
        calls: list[int] = []

        def _factory() -> object:
            calls.append(1)
            return iter([1, 2])

        data = pf.Iter.from_iterator(_factory)
        assert data.to_list() == [1, 2]
        assert data.to_list() == [1, 2]
        assert len(calls) == 2

    def test_operators_are_lazy(self) -> None:
        """Test that building a pipeline pulls nothing."""
        pulled: list[int] = []
        data = pf.Iter.range(0, 5).monitor("lazy", lambda v, *_: pulled.append(v)).map(lambda v: v + 1)
        assert pulled == []
        assert data.take(2).to_list() == [1, 2]
        assert pulled == [0, 1]

    def test_from_iterable_keeps_iter(self) -> None:
        """Test that from_iterable does not wrap an Iter twice."""
        data = pf.Iter.of(1)
        assert pf.Iter.from_iterable(data) is data

    def test_empty_instances_are_independent(self) -> None:
        """Test that empty sequences are plain values."""
        assert pf.Iter.empty().to_list() == []
        assert pf.Iter.empty().concat([1]).to_list() == [1]

    def test_generate(self) -> None:
        """Test generating from the previous element until None."""
        assert pf.Iter.generate(1, lambda v: v * 2 if v < 8 else None).to_list() == [1, 2, 4, 8]

    def test_generate_is_lazy(self) -> None:
        """Test that the next element is only computed when pulled."""
        calls: list[int] = []

        def _next(value: int) -> int:
            calls.append(value)
            return value + 1

        assert pf.Iter.generate(0, _next).take(2).to_list() == [0, 1]
        assert calls == [0]

    def test_unfold(self) -> None:
        """Test unfolding a state into elements."""
        fib = pf.Iter.unfold((0, 1), lambda s: (s[0], (s[1], s[0] + s[1])))
        assert fib.take(7).to_list() == [0, 1, 1, 2, 3, 5, 8]

    def test_from_lazy(self) -> None:
        """Test that a lazy single element is created on each iteration."""
        counter = iter(range(10))
        data = pf.Iter.from_lazy(lambda: next(counter))
        assert data.to_list() == [0]
        assert data.to_list() == [1]

    def test_range(self) -> None:
        """Test bounded and infinite ranges."""
        assert pf.Iter.range(0, 3).to_list() == [0, 1, 2]
        assert pf.Iter.range(5).take(2).to_list() == [5, 6]

    def test_random_is_seedable(self) -> None:
        """Test random sequences driven by a seeded generator."""
        first = pf.Iter.random_int(0, 100, Random(7)).take(5).to_list()
        second = pf.Iter.random_int(0, 100, Random(7)).take(5).to_list()
        assert first == second
        assert all(0 <= v <= 100 for v in first)
        assert all(0.0 <= v <= 1.0 for v in pf.Iter.random().take(10))

    def test_indexed(self) -> None:
        """Test index-based traversals of sequences."""
        assert pf.Iter.indexed_reversed([1, 2, 3]).to_list() == [3, 2, 1]
        assert pf.Iter.indexed_bounce("abc").join() == "abcb"

    def test_flatten(self) -> None:
        """Test flattening nested iterables."""
        assert pf.Iter.flatten([[1], [], (2, 3)]).to_list() == [1, 2, 3]

    def test_repr(self) -> None:
        """Test the repr shows the leading elements."""
        assert repr(pf.Iter.of(1, 2)) == "Iter(1, 2)"
        assert repr(pf.Iter.nats()) == "Iter(0, 1, 2, 3, 4, 5, 6, 7, 8, 9, ...)"


class TestTerminal:
    def test_reduce(self) -> None:
        """Test reduce with and without fallback."""
        assert pf.Iter.of(1, 2, 3).reduce(lambda a, b: a + b) == 6
        assert pf.Iter.empty().reduce(lambda a, b: a + b, otherwise=0) == 0

    def test_join(self) -> None:
        """Test joining the string form of elements."""
        assert pf.Iter.of(1, 2).join("-", "<", ">") == "<1-2>"

    def test_for_each(self) -> None:
        """Test calling an effect on each element."""
        seen: list[int] = []
        pf.Iter.of(1, 2).for_each(seen.append)
        assert seen == [1, 2]

    def test_to_set(self) -> None:
        """Test collecting in a set."""
        assert pf.Iter("abca").to_set() == {"a", "b", "c"}

    def test_into(self) -> None:
        """Test piping the sequence into a function."""
        assert pf.Iter.of(1, 2).into(lambda it: it.to_list()) == [1, 2]


class TestSlices:
    def test_take_drop(self) -> None:
        """Test taking and dropping leading elements."""
        assert pf.Iter.range(0, 5).take(2).to_list() == [0, 1]
        assert pf.Iter.range(0, 5).drop(2).to_list() == [2, 3, 4]
        assert pf.Iter.range(0, 5).drop(0).to_list() == [0, 1, 2, 3, 4]
        assert pf.Iter.range(0, 2).drop(5).to_list() == []

    def test_take_last_drop_last(self) -> None:
        """Test taking and dropping trailing elements."""
        assert pf.Iter.range(0, 5).take_last(2).to_list() == [3, 4]
        assert pf.Iter.range(0, 5).drop_last(2).to_list() == [0, 1, 2]
        assert pf.Iter.range(0, 2).drop_last(5).to_list() == []

    def test_slice(self) -> None:
        """Test slicing."""
        assert pf.Iter.nats().slice(3, 2).to_list() == [3, 4]

    def test_take_while_drop_while(self) -> None:
        """Test predicate based slicing."""
        data = pf.Iter.of(1, 2, 5, 1)
        assert data.take_while(lambda v: v < 3).to_list() == [1, 2]
        assert data.drop_while(lambda v: v < 3).to_list() == [5, 1]


class TestFilters:
    def test_filter_and_filter_not(self) -> None:
        """Test filtering in and out."""
        assert pf.Iter.range(0, 6).filter(_odd).to_list() == [1, 3, 5]
        assert pf.Iter.range(0, 6).filter_not(_odd).to_list() == [0, 2, 4]

    def test_distinct(self) -> None:
        """Test removing duplicates."""
        assert pf.Iter.of(1, 2, 1, 3, 2).distinct().to_list() == [1, 2, 3]

    def test_filter_with_previous(self) -> None:
        """Test filtering against the preceding element."""
        data = pf.Iter.of(1, 3, 2, 5, 4)
        rising = data.filter_with_previous(lambda elem, prev: prev is pf.NO_VALUE or elem > prev)
        assert rising.to_list() == [1, 3, 5]

    def test_filter_changed(self) -> None:
        """Test removing consecutive duplicates."""
        assert pf.Iter("aabbba").filter_changed().join() == "aba"

    def test_sample(self) -> None:
        """Test sampling every nth element."""
        assert pf.Iter.range(0, 7).sample(3).to_list() == [0, 3, 6]
        with pytest.raises(ValueError, match="positive"):
            pf.Iter.range(0, 7).sample(0)

    def test_indices(self) -> None:
        """Test indices of matching elements."""
        assert pf.Iter("abcab").indices_of("b").to_list() == [1, 4]
        assert pf.Iter.of(1, 2, 3).indices_where(_odd).to_list() == [0, 2]


class TestCombinations:
    def test_concat_append_prepend(self) -> None:
        """Test adding elements around a sequence."""
        assert pf.Iter.of(2).concat([3], pf.Iter.of(4)).append(5).prepend(0, 1).to_list() == [0, 1, 2, 3, 4, 5]

    def test_zip_stops_at_shortest(self) -> None:
        """Test that zip stops at the first exhausted source."""
        assert pf.Iter.of(1, 2).zip(pf.Iter.nats()).to_list() == [(1, 0), (2, 1)]

    def test_zip_all_pads_with_no_value(self) -> None:
        """Test that zip_all goes on until all sources are exhausted."""
        assert pf.Iter.of(1, 2).zip_all("a").to_list() == [(1, "a"), (2, pf.NO_VALUE)]

    def test_zip_all_with_infinite_source(self) -> None:
        """Test that zip_all over an infinite source needs to be bounded."""
        padded = pf.Iter.of(1, 2).zip_all(pf.Iter.nats()).take(3).to_list()
        assert padded == [(1, 0), (2, 1), (pf.NO_VALUE, 2)]

    def test_zip_with(self) -> None:
        """Test combining zipped elements with a function."""
        assert pf.Iter.of(1, 2).zip_with(lambda a, b: a * b, [10, 20, 30]).to_list() == [10, 40]
        summed = pf.Iter.of(1).zip_all_with(lambda a, b: (a, b), [5, 6]).to_list()
        assert summed == [(1, 5), (pf.NO_VALUE, 6)]

    def test_zip_with_index(self) -> None:
        """Test pairing elements with their index."""
        assert pf.Iter("ab").zip_with_index().to_list() == [("a", 0), ("b", 1)]

    def test_interleave(self) -> None:
        """Test the three interleaving strategies."""
        assert pf.Iter("abc").interleave("12").join() == "a1b2"
        assert pf.Iter("abc").interleave_all("1").join() == "a1bc"
        assert pf.Iter("ab").interleave_round("123").take(6).join() == "a1b2a3"

    def test_repeat(self) -> None:
        """Test repeating a sequence."""
        assert pf.Iter.of(1, 2).repeat(2).to_list() == [1, 2, 1, 2]
        assert pf.Iter.of(1).repeat().take(3).to_list() == [1, 1, 1]
        assert pf.Iter.of(1).repeat(0).to_list() == []


class TestWindows:
    def test_sliding_overlapping(self) -> None:
        """Test that overlapping windows advance by the step."""
        windows = pf.Iter.range(0, 9).sliding(3, 1).to_list()
        assert windows[:3] == [[0, 1, 2], [1, 2, 3], [2, 3, 4]]
        assert windows[-1] == [6, 7, 8]
        assert len(windows) == 7

    def test_sliding_overlap_size(self) -> None:
        """Test that consecutive windows overlap by size minus step elements."""
        windows = pf.Iter.range(0, 20).sliding(5, 2).to_list()
        for prev, nxt in zip(windows, windows[1:], strict=False):
            if len(nxt) == 5:
                assert prev[2:] == nxt[:3]

    def test_sliding_gaps(self) -> None:
        """Test that a step larger than the size skips elements."""
        assert pf.Iter.range(0, 8).sliding(2, 3).to_list() == [[0, 1], [3, 4], [6, 7]]

    def test_sliding_tail(self) -> None:
        """Test that a shorter last window is kept."""
        assert pf.Iter.of(1, 2, 3).sliding(2).to_list() == [[1, 2], [3]]

    def test_split_where(self) -> None:
        """Test splitting on matching elements, which are dropped."""
        assert pf.Iter.of(1).split_where(_odd).to_list() == [[], []]
        assert pf.Iter.of(1, 2, 3).split_where(_odd).to_list() == [[], [2], []]
        assert pf.Iter.empty().split_where(_odd).to_list() == []

    def test_split_on_elem(self) -> None:
        """Test splitting on a given element."""
        assert pf.Iter("a,b").split_on_elem(",").to_list() == [["a"], ["b"]]

    def test_intersperse_and_mk_group(self) -> None:
        """Test inserting separators."""
        assert pf.Iter("abc").intersperse(", ").join() == "a, b, c"
        assert pf.Iter("ab").mk_group("[", "|", "]").join() == "[a|b]"
        assert pf.Iter.empty().mk_group("[", "|", "]").join() == "[]"


class TestPatches:
    def test_patch_where_counts_matches(self) -> None:
        """Test limiting the number of patches."""
        data = pf.Iter.of(1, 2, 3, 4)
        assert data.patch_where(lambda v, _: v > 1, 1, lambda *_: [0], amount=2).to_list() == [1, 0, 0, 4]

    def test_patch_where_receives_index(self) -> None:
        """Test that the predicate receives the index in the source."""
        assert pf.Iter("abcd").patch_where(lambda _, index: index == 2, 1, lambda *_: "X").join() == "abXd"

    def test_patch_at_negative(self) -> None:
        """Test that a negative index patches before the first element."""
        assert pf.Iter("abc").patch_at(-1, 1, "X").join() == "Xbc"

    def test_patch_at_past_end(self) -> None:
        """Test that an index past the end appends."""
        assert pf.Iter("abc").patch_at(5, 3, "X").join() == "abcX"

    def test_patch_at_on_empty(self) -> None:
        """Test patching an empty sequence."""
        assert pf.Iter.empty().patch_at(0, 0, "X").join() == "X"

    def test_patch_elem(self) -> None:
        """Test patching elements equal to a given one."""
        assert pf.Iter("a-b-c").patch_elem("-", 1, "+", amount=1).join() == "a+b-c"

    def test_apply_custom_operation(self) -> None:
        """Test building a sequence from a custom iterator factory."""
        assert pf.Iter.of(1, 2).apply_custom_operation(lambda it: (v * 2 for v in it)).to_list() == [2, 4]


class TestMonitor:
    def test_monitors_compose_in_order(self) -> None:
        """Test that monitors fire in the order they were added."""
        events: list[str] = []
        data = pf.Iter.of(1).monitor("a", lambda *_: events.append("a")).monitor("b", lambda *_: events.append("b"))
        data.for_each()
        assert events == ["a", "b"]

    def test_default_monitor_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that the default monitor logs each element with its index."""
        with caplog.at_level("INFO", logger="pyofold"):
            pf.Iter.of("x").monitor("tag").for_each()
        assert "tag[0]: 'x'" in caplog.text


class TestCollect:
    def test_collect(self) -> None:
        """Test folding a sequence."""
        assert pf.Iter.of(1, 2).collect(pf.ops.sum) == 3

    def test_collect_iter(self) -> None:
        """Test lazily scanning a sequence."""
        assert pf.Iter.of(1, 2, 3).collect_iter(pf.ops.to_list()).to_list() == [[1], [1, 2], [1, 2, 3]]

    def test_to_async(self) -> None:
        """Test converting to an AsyncIter."""
        assert isinstance(pf.Iter.of(1).to_async(), pf.AsyncIter)
