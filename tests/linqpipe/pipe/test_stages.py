from decimal import Decimal
import pytest

from linqpipe import query, InvalidCast
from linqpipe.pipe import stages
from linqpipe.pipe.sources import SequenceCursor
from linqpipe.util.iterators import IterableCursor
from testutils import CallCounter, CountingIterable


def drain(cursor):
    out = []
    while cursor.advance():
        out.append(cursor.current())
    return out


class TestFilter:

    def test_keeps_matching_in_order(self):
        cursor = stages.Filter(SequenceCursor([5, 1, 4, 2, 3]), lambda n: n >= 3)
        assert drain(cursor) == [5, 4, 3]

    def test_no_match(self):
        cursor = stages.Filter(SequenceCursor([1, 2]), lambda n: False)
        assert cursor.advance() is False
        assert cursor.advance() is False

    def test_current_does_not_reevaluate_predicate(self):
        predicate = CallCounter(lambda n: n > 1)
        cursor = stages.Filter(SequenceCursor([1, 2]), predicate)
        assert cursor.advance()
        assert cursor.current() == 2
        assert cursor.current() == 2
        assert predicate.calls == [1, 2]

    @pytest.mark.parametrize("items", [[], [1], [1, 2, 3, 4, 5, 6], list(range(50))])
    def test_matches_list_comprehension(self, items):
        predicate = lambda n: n % 3 == 0
        assert query(items).where(predicate).to_list() == [n for n in items if predicate(n)]


class TestTransform:

    def test_maps_every_element(self):
        cursor = stages.Transform(SequenceCursor(["a", "bb", "ccc"]), len)
        assert drain(cursor) == [1, 2, 3]

    def test_selector_runs_on_every_current(self):
        selector = CallCounter(lambda n: n * 2)
        cursor = stages.Transform(SequenceCursor([1]), selector)
        assert cursor.advance()
        cursor.current()
        cursor.current()
        assert selector.count == 2

    def test_advance_does_not_call_selector(self):
        selector = CallCounter(lambda n: n * 2)
        cursor = stages.Transform(SequenceCursor([1, 2, 3]), selector)
        while cursor.advance():
            pass
        assert selector.count == 0

    def test_length_preserving(self):
        items = list(range(20))
        assert query(items).select(lambda n: n * n).to_list() == [n * n for n in items]


class TestFlatten:

    def test_outer_major_inner_minor(self):
        cursor = stages.Flatten(SequenceCursor([[1, 2], [3], [4, 5]]), lambda l: l)
        assert drain(cursor) == [1, 2, 3, 4, 5]

    def test_empty_sub_sequences_do_not_terminate(self):
        data = [[], [1], [], [], [2, 3], []]
        assert query(data).select_many(lambda l: l).to_list() == [1, 2, 3]

    def test_all_empty(self):
        assert query([[], [], []]).select_many(lambda l: l).to_list() == []
        assert query([]).select_many(lambda l: l).to_list() == []

    def test_selector_runs_once_per_outer_element(self):
        selector = CallCounter(lambda s: list(s))
        assert query(["ab", "", "c"]).select_many(selector).to_list() == ["a", "b", "c"]
        assert selector.calls == ["ab", "", "c"]

    def test_sub_sequence_can_be_a_generator(self):
        result = query([1, 2, 3]).select_many(lambda n: (n for _ in range(n))).to_list()
        assert result == [1, 2, 2, 3, 3, 3]

    def test_sub_sequence_can_be_a_pipeline(self):
        result = (query([[1, 2, 3], [4, 5, 6]])
                  .select_many(lambda l: query(l).where(lambda n: n % 2 == 0))
                  .to_list())
        assert result == [2, 4, 6]

    def test_sub_sequence_can_be_a_cursor(self):
        result = query([2, 3]).select_many(lambda n: SequenceCursor(list(range(n)))).to_list()
        assert result == [0, 1, 0, 1, 2]

    def test_lazy_over_outer(self):
        source = CountingIterable([[1, 2], [3, 4], [5]])
        assert query(source).select_many(lambda l: l).take(3).to_list() == [1, 2, 3]
        assert source.pulled == 2


class TestTake:

    def test_take_fewer(self):
        assert query(["a", "bb"]).take(1).to_list() == ["a"]

    def test_take_more_than_exists(self):
        assert query(["a", "bb"]).take(10).to_list() == ["a", "bb"]

    def test_take_zero_does_not_touch_upstream(self):
        source = CountingIterable([1, 2, 3])
        assert query(source).take(0).to_list() == []
        assert source.iter_calls == 0

    def test_does_not_over_pull(self):
        source = CountingIterable(range(100))
        assert query(source).take(3).to_list() == [0, 1, 2]
        assert source.pulled == 3

    @pytest.mark.parametrize("n", [0, 1, 4, 5, 9])
    def test_length_is_min(self, n):
        items = [10, 20, 30, 40, 50]
        assert query(items).take(n).to_list() == items[:min(n, len(items))]


class TestSkip:

    def test_skip(self):
        assert query(["a", "bb"]).skip(1).to_list() == ["bb"]

    def test_skip_more_than_exists(self):
        assert query(["a", "bb"]).skip(10).to_list() == []

    def test_skip_happens_once(self):
        cursor = stages.Skip(SequenceCursor([1, 2, 3, 4, 5]), 2)
        assert cursor.advance()
        assert cursor.current() == 3
        assert cursor.advance()
        assert cursor.current() == 4
        assert cursor.advance()
        assert cursor.current() == 5
        assert cursor.advance() is False

    def test_skip_exhausting_upstream_reports_exhaustion(self):
        source = CountingIterable([1, 2])
        cursor = stages.Skip(IterableCursor(source), 5)
        assert cursor.advance() is False
        assert cursor.advance() is False
        assert source.pulled == 2

    def test_skip_zero(self):
        assert query([1, 2]).skip(0).to_list() == [1, 2]

    @pytest.mark.parametrize("n", [0, 1, 4, 5, 9])
    def test_length_is_max(self, n):
        items = [10, 20, 30, 40, 50]
        assert query(items).skip(n).to_list() == items[min(n, len(items)):]


class TestCast:

    def test_unchecked_converts(self):
        assert query([10]).cast(float).to_list() == [10.0]
        assert query(["1", "2"]).cast(int).to_list() == [1, 2]

    def test_unchecked_keeps_instances(self):
        items = [[1], [2]]
        result = query(items).cast(list).to_list()
        assert result[0] is items[0]
        assert result[1] is items[1]

    def test_unchecked_converts_subclass_instances(self):
        result = query([True, 2]).cast(int).to_list()
        assert result == [1, 2]
        assert [type(v) for v in result] == [int, int]

    def test_checked_accepts_subclass_instances(self):
        result = query([True]).cast(int, checked=True).to_list()
        assert result[0] is True

    def test_unchecked_conversion_errors_propagate(self):
        with pytest.raises(ValueError):
            query(["x"]).cast(int).to_list()

    def test_checked_passes_instances(self):
        assert query([1, 2]).cast(int, checked=True).to_list() == [1, 2]

    def test_checked_raises_invalid_cast_at_read(self):
        cursor = stages.Cast(SequenceCursor([1, "two"]), int, checked=True)
        assert cursor.advance()
        assert cursor.current() == 1
        assert cursor.advance()
        with pytest.raises(InvalidCast) as excinfo:
            cursor.current()
        assert excinfo.value.value == "two"
        assert excinfo.value.target_type is int
        assert "Cannot cast str value 'two' to int" in str(excinfo.value)

    def test_invalid_cast_is_a_type_error(self):
        with pytest.raises(TypeError):
            query(["a"]).cast(int, checked=True).to_list()

    def test_cast_by_name(self):
        assert query(["1.5"]).cast("decimal.Decimal").to_list() == [Decimal("1.5")]
        assert query([1]).cast("str").to_list() == ["1"]

    def test_cast_unknown_name(self):
        pipeline = query([1])
        with pytest.raises(ValueError):
            pipeline.cast("NoSuchType")
        assert not pipeline.consumed

    def test_cast_sets_element_type(self):
        assert query([1]).cast(float).element_type is float


class TestSegmentStage:

    def test_transform_not_called_until_pulled(self):
        calls = []

        class Recorder:
            def transform(self, items):
                calls.append(True)
                return items

        cursor = stages.SegmentStage(SequenceCursor([1, 2]), Recorder())
        assert calls == []
        assert drain(cursor) == [1, 2]
        assert calls == [True]
