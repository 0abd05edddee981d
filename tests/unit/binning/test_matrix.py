"""Unit tests for SequenceMatrixBuilder."""

import pytest

from binning_framework.binning.matrix import SequenceMatrixBuilder
from binning_framework.binning.models import DataPoint
from binning_framework.core.exceptions import IllegalStateError, InvalidArgumentError


@pytest.fixture
def builder():
    return SequenceMatrixBuilder()


@pytest.mark.unit
class TestBuild:
    """Test transition counting."""

    def test_transitions_follow_consecutive_rows(self, builder, make_points):
        values = ["a", "b", "a", "c"]
        matrix = builder.build("state", values, make_points(values), 10)

        assert matrix.ordered_labels == ("a", "b", "c")
        assert matrix.transition("a", "b") == 1
        assert matrix.transition("b", "a") == 1
        assert matrix.transition("a", "c") == 1
        assert matrix.transition("c", "a") == 0
        assert matrix.total_sequences == 3

    def test_counts_sum_to_row_pairs(self, builder, make_points):
        values = [str(i % 7) for i in range(40)]
        matrix = builder.build("cycle", values, make_points(values), 4)

        assert sum(sum(row) for row in matrix.counts) == len(values) - 1
        assert matrix.size == matrix.actual_bin_count <= 4

    def test_row_order_not_input_order(self, builder):
        values = ["a", "b", "c"]
        points = [DataPoint("a", 2, 0), DataPoint("b", 0, 0), DataPoint("c", 1, 0)]
        matrix = builder.build("shuffled", values, points, 5)

        assert matrix.transition("b", "c") == 1
        assert matrix.transition("c", "a") == 1
        assert matrix.transition("a", "b") == 0

    def test_single_row(self, builder, make_points):
        matrix = builder.build("one", ["x"], make_points(["x"]), 5)

        assert matrix.size == 1
        assert matrix.counts == ((0,),)
        assert matrix.total_sequences == 0

    def test_no_rows(self, builder):
        matrix = builder.build("none", [], [], 5)

        assert matrix.size == 0
        assert matrix.counts == ()
        assert matrix.strategy is None
        assert builder.validate(matrix)

    def test_no_rows_still_checks_count(self, builder):
        with pytest.raises(InvalidArgumentError):
            builder.build("none", [], [], 0)

    def test_mismatched_lengths(self, builder, make_points):
        with pytest.raises(InvalidArgumentError):
            builder.build("x", ["a", "b"], make_points(["a"]), 5)

    def test_nulls_get_their_own_row(self, builder, make_points):
        values = ["a", "", "a"]
        matrix = builder.build("gaps", values, make_points(values), 5)

        assert matrix.ordered_labels == ("a", "<NULL>")
        assert matrix.transition("a", "<NULL>") == 1
        assert matrix.transition("<NULL>", "a") == 1

    def test_build_from_dataset(self, builder, sales_dataset):
        matrix = builder.build_from_dataset(sales_dataset, "channel", 5)

        assert matrix.transition("web", "web") == 2
        assert matrix.transition("web", "store") == 1
        assert matrix.transition("store", "store") == 1
        assert matrix.transition("store", "web") == 1


@pytest.mark.unit
class TestRebinAndStatistics:
    """Test rebin, validate and statistics."""

    def test_rebin(self, builder, make_points):
        values = [str(i) for i in range(1, 21)]
        matrix = builder.build("n", values, make_points(values), 10)
        smaller = builder.rebin(matrix, 2)

        assert smaller.size <= 2
        assert sum(sum(row) for row in smaller.counts) == 19
        assert matrix.requested_bin_count == 10

    def test_rebin_keeps_row_references(self, builder, make_points):
        values = ["a", "b", "a", "c"]
        matrix = builder.build("s", values, make_points(values, column_index=2), 5)
        smaller = builder.rebin(matrix, 2)

        assert smaller.data_points == matrix.data_points
        assert {p.column_index for p in smaller.data_points} == {2}

    def test_rebin_empty_matrix(self, builder):
        matrix = builder.build("none", [], [], 5)
        with pytest.raises(IllegalStateError):
            builder.rebin(matrix, 3)

    def test_validate(self, builder, make_points):
        matrix = builder.build("s", ["a", "b"], make_points(["a", "b"]), 5)
        assert builder.validate(matrix)
        assert not builder.validate(None)

    def test_statistics(self, builder, make_points):
        values = ["a", "a", "b"]
        stats = builder.statistics(builder.build("s", values, make_points(values), 5))

        assert stats.size == 2
        assert stats.total_transitions == 2
        assert stats.self_transitions == 1
        assert stats.self_transition_rate == pytest.approx(0.5)
        assert stats.non_zero_transitions == 2
        assert stats.sparsity == pytest.approx(0.5)
        assert stats.max_transition == 1

    def test_to_dict(self, builder, make_points):
        data = builder.build("s", ["a", "b"], make_points(["a", "b"]), 5).to_dict()

        assert data["ordered_labels"] == ["a", "b"]
        assert data["counts"] == [[0, 1], [0, 0]]
        assert data["total_sequences"] == 1
