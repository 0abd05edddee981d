"""Unit tests for strategy selection and the partition functions."""

import pytest

from binning_framework.binning.strategies import (
    BinningStrategy,
    StrategyOptions,
    alphabetical,
    distribution_shape,
    equal_frequency,
    equal_width,
    frequency_threshold,
    get_strategy_function,
    natural_break_points,
    natural_breaks,
    select_strategy,
    sturges,
    sturges_bin_count,
    top_k,
)


def numbers_as_text(*numbers):
    return [str(n) for n in numbers]


@pytest.mark.unit
class TestBinningStrategy:
    """Test the strategy enumeration."""

    def test_families(self):
        assert BinningStrategy.EQUAL_WIDTH.is_numeric
        assert BinningStrategy.TOP_K.is_categorical
        assert not BinningStrategy.AUTO.is_numeric
        assert not BinningStrategy.AUTO.is_categorical

    def test_from_name(self):
        assert BinningStrategy.from_name("top-k") == BinningStrategy.TOP_K
        assert BinningStrategy.from_name(" natural_breaks ") == BinningStrategy.NATURAL_BREAKS

    def test_from_name_unknown(self):
        with pytest.raises(ValueError, match="Unknown binning strategy"):
            BinningStrategy.from_name("median")

    def test_auto_has_no_partition_function(self):
        with pytest.raises(ValueError):
            get_strategy_function(BinningStrategy.AUTO)


@pytest.mark.unit
class TestSelectStrategy:
    """Test AUTO resolution and mismatched requests."""

    def test_categorical_column_defaults_to_top_k(self):
        assert select_strategy(BinningStrategy.AUTO, False) == BinningStrategy.TOP_K
        assert select_strategy(BinningStrategy.EQUAL_WIDTH, False) == BinningStrategy.TOP_K

    def test_categorical_request_kept_on_categorical_column(self):
        assert select_strategy(BinningStrategy.ALPHABETICAL, False) == BinningStrategy.ALPHABETICAL

    def test_categorical_request_on_numeric_column_falls_back(self):
        result = select_strategy(BinningStrategy.TOP_K, True, [1.0, 2.0, 3.0])
        assert result == BinningStrategy.EQUAL_FREQUENCY

    def test_explicit_numeric_request_kept(self):
        assert select_strategy(BinningStrategy.EQUAL_WIDTH, True, [1.0, 2.0]) == BinningStrategy.EQUAL_WIDTH

    def test_auto_small_symmetric_sample_uses_sturges(self):
        numbers = [float(i) for i in range(1, 11)]
        assert select_strategy(BinningStrategy.AUTO, True, numbers) == BinningStrategy.STURGES

    def test_auto_large_symmetric_sample_uses_equal_frequency(self):
        numbers = [float(i) for i in range(1, 41)]
        assert select_strategy(BinningStrategy.AUTO, True, numbers) == BinningStrategy.EQUAL_FREQUENCY

    def test_auto_skewed_sample_uses_natural_breaks(self):
        numbers = [1.0] * 10 + [100.0]
        assert select_strategy(BinningStrategy.AUTO, True, numbers) == BinningStrategy.NATURAL_BREAKS

    def test_distribution_shape_undefined_is_zero(self):
        assert distribution_shape([5.0]) == (0.0, 0.0)


@pytest.mark.unit
class TestSturgesBinCount:
    """Test Sturges' rule."""

    @pytest.mark.parametrize("n,expected", [(0, 1), (1, 1), (10, 5), (1000, 11), (2 ** 60, 50)])
    def test_estimate(self, n, expected):
        assert sturges_bin_count(n) == expected


@pytest.mark.unit
class TestEqualFrequency:
    """Test record-frequency balanced grouping."""

    def test_uniform_values(self):
        partition = equal_frequency(numbers_as_text(*range(1, 11)), 5, StrategyOptions())
        assert partition.labels == ("1-2", "3-4", "5-6", "7-8", "9-10")
        assert partition.assignment["3"] == "3-4"

    def test_balances_records_not_distinct_values(self):
        values = ["1"] * 5 + numbers_as_text(2, 3, 4, 5, 6)
        partition = equal_frequency(values, 2, StrategyOptions())
        assert partition.labels == ("1", "2-6")

    def test_never_more_groups_than_distinct_numbers(self):
        partition = equal_frequency(["1", "1", "2"], 5, StrategyOptions())
        assert partition.labels == ("1", "2")

    def test_spellings_of_same_number_share_a_bin(self):
        partition = equal_frequency(["1", "1.0", "2", "3"], 2, StrategyOptions())
        assert partition.assignment["1"] == partition.assignment["1.0"]


@pytest.mark.unit
class TestEqualWidth:
    """Test equal-width intervals."""

    def test_keeps_empty_intervals(self):
        partition = equal_width(["1", "2", "10"], 3, StrategyOptions())
        assert partition.labels == ("1-4", "4-7", "7-10")
        assert partition.assignment == {"1": "1-4", "2": "1-4", "10": "7-10"}

    def test_single_distinct_number(self):
        partition = equal_width(["5", "5"], 4, StrategyOptions())
        assert partition.labels == ("5",)

    def test_extreme_bounds(self):
        partition = equal_width(["-1e308", "0", "1e308"], 2, StrategyOptions())
        assert len(partition.labels) == 2
        assert partition.assignment["-1e308"] == partition.labels[0]
        assert partition.assignment["0"] == partition.labels[0]
        assert partition.assignment["1e308"] == partition.labels[1]

    def test_sturges_caps_bin_count(self):
        partition = sturges(numbers_as_text(*range(1, 11)), 10, StrategyOptions())
        assert len(partition.labels) == 5
        assert partition.assignment["1"] == partition.assignment["2"]
        assert partition.assignment["10"] == partition.labels[-1]


@pytest.mark.unit
class TestNaturalBreaks:
    """Test gap-seeking breakpoints."""

    def test_break_at_largest_gap(self):
        assert natural_break_points([1, 2, 3, 10, 11, 12], 2) == [10]

    def test_too_few_points(self):
        assert natural_break_points([1], 3) == []
        assert natural_break_points([1, 2], 1) == []

    def test_partition(self):
        partition = natural_breaks(numbers_as_text(1, 2, 3, 10, 11, 12), 2, StrategyOptions())
        assert partition.labels == ("1-3", "10-12")
        assert partition.assignment["3"] == "1-3"
        assert partition.assignment["10"] == "10-12"

    def test_labels_do_not_share_bounds(self):
        partition = natural_breaks(numbers_as_text(1, 2, 5, 6, 9, 30), 3, StrategyOptions())
        assert partition.labels == ("1-2", "5-9", "30")
        assert partition.assignment["5"] == "5-9"
        assert partition.assignment["30"] == "30"


@pytest.mark.unit
class TestCategoricalStrategies:
    """Test TOP_K, FREQUENCY_THRESHOLD and ALPHABETICAL."""

    def test_top_k(self):
        partition = top_k(["A", "A", "B", "C", "D", "E"], 3, StrategyOptions())
        assert partition.labels == ("A", "B", "Other")
        assert partition.assignment["C"] == "Other"
        assert partition.assignment["E"] == "Other"

    def test_all_categories_fit(self):
        partition = top_k(["b", "a", "b"], 3, StrategyOptions())
        assert partition.labels == ("a", "b")

    def test_frequency_threshold(self):
        values = ["A"] * 50 + ["B"] * 30 + ["C"] * 19 + ["D"]
        partition = frequency_threshold(values, 3, StrategyOptions(frequency_threshold=0.4))
        assert partition.labels == ("A", "Other")
        assert partition.assignment["B"] == "Other"

    def test_alphabetical(self):
        partition = alphabetical(["d", "c", "b", "a", "a"], 3, StrategyOptions())
        assert partition.labels == ("a", "b", "Other")
        assert partition.assignment["d"] == "Other"

    def test_single_bin_budget(self):
        partition = top_k(["x", "y"], 1, StrategyOptions())
        assert partition.labels == ("Other",)
