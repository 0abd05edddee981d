"""
Histogram builder - frequency per bin for a single column.

Histograms retain the column's normalized values and row references, so
rebin() can re-derive them at any bin count without the dataset. Every
call returns a new Histogram; nothing is updated in place.
"""

import logging
import math
import statistics as stats
from typing import Optional, Sequence

from binning_framework.core.constants import DEFAULT_BIN_COUNT
from binning_framework.core.exceptions import IllegalStateError
from binning_framework.binning.engine import BinningEngine, validate_bin_count, validate_inputs
from binning_framework.binning.models import (
    BinSummary,
    DataPoint,
    Dataset,
    Histogram,
    HistogramComparison,
    HistogramStatistics,
)
from binning_framework.binning.strategies import BinningStrategy

logger = logging.getLogger(__name__)


class HistogramBuilder:
    """
    Builds, re-bins and summarizes histograms.

    Example:
        >>> builder = HistogramBuilder()
        >>> hist = builder.build_from_dataset(dataset, "region", 5)
        >>> coarser = builder.rebin(hist, 3)
    """

    def __init__(self, engine: Optional[BinningEngine] = None) -> None:
        self.engine = engine or BinningEngine()

    def build(
        self,
        column_name: str,
        values: Sequence[Optional[str]],
        data_points: Sequence[DataPoint],
        requested_count: int = DEFAULT_BIN_COUNT
    ) -> Histogram:
        """
        Bin a column with the AUTO strategy and count each bin.

        Args:
            column_name: Name of the column
            values: Raw values, one per data point
            data_points: Row references paired 1:1 with values
            requested_count: Maximum number of bins (1-50)

        Raises:
            InvalidArgumentError: If inputs are empty, mismatched or the count is out of range
        """
        validate_inputs(values, data_points, requested_count)

        normalized = tuple(self.engine.normalizer.normalize(v) for v in values)
        result = self.engine.bin(normalized, data_points, requested_count, BinningStrategy.AUTO)

        histogram = Histogram(
            column_name=column_name,
            requested_bin_count=requested_count,
            actual_bin_count=result.actual_bin_count,
            total_records=len(normalized),
            ordered_labels=result.ordered_labels,
            frequency={label: len(result.bin_details[label]) for label in result.ordered_labels},
            bin_details=result.bin_details,
            original_values=normalized,
            data_points=tuple(data_points),
            value_to_bin=result.value_to_bin,
            strategy=result.strategy,
        )
        logger.debug(
            f"Histogram '{column_name}': {histogram.actual_bin_count}/{requested_count} bins "
            f"over {histogram.total_records} records ({histogram.strategy.value})"
        )
        return histogram

    def build_from_dataset(
        self,
        dataset: Dataset,
        column_name: str,
        requested_count: int = DEFAULT_BIN_COUNT
    ) -> Histogram:
        """Build the histogram of one dataset column."""
        values, data_points = dataset.column_values(column_name)
        return self.build(column_name, values, data_points, requested_count)

    def rebin(self, histogram: Histogram, new_count: int) -> Histogram:
        """
        Re-derive a histogram at a new bin count.

        Only the retained original values and row references are used, so
        the result does not depend on the histogram's current bins.

        Raises:
            InvalidArgumentError: If new_count is out of range
            IllegalStateError: If the histogram retains no original values
        """
        validate_bin_count(new_count)
        if not histogram.original_values:
            raise IllegalStateError(
                f"Histogram '{histogram.column_name}' has no original values to re-bin",
                entity="Histogram",
            )

        return self.build(histogram.column_name, histogram.original_values, histogram.data_points, new_count)

    def validate(self, histogram: Optional[Histogram]) -> bool:
        """Check that every label has a frequency equal to its membership size."""
        if histogram is None or not histogram.column_name:
            return False
        if histogram.actual_bin_count != len(histogram.ordered_labels):
            return False
        for label in histogram.ordered_labels:
            if label not in histogram.frequency or label not in histogram.bin_details:
                return False
            if histogram.frequency[label] != len(histogram.bin_details[label]):
                return False
        return sum(histogram.frequency.values()) == histogram.total_records

    def statistics(self, histogram: Histogram) -> HistogramStatistics:
        """Frequency extremes, mean and empty/non-empty bin counts."""
        frequencies = [histogram.frequency[label] for label in histogram.ordered_labels]
        non_empty = sum(1 for f in frequencies if f > 0)
        return HistogramStatistics(
            column_name=histogram.column_name,
            total_records=histogram.total_records,
            bin_count=histogram.actual_bin_count,
            max_frequency=max(frequencies, default=0),
            min_frequency=min(frequencies, default=0),
            mean_frequency=sum(frequencies) / len(frequencies) if frequencies else 0.0,
            non_empty_bins=non_empty,
            empty_bins=len(frequencies) - non_empty,
        )

    def bin_summary(self, histogram: Histogram, label: str) -> Optional[BinSummary]:
        """
        Drill into one bin.

        Returns None for a label the histogram does not have. Numeric
        statistics cover the members that parse as numbers.
        """
        if label not in histogram.bin_details:
            return None

        points = histogram.bin_details[label]
        normalizer = self.engine.normalizer
        numbers = sorted(
            n for n in (normalizer.parse_number(normalizer.normalize(p.value)) for p in points)
            if n is not None
        )
        percentage = len(points) / histogram.total_records * 100 if histogram.total_records else 0.0
        if not numbers:
            return BinSummary(label=label, frequency=len(points), percentage=percentage, data_points=points)

        return BinSummary(
            label=label,
            frequency=len(points),
            percentage=percentage,
            data_points=points,
            min=numbers[0],
            max=numbers[-1],
            mean=stats.fmean(numbers),
            median=stats.median(numbers),
        )

    def compare(self, first: Histogram, second: Histogram) -> HistogramComparison:
        """
        Compare two frequency distributions bin by bin.

        Each label in either histogram contributes (f - e)^2 / e for both
        frequencies, where e is their average.
        """
        labels = list(dict.fromkeys(first.ordered_labels + second.ordered_labels))
        chi_square = 0.0
        for label in labels:
            f1 = first.frequency.get(label, 0)
            f2 = second.frequency.get(label, 0)
            expected = (f1 + f2) / 2
            if expected > 0:
                chi_square += (f1 - expected) ** 2 / expected
                chi_square += (f2 - expected) ** 2 / expected

        common = len(set(first.ordered_labels) & set(second.ordered_labels))
        similarity = math.exp(-chi_square / len(labels)) if labels else 1.0
        return HistogramComparison(
            left_column=first.column_name,
            right_column=second.column_name,
            chi_square=chi_square,
            similarity=similarity,
            common_bins=common,
            total_bins=len(labels),
        )
