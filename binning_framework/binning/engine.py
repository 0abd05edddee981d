"""
Binning engine - partitions one column into at most K labelled bins.

The engine:
1. Validates arguments (non-empty values, matching row references, K in range)
2. Normalizes values and separates sentinels (all unified into one <NULL> bin)
3. Classifies the column as numeric or categorical
4. Resolves the strategy and runs its partition function
5. Assembles the BinningResult, checking coverage and the bin-count bound
"""

import logging
from typing import Dict, List, Optional, Sequence

from binning_framework.core.constants import (
    MIN_BIN_COUNT,
    MAX_BIN_COUNT,
    NULL_SENTINEL,
    DEFAULT_FREQUENCY_THRESHOLD,
)
from binning_framework.core.exceptions import InvalidArgumentError, IllegalStateError
from binning_framework.binning.normalizer import Normalizer, IntervalType
from binning_framework.binning.models import BinningResult, BinStatistics, DataPoint
from binning_framework.binning.strategies import (
    BinningStrategy,
    StrategyOptions,
    Partition,
    select_strategy,
    get_strategy_function,
)

logger = logging.getLogger(__name__)


def validate_bin_count(requested_count) -> None:
    """Raise InvalidArgumentError unless requested_count is an int within the allowed range."""
    if isinstance(requested_count, bool) or not isinstance(requested_count, int):
        raise InvalidArgumentError(
            f"Bin count must be an integer, got {requested_count!r}",
            argument="requested_count",
        )
    if not MIN_BIN_COUNT <= requested_count <= MAX_BIN_COUNT:
        raise InvalidArgumentError(
            f"Bin count must be between {MIN_BIN_COUNT} and {MAX_BIN_COUNT}, got {requested_count}",
            argument="requested_count",
            value=requested_count,
        )


def validate_inputs(values: Sequence, data_points: Sequence, requested_count) -> None:
    """Check the preconditions shared by the engine and every builder."""
    if values is None or len(values) == 0:
        raise InvalidArgumentError("Values must not be empty", argument="values")
    if data_points is None or len(values) != len(data_points):
        raise InvalidArgumentError(
            f"Values and data points must have the same length "
            f"({len(values)} values, {0 if data_points is None else len(data_points)} data points)",
            argument="data_points",
        )
    validate_bin_count(requested_count)


class BinningEngine:
    """
    Partitions a column's values into labelled bins.

    The engine holds configuration only, so one instance can bin many
    columns, including concurrently.

    Example:
        >>> engine = BinningEngine()
        >>> values = [str(i) for i in range(1, 11)]
        >>> points = [DataPoint(v, i, 0) for i, v in enumerate(values)]
        >>> result = engine.bin(values, points, 5, BinningStrategy.EQUAL_FREQUENCY)
        >>> result.ordered_labels
        ('1-2', '3-4', '5-6', '7-8', '9-10')
    """

    def __init__(
        self,
        normalizer: Optional[Normalizer] = None,
        interval_type: Optional[IntervalType] = None,
        frequency_threshold: float = DEFAULT_FREQUENCY_THRESHOLD
    ) -> None:
        """
        Initialize the binning engine.

        Args:
            normalizer: Value normalizer (a default instance if None)
            interval_type: Bracket style for numeric range labels; None gives "a-b"
            frequency_threshold: Minimum record share for FREQUENCY_THRESHOLD
        """
        self.normalizer = normalizer or Normalizer()
        self.options = StrategyOptions(
            normalizer=self.normalizer,
            interval_type=interval_type,
            frequency_threshold=frequency_threshold,
        )

    def bin(
        self,
        values: Sequence[Optional[str]],
        data_points: Sequence[DataPoint],
        requested_count: int,
        strategy: BinningStrategy = BinningStrategy.AUTO
    ) -> BinningResult:
        """
        Partition values into at most requested_count bins.

        Args:
            values: Raw or already-normalized values, one per data point
            data_points: Row references paired 1:1 with values
            requested_count: Maximum number of bins (1-50)
            strategy: Strategy to apply; AUTO lets the engine choose

        Returns:
            BinningResult covering every input value

        Raises:
            InvalidArgumentError: If inputs are empty, mismatched or the count is out of range
        """
        validate_inputs(values, data_points, requested_count)

        normalized = [self.normalizer.normalize(v) for v in values]
        is_numeric = self.normalizer.is_numeric_column(normalized)

        # Values that cannot be parsed in a numeric column join the null bin
        null_flags = [
            self.normalizer.is_sentinel(v) or (is_numeric and not self.normalizer.is_numeric_value(v))
            for v in normalized
        ]
        valid = [v for v, is_null in zip(normalized, null_flags) if not is_null]
        has_null = any(null_flags)
        budget = max(1, requested_count - (1 if has_null else 0))

        if not valid:
            resolved = strategy if strategy != BinningStrategy.AUTO else BinningStrategy.EQUAL_FREQUENCY
            logger.debug(f"All {len(values)} values are null; producing a single {NULL_SENTINEL} bin")
            partition = Partition(labels=(), assignment={})
            return self._assemble(
                normalized, null_flags, data_points, partition,
                requested_count, resolved, is_numeric, fold_nulls=False
            )

        numbers = [self.normalizer.parse_number(v) for v in valid] if is_numeric else None
        resolved = select_strategy(strategy, is_numeric, numbers)

        if is_numeric:
            target = min(budget, len(set(numbers)))
        else:
            target = budget

        partition = get_strategy_function(resolved)(valid, target, self.options)

        # A single requested bin has no room for a separate null bin
        fold_nulls = has_null and requested_count == 1

        logger.debug(
            f"Binned {len(values)} values ({'numeric' if is_numeric else 'categorical'}) "
            f"with {resolved.value}: requested={requested_count}, target={target}, "
            f"labels={len(partition.labels)}, nulls={sum(null_flags)}"
        )
        return self._assemble(
            normalized, null_flags, data_points, partition,
            requested_count, resolved, is_numeric, fold_nulls
        )

    def _assemble(
        self,
        normalized: List[str],
        null_flags: List[bool],
        data_points: Sequence[DataPoint],
        partition: Partition,
        requested_count: int,
        strategy: BinningStrategy,
        is_numeric: bool,
        fold_nulls: bool
    ) -> BinningResult:
        """Build the immutable result from a partition."""
        ordered_labels: List[str] = list(dict.fromkeys(partition.labels))
        null_label = ordered_labels[0] if fold_nulls else NULL_SENTINEL
        if any(null_flags) and null_label not in ordered_labels:
            ordered_labels.append(null_label)

        value_to_bin: Dict[str, str] = {}
        binned_values: List[str] = []
        members: Dict[str, List[DataPoint]] = {label: [] for label in ordered_labels}
        member_values: Dict[str, List[str]] = {label: [] for label in ordered_labels}

        for value, is_null, point in zip(normalized, null_flags, data_points):
            label = null_label if is_null else partition.assignment[value]
            value_to_bin[value] = label
            binned_values.append(label)
            members[label].append(point)
            member_values[label].append(value)

        total = len(normalized)
        covered = sum(len(points) for points in members.values())
        if covered != total or len(ordered_labels) > requested_count:
            raise IllegalStateError(
                f"Binning produced an inconsistent result: {covered}/{total} values covered, "
                f"{len(ordered_labels)} bins for {requested_count} requested",
                entity="BinningResult",
            )

        return BinningResult(
            value_to_bin=value_to_bin,
            ordered_labels=tuple(ordered_labels),
            bin_details={label: tuple(points) for label, points in members.items()},
            binned_values=tuple(binned_values),
            actual_bin_count=len(ordered_labels),
            requested_bin_count=requested_count,
            strategy=strategy,
            is_numeric=is_numeric,
            bin_statistics={
                label: self._bin_statistics(label, member_values[label], total)
                for label in ordered_labels
            },
        )

    def _bin_statistics(self, label: str, values: List[str], total: int) -> BinStatistics:
        numbers = [n for n in (self.normalizer.parse_number(v) for v in values) if n is not None]
        percentage = len(values) / total * 100 if total else 0.0
        if not numbers:
            return BinStatistics(label=label, count=len(values), percentage=percentage)
        return BinStatistics(
            label=label,
            count=len(values),
            percentage=percentage,
            min=min(numbers),
            max=max(numbers),
            mean=sum(numbers) / len(numbers),
        )
