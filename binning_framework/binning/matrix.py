"""
Sequence matrix builder - bin-to-bin transitions between consecutive rows.

A column is read as a sequence in row order; each pair of neighbouring rows
adds one to counts[bin(row i)][bin(row i + 1)].
"""

import logging
from typing import List, Optional, Sequence

from binning_framework.core.constants import DEFAULT_BIN_COUNT
from binning_framework.core.exceptions import IllegalStateError, InvalidArgumentError
from binning_framework.binning.engine import BinningEngine, validate_bin_count, validate_inputs
from binning_framework.binning.models import DataPoint, Dataset, Matrix, MatrixStatistics
from binning_framework.binning.strategies import BinningStrategy

logger = logging.getLogger(__name__)


class SequenceMatrixBuilder:
    """Builds, re-bins and summarizes transition matrices."""

    def __init__(self, engine: Optional[BinningEngine] = None) -> None:
        self.engine = engine or BinningEngine()

    def build(
        self,
        column_name: str,
        values: Sequence[Optional[str]],
        data_points: Sequence[DataPoint],
        requested_count: int = DEFAULT_BIN_COUNT
    ) -> Matrix:
        """
        Bin a column with the AUTO strategy and count row-to-row transitions.

        A column with fewer than two rows has no transitions: one row gives
        a 1x1 zero matrix, no rows give an empty matrix.

        Raises:
            InvalidArgumentError: If lengths differ or the count is out of range
        """
        if values is not None and len(values) == 0:
            validate_bin_count(requested_count)
            if data_points is None or len(data_points) != 0:
                raise InvalidArgumentError(
                    "Values and data points must have the same length", argument="data_points"
                )
            return self._empty(column_name, requested_count)

        validate_inputs(values, data_points, requested_count)

        normalized = tuple(self.engine.normalizer.normalize(v) for v in values)
        result = self.engine.bin(normalized, data_points, requested_count, BinningStrategy.AUTO)

        size = result.actual_bin_count
        counts = [[0] * size for _ in range(size)]
        index_of = {label: i for i, label in enumerate(result.ordered_labels)}

        # Transitions follow row order, not input order
        order = sorted(range(len(normalized)), key=lambda i: data_points[i].row_index)
        sequence = [index_of[result.binned_values[i]] for i in order]
        for current, following in zip(sequence, sequence[1:]):
            counts[current][following] += 1

        matrix = Matrix(
            column_name=column_name,
            requested_bin_count=requested_count,
            actual_bin_count=size,
            ordered_labels=result.ordered_labels,
            counts=tuple(tuple(row) for row in counts),
            total_sequences=max(len(normalized) - 1, 0),
            bin_details=result.bin_details,
            original_values=normalized,
            data_points=tuple(data_points),
            value_to_bin=result.value_to_bin,
            strategy=result.strategy,
        )
        logger.debug(
            f"Matrix '{column_name}': {size}x{size} over {matrix.total_sequences} transitions"
        )
        return matrix

    def build_from_dataset(
        self,
        dataset: Dataset,
        column_name: str,
        requested_count: int = DEFAULT_BIN_COUNT
    ) -> Matrix:
        """Build the transition matrix of one dataset column."""
        values, data_points = dataset.column_values(column_name)
        return self.build(column_name, values, data_points, requested_count)

    def rebin(self, matrix: Matrix, new_count: int) -> Matrix:
        """
        Re-derive a matrix at a new bin count from its retained original values.

        Raises:
            InvalidArgumentError: If new_count is out of range
            IllegalStateError: If the matrix retains no original values
        """
        validate_bin_count(new_count)
        if not matrix.original_values:
            raise IllegalStateError(
                f"Matrix '{matrix.column_name}' has no original values to re-bin",
                entity="Matrix",
            )

        return self.build(matrix.column_name, matrix.original_values, matrix.data_points, new_count)

    def validate(self, matrix: Optional[Matrix]) -> bool:
        """Check that the matrix is square and sized to its labels."""
        if matrix is None or not matrix.column_name:
            return False
        size = len(matrix.ordered_labels)
        if matrix.actual_bin_count != size or len(matrix.counts) != size:
            return False
        return all(len(row) == size for row in matrix.counts)

    def statistics(self, matrix: Matrix) -> MatrixStatistics:
        """Transition totals, peak cell, sparsity and self-transition rate."""
        cells: List[int] = [cell for row in matrix.counts for cell in row]
        total = sum(cells)
        non_zero = sum(1 for cell in cells if cell > 0)
        trace = sum(matrix.counts[i][i] for i in range(matrix.size))
        return MatrixStatistics(
            column_name=matrix.column_name,
            size=matrix.size,
            total_sequences=matrix.total_sequences,
            total_transitions=total,
            max_transition=max(cells, default=0),
            non_zero_transitions=non_zero,
            sparsity=non_zero / (matrix.size ** 2) if matrix.size else 0.0,
            self_transitions=trace,
            self_transition_rate=trace / total if total else 0.0,
        )

    def _empty(self, column_name: str, requested_count: int) -> Matrix:
        return Matrix(
            column_name=column_name,
            requested_bin_count=requested_count,
            actual_bin_count=0,
            ordered_labels=(),
            counts=(),
            total_sequences=0,
            bin_details={},
            original_values=(),
            data_points=(),
            value_to_bin={},
            strategy=None,
        )
