"""
Binning Result Classes.

This module defines the value objects produced by the binning engine and the
three builders on top of it:
- DataPoint / Dataset: the row-referenced input
- BinningResult / BinStatistics: one column partitioned into bins
- Histogram: frequency per bin for one column
- Matrix: bin-to-bin transitions between consecutive rows of one column
- BiPartiteGraph / Link / ConnectionDetail: bin-to-bin co-occurrence between
  two adjacent columns

Every object is assembled once by a builder and never mutated afterwards;
"updates" such as re-binning return a new instance.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from binning_framework.core.constants import CONNECTION_KEY_SEPARATOR
from binning_framework.core.exceptions import InvalidArgumentError
from binning_framework.binning.strategies import BinningStrategy


def connection_key(left_bin: str, right_bin: str) -> str:
    """
    Display form of a left bin to right bin connection.

    Labels may themselves contain the separator, so lookups key on the
    (left_bin, right_bin) tuple instead.
    """
    return f"{left_bin}{CONNECTION_KEY_SEPARATOR}{right_bin}"


# ============================================================================
# Input
# ============================================================================

@dataclass(frozen=True)
class DataPoint:
    """
    A raw cell value with its origin in the dataset.

    Attributes:
        value: Raw string value as read (may be None for a missing cell)
        row_index: Zero-based data row index (header excluded)
        column_index: Zero-based position in the source file header
    """
    value: Optional[str]
    row_index: int
    column_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "row_index": self.row_index,
            "column_index": self.column_index,
        }


@dataclass(frozen=True)
class Dataset:
    """
    Tabular input: ordered headers and rows of raw string cells.

    Rows shorter than the header are treated as missing the trailing cells.
    When only some columns of a file are loaded, source_headers keeps the
    file's full header so adjacency is judged on the original positions.

    Example:
        >>> ds = Dataset.from_rows(["city", "temp"], [["Oslo", "4"], ["Rome", "19"]])
        >>> ds.column_values("temp")[0]
        ['4', '19']
    """
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[Optional[str], ...], ...]
    name: str = "dataset"
    source_headers: Tuple[str, ...] = ()

    @classmethod
    def from_rows(
        cls,
        headers: Sequence[str],
        rows: Sequence[Sequence[Optional[str]]],
        name: str = "dataset",
        source_headers: Optional[Sequence[str]] = None
    ) -> "Dataset":
        return cls(
            headers=tuple(headers),
            rows=tuple(tuple(row) for row in rows),
            name=name,
            source_headers=tuple(source_headers) if source_headers else (),
        )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_index(self, column_name: str) -> int:
        """Position of a column in header order."""
        try:
            return self.headers.index(column_name)
        except ValueError:
            raise InvalidArgumentError(
                f"Column '{column_name}' not found in dataset '{self.name}'. "
                f"Available columns: {', '.join(self.headers)}",
                argument="column_name",
                column=column_name,
            )

    def source_position(self, column_name: str) -> int:
        """Position of a column in the header of the file it came from."""
        col_idx = self.column_index(column_name)
        if self.source_headers:
            return self.source_headers.index(column_name)
        return col_idx

    def cell(self, row_index: int, column_index: int) -> Optional[str]:
        row = self.rows[row_index]
        return row[column_index] if column_index < len(row) else None

    def column_values(self, column_name: str) -> Tuple[List[Optional[str]], List[DataPoint]]:
        """
        Extract one column as raw values paired with their data points.

        Returns:
            (values, data_points) in row order
        """
        col_idx = self.column_index(column_name)
        position = self.source_position(column_name)
        values: List[Optional[str]] = []
        points: List[DataPoint] = []
        for row_idx in range(len(self.rows)):
            value = self.cell(row_idx, col_idx)
            values.append(value)
            points.append(DataPoint(value, row_idx, position))
        return values, points

    def adjacent_pairs(self) -> List[Tuple[str, str]]:
        """Every (left, right) pair of loaded columns that are neighbours in the source header."""
        return [
            (left, right)
            for left, right in zip(self.headers, self.headers[1:])
            if self.source_position(right) - self.source_position(left) == 1
        ]


# ============================================================================
# Binning
# ============================================================================

@dataclass(frozen=True)
class BinStatistics:
    """
    Summary of one bin.

    min/max/mean cover the bin's numeric members and are None when it has
    none (categorical bins, the null bin, empty bins).
    """
    label: str
    count: int
    percentage: float
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "count": self.count,
            "percentage": round(self.percentage, 2),
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
        }


@dataclass(frozen=True)
class BinningResult:
    """
    One column partitioned into labelled bins.

    Attributes:
        value_to_bin: Normalized value -> bin label, total over every value seen
        ordered_labels: Bin labels in display order, no duplicates
        bin_details: Label -> data points in the bin (empty bins map to ())
        binned_values: Bin label for each input position, in input order
        actual_bin_count: len(ordered_labels), never above requested_bin_count
        requested_bin_count: Bin count the caller asked for
        strategy: Strategy actually applied (AUTO is always resolved)
        is_numeric: Whether the column was treated as numeric
        bin_statistics: Label -> BinStatistics
    """
    value_to_bin: Dict[str, str]
    ordered_labels: Tuple[str, ...]
    bin_details: Dict[str, Tuple[DataPoint, ...]]
    binned_values: Tuple[str, ...]
    actual_bin_count: int
    requested_bin_count: int
    strategy: BinningStrategy
    is_numeric: bool
    bin_statistics: Dict[str, BinStatistics] = field(default_factory=dict)

    def bin_index(self, label: str) -> int:
        return self.ordered_labels.index(label)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "is_numeric": self.is_numeric,
            "requested_bin_count": self.requested_bin_count,
            "actual_bin_count": self.actual_bin_count,
            "ordered_labels": list(self.ordered_labels),
            "value_to_bin": dict(self.value_to_bin),
            "bin_sizes": {label: len(points) for label, points in self.bin_details.items()},
            "bin_statistics": {
                label: stats.to_dict() for label, stats in self.bin_statistics.items()
            },
        }


@dataclass(frozen=True)
class Histogram:
    """
    Frequency distribution of one column over its bins.

    original_values and data_points are retained so the histogram can be
    re-binned at a different count without access to the dataset.
    """
    column_name: str
    requested_bin_count: int
    actual_bin_count: int
    total_records: int
    ordered_labels: Tuple[str, ...]
    frequency: Dict[str, int]
    bin_details: Dict[str, Tuple[DataPoint, ...]]
    original_values: Tuple[str, ...]
    data_points: Tuple[DataPoint, ...]
    value_to_bin: Dict[str, str]
    strategy: BinningStrategy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column_name": self.column_name,
            "strategy": self.strategy.value,
            "requested_bin_count": self.requested_bin_count,
            "actual_bin_count": self.actual_bin_count,
            "total_records": self.total_records,
            "bins": [
                {"label": label, "frequency": self.frequency[label]}
                for label in self.ordered_labels
            ],
        }


@dataclass(frozen=True)
class Matrix:
    """
    Transition counts between the bins of consecutive rows of one column.

    counts[i][j] is the number of times a row in bin ordered_labels[i] is
    immediately followed by a row in bin ordered_labels[j].
    """
    column_name: str
    requested_bin_count: int
    actual_bin_count: int
    ordered_labels: Tuple[str, ...]
    counts: Tuple[Tuple[int, ...], ...]
    total_sequences: int
    bin_details: Dict[str, Tuple[DataPoint, ...]]
    original_values: Tuple[str, ...]
    data_points: Tuple[DataPoint, ...]
    value_to_bin: Dict[str, str]
    strategy: Optional[BinningStrategy]

    @property
    def size(self) -> int:
        return len(self.counts)

    def transition(self, from_label: str, to_label: str) -> int:
        """Count of from_label -> to_label transitions (0 for unknown labels)."""
        if from_label not in self.ordered_labels or to_label not in self.ordered_labels:
            return 0
        return self.counts[self.ordered_labels.index(from_label)][self.ordered_labels.index(to_label)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column_name": self.column_name,
            "strategy": self.strategy.value if self.strategy else None,
            "requested_bin_count": self.requested_bin_count,
            "actual_bin_count": self.actual_bin_count,
            "total_sequences": self.total_sequences,
            "ordered_labels": list(self.ordered_labels),
            "counts": [list(row) for row in self.counts],
        }


# ============================================================================
# Bipartite Graph
# ============================================================================

@dataclass(frozen=True)
class Link:
    """
    Aggregated connection between a left bin and a right bin.

    Attributes:
        weight: Number of rows connecting the two bins
        percentage: weight as a percentage of all rows considered
        normalized_weight: weight / heaviest link weight (0-1)
        visual_weight: Intensity on a 1-10 scale for external renderers
    """
    left_bin: str
    right_bin: str
    weight: int
    percentage: float
    normalized_weight: float
    visual_weight: int

    @property
    def connection_key(self) -> str:
        return connection_key(self.left_bin, self.right_bin)

    @property
    def bin_pair(self) -> Tuple[str, str]:
        return (self.left_bin, self.right_bin)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left_bin": self.left_bin,
            "right_bin": self.right_bin,
            "weight": self.weight,
            "percentage": round(self.percentage, 2),
            "normalized_weight": round(self.normalized_weight, 4),
            "visual_weight": self.visual_weight,
        }


@dataclass(frozen=True)
class ConnectionDetail:
    """One row's contribution to a link."""
    row_index: int
    left_value: Optional[str]
    right_value: Optional[str]
    left_bin: str
    right_bin: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_index": self.row_index,
            "left_value": self.left_value,
            "right_value": self.right_value,
            "left_bin": self.left_bin,
            "right_bin": self.right_bin,
        }


@dataclass(frozen=True)
class BiPartiteGraph:
    """
    Weighted bin-to-bin connections between two adjacent columns.

    Attributes:
        total_connections: Rows considered (the dataset row count), whether
            or not both sides resolved
        links: Links sorted by descending weight
        connection_details: (left_bin, right_bin) -> per-row details
        unresolved_rows: Rows skipped because a side resolved to no bin
    """
    left_column_name: str
    right_column_name: str
    total_connections: int
    links: Tuple[Link, ...]
    connection_details: Dict[Tuple[str, str], Tuple[ConnectionDetail, ...]]
    unresolved_rows: int = 0

    @property
    def total_weight(self) -> int:
        return sum(link.weight for link in self.links)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left_column_name": self.left_column_name,
            "right_column_name": self.right_column_name,
            "total_connections": self.total_connections,
            "unresolved_rows": self.unresolved_rows,
            "links": [link.to_dict() for link in self.links],
        }


# ============================================================================
# Derived Statistics
# ============================================================================

@dataclass(frozen=True)
class HistogramStatistics:
    column_name: str
    total_records: int
    bin_count: int
    max_frequency: int
    min_frequency: int
    mean_frequency: float
    non_empty_bins: int
    empty_bins: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column_name": self.column_name,
            "total_records": self.total_records,
            "bin_count": self.bin_count,
            "max_frequency": self.max_frequency,
            "min_frequency": self.min_frequency,
            "mean_frequency": round(self.mean_frequency, 2),
            "non_empty_bins": self.non_empty_bins,
            "empty_bins": self.empty_bins,
        }


@dataclass(frozen=True)
class BinSummary:
    """Drill-down view of a single histogram bin."""
    label: str
    frequency: int
    percentage: float
    data_points: Tuple[DataPoint, ...]
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    median: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "frequency": self.frequency,
            "percentage": round(self.percentage, 2),
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "median": self.median,
            "row_indices": [point.row_index for point in self.data_points],
        }


@dataclass(frozen=True)
class HistogramComparison:
    """
    Similarity of two histograms.

    chi_square is a symmetric chi-square style distance over the union of
    labels; similarity = exp(-chi_square / label_count), 1.0 for identical
    distributions.
    """
    left_column: str
    right_column: str
    chi_square: float
    similarity: float
    common_bins: int
    total_bins: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left_column": self.left_column,
            "right_column": self.right_column,
            "chi_square": round(self.chi_square, 4),
            "similarity": round(self.similarity, 4),
            "common_bins": self.common_bins,
            "total_bins": self.total_bins,
        }


@dataclass(frozen=True)
class MatrixStatistics:
    column_name: str
    size: int
    total_sequences: int
    total_transitions: int
    max_transition: int
    non_zero_transitions: int
    sparsity: float
    self_transitions: int
    self_transition_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column_name": self.column_name,
            "size": self.size,
            "total_sequences": self.total_sequences,
            "total_transitions": self.total_transitions,
            "max_transition": self.max_transition,
            "non_zero_transitions": self.non_zero_transitions,
            "sparsity": round(self.sparsity, 4),
            "self_transitions": self.self_transitions,
            "self_transition_rate": round(self.self_transition_rate, 4),
        }


@dataclass(frozen=True)
class GraphStatistics:
    left_column_name: str
    right_column_name: str
    total_connections: int
    total_unique_connections: int
    max_weight: int = 0
    min_weight: int = 0
    avg_weight: float = 0.0
    strong_connections: int = 0
    medium_connections: int = 0
    weak_connections: int = 0
    left_bin_count: int = 0
    right_bin_count: int = 0
    connection_density: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left_column_name": self.left_column_name,
            "right_column_name": self.right_column_name,
            "total_connections": self.total_connections,
            "total_unique_connections": self.total_unique_connections,
            "max_weight": self.max_weight,
            "min_weight": self.min_weight,
            "avg_weight": round(self.avg_weight, 2),
            "strong_connections": self.strong_connections,
            "medium_connections": self.medium_connections,
            "weak_connections": self.weak_connections,
            "left_bin_count": self.left_bin_count,
            "right_bin_count": self.right_bin_count,
            "connection_density": round(self.connection_density, 2),
        }


@dataclass(frozen=True)
class ConnectionLookup:
    """Details of one left bin to right bin connection (link may be None)."""
    left_bin: str
    right_bin: str
    details: Tuple[ConnectionDetail, ...]
    link: Optional[Link] = None

    @property
    def connection_key(self) -> str:
        return connection_key(self.left_bin, self.right_bin)

    @property
    def connection_count(self) -> int:
        return len(self.details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection_key": self.connection_key,
            "connection_count": self.connection_count,
            "link": self.link.to_dict() if self.link else None,
            "details": [detail.to_dict() for detail in self.details],
        }
