"""
Bipartite connection builder - bin-to-bin co-occurrence of adjacent columns.

The builder never bins anything itself. Each row's left and right values
are looked up in the bins of two histograms that were already built. A row
whose value resolves to no bin on either side is skipped and counted, not
raised.
"""

import logging
from typing import Dict, List, Optional, Tuple

from binning_framework.core.constants import (
    VISUAL_WEIGHT_SCALE,
    STRONG_CONNECTION_THRESHOLD,
    WEAK_CONNECTION_THRESHOLD,
)
from binning_framework.core.exceptions import InvalidArgumentError
from binning_framework.binning.normalizer import Normalizer
from binning_framework.binning.models import (
    BiPartiteGraph,
    ConnectionDetail,
    ConnectionLookup,
    Dataset,
    GraphStatistics,
    Histogram,
    Link,
)

logger = logging.getLogger(__name__)


class BipartiteConnectionBuilder:
    """
    Builds weighted connection graphs between two adjacent columns.

    Example:
        >>> histograms = HistogramBuilder()
        >>> left = histograms.build_from_dataset(dataset, "region", 5)
        >>> right = histograms.build_from_dataset(dataset, "amount", 5)
        >>> graph = BipartiteConnectionBuilder().build(dataset, left, right)
        >>> graph.links[0].visual_weight
        10
    """

    def __init__(self, normalizer: Optional[Normalizer] = None) -> None:
        self.normalizer = normalizer or Normalizer()

    def build(self, dataset: Dataset, left: Histogram, right: Histogram) -> BiPartiteGraph:
        """
        Connect the bins of two adjacent columns row by row.

        Args:
            dataset: Rows and headers the histograms were built from
            left: Histogram of the left column
            right: Histogram of the right column

        Returns:
            BiPartiteGraph with links sorted by descending weight

        Raises:
            InvalidArgumentError: If a column is missing or the columns are not adjacent
        """
        if left is None or right is None:
            raise InvalidArgumentError("Both histograms are required", argument="histogram")

        left_index = dataset.column_index(left.column_name)
        right_index = dataset.column_index(right.column_name)
        left_position = dataset.source_position(left.column_name)
        right_position = dataset.source_position(right.column_name)
        if abs(left_position - right_position) != 1:
            raise InvalidArgumentError(
                f"Columns '{left.column_name}' (position {left_position}) and "
                f"'{right.column_name}' (position {right_position}) are not adjacent",
                argument="columns",
                left_index=left_position,
                right_index=right_position,
            )

        counts: Dict[Tuple[str, str], int] = {}
        details: Dict[Tuple[str, str], List[ConnectionDetail]] = {}
        unresolved = 0

        for row_index in range(dataset.row_count):
            left_value = dataset.cell(row_index, left_index)
            right_value = dataset.cell(row_index, right_index)
            left_bin = self.resolve_bin(left, left_value)
            right_bin = self.resolve_bin(right, right_value)

            if left_bin is None or right_bin is None:
                unresolved += 1
                logger.debug(
                    f"Row {row_index} skipped: {left_value!r} -> {left_bin}, {right_value!r} -> {right_bin}"
                )
                continue

            pair = (left_bin, right_bin)
            counts[pair] = counts.get(pair, 0) + 1
            details.setdefault(pair, []).append(
                ConnectionDetail(row_index, left_value, right_value, left_bin, right_bin)
            )

        total_rows = dataset.row_count
        graph = BiPartiteGraph(
            left_column_name=left.column_name,
            right_column_name=right.column_name,
            total_connections=total_rows,
            links=self._links(counts, total_rows),
            connection_details={key: tuple(rows) for key, rows in details.items()},
            unresolved_rows=unresolved,
        )
        if unresolved:
            logger.info(
                f"Bipartite '{left.column_name}' -> '{right.column_name}': "
                f"{unresolved} of {total_rows} rows did not resolve to a bin"
            )
        return graph

    def refresh(
        self,
        graph: BiPartiteGraph,
        dataset: Dataset,
        left: Histogram,
        right: Histogram
    ) -> BiPartiteGraph:
        """
        Rebuild a graph after its histograms were re-binned.

        Raises:
            InvalidArgumentError: If the histograms belong to other columns
        """
        if left.column_name != graph.left_column_name or right.column_name != graph.right_column_name:
            raise InvalidArgumentError(
                f"Histograms ({left.column_name}, {right.column_name}) do not match graph "
                f"({graph.left_column_name}, {graph.right_column_name})",
                argument="histogram",
            )
        return self.build(dataset, left, right)

    def resolve_bin(self, histogram: Histogram, raw_value: Optional[str]) -> Optional[str]:
        """
        Find the bin of a raw value using the histogram's existing mapping.

        Tries the raw value, then its normalized form, then treats the value
        as a bin label of its own.
        """
        mapping = histogram.value_to_bin
        if raw_value is not None and raw_value in mapping:
            return mapping[raw_value]

        normalized = self.normalizer.normalize(raw_value)
        if normalized in mapping:
            return mapping[normalized]

        for candidate in (raw_value, normalized):
            if candidate is not None and candidate in histogram.ordered_labels:
                return candidate
        return None

    def validate(self, graph: Optional[BiPartiteGraph]) -> bool:
        """Check the graph's names and that each link weight equals its detail count."""
        if graph is None or not graph.left_column_name or not graph.right_column_name:
            return False
        if graph.total_connections < 0 or graph.total_weight > graph.total_connections:
            return False
        for link in graph.links:
            if len(graph.connection_details.get(link.bin_pair, ())) != link.weight:
                return False
        return True

    def statistics(self, graph: BiPartiteGraph) -> GraphStatistics:
        """Weight range, connection strength distribution and density."""
        links = graph.links
        if not links:
            return GraphStatistics(
                left_column_name=graph.left_column_name,
                right_column_name=graph.right_column_name,
                total_connections=graph.total_connections,
                total_unique_connections=0,
            )

        weights = [link.weight for link in links]
        strong = sum(1 for link in links if link.normalized_weight > STRONG_CONNECTION_THRESHOLD)
        weak = sum(1 for link in links if link.normalized_weight <= WEAK_CONNECTION_THRESHOLD)
        left_bins = {link.left_bin for link in links}
        right_bins = {link.right_bin for link in links}
        possible = len(left_bins) * len(right_bins)

        return GraphStatistics(
            left_column_name=graph.left_column_name,
            right_column_name=graph.right_column_name,
            total_connections=graph.total_connections,
            total_unique_connections=len(links),
            max_weight=max(weights),
            min_weight=min(weights),
            avg_weight=sum(weights) / len(weights),
            strong_connections=strong,
            medium_connections=len(links) - strong - weak,
            weak_connections=weak,
            left_bin_count=len(left_bins),
            right_bin_count=len(right_bins),
            connection_density=len(links) / possible * 100 if possible else 0.0,
        )

    def lookup(self, graph: BiPartiteGraph, left_bin: str, right_bin: str) -> ConnectionLookup:
        """Rows and link behind one left bin to right bin connection."""
        link = next(
            (l for l in graph.links if l.left_bin == left_bin and l.right_bin == right_bin),
            None,
        )
        return ConnectionLookup(
            left_bin=left_bin,
            right_bin=right_bin,
            details=graph.connection_details.get((left_bin, right_bin), ()),
            link=link,
        )

    @staticmethod
    def _links(counts: Dict[Tuple[str, str], int], total_rows: int) -> Tuple[Link, ...]:
        max_weight = max(counts.values(), default=0)
        links = []
        for (left_bin, right_bin), weight in counts.items():
            normalized = weight / max_weight if max_weight else 0.0
            links.append(Link(
                left_bin=left_bin,
                right_bin=right_bin,
                weight=weight,
                percentage=weight / total_rows * 100 if total_rows else 0.0,
                normalized_weight=normalized,
                visual_weight=max(1, -(-weight * VISUAL_WEIGHT_SCALE // max_weight)),
            ))
        # Stable sort: equal weights keep first-seen order
        links.sort(key=lambda link: link.weight, reverse=True)
        return tuple(links)
