"""
Column Binning Framework.

Partitions table columns into labelled bins and derives three views from
them: per-column histograms, row-to-row transition matrices and bipartite
connection graphs between adjacent columns.
"""

__version__ = "0.1.0"

from binning_framework.core.exceptions import (
    BinningFrameworkError,
    ErrorSeverity,
    InvalidArgumentError,
    IllegalStateError,
    ConfigError,
    DataLoadError,
)
from binning_framework.binning.normalizer import Normalizer, IntervalType, ValueType
from binning_framework.binning.strategies import BinningStrategy
from binning_framework.binning.models import (
    DataPoint,
    Dataset,
    BinningResult,
    BinStatistics,
    Histogram,
    Matrix,
    BiPartiteGraph,
    Link,
    ConnectionDetail,
)
from binning_framework.binning.engine import BinningEngine
from binning_framework.binning.histogram import HistogramBuilder
from binning_framework.binning.matrix import SequenceMatrixBuilder
from binning_framework.binning.bipartite import BipartiteConnectionBuilder
from binning_framework.core.engine import BatchEngine

__all__ = [
    "__version__",
    "BinningFrameworkError",
    "ErrorSeverity",
    "InvalidArgumentError",
    "IllegalStateError",
    "ConfigError",
    "DataLoadError",
    "Normalizer",
    "IntervalType",
    "ValueType",
    "BinningStrategy",
    "DataPoint",
    "Dataset",
    "BinningResult",
    "BinStatistics",
    "Histogram",
    "Matrix",
    "BiPartiteGraph",
    "Link",
    "ConnectionDetail",
    "BinningEngine",
    "HistogramBuilder",
    "SequenceMatrixBuilder",
    "BipartiteConnectionBuilder",
    "BatchEngine",
]
