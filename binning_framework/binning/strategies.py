"""
Binning strategies.

Each strategy is a pure function that takes the valid (non-sentinel)
normalized values of a column, a target bin count and StrategyOptions, and
returns a Partition: bin labels in display order plus the label of every
distinct value. The engine turns a Partition into a BinningResult.

select_strategy() is the single place where AUTO and mismatched requests are
resolved to a concrete strategy.
"""

import bisect
import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from binning_framework.core.constants import (
    MIN_BIN_COUNT,
    MAX_BIN_COUNT,
    OTHER_LABEL,
    SKEWNESS_THRESHOLD,
    CV_THRESHOLD,
    SMALL_SAMPLE_SIZE,
    DEFAULT_FREQUENCY_THRESHOLD,
)
from binning_framework.binning.normalizer import Normalizer, IntervalType

logger = logging.getLogger(__name__)


class BinningStrategy(Enum):
    """
    Available binning strategies.

    Numeric strategies partition a value range; categorical strategies pick
    which categories keep their own bin. AUTO lets the engine decide.
    """
    EQUAL_FREQUENCY = "EQUAL_FREQUENCY"
    EQUAL_WIDTH = "EQUAL_WIDTH"
    NATURAL_BREAKS = "NATURAL_BREAKS"
    STURGES = "STURGES"
    TOP_K = "TOP_K"
    FREQUENCY_THRESHOLD = "FREQUENCY_THRESHOLD"
    ALPHABETICAL = "ALPHABETICAL"
    AUTO = "AUTO"

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_STRATEGIES

    @property
    def is_categorical(self) -> bool:
        return self in CATEGORICAL_STRATEGIES

    @classmethod
    def from_name(cls, name: str) -> "BinningStrategy":
        """Case-insensitive lookup accepting dashes or underscores."""
        key = str(name).strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown binning strategy '{name}'. Valid strategies: {valid}")


NUMERIC_STRATEGIES = frozenset({
    BinningStrategy.EQUAL_FREQUENCY,
    BinningStrategy.EQUAL_WIDTH,
    BinningStrategy.NATURAL_BREAKS,
    BinningStrategy.STURGES,
})

CATEGORICAL_STRATEGIES = frozenset({
    BinningStrategy.TOP_K,
    BinningStrategy.FREQUENCY_THRESHOLD,
    BinningStrategy.ALPHABETICAL,
})


@dataclass(frozen=True)
class StrategyOptions:
    """Settings shared by every strategy function."""
    normalizer: Normalizer = field(default_factory=Normalizer)
    interval_type: Optional[IntervalType] = None
    frequency_threshold: float = DEFAULT_FREQUENCY_THRESHOLD


@dataclass(frozen=True)
class Partition:
    """
    Labels in display order and the label of every distinct value.

    Labels may repeat when two groups format identically; the engine merges
    such groups.
    """
    labels: Tuple[str, ...]
    assignment: Dict[str, str]


StrategyFunction = Callable[[Sequence[str], int, StrategyOptions], Partition]


# ============================================================================
# Strategy Selection
# ============================================================================

def distribution_shape(numbers: Sequence[float]) -> Tuple[float, float]:
    """
    Sample skewness and coefficient of variation of a numeric column.

    Undefined values (fewer than three points for skewness, a single point
    or zero mean for CV) are reported as 0.
    """
    series = pd.Series(numbers, dtype=float)
    skewness = series.skew()
    if pd.isna(skewness):
        skewness = 0.0

    mean = series.mean()
    std = series.std()
    if pd.isna(std) or mean == 0:
        cv = 0.0
    else:
        cv = float(std / abs(mean))
    return float(skewness), cv


def select_strategy(
    requested: BinningStrategy,
    is_numeric: bool,
    numbers: Optional[Sequence[float]] = None
) -> BinningStrategy:
    """
    Resolve the strategy to apply to a column.

    Numeric columns:
        AUTO picks NATURAL_BREAKS for skewed or highly dispersed data,
        STURGES for small samples and EQUAL_FREQUENCY otherwise. Categorical
        strategies fall back to EQUAL_FREQUENCY.
    Categorical columns:
        Any non-categorical request resolves to TOP_K.
    """
    if not is_numeric:
        return requested if requested.is_categorical else BinningStrategy.TOP_K

    if requested.is_categorical:
        logger.debug(f"{requested.value} is categorical-only; using EQUAL_FREQUENCY for numeric column")
        return BinningStrategy.EQUAL_FREQUENCY
    if requested != BinningStrategy.AUTO:
        return requested

    numbers = list(numbers or [])
    skewness, cv = distribution_shape(numbers)
    if abs(skewness) > SKEWNESS_THRESHOLD or cv > CV_THRESHOLD:
        selected = BinningStrategy.NATURAL_BREAKS
    elif len(numbers) < SMALL_SAMPLE_SIZE:
        selected = BinningStrategy.STURGES
    else:
        selected = BinningStrategy.EQUAL_FREQUENCY

    logger.debug(
        f"AUTO selected {selected.value} (n={len(numbers)}, skewness={skewness:.3f}, cv={cv:.3f})"
    )
    return selected


def sturges_bin_count(sample_size: int) -> int:
    """Sturges' rule, ceil(1 + log2(n)), clamped to the allowed bin range."""
    if sample_size <= 0:
        return MIN_BIN_COUNT
    estimate = math.ceil(1 + math.log2(sample_size))
    return max(MIN_BIN_COUNT, min(MAX_BIN_COUNT, estimate))


# ============================================================================
# Numeric Strategies
# ============================================================================

def _numeric_groups(values: Sequence[str], normalizer: Normalizer) -> Tuple[List[float], Dict[float, List[str]], Counter]:
    """
    Group value spellings by the number they parse to.

    Returns:
        (sorted distinct numbers, number -> distinct spellings, number -> record count)
    """
    spellings: Dict[float, List[str]] = {}
    counts: Counter = Counter()
    for value in values:
        number = normalizer.parse_number(value)
        counts[number] += 1
        known = spellings.setdefault(number, [])
        if value not in known:
            known.append(value)
    return sorted(spellings), spellings, counts


def _single_bin(values: Sequence[str], options: StrategyOptions) -> Partition:
    distinct = sorted(set(values), key=options.normalizer.sort_key)
    label = options.normalizer.range_label(distinct, options.interval_type)
    return Partition(labels=(label,), assignment={value: label for value in distinct})


def equal_frequency(values: Sequence[str], target: int, options: StrategyOptions) -> Partition:
    """
    Split sorted distinct numbers into contiguous groups of similar record count.

    Exactly min(target, distinct count) groups are produced. Group g aims for
    floor(total / K) records, plus one for the first total mod K groups; a
    group closes once its cumulative target is met, or earlier when the next
    number would overshoot by more than the group currently falls short.
    Every group keeps at least one distinct number.
    """
    normalizer = options.normalizer
    numbers, spellings, counts = _numeric_groups(values, normalizer)
    k = max(1, min(target, len(numbers)))
    total = sum(counts.values())

    base, extra = divmod(total, k)
    cumulative_targets = []
    running = 0
    for g in range(k):
        running += base + (1 if g < extra else 0)
        cumulative_targets.append(running)

    groups: List[List[float]] = []
    i = 0
    cumulative = 0
    n = len(numbers)
    for g in range(k):
        remaining_groups = k - g - 1
        if remaining_groups == 0:
            groups.append(numbers[i:])
            break

        goal = cumulative_targets[g]
        group = [numbers[i]]
        cumulative += counts[numbers[i]]
        i += 1
        while i < n - remaining_groups and cumulative < goal:
            after = cumulative + counts[numbers[i]]
            if after - goal > goal - cumulative:
                break
            group.append(numbers[i])
            cumulative = after
            i += 1
        groups.append(group)

    labels = []
    assignment = {}
    for group in groups:
        members = [spelling for number in group for spelling in spellings[number]]
        label = normalizer.range_label(members, options.interval_type)
        labels.append(label)
        for member in members:
            assignment[member] = label
    return Partition(labels=tuple(labels), assignment=assignment)


def equal_width(values: Sequence[str], target: int, options: StrategyOptions) -> Partition:
    """
    Split [min, max] into target intervals of equal width.

    Intervals that receive no values are kept as empty bins. A column with a
    single distinct number produces one bin.
    """
    normalizer = options.normalizer
    numbers, spellings, _ = _numeric_groups(values, normalizer)
    low, high = numbers[0], numbers[-1]
    k = max(1, target)
    if low == high or k == 1:
        return _single_bin(values, options)

    # Scaled by k before subtracting so extreme finite bounds cannot overflow
    width = high / k - low / k
    edges = [low + i * width for i in range(k)] + [high]
    labels = tuple(
        normalizer.format_interval(edges[i], edges[i + 1], options.interval_type)
        for i in range(k)
    )

    distinct = np.asarray(numbers, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        positions = np.floor((distinct / k - low / k) / width)
    indices = np.clip(np.nan_to_num(positions, nan=0.0), 0, k - 1).astype(int)

    assignment = {}
    for number, index in zip(numbers, indices):
        for spelling in spellings[number]:
            assignment[spelling] = labels[int(index)]
    return Partition(labels=labels, assignment=assignment)


def natural_break_points(sorted_numbers: Sequence[float], k: int) -> List[float]:
    """
    Breakpoints that start bins 2..k.

    The i-th candidate position is i * step (step = n // k); it is moved to
    the largest gap between adjacent sorted numbers within half a step on
    either side. Duplicate breakpoints and breakpoints at the minimum are
    dropped, so fewer than k - 1 may be returned.
    """
    n = len(sorted_numbers)
    if k <= 1 or n < 2:
        return []

    step = max(1, n // k)
    half = step // 2
    breaks: List[float] = []
    for i in range(1, k):
        index = min(i * step, n - 1)
        best_index = index
        best_gap = 0.0
        for j in range(max(1, index - half), min(n - 1, index + half) + 1):
            gap = sorted_numbers[j] - sorted_numbers[j - 1]
            if gap > best_gap:
                best_gap = gap
                best_index = j
        candidate = sorted_numbers[best_index]
        if candidate > sorted_numbers[0] and (not breaks or candidate > breaks[-1]):
            breaks.append(candidate)
    return breaks


def natural_breaks(values: Sequence[str], target: int, options: StrategyOptions) -> Partition:
    """
    Bins bounded by the largest local gaps in the sorted data.

    Bins are [min, b1), [b1, b2), ..., [b_last, max]. Each bin is labelled
    by the range of its own members, so neighbouring labels never share a
    bound.
    """
    normalizer = options.normalizer
    numbers, spellings, _ = _numeric_groups(values, normalizer)
    if len(numbers) == 1 or target <= 1:
        return _single_bin(values, options)

    ordered = sorted(normalizer.parse_number(v) for v in values)
    breaks = natural_break_points(ordered, target)

    groups: List[List[str]] = [[] for _ in range(len(breaks) + 1)]
    for number in numbers:
        groups[bisect.bisect_right(breaks, number)].extend(spellings[number])

    labels = []
    assignment = {}
    for members in groups:
        label = normalizer.range_label(members, options.interval_type)
        labels.append(label)
        for member in members:
            assignment[member] = label
    return Partition(labels=tuple(labels), assignment=assignment)


def sturges(values: Sequence[str], target: int, options: StrategyOptions) -> Partition:
    """Equal-width binning with the bin count estimated by Sturges' rule."""
    k = min(sturges_bin_count(len(values)), target)
    logger.debug(f"Sturges estimate for n={len(values)} capped at {k} bins")
    return equal_width(values, k, options)


# ============================================================================
# Categorical Strategies
# ============================================================================

def _ranked_by_frequency(counts: Counter) -> List[str]:
    return sorted(counts, key=lambda value: (-counts[value], value))


def _categorical_partition(counts: Counter, kept: Sequence[str]) -> Partition:
    kept_labels = sorted(kept)
    kept_set = set(kept_labels)
    assignment = {value: (value if value in kept_set else OTHER_LABEL) for value in counts}
    return Partition(labels=tuple(kept_labels) + (OTHER_LABEL,), assignment=assignment)


def _categorical(select: Callable[[Counter, int, StrategyOptions], List[str]]) -> StrategyFunction:
    """
    Wrap a keep-selection rule into a categorical strategy.

    When every category fits in the budget each keeps its own bin; otherwise
    budget - 1 categories are kept and the rest share a trailing "Other".
    """
    def strategy(values: Sequence[str], target: int, options: StrategyOptions) -> Partition:
        counts = Counter(values)
        if len(counts) <= target:
            labels = tuple(sorted(counts))
            return Partition(labels=labels, assignment={value: value for value in labels})
        kept = select(counts, max(0, target - 1), options)
        return _categorical_partition(counts, kept)

    strategy.__name__ = select.__name__.lstrip("_")
    strategy.__doc__ = select.__doc__
    return strategy


def _top_k(counts: Counter, keep: int, options: StrategyOptions) -> List[str]:
    """Keep the most frequent categories (ties broken lexicographically)."""
    return _ranked_by_frequency(counts)[:keep]


def _frequency_threshold(counts: Counter, keep: int, options: StrategyOptions) -> List[str]:
    """Keep categories holding at least the threshold share of records, most frequent first."""
    total = sum(counts.values())
    eligible = [v for v in _ranked_by_frequency(counts) if counts[v] / total >= options.frequency_threshold]
    return eligible[:keep]


def _alphabetical(counts: Counter, keep: int, options: StrategyOptions) -> List[str]:
    """Keep the lexicographically first categories."""
    return sorted(counts)[:keep]


top_k = _categorical(_top_k)
frequency_threshold = _categorical(_frequency_threshold)
alphabetical = _categorical(_alphabetical)


STRATEGY_FUNCTIONS: Dict[BinningStrategy, StrategyFunction] = {
    BinningStrategy.EQUAL_FREQUENCY: equal_frequency,
    BinningStrategy.EQUAL_WIDTH: equal_width,
    BinningStrategy.NATURAL_BREAKS: natural_breaks,
    BinningStrategy.STURGES: sturges,
    BinningStrategy.TOP_K: top_k,
    BinningStrategy.FREQUENCY_THRESHOLD: frequency_threshold,
    BinningStrategy.ALPHABETICAL: alphabetical,
}


def get_strategy_function(strategy: BinningStrategy) -> StrategyFunction:
    """Look up the partition function for a concrete (non-AUTO) strategy."""
    try:
        return STRATEGY_FUNCTIONS[strategy]
    except KeyError:
        raise ValueError(f"No partition function for strategy {strategy.value}; resolve AUTO first")
