"""
Value normalization for column binning.

The Normalizer classifies and cleans raw scalar values: it folds the many
spellings of "missing" into two sentinels, decides whether a column is
numeric, orders values consistently, and renders numbers and numeric ranges
as bin labels.
"""

import functools
import math
import re
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from binning_framework.core.constants import (
    NULL_SENTINEL,
    EMPTY_SENTINEL,
    NULL_TOKENS,
    NUMERIC_PATTERN,
    NUMERIC_COLUMN_THRESHOLD,
    EXPONENTIAL_UPPER_BOUND,
    EXPONENTIAL_LOWER_BOUND,
    MAX_FRACTION_DIGITS,
    EMPTY_RANGE_LABEL,
)


class IntervalType(Enum):
    """Bracket styles for numeric range labels."""
    CLOSED = "CLOSED"          # [a, b]
    OPEN = "OPEN"              # (a, b)
    LEFT_OPEN = "LEFT_OPEN"    # (a, b]
    RIGHT_OPEN = "RIGHT_OPEN"  # [a, b)


class ValueType(Enum):
    """Coarse classification of a single raw value."""
    NULL = "NULL"
    EMPTY = "EMPTY"
    NUMERIC = "NUMERIC"
    TEXT = "TEXT"


_NUMERIC_RE = re.compile(NUMERIC_PATTERN)
_WHITESPACE_RE = re.compile(r"\s+")

_BRACKETS = {
    IntervalType.CLOSED: ("[", "]"),
    IntervalType.OPEN: ("(", ")"),
    IntervalType.LEFT_OPEN: ("(", "]"),
    IntervalType.RIGHT_OPEN: ("[", ")"),
}


class Normalizer:
    """
    Stateless value classifier and formatter.

    All methods are pure; a single instance can be shared freely between
    engines and threads.

    Example:
        >>> n = Normalizer()
        >>> n.normalize("  N/A ")
        '<NULL>'
        >>> n.normalize(" 42 ")
        '42'
        >>> n.format_number(1234.5000)
        '1234.5'
    """

    NULL = NULL_SENTINEL
    EMPTY = EMPTY_SENTINEL

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def normalize(self, raw: Optional[str]) -> str:
        """
        Map a raw value to its normalized form.

        None and null-like tokens become <NULL>, blank strings become
        <EMPTY>, everything else is trimmed. Applying normalize to its own
        output returns the same value.
        """
        if raw is None:
            return NULL_SENTINEL

        text = str(raw).strip()
        if not text:
            return EMPTY_SENTINEL
        if text in (NULL_SENTINEL, EMPTY_SENTINEL):
            return text
        if text.lower() in NULL_TOKENS:
            return NULL_SENTINEL
        return text

    def is_sentinel(self, value: Optional[str]) -> bool:
        """Return True for <NULL> and <EMPTY>."""
        return value == NULL_SENTINEL or value == EMPTY_SENTINEL

    def is_numeric_value(self, value: Optional[str]) -> bool:
        """
        Return True when the value matches the numeric pattern.

        Spellings that overflow a float (such as "1e400") are not numeric.
        """
        if value is None or self.is_sentinel(value):
            return False
        text = str(value).strip()
        if not _NUMERIC_RE.match(text):
            return False
        return math.isfinite(float(text))

    def is_numeric_column(self, values: Iterable[Optional[str]]) -> bool:
        """
        Decide whether a column should be treated as numeric.

        At least 80% of the non-sentinel values must be numeric. A column
        with no non-sentinel values is not numeric.
        """
        valid = 0
        numeric = 0
        for value in values:
            normalized = self.normalize(value)
            if self.is_sentinel(normalized):
                continue
            valid += 1
            if self.is_numeric_value(normalized):
                numeric += 1

        if valid == 0:
            return False
        return numeric / valid >= NUMERIC_COLUMN_THRESHOLD

    def parse_number(self, value: Optional[str]) -> Optional[float]:
        """Parse a numeric value, returning None when it is not numeric."""
        if not self.is_numeric_value(value):
            return None
        return float(str(value).strip())

    def detect_value_type(self, raw: Optional[str]) -> ValueType:
        """Classify a raw value as NULL, EMPTY, NUMERIC or TEXT."""
        normalized = self.normalize(raw)
        if normalized == NULL_SENTINEL:
            return ValueType.NULL
        if normalized == EMPTY_SENTINEL:
            return ValueType.EMPTY
        if self.is_numeric_value(normalized):
            return ValueType.NUMERIC
        return ValueType.TEXT

    def clean_string(self, raw: Optional[str]) -> str:
        """Trim and collapse runs of internal whitespace to a single space."""
        if raw is None:
            return ""
        return _WHITESPACE_RE.sub(" ", str(raw).strip())

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def compare(self, a: str, b: str) -> int:
        """
        Three-way comparison used to order values and bins.

        Sentinels sort before everything else and are equal to each other.
        Two numeric values compare numerically; anything else compares
        lexicographically.
        """
        a_sentinel = self.is_sentinel(a)
        b_sentinel = self.is_sentinel(b)
        if a_sentinel and b_sentinel:
            return 0
        if a_sentinel:
            return -1
        if b_sentinel:
            return 1

        a_num = self.parse_number(a)
        b_num = self.parse_number(b)
        if a_num is not None and b_num is not None:
            return (a_num > b_num) - (a_num < b_num)
        return (a > b) - (a < b)

    @property
    def sort_key(self):
        """Key function equivalent to compare(), for sorted()."""
        return functools.cmp_to_key(self.compare)

    def sorted_values(self, values: Iterable[str]) -> List[str]:
        return sorted(values, key=self.sort_key)

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def format_number(self, value: float) -> str:
        """
        Render a number for use in a label.

        >>> Normalizer().format_number(3.0)
        '3'
        >>> Normalizer().format_number(0.005)
        '5.00e-03'
        >>> Normalizer().format_number(2.50)
        '2.5'
        """
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "∞" if value > 0 else "-∞"

        magnitude = abs(value)
        if magnitude > EXPONENTIAL_UPPER_BOUND:
            return f"{value:.2e}"
        if value == int(value):
            return str(int(value))
        if magnitude < EXPONENTIAL_LOWER_BOUND:
            return f"{value:.2e}"

        text = f"{value:.{MAX_FRACTION_DIGITS}f}".rstrip("0").rstrip(".")
        return text if text not in ("", "-0") else "0"

    def format_with_precision(self, value: float, precision: int) -> str:
        if math.isnan(value) or math.isinf(value):
            return self.format_number(value)
        return f"{value:.{max(0, precision)}f}"

    def format_interval(
        self,
        low: float,
        high: float,
        interval_type: Optional[IntervalType] = None
    ) -> str:
        """
        Render the interval between two numbers.

        Equal bounds render as a single number. Without an interval type the
        plain "a-b" form is used.
        """
        low_text = self.format_number(low)
        high_text = self.format_number(high)
        if low_text == high_text:
            return low_text
        if interval_type is None:
            return f"{low_text}-{high_text}"
        left, right = _BRACKETS[interval_type]
        return f"{left}{low_text}, {high_text}{right}"

    def range_label(
        self,
        values: Sequence[str],
        interval_type: Optional[IntervalType] = None
    ) -> str:
        """
        Label a group of values by its numeric range.

        A group holding a single distinct value is labelled by that value as
        given; a group without numeric members is labelled by its first value.
        """
        if not values:
            return EMPTY_RANGE_LABEL
        if len(set(values)) == 1:
            return values[0]

        numbers = [n for n in (self.parse_number(v) for v in values) if n is not None]
        if not numbers:
            return values[0]
        return self.format_interval(min(numbers), max(numbers), interval_type)

    # ------------------------------------------------------------------
    # Range and precision helpers
    # ------------------------------------------------------------------

    def is_value_in_range(
        self,
        value: str,
        low: float,
        high: float,
        interval_type: Optional[IntervalType] = None
    ) -> bool:
        """
        Test range membership honouring the bracket style.

        Without an interval type both bounds are inclusive.
        """
        number = self.parse_number(value)
        if number is None:
            return False

        interval_type = interval_type or IntervalType.CLOSED
        if interval_type == IntervalType.OPEN:
            return low < number < high
        if interval_type == IntervalType.LEFT_OPEN:
            return low < number <= high
        if interval_type == IntervalType.RIGHT_OPEN:
            return low <= number < high
        return low <= number <= high

    def decimal_precision(self, value: str) -> int:
        """Number of digits after the decimal point in a numeric string."""
        if not self.is_numeric_value(value):
            return 0
        mantissa = str(value).strip().lower().split("e")[0]
        if "." not in mantissa:
            return 0
        return len(mantissa.split(".", 1)[1])

    def recommended_precision(self, values: Iterable[str]) -> int:
        """Largest decimal precision among the values, capped at six digits."""
        precision = 0
        for value in values:
            precision = max(precision, self.decimal_precision(value))
        return min(precision, MAX_FRACTION_DIGITS)
