"""
Binning Framework Constants.

This module defines the bin-count bounds, strategy thresholds, sentinel
vocabulary and configuration limits used throughout the framework.
Keeping them in one place means no engine or builder carries hidden
module-level state of its own.
"""

# ============================================================================
# Bin Count Bounds
# ============================================================================

# Smallest number of bins a caller may request
MIN_BIN_COUNT: int = 1

# Largest number of bins a caller may request
# Rationale: beyond 50 bins a histogram or transition matrix stops being a
# summary of the column and becomes a listing of it
MAX_BIN_COUNT: int = 50

# Recommended default when the caller does not choose
DEFAULT_BIN_COUNT: int = 10


# ============================================================================
# Sentinel Values
# ============================================================================

# Normalized stand-in for missing values (also the label of the null bin)
NULL_SENTINEL: str = "<NULL>"

# Normalized stand-in for blank values
EMPTY_SENTINEL: str = "<EMPTY>"

# Raw tokens (compared case-insensitively after trimming) that mean "missing"
NULL_TOKENS: frozenset = frozenset({
    "null", "n/a", "na", "none", "undefined", "-", "nan", "inf", "infinity",
})

# Label of the trailing catch-all bin for categorical columns
OTHER_LABEL: str = "Other"

# Label returned by range formatting when no values are supplied
EMPTY_RANGE_LABEL: str = "Empty"


# ============================================================================
# Numeric Detection & Formatting
# ============================================================================

# Optional sign, digits, optional fraction, optional exponent
NUMERIC_PATTERN: str = r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$"

# Share of non-sentinel values that must be numeric for a numeric column
# Rationale: tolerates the odd stray code or typo in otherwise numeric data
NUMERIC_COLUMN_THRESHOLD: float = 0.80

# Magnitudes above this render in exponential form
EXPONENTIAL_UPPER_BOUND: float = 1e10

# Non-zero magnitudes below this render in exponential form
EXPONENTIAL_LOWER_BOUND: float = 0.01

# Maximum fractional digits in fixed-point rendering
MAX_FRACTION_DIGITS: int = 6


# ============================================================================
# Strategy Selection Thresholds
# ============================================================================

# |skewness| above this selects natural breaks
SKEWNESS_THRESHOLD: float = 1.0

# Coefficient of variation above this selects natural breaks
CV_THRESHOLD: float = 1.0

# Sample sizes below this select Sturges' rule
SMALL_SAMPLE_SIZE: int = 30

# Minimum share of valid records a category needs under FREQUENCY_THRESHOLD
DEFAULT_FREQUENCY_THRESHOLD: float = 0.01


# ============================================================================
# Bipartite Graph Constants
# ============================================================================

# Upper end of the visual weight scale (visual weight is 1..10)
VISUAL_WEIGHT_SCALE: int = 10

# Normalized weight above this counts as a strong connection
STRONG_CONNECTION_THRESHOLD: float = 0.7

# Normalized weight at or below this counts as a weak connection
WEAK_CONNECTION_THRESHOLD: float = 0.3

# Separator used in connection keys ("left->right")
CONNECTION_KEY_SEPARATOR: str = "->"


# ============================================================================
# Configuration Security Limits
# ============================================================================

# Maximum YAML configuration file size (10MB)
# Security measure: prevents huge YAML files from exhausting memory
MAX_YAML_FILE_SIZE: int = 10 * 1024 * 1024

# Maximum YAML nesting depth
MAX_YAML_NESTING_DEPTH: int = 20

# Maximum number of keys/items in a YAML document
MAX_YAML_KEY_COUNT: int = 10_000

# Maximum string length accepted inside a YAML document
MAX_STRING_LENGTH: int = 10 * 1024 * 1024


# ============================================================================
# Processing Defaults
# ============================================================================

# Worker threads for batch fan-out (1 runs every task inline)
DEFAULT_MAX_WORKERS: int = 4

# Structures a batch job can produce
SUPPORTED_OUTPUTS: tuple = ("histogram", "matrix", "bipartite")


# ============================================================================
# Logging
# ============================================================================

LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_LEVEL: str = "WARNING"
