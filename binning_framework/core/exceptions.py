"""
Binning Framework Exception Hierarchy.

Every error raised by the framework derives from BinningFrameworkError and
carries a severity that tells callers how to react:

Exception Severity Levels:
    - FATAL: Stop all processing immediately (bad job configuration)
    - CRITICAL: Stop processing this file, continue with other files
    - RECOVERABLE: Fail this column or column pair, continue with the rest
    - WARNING: Log and continue

Contract violations (bad arguments, re-binning without retained data) fail
fast. Anomalous data, such as a value that resolves to no bin, is never
raised.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorSeverity(Enum):
    """
    Classify error severity for handling decisions.

    Attributes:
        FATAL: Unrecoverable error, stop all processing
        CRITICAL: File-level error, stop processing this file
        RECOVERABLE: Item-level error, continue with other columns
        WARNING: Non-critical issue, log and continue
    """
    FATAL = "fatal"
    CRITICAL = "critical"
    RECOVERABLE = "recoverable"
    WARNING = "warning"


class BinningFrameworkError(Exception):
    """
    Base exception for all framework errors.

    Attributes:
        message (str): Human-readable error message
        severity (ErrorSeverity): Error severity level
        details (Dict[str, Any]): Additional context (column, bin count, etc.)
        original_exception (Optional[Exception]): Original exception if wrapping

    Example:
        >>> try:
        ...     load_rows()
        ... except OSError as e:
        ...     raise BinningFrameworkError(
        ...         "Could not read rows",
        ...         severity=ErrorSeverity.CRITICAL,
        ...         details={'file': 'sales.csv'},
        ...         original_exception=e
        ...     )
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.RECOVERABLE,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.details = details or {}
        self.original_exception = original_exception

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for logging/reporting.

        Returns:
            Dictionary containing exception details suitable for JSON serialization
        """
        return {
            'type': self.__class__.__name__,
            'message': self.message,
            'severity': self.severity.value,
            'details': self.details,
            'original_error': str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Contract Violations (Recoverable)
# ============================================================================

class InvalidArgumentError(BinningFrameworkError, ValueError):
    """
    A caller supplied arguments that violate an operation's contract.

    Raised when:
    - Values are empty or their length differs from the row references
    - The requested bin count lies outside the allowed range
    - A column is not present in the dataset headers
    - Bipartite columns are not positionally adjacent

    Example:
        >>> raise InvalidArgumentError(
        ...     "Bin count must be between 1 and 50, got 0",
        ...     argument="requested_count"
        ... )
    """

    def __init__(self, message: str, argument: Optional[str] = None, **details: Any):
        context = dict(details)
        if argument:
            context['argument'] = argument
        super().__init__(
            message,
            severity=ErrorSeverity.RECOVERABLE,
            details=context
        )
        self.argument = argument


class IllegalStateError(BinningFrameworkError, RuntimeError):
    """
    An entity is not in a state that permits the requested operation.

    Raised when re-binning is requested on a histogram or matrix that has no
    retained original values.
    """

    def __init__(self, message: str, entity: Optional[str] = None):
        super().__init__(
            message,
            severity=ErrorSeverity.RECOVERABLE,
            details={'entity': entity} if entity else {}
        )
        self.entity = entity


# ============================================================================
# Configuration Errors (Fatal)
# ============================================================================

class ConfigError(BinningFrameworkError):
    """
    Configuration file errors (fatal - stop all processing).

    Raised when:
    - Configuration file not found
    - Invalid YAML syntax
    - Required configuration fields missing

    Attributes:
        field (Optional[str]): Specific config field that caused error
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            severity=ErrorSeverity.FATAL,
            details={'field': field} if field else {}
        )
        self.field = field


class YAMLSizeError(ConfigError):
    """Raised when a YAML configuration file exceeds the size limit."""

    def __init__(self, message: str, file_size: Optional[int] = None, max_size: Optional[int] = None):
        super().__init__(message)
        if file_size is not None:
            self.details['file_size'] = file_size
        if max_size is not None:
            self.details['max_size'] = max_size


class ConfigValidationError(ConfigError):
    """
    Configuration structure or value is invalid.

    Example:
        >>> raise ConfigValidationError(
        ...     "Invalid strategy: 'MEDIAN'",
        ...     field="binning.strategy",
        ...     value="MEDIAN"
        ... )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        expected: Optional[str] = None
    ):
        super().__init__(message, field=field)
        if value is not None:
            self.details['value'] = value
        if expected is not None:
            self.details['expected'] = expected


# ============================================================================
# Data Loading Errors (Critical)
# ============================================================================

class DataLoadError(BinningFrameworkError):
    """
    A dataset could not be read (critical - skip this file).

    Attributes:
        file_path (str): Path to the file that failed
    """

    def __init__(
        self,
        message: str,
        file_path: str,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            details={'file_path': file_path},
            original_exception=original_exception
        )
        self.file_path = file_path
