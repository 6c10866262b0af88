"""
Dataset Profiler Exception Hierarchy.

Every error raised by the profiling pipeline derives from ProfilerException so
callers can catch a single type and show one generic failure notification.
Subclasses exist for the handling decisions the pipeline makes itself
(fallback, retry, abort), not for fine-grained discrimination by callers.

Exception Severity Levels:
    - FATAL: Configuration is unusable, nothing can run
    - CRITICAL: The current profiling run is aborted
    - RECOVERABLE: The step failed but a fallback path exists
    - WARNING: Logged, processing continues
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorSeverity(Enum):
    """Classify error severity for handling decisions."""
    FATAL = "fatal"
    CRITICAL = "critical"
    RECOVERABLE = "recoverable"
    WARNING = "warning"


class ProfilerException(Exception):
    """
    Base exception for all profiler errors.

    Attributes:
        message (str): Human-readable error message
        severity (ErrorSeverity): Error severity level
        details (Dict[str, Any]): Additional context (file path, column, etc.)
        original_exception (Optional[Exception]): Original exception if wrapping

    Example:
        >>> try:
        ...     parse_csv(text)
        ... except ValueError as e:
        ...     raise ProfilerException(
        ...         "Parsing failed",
        ...         severity=ErrorSeverity.CRITICAL,
        ...         details={'file': 'sales.csv'},
        ...         original_exception=e
        ...     )
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
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
# Configuration Errors (Fatal)
# ============================================================================

class ProfilerConfigError(ProfilerException):
    """
    Configuration errors (fatal).

    Raised when a configuration file is missing, is not valid YAML, or holds
    an invalid value, and when a caller passes an unknown column or type.

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


class YAMLSizeError(ProfilerConfigError):
    """YAML configuration file exceeds the allowed size."""

    def __init__(self, message: str, file_size: Optional[int] = None, max_size: Optional[int] = None):
        super().__init__(message)
        self.details.update({
            'file_size': file_size,
            'max_size': max_size
        })


class ConfigValidationError(ProfilerConfigError):
    """
    Configuration is valid YAML but does not match the expected structure.

    Example:
        >>> raise ConfigValidationError(
        ...     "correlation.max_columns must be a positive integer",
        ...     field="correlation.max_columns",
        ...     expected="int > 0",
        ...     actual="-1"
        ... )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None
    ):
        super().__init__(message, field)
        self.details.update({
            'expected': expected,
            'actual': actual
        })


# ============================================================================
# Data Loading Errors (Critical)
# ============================================================================

class DataLoadError(ProfilerException):
    """
    Input file could not be read or decoded.

    Attributes:
        file_path (str): Path to file that failed to load
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


class FileSizeLimitError(DataLoadError):
    """
    File is at or above the upload size cap and was rejected before reading.

    Example:
        >>> raise FileSizeLimitError("huge.csv", file_size=150_000_000, max_size=104_857_600)
    """

    def __init__(self, file_path: str, file_size: int, max_size: int):
        super().__init__(
            f"File too large: {file_size / (1024 * 1024):.1f} MB. "
            f"Files must be smaller than {max_size // (1024 * 1024)} MB",
            file_path
        )
        self.details.update({
            'file_size': file_size,
            'max_size': max_size
        })


class NoValidRowsError(ProfilerException):
    """CSV text has a header but no data row matching the header width."""

    def __init__(self, message: str = "No valid data rows found", column_count: Optional[int] = None):
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            details={'column_count': column_count}
        )


# ============================================================================
# Processing Errors
# ============================================================================

class ProcessingError(ProfilerException):
    """
    A pipeline step failed and the run was aborted.

    Attributes:
        stage (Optional[str]): Orchestrator stage that failed
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            details={'stage': stage} if stage else {},
            original_exception=original_exception
        )
        self.stage = stage


class ProcessingTimeoutError(ProcessingError):
    """Profiling exceeded its wall-clock budget."""

    def __init__(self, timeout: float, stage: Optional[str] = None):
        super().__init__(
            f"Processing timed out after {timeout:g} seconds",
            stage=stage
        )
        self.details['timeout'] = timeout
        self.timeout = timeout


class WorkerError(ProfilerException):
    """
    Background worker failed. Recoverable: work falls back to the event loop.

    Attributes:
        batch_id (Optional[str]): Request that failed
    """

    def __init__(
        self,
        message: str,
        batch_id: Optional[str] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.RECOVERABLE,
            details={'batch_id': batch_id} if batch_id else {},
            original_exception=original_exception
        )
        self.batch_id = batch_id


# ============================================================================
# External Collaborator Errors
# ============================================================================

class StorageError(ProfilerException):
    """
    Object store or version store operation failed.

    Attributes:
        operation (str): Operation that failed (download, get_version, ...)
        transient (bool): Whether retrying may succeed
    """

    def __init__(
        self,
        message: str,
        operation: str,
        transient: bool = True,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            details={'operation': operation, 'transient': transient},
            original_exception=original_exception
        )
        self.operation = operation
        self.transient = transient


class RemoteAnalysisError(ProfilerException):
    """Remote pre-analysis request failed or its result never arrived."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            details={'status_code': status_code} if status_code is not None else {},
            original_exception=original_exception
        )
        self.status_code = status_code
