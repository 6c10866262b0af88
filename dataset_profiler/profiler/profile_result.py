"""
Data structures for storing profiling results.

Contains the Dataset produced by one profiling run and its parts: per-column
profiles, the header mapping, duplicate and correlation results and quality
scores. Every structure serializes through to_dict().
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Optional, Union
import numpy as np

from dataset_profiler.core.exceptions import ProfilerConfigError

# A parsed cell: missing, number or trimmed string
CellValue = Union[None, int, float, str]
Row = List[CellValue]


def convert_numpy_types(obj):
    """
    Recursively convert numpy types to Python native types for JSON serialization.

    Args:
        obj: Any object that might contain numpy types

    Returns:
        Object with numpy types converted to Python types
    """
    if isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, dict):
        return {key: convert_numpy_types(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_numpy_types(item) for item in obj]
    elif isinstance(obj, tuple):
        return tuple(convert_numpy_types(item) for item in obj)
    else:
        return obj


class ColumnType(str, Enum):
    """
    Column type tags.

    QUANTITATIVE and QUALITATIVE form the coarse split. The remaining five
    tags form the fine split.
    """
    QUANTITATIVE = "quantitative"
    QUALITATIVE = "qualitative"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    CATEGORICAL = "categorical"
    TEXT = "text"

    @property
    def is_numeric(self) -> bool:
        """True for types profiled with numeric statistics."""
        return self in (ColumnType.QUANTITATIVE, ColumnType.NUMERIC)

    @property
    def is_categorical_like(self) -> bool:
        """True for types whose values form a small set of labels."""
        return self in (ColumnType.QUALITATIVE, ColumnType.CATEGORICAL, ColumnType.BOOLEAN)

    @classmethod
    def parse(cls, value: Union[str, "ColumnType"]) -> "ColumnType":
        """
        Resolve a tag from its name or value, case-insensitively.

        Raises:
            ProfilerConfigError: If the value names no known type
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        valid = ', '.join(member.value for member in cls)
        raise ProfilerConfigError(f"Unknown column type '{value}'. Valid types: {valid}")


@dataclass
class OutlierBounds:
    """IQR fences computed from fixed-index quartiles."""
    lower: float
    q1: float
    q3: float
    upper: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "lower": float(self.lower),
            "q1": float(self.q1),
            "q3": float(self.q3),
            "upper": float(self.upper),
        }


@dataclass
class HistogramBucket:
    """One histogram bucket covering [start, end)."""
    start: float
    end: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"start": float(self.start), "end": float(self.end), "count": int(self.count)}


@dataclass
class TypeConsistency:
    """
    Raw-value type breakdown of one column.

    Attributes:
        numeric: Count of finite numbers
        string: Count of non-empty strings that are not boolean words
        boolean: Count of booleans and 'true'/'false' strings
        null: Count of missing values
        has_mixed_types: More than one of numeric/string/boolean present
        inconsistency_ratio: Share of non-null values outside the majority type
    """
    numeric: int = 0
    string: int = 0
    boolean: int = 0
    null: int = 0
    has_mixed_types: bool = False
    inconsistency_ratio: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "numeric": self.numeric,
            "string": self.string,
            "boolean": self.boolean,
            "null": self.null,
            "has_mixed_types": self.has_mixed_types,
            "inconsistency_ratio": round(float(self.inconsistency_ratio), 4),
        }


@dataclass
class ColumnInfo:
    """
    Profile of one column.

    missing_values + non_null_count always equals the number of rows the
    statistics were computed over.
    """
    name: str
    type: ColumnType
    original_name: Optional[str] = None
    non_null_count: int = 0
    unique_values: int = 0
    missing_values: int = 0
    missing_percent: float = 0.0

    # Numeric statistics
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    median: Optional[float] = None
    std: Optional[float] = None
    skewness: Optional[float] = None
    is_skewed: Optional[bool] = None
    outliers: Optional[int] = None
    outlier_bounds: Optional[OutlierBounds] = None
    histogram: List[HistogramBucket] = field(default_factory=list)

    # Categorical statistics
    mode: Optional[Any] = None
    frequency_distribution: Dict[str, int] = field(default_factory=dict)

    type_consistency: TypeConsistency = field(default_factory=TypeConsistency)

    @property
    def display_name(self) -> str:
        return self.original_name if self.original_name is not None else self.name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "name": self.name,
            "original_name": self.original_name,
            "type": self.type.value,
            "non_null_count": self.non_null_count,
            "unique_values": self.unique_values,
            "missing_values": self.missing_values,
            "missing_percent": float(self.missing_percent),
            "type_consistency": self.type_consistency.to_dict(),
        }

        if self.type.is_numeric:
            result.update({
                "min": self.min,
                "max": self.max,
                "mean": self.mean,
                "median": self.median,
                "std": self.std,
                "skewness": self.skewness,
                "is_skewed": self.is_skewed,
                "outliers": self.outliers,
                "outlier_bounds": self.outlier_bounds.to_dict() if self.outlier_bounds else None,
                "histogram": [bucket.to_dict() for bucket in self.histogram],
            })
        else:
            result.update({
                "mode": self.mode,
                "frequency_distribution": dict(self.frequency_distribution),
            })

        return convert_numpy_types(result)


@dataclass
class ColumnMapping:
    """
    Bidirectional map between unique column identifiers and header strings.

    Attributes:
        id_to_original: Unique identifier -> original header
        original_to_ids: Original header -> identifiers generated for it
        duplicate_info: Original header -> occurrence count, repeated headers only
    """
    id_to_original: Dict[str, str] = field(default_factory=dict)
    original_to_ids: Dict[str, List[str]] = field(default_factory=dict)
    duplicate_info: Dict[str, int] = field(default_factory=dict)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicate_info)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id_to_original": dict(self.id_to_original),
            "original_to_ids": {k: list(v) for k, v in self.original_to_ids.items()},
            "duplicate_info": dict(self.duplicate_info),
        }


@dataclass
class CorrelationSamplingInfo:
    """How much of the dataset the correlation matrix was computed over."""
    original_rows: int = 0
    sampled_rows: int = 0
    original_columns: int = 0
    processed_columns: int = 0

    @property
    def was_reduced(self) -> bool:
        return (self.sampled_rows < self.original_rows
                or self.processed_columns < self.original_columns)

    def to_dict(self) -> Dict[str, int]:
        return {
            "original_rows": self.original_rows,
            "sampled_rows": self.sampled_rows,
            "original_columns": self.original_columns,
            "processed_columns": self.processed_columns,
        }


@dataclass
class CorrelationResult:
    """
    Pearson correlation matrix over the included numeric columns.

    matrix is square, symmetric, has a unit diagonal and holds no NaN.
    labels are unique column identifiers. display_labels are the original
    headers in the same order.
    """
    labels: List[str] = field(default_factory=list)
    matrix: List[List[float]] = field(default_factory=list)
    display_labels: List[str] = field(default_factory=list)
    sampling_info: CorrelationSamplingInfo = field(default_factory=CorrelationSamplingInfo)

    def get(self, first: str, second: str) -> float:
        """Look up the coefficient for two labels."""
        i = self.labels.index(first)
        j = self.labels.index(second)
        return self.matrix[i][j]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labels": list(self.labels),
            "display_labels": list(self.display_labels),
            "matrix": convert_numpy_types(self.matrix),
            "sampling_info": self.sampling_info.to_dict(),
        }


@dataclass
class DuplicateReport:
    """
    Duplicate row and column counts.

    Counts are taken over bounded samples. is_exact is False when a sample
    cap truncated the rows examined, in which case the counts are a lower
    bound for the full dataset.
    """
    duplicate_rows: int = 0
    duplicate_columns: int = 0
    rows_examined: int = 0
    column_rows_examined: int = 0
    total_rows: int = 0

    @property
    def is_exact(self) -> bool:
        return self.rows_examined >= self.total_rows and self.column_rows_examined >= self.total_rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duplicate_rows": self.duplicate_rows,
            "duplicate_columns": self.duplicate_columns,
            "rows_examined": self.rows_examined,
            "column_rows_examined": self.column_rows_examined,
            "total_rows": self.total_rows,
            "is_exact": self.is_exact,
        }


@dataclass
class QualityScores:
    """Data quality scores, each 0-100."""
    completeness: int = 0
    uniqueness: int = 0
    consistency: int = 0
    accuracy: int = 0
    overall: int = 0
    label: str = "Very Poor"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completeness": self.completeness,
            "uniqueness": self.uniqueness,
            "consistency": self.consistency,
            "accuracy": self.accuracy,
            "overall": self.overall,
            "label": self.label,
        }


@dataclass
class Dataset:
    """
    Profiling result for one file.

    row_count is the number of data rows in the file. rows holds the parsed
    rows kept in memory, which is a sample when is_sampled is True. Column
    statistics are computed over rows.

    Attributes:
        filename: Name of the profiled file
        column_names: Unique column identifiers in header order
        original_column_names: Header strings as they appear in the file
        column_mapping: Identifier/header mapping
        row_count: True total number of data rows
        rows: Parsed rows held in memory
        is_sampled: Whether rows is a sample of the file
        separator: Detected or supplied separator
        columns: Per-column profiles in header order
        missing_values_count: Sum of per-column missing counts
        duplicates: Duplicate row/column report
        data_types: Type tag -> number of columns
        correlation: Correlation matrix over numeric columns
        quality: Data quality scores
    """
    filename: str
    column_names: List[str]
    original_column_names: List[str]
    column_mapping: ColumnMapping
    row_count: int
    rows: List[Row]
    is_sampled: bool = False
    separator: str = ","
    columns: List[ColumnInfo] = field(default_factory=list)
    missing_values_count: int = 0
    duplicates: DuplicateReport = field(default_factory=DuplicateReport)
    data_types: Dict[str, int] = field(default_factory=dict)
    correlation: CorrelationResult = field(default_factory=CorrelationResult)
    quality: Optional[QualityScores] = None

    @property
    def sampled_row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.column_names)

    @property
    def duplicate_rows_count(self) -> int:
        return self.duplicates.duplicate_rows

    @property
    def duplicate_columns_count(self) -> int:
        return self.duplicates.duplicate_columns

    @property
    def column_types(self) -> Dict[str, ColumnType]:
        """Column identifier -> resolved type."""
        return {column.name: column.type for column in self.columns}

    def get_column(self, name: str) -> ColumnInfo:
        """Return a column profile by unique identifier or original header."""
        for column in self.columns:
            if column.name == name:
                return column
        for column in self.columns:
            if column.original_name == name:
                return column
        raise KeyError(name)

    def to_dict(self, include_rows: bool = False) -> Dict[str, Any]:
        """
        Convert to dictionary representation.

        Args:
            include_rows: Also emit the in-memory rows (can be large)
        """
        result = {
            "filename": self.filename,
            "column_names": list(self.column_names),
            "original_column_names": list(self.original_column_names),
            "column_mapping": self.column_mapping.to_dict(),
            "row_count": self.row_count,
            "sampled_row_count": self.sampled_row_count,
            "is_sampled": self.is_sampled,
            "separator": self.separator,
            "columns": [column.to_dict() for column in self.columns],
            "missing_values_count": self.missing_values_count,
            "duplicate_rows_count": self.duplicate_rows_count,
            "duplicate_columns_count": self.duplicate_columns_count,
            "duplicates": self.duplicates.to_dict(),
            "data_types": dict(self.data_types),
            "correlation": self.correlation.to_dict(),
            "quality": self.quality.to_dict() if self.quality else None,
        }
        if include_rows:
            result["rows"] = [list(row) for row in self.rows]
        return convert_numpy_types(result)
