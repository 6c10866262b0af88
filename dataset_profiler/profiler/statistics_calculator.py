"""
Statistics Calculator - per-column descriptive statistics.

Computes the profile of one column from its raw values and resolved type.
The calculation is a pure function of its inputs: running it twice on the
same column yields identical results.

Numeric columns (quantitative/numeric):
    min, max, mean, population std, skewness (third standardized moment),
    median and IQR outliers. Median and quartiles use fixed indices into the
    sorted values rather than interpolation:
        median = v[n // 2]
        Q1 = v[floor(n * 0.25)], Q3 = v[floor(n * 0.75)]
    Outliers are values strictly outside [Q1 - 1.5*IQR, Q3 + 1.5*IQR].
    The histogram bucket count starts from Sturges' rule and is adapted to
    the value range and cardinality, then clamped to [5, 20].

All other columns:
    frequency distribution keyed by the value's string form, and the mode
    (the first value reaching the highest count).

Every column also gets a raw-value type consistency breakdown.

Usage:
    calculator = StatisticsCalculator()
    info = calculator.calculate_column_stats([1, 2, 3, 4, 100], ColumnType.QUANTITATIVE, 'price')
    info.outliers    # 1
"""

import logging
import math
from collections import Counter
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from dataset_profiler.core.constants import (
    HISTOGRAM_EDGE_EPSILON,
    LOW_CARDINALITY_UNIQUE,
    MAX_HISTOGRAM_BUCKETS,
    MIN_HISTOGRAM_BUCKETS,
    NARROW_RANGE_LIMIT,
    NARROW_RANGE_MIN_UNIQUE,
    OUTLIER_IQR_MULTIPLIER,
    SKEWNESS_THRESHOLD,
    WIDE_RANGE_FACTOR,
    WIDE_RANGE_MAX_BUCKETS,
)
from dataset_profiler.profiler.profile_result import (
    ColumnInfo,
    ColumnType,
    HistogramBucket,
    OutlierBounds,
    TypeConsistency,
)
from dataset_profiler.profiler.values import is_missing, to_finite_number

logger = logging.getLogger(__name__)

_BOOLEAN_WORDS = frozenset({'true', 'false'})


def analyze_type_consistency(values: Sequence[Any]) -> TypeConsistency:
    """
    Count raw values by kind and flag columns mixing kinds.

    Kinds: null (missing), boolean (bool or 'true'/'false'), numeric (finite
    int/float) and string (anything else). A column is mixed when more than
    one of numeric/string/boolean occurs; its inconsistency ratio is the share
    of non-null values outside the most common kind.
    """
    result = TypeConsistency()
    for value in values:
        if is_missing(value):
            result.null += 1
        elif isinstance(value, bool) or (isinstance(value, str) and value.strip().lower() in _BOOLEAN_WORDS):
            result.boolean += 1
        elif isinstance(value, (int, float)) and math.isfinite(value):
            result.numeric += 1
        else:
            result.string += 1

    kinds = (result.numeric, result.string, result.boolean)
    non_null = sum(kinds)
    result.has_mixed_types = sum(1 for count in kinds if count > 0) > 1
    if result.has_mixed_types and non_null > 0:
        result.inconsistency_ratio = (non_null - max(kinds)) / non_null
    return result


def histogram_bucket_count(n: int, value_range: float, unique_count: int) -> int:
    """
    Adaptive histogram bucket count.

    Sturges' rule ceil(1 + log2(n)), then:
        - very wide range (range > 10 * n): at most 15
        - fewer than 10 unique values: one bucket per unique value
        - narrow range (< 10) with more than 5 unique values: up to 20
    and finally clamped to [5, 20].
    """
    buckets = math.ceil(1 + math.log2(n)) if n > 0 else MIN_HISTOGRAM_BUCKETS

    if value_range > n * WIDE_RANGE_FACTOR:
        buckets = min(buckets, WIDE_RANGE_MAX_BUCKETS)
    elif unique_count < LOW_CARDINALITY_UNIQUE:
        buckets = unique_count
    elif value_range < NARROW_RANGE_LIMIT and unique_count > NARROW_RANGE_MIN_UNIQUE:
        buckets = min(unique_count, MAX_HISTOGRAM_BUCKETS)

    return max(MIN_HISTOGRAM_BUCKETS, min(MAX_HISTOGRAM_BUCKETS, buckets))


def build_histogram(sorted_values: np.ndarray) -> List[HistogramBucket]:
    """
    Bucket sorted finite values into [start, end) intervals.

    The last bucket is closed on the right so the maximum is always counted.
    A zero range uses unit-width buckets starting at the single value.
    """
    n = len(sorted_values)
    if n == 0:
        return []

    low = float(sorted_values[0])
    high = float(sorted_values[-1])
    value_range = high - low
    unique_count = len(np.unique(sorted_values))
    buckets = histogram_bucket_count(n, value_range, unique_count)
    width = value_range / buckets if value_range > 0 else 1.0

    edges = [low + i * width for i in range(buckets + 1)]
    # Right edge nudged past max so the final comparison is inclusive
    search_edges = np.array(edges[1:-1] + [max(edges[-1], high + HISTOGRAM_EDGE_EPSILON)])
    indices = np.searchsorted(search_edges, sorted_values, side='right')
    counts = np.bincount(np.minimum(indices, buckets - 1), minlength=buckets)

    return [
        HistogramBucket(start=edges[i], end=edges[i + 1], count=int(counts[i]))
        for i in range(buckets)
    ]


def _distribution_key(value: Any) -> str:
    # 1 and 1.0 are the same value and share a key
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class StatisticsCalculator:
    """
    Column statistics with fixed-index quartiles and IQR outliers.

    Attributes:
        outlier_multiplier: IQR multiplier for the outlier fences
        skewness_threshold: |skewness| above which a column is flagged skewed
    """

    def __init__(
        self,
        outlier_multiplier: float = OUTLIER_IQR_MULTIPLIER,
        skewness_threshold: float = SKEWNESS_THRESHOLD
    ):
        self.outlier_multiplier = outlier_multiplier
        self.skewness_threshold = skewness_threshold

    @staticmethod
    def numeric_values(values: Sequence[Any]) -> np.ndarray:
        """Finite numeric values of a column, sorted ascending."""
        numbers = [to_finite_number(value) for value in values]
        return np.sort(np.array([x for x in numbers if x is not None], dtype=float))

    def outlier_bounds(self, sorted_values: np.ndarray) -> Optional[OutlierBounds]:
        """IQR fences from fixed-index quartiles; None for an empty column."""
        n = len(sorted_values)
        if n == 0:
            return None
        q1 = float(sorted_values[math.floor(n * 0.25)])
        q3 = float(sorted_values[math.floor(n * 0.75)])
        iqr = q3 - q1
        return OutlierBounds(
            lower=q1 - self.outlier_multiplier * iqr,
            q1=q1,
            q3=q3,
            upper=q3 + self.outlier_multiplier * iqr,
        )

    @staticmethod
    def _moments(sorted_values: np.ndarray) -> Tuple[float, float, float]:
        """Mean, population std and skewness."""
        n = len(sorted_values)
        mean = float(np.mean(sorted_values))
        if sorted_values[0] == sorted_values[-1]:
            return mean, 0.0, 0.0
        deviations = sorted_values - mean
        std = float(np.sqrt(np.mean(deviations ** 2)))
        if std == 0:
            return mean, 0.0, 0.0
        skewness = float(np.sum(deviations ** 3) / (n * std ** 3))
        return mean, std, skewness

    def calculate_column_stats(
        self,
        values: Sequence[Any],
        column_type: ColumnType,
        name: str,
        original_name: Optional[str] = None
    ) -> ColumnInfo:
        """
        Profile one column.

        Args:
            values: Raw column values, one per row
            column_type: Resolved column type
            name: Unique column identifier
            original_name: Header as it appears in the file

        Returns:
            ColumnInfo with the fields relevant to column_type filled in
        """
        column_type = ColumnType.parse(column_type)
        total = len(values)
        non_null = [value for value in values if not is_missing(value)]
        missing = total - len(non_null)

        info = ColumnInfo(
            name=name,
            original_name=original_name,
            type=column_type,
            non_null_count=len(non_null),
            unique_values=len(set(non_null)),
            missing_values=missing,
            missing_percent=100 * missing / total if total > 0 else 0.0,
            type_consistency=analyze_type_consistency(values),
        )

        if column_type.is_numeric:
            self._fill_numeric(info, non_null)
        else:
            self._fill_categorical(info, non_null)
        return info

    def _fill_numeric(self, info: ColumnInfo, non_null: List[Any]) -> None:
        sorted_values = self.numeric_values(non_null)
        n = len(sorted_values)
        if n == 0:
            logger.debug(f"Column '{info.name}' is numeric but has no finite values")
            info.outliers = 0
            return

        mean, std, skewness = self._moments(sorted_values)
        bounds = self.outlier_bounds(sorted_values)

        info.min = float(sorted_values[0])
        info.max = float(sorted_values[-1])
        info.mean = mean
        info.median = float(sorted_values[n // 2])
        info.std = std
        info.skewness = skewness
        info.is_skewed = abs(skewness) > self.skewness_threshold
        info.outlier_bounds = bounds
        info.outliers = int(np.sum(sorted_values < bounds.lower) + np.sum(sorted_values > bounds.upper))
        info.histogram = build_histogram(sorted_values)

    @staticmethod
    def _fill_categorical(info: ColumnInfo, non_null: List[Any]) -> None:
        frequencies = Counter(_distribution_key(value) for value in non_null)
        info.frequency_distribution = dict(frequencies)
        if frequencies:
            # max() keeps the first key reaching the top count
            info.mode = max(frequencies, key=frequencies.get)

    def get_outlier_mask(self, values: Sequence[Any], column_type: ColumnType) -> List[bool]:
        """
        Per-row outlier flags for a column.

        Non-numeric columns and non-numeric cells are never outliers.
        """
        if not ColumnType.parse(column_type).is_numeric:
            return [False] * len(values)

        bounds = self.outlier_bounds(self.numeric_values(values))
        if bounds is None:
            return [False] * len(values)

        mask = []
        for value in values:
            number = to_finite_number(value)
            mask.append(number is not None and (number < bounds.lower or number > bounds.upper))
        return mask

    def get_skewed_columns(
        self,
        columns: Sequence[ColumnInfo],
        threshold: Optional[float] = None
    ) -> List[str]:
        """Names of numeric columns whose |skewness| exceeds the threshold."""
        threshold = self.skewness_threshold if threshold is None else threshold
        return [
            column.name for column in columns
            if column.type.is_numeric and column.skewness is not None and abs(column.skewness) > threshold
        ]
