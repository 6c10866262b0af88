"""
Type Inferrer - column type classification with selectable granularity.

Two classifiers share one interface:

    COARSE: quantitative vs qualitative. A column is quantitative when at
        least 60% of its first 100 non-null values are numeric.
    FINE: numeric, boolean, datetime, categorical or text, checked in that
        order. Each of the first three needs at least 80% of the non-null
        values to match. Otherwise a column whose unique-value ratio is below
        0.2 is categorical and anything else is text.

A caller-supplied override always wins over inference, in either mode.

Usage:
    inferrer = TypeInferrer(Granularity.FINE)
    inferrer.infer([1, 2, 3, None])                   # ColumnType.NUMERIC
    inferrer.resolve(values, override='qualitative')  # ColumnType.QUALITATIVE
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from dataset_profiler.core.constants import (
    CATEGORICAL_UNIQUE_RATIO,
    COARSE_INFERENCE_SAMPLE_SIZE,
    COARSE_NUMERIC_RATIO,
    FINE_TYPE_RATIO,
)
from dataset_profiler.core.exceptions import ProfilerConfigError
from dataset_profiler.profiler.profile_result import ColumnType, Row
from dataset_profiler.profiler.values import is_boolean_like, is_missing, to_finite_number

logger = logging.getLogger(__name__)


class Granularity(str, Enum):
    """Which classifier TypeInferrer applies."""
    COARSE = "coarse"
    FINE = "fine"


class TypeInferrer:
    """
    Infer a ColumnType from a column's raw values.

    Attributes:
        DATE_PATTERNS: Regex patterns for common date formats (ISO, US, EU).
    """

    DATE_PATTERNS = [
        r'^\d{4}-\d{2}-\d{2}',  # ISO date (2024-01-15), optionally with time
        r'^\d{2}/\d{2}/\d{4}',  # US date (01/15/2024)
        r'^\d{2}-\d{2}-\d{4}',  # EU date (15-01-2024)
        r'^\d{4}/\d{2}/\d{2}',  # Alternative ISO (2024/01/15)
        r'^\d{1,2}\.\d{1,2}\.\d{4}',  # Dotted date (15.01.2024)
    ]

    def __init__(
        self,
        granularity: Union[Granularity, str] = Granularity.COARSE,
        coarse_sample_size: int = COARSE_INFERENCE_SAMPLE_SIZE,
        coarse_numeric_ratio: float = COARSE_NUMERIC_RATIO,
        fine_ratio: float = FINE_TYPE_RATIO,
        categorical_unique_ratio: float = CATEGORICAL_UNIQUE_RATIO
    ):
        try:
            self.granularity = Granularity(granularity)
        except ValueError:
            raise ProfilerConfigError(
                f"Unknown granularity '{granularity}'. Use 'coarse' or 'fine'",
                field='inference.granularity'
            )
        self.coarse_sample_size = coarse_sample_size
        self.coarse_numeric_ratio = coarse_numeric_ratio
        self.fine_ratio = fine_ratio
        self.categorical_unique_ratio = categorical_unique_ratio
        self._date_regexes = [re.compile(p) for p in self.DATE_PATTERNS]

    def detect_value_type(self, value: Any) -> str:
        """
        Classify a single value.

        Returns:
            'null', 'numeric', 'boolean', 'datetime' or 'string'
        """
        if is_missing(value):
            return 'null'
        if to_finite_number(value) is not None:
            return 'numeric'
        if is_boolean_like(value):
            return 'boolean'
        if isinstance(value, str) and self._is_date_like(value.strip()):
            return 'datetime'
        return 'string'

    def _is_date_like(self, value: str) -> bool:
        return any(regex.match(value) for regex in self._date_regexes)

    def infer(self, values: Sequence[Any]) -> ColumnType:
        """Infer the type of one column with the configured granularity."""
        if self.granularity == Granularity.FINE:
            return self._infer_fine(values)
        return self._infer_coarse(values)

    def _infer_coarse(self, values: Sequence[Any]) -> ColumnType:
        sample: List[Any] = []
        for value in values:
            if not is_missing(value):
                sample.append(value)
                if len(sample) >= self.coarse_sample_size:
                    break

        if not sample:
            return ColumnType.QUALITATIVE

        numeric = sum(1 for value in sample if to_finite_number(value) is not None)
        if numeric / len(sample) >= self.coarse_numeric_ratio:
            return ColumnType.QUANTITATIVE
        return ColumnType.QUALITATIVE

    def _infer_fine(self, values: Sequence[Any]) -> ColumnType:
        non_null = [value for value in values if not is_missing(value)]
        if not non_null:
            return ColumnType.TEXT

        total = len(non_null)
        counts = {'numeric': 0, 'boolean': 0, 'datetime': 0}
        for value in non_null:
            detected = self.detect_value_type(value)
            if detected in counts:
                counts[detected] += 1

        if counts['numeric'] / total >= self.fine_ratio:
            return ColumnType.NUMERIC
        if counts['boolean'] / total >= self.fine_ratio:
            return ColumnType.BOOLEAN
        if counts['datetime'] / total >= self.fine_ratio:
            return ColumnType.DATETIME

        unique_ratio = len(set(non_null)) / total
        if unique_ratio < self.categorical_unique_ratio:
            return ColumnType.CATEGORICAL
        return ColumnType.TEXT

    def resolve(
        self,
        values: Sequence[Any],
        override: Optional[Union[ColumnType, str]] = None
    ) -> ColumnType:
        """
        Return the override when given, otherwise the inferred type.

        Raises:
            ProfilerConfigError: If override names no known type
        """
        if override is not None:
            return ColumnType.parse(override)
        return self.infer(values)

    def infer_columns(
        self,
        rows: Sequence[Row],
        column_names: Sequence[str],
        overrides: Optional[Mapping[str, Union[ColumnType, str]]] = None
    ) -> Dict[str, ColumnType]:
        """
        Resolve the type of every column.

        Args:
            rows: Parsed rows
            column_names: Unique column identifiers, one per row position
            overrides: Column identifier -> type taking precedence over inference

        Returns:
            Column identifier -> ColumnType, in column order
        """
        overrides = overrides or {}
        types: Dict[str, ColumnType] = {}
        for index, name in enumerate(column_names):
            column = [row[index] for row in rows]
            types[name] = self.resolve(column, overrides.get(name))
        if overrides:
            logger.debug(f"Applied type overrides for {sorted(overrides)}")
        return types
