"""
Correlation Engine - Pearson correlation matrix over numeric columns.

Fidelity trade-offs, applied for bounded cost on wide or long datasets:
    - Only the first max_columns numeric columns (in header order) are included
    - Rows are stride-sampled down to at most max_rows

Each pair of columns is correlated over the rows where both values are
finite numbers. A pair with fewer than two such rows, or with zero variance
in either column, gets 0. The matrix is built from its upper triangle and
mirrored, so it is exactly symmetric, and its diagonal is exactly 1.
"""

import logging
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from dataset_profiler.core.constants import (
    MAX_CORRELATION_COLUMNS,
    MAX_CORRELATION_ROWS,
    MODERATE_CORRELATION,
    STRONG_CORRELATION,
    WEAK_CORRELATION,
)
from dataset_profiler.profiler.profile_result import (
    ColumnType,
    CorrelationResult,
    CorrelationSamplingInfo,
    Row,
)
from dataset_profiler.profiler.sampling_utils import StrideSampler
from dataset_profiler.profiler.values import to_finite_number

logger = logging.getLogger(__name__)


def describe_strength(coefficient: float) -> str:
    """
    Human-readable strength of a correlation coefficient.

    Example:
        >>> describe_strength(-0.82)
        'Strong negative correlation'
    """
    magnitude = abs(coefficient)
    direction = 'positive' if coefficient > 0 else 'negative'
    if magnitude >= STRONG_CORRELATION:
        return f"Strong {direction} correlation"
    if magnitude >= MODERATE_CORRELATION:
        return f"Moderate {direction} correlation"
    if magnitude >= WEAK_CORRELATION:
        return f"Weak {direction} correlation"
    return "Very weak or no correlation"


def top_pairs(
    result: CorrelationResult,
    limit: int = 10,
    min_abs: float = 0.0
) -> List[Tuple[str, str, float]]:
    """Distinct column pairs ordered by |coefficient|, strongest first."""
    pairs = []
    for i, first in enumerate(result.labels):
        for j in range(i + 1, len(result.labels)):
            coefficient = result.matrix[i][j]
            if abs(coefficient) >= min_abs:
                pairs.append((first, result.labels[j], coefficient))
    pairs.sort(key=lambda pair: abs(pair[2]), reverse=True)
    return pairs[:limit]


class CorrelationEngine:
    """
    Compute a capped, sampled Pearson correlation matrix.

    Attributes:
        max_columns: Most numeric columns included
        max_rows: Most rows used, stride-sampled
    """

    def __init__(self, max_columns: int = MAX_CORRELATION_COLUMNS, max_rows: int = MAX_CORRELATION_ROWS):
        self.max_columns = max_columns
        self.max_rows = max_rows

    @staticmethod
    def numeric_column_indices(
        column_names: Sequence[str],
        column_types: Mapping[str, Union[ColumnType, str]]
    ) -> List[int]:
        return [
            index for index, name in enumerate(column_names)
            if name in column_types and ColumnType.parse(column_types[name]).is_numeric
        ]

    def calculate(
        self,
        rows: Sequence[Row],
        column_names: Sequence[str],
        column_types: Mapping[str, Union[ColumnType, str]],
        display_names: Optional[Sequence[str]] = None
    ) -> CorrelationResult:
        """
        Correlate the numeric columns of a table.

        Args:
            rows: Parsed rows
            column_names: Unique column identifiers
            column_types: Column identifier -> resolved type
            display_names: Original headers, parallel to column_names

        Returns:
            CorrelationResult (empty matrix when there are no numeric columns)
        """
        display_names = list(display_names) if display_names is not None else list(column_names)
        numeric = self.numeric_column_indices(column_names, column_types)
        selected = numeric[:self.max_columns]
        if len(numeric) > len(selected):
            logger.info(
                f"Correlating the first {len(selected)} of {len(numeric)} numeric columns"
            )

        sampled_rows = StrideSampler(self.max_rows).sample(rows)
        sampling_info = CorrelationSamplingInfo(
            original_rows=len(rows),
            sampled_rows=len(sampled_rows),
            original_columns=len(numeric),
            processed_columns=len(selected),
        )

        labels = [column_names[i] for i in selected]
        result = CorrelationResult(
            labels=labels,
            display_labels=[display_names[i] for i in selected],
            sampling_info=sampling_info,
        )
        if not selected:
            return result

        result.matrix = self._pearson_matrix(sampled_rows, selected, labels).tolist()
        return result

    @staticmethod
    def _pearson_matrix(rows: Sequence[Row], indices: List[int], labels: List[str]) -> np.ndarray:
        data = np.full((len(rows), len(indices)), np.nan)
        for r, row in enumerate(rows):
            for c, index in enumerate(indices):
                number = to_finite_number(row[index])
                if number is not None:
                    data[r, c] = number

        # Pairwise-complete Pearson; NaN where < 2 pairs or zero variance
        frame = pd.DataFrame(data, columns=labels)
        raw = frame.corr(method='pearson', min_periods=2).to_numpy()

        upper = np.triu(np.nan_to_num(raw, nan=0.0, posinf=0.0, neginf=0.0), k=1)
        upper = np.clip(upper, -1.0, 1.0)
        matrix = upper + upper.T
        np.fill_diagonal(matrix, 1.0)
        return matrix
