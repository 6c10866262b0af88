"""
Dataset performance analysis.

Classifies a dataset by size before profiling, suggests a sample size and
estimates the memory a full in-memory table would need. Advisory only: the
results are logged and shown, they never block processing.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import psutil

from dataset_profiler.core.constants import (
    BYTES_PER_CELL,
    LARGE_DATASET_COLUMNS,
    LARGE_DATASET_ROWS,
    VERY_LARGE_DATASET_COLUMNS,
    VERY_LARGE_DATASET_ROWS,
)

logger = logging.getLogger(__name__)

# Only this share of the available RAM is considered usable
MEMORY_SAFETY_MARGIN = 0.7


@dataclass
class PerformanceAnalysis:
    """Size classification and recommendations for one dataset."""
    columns: int
    rows: int
    is_large: bool
    is_very_large: bool
    should_use_sampling: bool
    recommended_sample_size: int
    estimated_memory_mb: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'columns': self.columns,
            'rows': self.rows,
            'is_large': self.is_large,
            'is_very_large': self.is_very_large,
            'should_use_sampling': self.should_use_sampling,
            'recommended_sample_size': self.recommended_sample_size,
            'estimated_memory_mb': round(self.estimated_memory_mb, 2),
            'recommendations': list(self.recommendations),
        }


def analyze_dataset_performance(columns: int, rows: int) -> PerformanceAnalysis:
    """
    Classify a dataset of the given shape.

    Large: more than 1,000 columns or 5,000 rows.
    Very large: more than 2,000 columns or 10,000 rows.

    Args:
        columns: Number of columns
        rows: Number of data rows

    Returns:
        PerformanceAnalysis
    """
    is_large = columns > LARGE_DATASET_COLUMNS or rows > LARGE_DATASET_ROWS
    is_very_large = columns > VERY_LARGE_DATASET_COLUMNS or rows > VERY_LARGE_DATASET_ROWS
    should_use_sampling = rows > LARGE_DATASET_ROWS

    if is_very_large:
        recommended = 2_000
    elif is_large:
        recommended = 3_000
    else:
        recommended = 5_000

    estimated_mb = columns * rows * BYTES_PER_CELL / (1024 * 1024)

    recommendations: List[str] = []
    if is_very_large:
        recommendations.append(
            f"Very large dataset ({columns:,} columns x {rows:,} rows): profiling runs on a sample"
        )
    elif is_large:
        recommendations.append(
            f"Large dataset ({columns:,} columns x {rows:,} rows): expect longer processing"
        )
    if columns > LARGE_DATASET_COLUMNS:
        recommendations.append("Consider profiling a subset of columns")
    if should_use_sampling:
        recommendations.append(f"Sampling {recommended:,} rows keeps statistics responsive")

    return PerformanceAnalysis(
        columns=columns,
        rows=rows,
        is_large=is_large,
        is_very_large=is_very_large,
        should_use_sampling=should_use_sampling,
        recommended_sample_size=recommended,
        estimated_memory_mb=estimated_mb,
        recommendations=recommendations,
    )


def check_memory_availability(required_mb: float) -> bool:
    """Whether the required memory fits within the usable share of available RAM."""
    available_mb = psutil.virtual_memory().available * MEMORY_SAFETY_MARGIN / (1024 * 1024)
    if required_mb > available_mb:
        logger.warning(
            f"Estimated {required_mb:,.1f} MB needed but only {available_mb:,.1f} MB available"
        )
        return False
    return True
