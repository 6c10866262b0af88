"""
Data quality scores for a profiled dataset.

Four component scores, each an integer percentage:
    completeness  share of non-missing cells
    uniqueness    share of rows that are not duplicates
    consistency   100 minus the mean per-column type inconsistency
    accuracy      mean share of non-outlier values over numeric columns
                  (90 when the dataset has no numeric column)

The overall score is the mean of the four. Scores round half up.
"""

import math
from typing import Iterable, List

from dataset_profiler.core.constants import DEFAULT_ACCURACY_SCORE, QUALITY_LABELS
from dataset_profiler.profiler.profile_result import ColumnInfo, Dataset, QualityScores


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up (62.5 -> 63)."""
    return math.floor(value + 0.5)


def quality_label(score: float) -> str:
    """Excellent (>= 90), Good (>= 80), Fair (>= 70), Poor (>= 50) or Very Poor."""
    for minimum, label in QUALITY_LABELS:
        if score >= minimum:
            return label
    return QUALITY_LABELS[-1][1]


def _accuracy(columns: Iterable[ColumnInfo]) -> int:
    scores: List[int] = []
    for column in columns:
        if not column.type.is_numeric or column.non_null_count == 0:
            continue
        outliers = column.outliers or 0
        scores.append(round_half_up((column.non_null_count - outliers) / column.non_null_count * 100))
    if not scores:
        return DEFAULT_ACCURACY_SCORE
    return round_half_up(sum(scores) / len(scores))


def calculate_quality_scores(dataset: Dataset) -> QualityScores:
    """
    Score a dataset.

    Statistics cover the in-memory rows, so the scores do too.
    An empty dataset scores 0 everywhere.
    """
    rows = dataset.sampled_row_count
    cells = rows * dataset.column_count
    if cells == 0:
        return QualityScores(label=quality_label(0))

    completeness = round_half_up((cells - dataset.missing_values_count) / cells * 100)
    uniqueness = round_half_up((rows - dataset.duplicate_rows_count) / rows * 100)

    ratios = [column.type_consistency.inconsistency_ratio for column in dataset.columns]
    consistency = round_half_up(100 * (1 - sum(ratios) / len(ratios))) if ratios else 100

    accuracy = _accuracy(dataset.columns)
    overall = round_half_up((completeness + uniqueness + consistency + accuracy) / 4)

    return QualityScores(
        completeness=completeness,
        uniqueness=uniqueness,
        consistency=consistency,
        accuracy=accuracy,
        overall=overall,
        label=quality_label(overall),
    )
