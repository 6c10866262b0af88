"""
Duplicate Detector - duplicate rows and duplicate columns.

Both checks run over bounded samples taken from the start of the in-memory
rows, so on large datasets the counts are an approximation (a lower bound of
the true count). DuplicateReport records how many rows were examined and
exposes is_exact so consumers can tell the two cases apart.

Rows are compared by value: two rows are duplicates when every cell is equal
(None equals None, 1 equals 1.0, 1 does not equal "1").

Columns are compared pairwise over the sample. A column counts as a duplicate
when some later column holds the same values on every sampled row. Each
column is counted at most once, so three identical columns yield a count of 2.
"""

import logging
from typing import Optional, Sequence

from dataset_profiler.core.constants import DUPLICATE_COLUMN_SAMPLE_SIZE, DUPLICATE_ROW_SAMPLE_SIZE
from dataset_profiler.profiler.profile_result import DuplicateReport, Row

logger = logging.getLogger(__name__)


class DuplicateDetector:
    """
    Count duplicate rows and columns over bounded samples.

    Attributes:
        row_sample_size: Leading rows hashed for the row check
        column_sample_size: Leading rows compared for the column check
    """

    def __init__(
        self,
        row_sample_size: int = DUPLICATE_ROW_SAMPLE_SIZE,
        column_sample_size: int = DUPLICATE_COLUMN_SAMPLE_SIZE
    ):
        self.row_sample_size = row_sample_size
        self.column_sample_size = column_sample_size

    def count_duplicate_rows(self, rows: Sequence[Row]) -> int:
        """Rows in the sample identical to an earlier row."""
        seen = set()
        duplicates = 0
        for row in rows[:self.row_sample_size]:
            key = tuple(row)
            if key in seen:
                duplicates += 1
            else:
                seen.add(key)
        return duplicates

    def count_duplicate_columns(self, rows: Sequence[Row], column_count: int) -> int:
        """Columns whose sampled values equal those of a later column."""
        sample = rows[:self.column_sample_size]
        if not sample:
            return 0

        columns = [tuple(row[index] for row in sample) for index in range(column_count)]
        duplicates = 0
        for i in range(column_count):
            for j in range(i + 1, column_count):
                if columns[i] == columns[j]:
                    duplicates += 1
                    break
        return duplicates

    def detect(self, rows: Sequence[Row], column_count: int, total_rows: Optional[int] = None) -> DuplicateReport:
        """
        Run both checks.

        Args:
            rows: Parsed rows
            column_count: Number of columns per row
            total_rows: Rows in the full dataset when rows is itself a sample

        Returns:
            DuplicateReport with counts and sample sizes
        """
        report = DuplicateReport(
            duplicate_rows=self.count_duplicate_rows(rows),
            duplicate_columns=self.count_duplicate_columns(rows, column_count),
            rows_examined=min(len(rows), self.row_sample_size),
            column_rows_examined=min(len(rows), self.column_sample_size),
            total_rows=len(rows) if total_rows is None else total_rows,
        )
        if not report.is_exact:
            logger.debug(
                f"Duplicate counts are approximate: examined {report.rows_examined:,} rows "
                f"and {report.column_rows_examined:,} rows for columns out of {report.total_rows:,}"
            )
        return report
