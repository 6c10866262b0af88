"""
Sampling utilities for memory-bounded profiling.

Two deterministic strategies are used:

    - QuartileSampler keeps rows for profiling. It takes the first quarter,
      a middle half centred on the file's midpoint, and the last quarter of
      the sample budget, so ordered files (by date, by id) still show their
      beginning, middle and end.
    - StrideSampler keeps every k-th row for correlation, where only an
      even spread across the rows matters.

Both are pure: the same input always yields the same sample.
"""

import math
from typing import List, Sequence, TypeVar

from dataset_profiler.core.constants import (
    DEFAULT_MAX_ROWS,
    LARGE_FILE_MAX_ROWS,
    LARGE_FILE_ROW_THRESHOLD,
    VERY_LARGE_FILE_MAX_ROWS,
    VERY_LARGE_FILE_ROW_THRESHOLD,
)

T = TypeVar('T')


def adaptive_sample_size(total_rows: int, default_size: int = DEFAULT_MAX_ROWS) -> int:
    """
    Rows to keep in memory for a file with total_rows data rows.

    Larger files get smaller budgets: 10,000 rows normally, 7,500 above
    50,000 rows and 5,000 above 100,000 rows. A default_size below the
    reduced budget wins.
    """
    if total_rows > VERY_LARGE_FILE_ROW_THRESHOLD:
        return min(default_size, VERY_LARGE_FILE_MAX_ROWS)
    if total_rows > LARGE_FILE_ROW_THRESHOLD:
        return min(default_size, LARGE_FILE_MAX_ROWS)
    return default_size


class QuartileSampler:
    """
    First-quarter / middle-half / last-quarter sampler.

    Example:
        >>> sampler = QuartileSampler(sample_size=8)
        >>> sampler.select_indices(100)
        [0, 1, 48, 49, 50, 51, 98, 99]
    """

    def __init__(self, sample_size: int = DEFAULT_MAX_ROWS):
        if sample_size <= 0:
            raise ValueError("sample_size must be positive")
        self.sample_size = sample_size

    def needs_sampling(self, total: int) -> bool:
        return total > self.sample_size

    def select_indices(self, total: int) -> List[int]:
        """
        Indices of the kept items, ascending.

        Args:
            total: Number of items available

        Returns:
            All indices when total fits in the budget, otherwise the three
            disjoint slices described in the module docstring
        """
        if not self.needs_sampling(total):
            return list(range(total))

        quarter = self.sample_size // 4
        half = self.sample_size // 2
        # Rounding remainder goes to the tail so exactly sample_size items are kept
        tail_size = self.sample_size - quarter - half
        middle_start = min(max(total // 2 - quarter, quarter), total - tail_size - half)

        head = range(0, quarter)
        middle = range(middle_start, middle_start + half)
        tail = range(total - tail_size, total)
        return [*head, *middle, *tail]

    def sample(self, items: Sequence[T]) -> List[T]:
        return [items[i] for i in self.select_indices(len(items))]


class StrideSampler:
    """Keep every k-th item, k = ceil(total / max_items)."""

    def __init__(self, max_items: int):
        if max_items <= 0:
            raise ValueError("max_items must be positive")
        self.max_items = max_items

    def step(self, total: int) -> int:
        if total <= self.max_items:
            return 1
        return math.ceil(total / self.max_items)

    def select_indices(self, total: int) -> List[int]:
        return list(range(0, total, self.step(total)))

    def sample(self, items: Sequence[T]) -> List[T]:
        step = self.step(len(items))
        return list(items[::step]) if step > 1 else list(items)
