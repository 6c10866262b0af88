"""
Header Normalizer - unique, stable column identifiers for CSV headers.

CSV files frequently repeat header names ("value", "value") or leave them
blank. Profiling results are keyed by column, so every column needs an
identifier that is unique within the file while the original header is kept
for display.

Identifier rules:
    - The first occurrence of a header keeps the header itself
    - Later occurrences become "<header>_<n>" where n is the occurrence number
      (2, 3, ...), skipping any candidate another column already uses
    - A blank header becomes "column_<position>" (1-based)

Usage:
    normalizer = HeaderNormalizer()
    headers = normalizer.normalize(['id', 'value', 'value'])
    headers.unique    # ['id', 'value', 'value_2']
    headers.mapping.id_to_original['value_2']    # 'value'
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence, Set, Union

from dataset_profiler.profiler.profile_result import ColumnMapping
from dataset_profiler.profiler.values import clean_cell

logger = logging.getLogger(__name__)


@dataclass
class NormalizedHeaders:
    """Original headers, their unique identifiers (same order) and the mapping."""
    original: List[str]
    unique: List[str]
    mapping: ColumnMapping

    def __len__(self) -> int:
        return len(self.unique)


class HeaderNormalizer:
    """Generate unique column identifiers from a header line."""

    def __init__(self, blank_prefix: str = 'column'):
        self.blank_prefix = blank_prefix

    def split(self, header_line: str, separator: str) -> List[str]:
        """Split a raw header line and clean each cell."""
        return [clean_cell(cell) for cell in header_line.split(separator)]

    def normalize(self, headers: Union[str, Sequence[str]], separator: str = ',') -> NormalizedHeaders:
        """
        Build unique identifiers for a header sequence.

        Args:
            headers: Raw header line, or already split header cells
            separator: Separator used when headers is a raw line

        Returns:
            NormalizedHeaders where unique[i] identifies original[i]
        """
        if isinstance(headers, str):
            original = self.split(headers, separator)
        else:
            original = [clean_cell(str(h)) for h in headers]

        counts = Counter(original)
        # Reserve every non-blank header first so a generated suffix never
        # steals a name that appears literally later in the file
        taken: Set[str] = {h for h in original if h}
        seen: Counter = Counter()
        used: Set[str] = set()
        unique: List[str] = []

        for position, header in enumerate(original, start=1):
            seen[header] += 1
            if not header:
                candidate = self._next_free(f"{self.blank_prefix}_{position}", taken | used)
            elif seen[header] == 1:
                candidate = header
            else:
                candidate = self._next_free(f"{header}_{seen[header]}", taken | used, header, seen[header])
            used.add(candidate)
            unique.append(candidate)

        mapping = ColumnMapping()
        for identifier, header in zip(unique, original):
            mapping.id_to_original[identifier] = header
            mapping.original_to_ids.setdefault(header, []).append(identifier)
        mapping.duplicate_info = {header: n for header, n in counts.items() if n > 1}

        if mapping.duplicate_info:
            logger.info(f"Renamed duplicate headers: {mapping.duplicate_info}")

        return NormalizedHeaders(original=original, unique=unique, mapping=mapping)

    @staticmethod
    def _next_free(candidate: str, occupied: Set[str], base: str = None, start: int = 0) -> str:
        """Return candidate, or the next free '<base>_<n>' / '<candidate>_<n>' variant."""
        if candidate not in occupied:
            return candidate
        stem = base if base is not None else candidate
        n = start + 1 if base is not None else 2
        while f"{stem}_{n}" in occupied:
            n += 1
        return f"{stem}_{n}"


def normalize_headers(header_line: str, separator: str = ',') -> NormalizedHeaders:
    """Normalize a raw header line with the default normalizer."""
    return HeaderNormalizer().normalize(header_line, separator)
