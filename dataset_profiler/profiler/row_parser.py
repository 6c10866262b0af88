"""
Row Parser - split CSV text into typed rows.

The parser is deliberately simple: one line is one row and cells are split on
the separator without quote-aware splitting. Each cell is trimmed, unquoted and
coerced (see values.coerce_cell). Rows whose width differs from the header are
dropped silently; the count of dropped rows is logged and returned, never
raised.

Large files are sampled before parsing with QuartileSampler. total_rows always
reports the number of data lines in the file, including lines later dropped
for a width mismatch.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from dataset_profiler.core.constants import DEFAULT_MAX_ROWS
from dataset_profiler.core.exceptions import NoValidRowsError
from dataset_profiler.profiler.headers import HeaderNormalizer, NormalizedHeaders
from dataset_profiler.profiler.profile_result import Row
from dataset_profiler.profiler.sampling_utils import QuartileSampler, adaptive_sample_size
from dataset_profiler.profiler.separator import detect_separator
from dataset_profiler.profiler.values import coerce_cell

logger = logging.getLogger(__name__)


@dataclass
class ParsedCSV:
    """
    Parser output.

    Attributes:
        headers: Original headers, unique identifiers and their mapping
        rows: Parsed rows, one value per header
        total_rows: Data lines in the file (before sampling and dropping)
        is_sampled: Whether rows were drawn from a sample of the lines
        separator: Separator used to split lines
        dropped_rows: Sampled lines discarded for a width mismatch
    """
    headers: NormalizedHeaders
    rows: List[Row]
    total_rows: int
    is_sampled: bool
    separator: str
    dropped_rows: int = 0

    @property
    def column_count(self) -> int:
        return len(self.headers)


def split_lines(text: str) -> List[str]:
    """Split text into lines, dropping surrounding whitespace and blank lines."""
    return [line for line in text.strip().split('\n') if line.strip()]


def parse_row(line: str, separator: str, expected_columns: int) -> Optional[Row]:
    """Parse one data line; None when its width does not match the header."""
    cells = line.split(separator)
    if len(cells) != expected_columns:
        return None
    return [coerce_cell(cell) for cell in cells]


def parse_csv(
    text: str,
    separator: Optional[str] = None,
    max_rows: int = DEFAULT_MAX_ROWS,
    header_normalizer: Optional[HeaderNormalizer] = None
) -> ParsedCSV:
    """
    Parse CSV text into headers and typed rows.

    Args:
        text: Full file text
        separator: ',' or ';'; detected from the text when omitted
        max_rows: In-memory row budget before large-file reductions
        header_normalizer: Normalizer for the header line

    Returns:
        ParsedCSV

    Raises:
        NoValidRowsError: If the text has no data row matching the header width
    """
    lines = split_lines(text)
    if not lines:
        raise NoValidRowsError("CSV file is empty")

    separator = separator or detect_separator(text)
    normalizer = header_normalizer or HeaderNormalizer()
    headers = normalizer.normalize(lines[0], separator)
    expected = len(headers)

    data_lines = lines[1:]
    total_rows = len(data_lines)
    sampler = QuartileSampler(adaptive_sample_size(total_rows, max_rows))
    is_sampled = sampler.needs_sampling(total_rows)
    if is_sampled:
        logger.info(f"Sampling {sampler.sample_size:,} of {total_rows:,} rows")

    rows: List[Row] = []
    dropped = 0
    for index in sampler.select_indices(total_rows):
        row = parse_row(data_lines[index], separator, expected)
        if row is None:
            dropped += 1
            continue
        rows.append(row)

    if dropped:
        logger.debug(f"Dropped {dropped:,} rows with a column count other than {expected}")

    if not rows:
        raise NoValidRowsError(column_count=expected)

    return ParsedCSV(
        headers=headers,
        rows=rows,
        total_rows=total_rows,
        is_sampled=is_sampled,
        separator=separator,
        dropped_rows=dropped,
    )
