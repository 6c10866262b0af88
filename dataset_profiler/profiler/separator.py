"""Comma/semicolon separator detection from the first lines of a CSV."""

import logging
from typing import List

import numpy as np

from dataset_profiler.core.constants import (
    DEFAULT_SEPARATOR,
    SEPARATOR_DOMINANCE_RATIO,
    SEPARATOR_SAMPLE_LINES,
)

logger = logging.getLogger(__name__)


def _consistency(counts: List[int]) -> float:
    """
    Score how evenly a character is spread across lines.

    1 / (1 + population std) of the per-line counts; 0 when fewer than two
    lines were sampled.
    """
    if len(counts) <= 1:
        return 0.0
    return float(1.0 / (1.0 + np.std(counts)))


def detect_separator(text: str, sample_lines: int = SEPARATOR_SAMPLE_LINES) -> str:
    """
    Choose between ',' and ';' for a CSV text.

    Rules, first match wins:
        1. Neither character present: ','
        2. Only one of them present: that one
        3. One total is at least 3x the other: that one
        4. Higher total x consistency score, ties going to ','

    Args:
        text: Raw file text
        sample_lines: Number of leading lines inspected

    Returns:
        ',' or ';'. Never raises.
    """
    lines = text.strip().split('\n')[:sample_lines]

    comma_counts = [line.count(',') for line in lines]
    semicolon_counts = [line.count(';') for line in lines]
    commas = sum(comma_counts)
    semicolons = sum(semicolon_counts)

    if commas == 0 and semicolons == 0:
        return DEFAULT_SEPARATOR
    if commas == 0:
        return ';'
    if semicolons == 0:
        return ','
    if commas >= semicolons * SEPARATOR_DOMINANCE_RATIO:
        return ','
    if semicolons >= commas * SEPARATOR_DOMINANCE_RATIO:
        return ';'

    comma_score = commas * _consistency(comma_counts)
    semicolon_score = semicolons * _consistency(semicolon_counts)
    logger.debug(
        f"Ambiguous separator: comma score {comma_score:.3f}, semicolon score {semicolon_score:.3f}"
    )
    return ',' if comma_score >= semicolon_score else ';'
