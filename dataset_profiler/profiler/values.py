"""
Cell-level helpers shared by the parser, type inferrer and statistics engine.

Cells arrive as raw strings from the file. After coercion they are None
(missing), an int or float (finite number), or the cleaned string.
"""

import math
import re
from typing import Any, Optional, Union

from dataset_profiler.core.constants import BOOLEAN_STRINGS, NULL_TOKENS

# One leading and one trailing quote character of either kind
_QUOTE_RE = re.compile(r'^["\']|["\']$')
_INTEGER_RE = re.compile(r'^[+-]?\d+$')

# Strings treated as missing once a column is being profiled
_MISSING_STRINGS = frozenset(NULL_TOKENS | {'nan'})


def clean_cell(raw: str) -> str:
    """Trim whitespace and strip a leading/trailing quote character."""
    return _QUOTE_RE.sub('', raw.strip())


def parse_number(text: str) -> Optional[Union[int, float]]:
    """
    Parse a cleaned cell as a finite number.

    Integer literals become int, everything float() accepts becomes float.
    Returns None for non-numeric text, NaN and infinities.
    """
    if not text or '_' in text:
        return None
    if _INTEGER_RE.match(text):
        return int(text)
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_cell(raw: str) -> Union[None, int, float, str]:
    """
    Convert one raw CSV cell to a parsed value.

    Empty cells and 'na'/'null' (any case) become None, finite numbers become
    int/float, anything else is kept as the cleaned string.
    """
    cleaned = clean_cell(raw)
    if cleaned.lower() in NULL_TOKENS:
        return None
    number = parse_number(cleaned)
    if number is not None:
        return number
    return cleaned


def is_missing(value: Any) -> bool:
    """True for None, NaN and empty/'na'/'nan'/'null' strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip().lower() in _MISSING_STRINGS:
        return True
    return False


def to_finite_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        number = parse_number(value.strip())
        return float(number) if number is not None else None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def is_boolean_like(value: Any) -> bool:
    """True for bools and the strings true/false/yes/no (any case)."""
    if isinstance(value, bool):
        return True
    return isinstance(value, str) and value.strip().lower() in BOOLEAN_STRINGS
