"""CSV file loading: size cap enforcement and encoding detection."""

import logging
from pathlib import Path
from typing import Tuple

from dataset_profiler.core.constants import CSV_ENCODINGS, MAX_FILE_SIZE_BYTES
from dataset_profiler.core.exceptions import DataLoadError, FileSizeLimitError

logger = logging.getLogger(__name__)


def check_file_size(file_path: str, size: int, max_size: int = MAX_FILE_SIZE_BYTES) -> None:
    """
    Reject files at or above the size cap.

    Raises:
        FileSizeLimitError: If size >= max_size
    """
    if size >= max_size:
        raise FileSizeLimitError(file_path, file_size=size, max_size=max_size)


def decode_csv_bytes(data: bytes, source: str = '<bytes>') -> Tuple[str, str]:
    """
    Decode raw CSV bytes, trying common encodings in order.

    Args:
        data: File contents
        source: Name used in error messages

    Returns:
        Tuple of (text, encoding used)

    Raises:
        DataLoadError: If no encoding can decode the data
    """
    for encoding in CSV_ENCODINGS:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError:
            continue
        # utf-8 keeps a BOM as U+FEFF, which would end up in the first header
        if encoding == 'utf-8' and text.startswith('\ufeff'):
            text = text[1:]
            encoding = 'utf-8-sig'
        logger.debug(f"Decoded {source} as {encoding}")
        return text, encoding

    raise DataLoadError(f"Unable to decode file with encodings {', '.join(CSV_ENCODINGS)}", source)


def read_csv_text(file_path: str, max_size: int = MAX_FILE_SIZE_BYTES) -> Tuple[str, str]:
    """
    Read a CSV file as text.

    Args:
        file_path: Path to the CSV file
        max_size: Size cap in bytes

    Returns:
        Tuple of (text, encoding used)

    Raises:
        DataLoadError: If the file is missing or unreadable
        FileSizeLimitError: If the file is at or above the size cap
    """
    path = Path(file_path)
    if not path.is_file():
        raise DataLoadError(f"File not found: {file_path}", str(file_path))

    check_file_size(str(file_path), path.stat().st_size, max_size)

    try:
        data = path.read_bytes()
    except OSError as e:
        raise DataLoadError(f"Failed to read file: {e}", str(file_path), original_exception=e)

    return decode_csv_bytes(data, str(file_path))
