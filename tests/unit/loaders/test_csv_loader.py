"""
Unit tests for CSV file loading.
"""

import pytest

from dataset_profiler.core.exceptions import DataLoadError, FileSizeLimitError
from dataset_profiler.loaders.csv_loader import check_file_size, decode_csv_bytes, read_csv_text


@pytest.mark.unit
class TestFileSizeCap:
    """Test the upload size cap."""

    def test_below_cap(self):
        """Test files below the cap pass."""
        check_file_size('ok.csv', 99, max_size=100)

    def test_at_cap_rejected(self):
        """Test a file exactly at the cap is rejected."""
        with pytest.raises(FileSizeLimitError) as exc_info:
            check_file_size('big.csv', 100, max_size=100)

        assert exc_info.value.details['file_size'] == 100
        assert exc_info.value.file_path == 'big.csv'


@pytest.mark.unit
class TestDecoding:
    """Test encoding detection."""

    def test_utf8(self):
        """Test plain UTF-8."""
        assert decode_csv_bytes('name\nZoë\n'.encode('utf-8')) == ('name\nZoë\n', 'utf-8')

    def test_bom_stripped(self):
        """Test a UTF-8 byte order mark does not leak into the first header."""
        text, encoding = decode_csv_bytes(b'\xef\xbb\xbfid,name\n1,a\n')

        assert text == 'id,name\n1,a\n'
        assert encoding == 'utf-8-sig'

    def test_cp1252_fallback(self):
        """Test Windows-1252 files are decoded."""
        text, encoding = decode_csv_bytes('price\n€5\n'.encode('cp1252'))

        assert text == 'price\n€5\n'
        assert encoding == 'cp1252'


@pytest.mark.unit
class TestReadCsvText:
    """Test reading files from disk."""

    def test_read(self, sales_file, sales_csv):
        """Test a file is read and decoded."""
        text, encoding = read_csv_text(str(sales_file))

        assert text == sales_csv
        assert encoding == 'utf-8'

    def test_missing_file(self, tmp_path):
        """Test a missing file raises DataLoadError."""
        with pytest.raises(DataLoadError, match="File not found"):
            read_csv_text(str(tmp_path / 'missing.csv'))

    def test_directory_rejected(self, tmp_path):
        """Test a directory is not a file."""
        with pytest.raises(DataLoadError):
            read_csv_text(str(tmp_path))

    def test_size_cap_checked_before_reading(self, sales_file):
        """Test oversized files are rejected."""
        with pytest.raises(FileSizeLimitError):
            read_csv_text(str(sales_file), max_size=10)
