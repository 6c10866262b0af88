"""
Unit tests for CSV row parsing and cell coercion.
"""

import math

import pytest

from dataset_profiler.core.exceptions import NoValidRowsError
from dataset_profiler.profiler.row_parser import parse_csv, parse_row, split_lines
from dataset_profiler.profiler.values import (
    coerce_cell,
    is_boolean_like,
    is_missing,
    parse_number,
    to_finite_number,
)


@pytest.mark.unit
class TestCellCoercion:
    """Test conversion of raw cells to parsed values."""

    @pytest.mark.parametrize("raw", ['', '   ', 'NA', 'na', 'null', 'NULL', '"null"'])
    def test_missing_tokens(self, raw):
        """Test empty and NA/null cells become None."""
        assert coerce_cell(raw) is None

    def test_integer_literal_is_int(self):
        """Test integer literals keep integer type."""
        value = coerce_cell(' 42 ')
        assert value == 42
        assert isinstance(value, int)

    def test_float_literal(self):
        """Test decimal and exponent literals become floats."""
        assert coerce_cell('3.5') == 3.5
        assert coerce_cell('-1e3') == -1000.0

    def test_quoted_number(self):
        """Test quotes are stripped before numeric parsing."""
        assert coerce_cell('"7"') == 7

    @pytest.mark.parametrize("raw", ['inf', '-Infinity', 'nan', '1_000', '12abc'])
    def test_non_finite_or_invalid_numbers_stay_strings(self, raw):
        """Test text float() would accept but is not a finite plain number stays text."""
        assert coerce_cell(raw) == raw

    def test_parse_number(self):
        """Test parse_number on edge inputs."""
        assert parse_number('') is None
        assert parse_number('+5') == 5
        assert parse_number('0.25') == 0.25

    def test_is_missing(self):
        """Test missing detection on parsed and raw values."""
        assert is_missing(None)
        assert is_missing(float('nan'))
        assert is_missing(' NaN ')
        assert not is_missing(0)
        assert not is_missing('zero')

    def test_to_finite_number(self):
        """Test booleans are never treated as numbers."""
        assert to_finite_number(True) is None
        assert to_finite_number('2.5') == 2.5
        assert to_finite_number(3) == 3.0
        assert to_finite_number(math.inf) is None
        assert to_finite_number('abc') is None

    def test_is_boolean_like(self):
        """Test boolean words in any case."""
        assert is_boolean_like('Yes')
        assert is_boolean_like(False)
        assert not is_boolean_like('maybe')
        assert not is_boolean_like(1)


@pytest.mark.unit
class TestParseRow:
    """Test single-line parsing."""

    def test_split_lines_drops_blank_lines(self):
        """Test surrounding whitespace and blank lines are removed."""
        assert split_lines("\n a,b\n\n1,2\n  \n") == ['a,b', '1,2']

    def test_width_mismatch_returns_none(self):
        """Test rows with the wrong cell count are rejected."""
        assert parse_row('1,2,3', ',', 2) is None

    def test_parse_row(self):
        """Test a matching row is coerced cell by cell."""
        assert parse_row("'x', 7 ,NA", ',', 3) == ['x', 7, None]


@pytest.mark.unit
class TestParseCSV:
    """Test full-text parsing."""

    def test_basic_parse(self):
        """Test headers, rows and totals of a simple file."""
        parsed = parse_csv("a,b\n1,2\n3,4\n1,2")

        assert parsed.headers.unique == ['a', 'b']
        assert parsed.rows == [[1, 2], [3, 4], [1, 2]]
        assert parsed.total_rows == 3
        assert parsed.column_count == 2
        assert parsed.separator == ','
        assert not parsed.is_sampled

    def test_malformed_rows_dropped(self):
        """Test rows with the wrong width are dropped silently."""
        parsed = parse_csv("a,b\n1,2\n3\n4,5\n6,7,8")

        assert parsed.rows == [[1, 2], [4, 5]]
        assert parsed.dropped_rows == 2
        assert parsed.total_rows == 4

    def test_blank_lines_skipped(self):
        """Test blank lines are neither rows nor dropped rows."""
        parsed = parse_csv("a,b\n\n1,2\n\n")

        assert parsed.rows == [[1, 2]]
        assert parsed.total_rows == 1
        assert parsed.dropped_rows == 0

    def test_semicolon_file_detected(self):
        """Test the separator is detected when not supplied."""
        parsed = parse_csv("id;price\n1;2,5\n2;3,0")

        assert parsed.separator == ';'
        assert parsed.rows == [[1, '2,5'], [2, '3,0']]

    def test_explicit_separator(self):
        """Test a supplied separator is used as-is."""
        parsed = parse_csv("a;b,c\n1;2,3", separator=',')

        assert parsed.headers.original == ['a;b', 'c']

    def test_duplicate_headers_in_file(self):
        """Test duplicate headers are disambiguated during parsing."""
        parsed = parse_csv("value,value\n1,2")

        assert parsed.headers.unique == ['value', 'value_2']
        assert parsed.headers.original == ['value', 'value']

    def test_empty_text_raises(self):
        """Test empty input raises NoValidRowsError."""
        with pytest.raises(NoValidRowsError, match="empty"):
            parse_csv("  \n ")

    def test_header_only_raises(self):
        """Test a file without data rows raises NoValidRowsError."""
        with pytest.raises(NoValidRowsError, match="No valid data rows found"):
            parse_csv("a,b")

    def test_all_rows_malformed_raises(self):
        """Test a file whose rows all mismatch the header raises."""
        with pytest.raises(NoValidRowsError) as exc_info:
            parse_csv("a,b\n1\n2")
        assert exc_info.value.details['column_count'] == 2

    def test_large_file_sampled_from_head_middle_tail(self):
        """Test files above the row budget keep beginning, middle and end."""
        lines = ["id,value"] + [f"{i},{i * 2}" for i in range(12)]
        parsed = parse_csv("\n".join(lines), max_rows=8)

        assert parsed.is_sampled
        assert parsed.total_rows == 12
        assert [row[0] for row in parsed.rows] == [0, 1, 4, 5, 6, 7, 10, 11]

    @pytest.mark.parametrize("max_rows", [1, 3, 7])
    def test_small_budget_keeps_budgeted_rows(self, max_rows):
        """Test a budget that is not a multiple of four still yields rows."""
        lines = ["id,value"] + [f"{i},{i * 2}" for i in range(10)]
        parsed = parse_csv("\n".join(lines), max_rows=max_rows)

        assert len(parsed.rows) == max_rows
        assert parsed.rows[-1][0] == 9
