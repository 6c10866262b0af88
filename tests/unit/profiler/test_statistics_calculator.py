"""
Unit tests for per-column statistics.
"""

import numpy as np
import pytest

from dataset_profiler.profiler.profile_result import ColumnType
from dataset_profiler.profiler.statistics_calculator import (
    StatisticsCalculator,
    analyze_type_consistency,
    build_histogram,
    histogram_bucket_count,
)


@pytest.fixture
def calculator():
    return StatisticsCalculator()


@pytest.mark.unit
class TestNumericStatistics:
    """Test the numeric statistics path."""

    def test_single_outlier(self, calculator):
        """Test [1, 2, 3, 4, 100] has exactly one IQR outlier."""
        info = calculator.calculate_column_stats([1, 2, 3, 4, 100], ColumnType.QUANTITATIVE, 'price')

        assert info.outliers == 1
        assert info.outlier_bounds.q1 == 2
        assert info.outlier_bounds.q3 == 4
        assert info.outlier_bounds.lower == -1
        assert info.outlier_bounds.upper == 7

    def test_moments(self, calculator):
        """Test min/max/mean/median/population std."""
        values = [1, 2, 3, 4, 100]
        info = calculator.calculate_column_stats(values, ColumnType.NUMERIC, 'price')

        assert info.min == 1
        assert info.max == 100
        assert info.mean == pytest.approx(22.0)
        assert info.median == 3
        assert info.std == pytest.approx(np.std(values))
        assert info.skewness > 1
        assert info.is_skewed

    def test_median_uses_upper_middle_for_even_count(self, calculator):
        """Test the median is v[n // 2] without interpolation."""
        info = calculator.calculate_column_stats([1, 2, 3, 4], ColumnType.QUANTITATIVE, 'x')
        assert info.median == 3

    def test_constant_column(self, calculator):
        """Test zero variance gives zero std and skewness."""
        info = calculator.calculate_column_stats([5, 5, 5], ColumnType.QUANTITATIVE, 'x')

        assert info.std == 0
        assert info.skewness == 0
        assert not info.is_skewed
        assert info.outliers == 0
        assert sum(bucket.count for bucket in info.histogram) == 3

    def test_numeric_text_is_parsed(self, calculator):
        """Test numeric strings contribute to numeric statistics."""
        info = calculator.calculate_column_stats(['1', '2', 'x'], ColumnType.QUANTITATIVE, 'x')

        assert info.mean == pytest.approx(1.5)
        assert info.non_null_count == 3

    def test_no_numeric_values(self, calculator):
        """Test a forced-numeric text column yields no numeric statistics."""
        info = calculator.calculate_column_stats(['a', 'b'], ColumnType.QUANTITATIVE, 'x')

        assert info.mean is None
        assert info.outliers == 0
        assert info.histogram == []

    @pytest.mark.parametrize("values", [
        [1, 2, 3, 4, 100],
        [-5.5, 0, 0, 0, 12],
        [7],
        list(range(1, 1000, 7)),
    ])
    def test_bounds_ordering(self, calculator, values):
        """Test lower <= Q1 <= Q3 <= upper."""
        bounds = calculator.calculate_column_stats(values, ColumnType.NUMERIC, 'x').outlier_bounds

        assert bounds.lower <= bounds.q1 <= bounds.q3 <= bounds.upper

    def test_pure_function(self, calculator):
        """Test repeated calls yield identical results."""
        values = [3, 1, None, 8, 2.5, 'NA', 40]

        first = calculator.calculate_column_stats(values, ColumnType.QUANTITATIVE, 'x')
        second = calculator.calculate_column_stats(values, ColumnType.QUANTITATIVE, 'x')

        assert first == second
        assert values == [3, 1, None, 8, 2.5, 'NA', 40]

    def test_to_dict_contains_numeric_fields_only(self, calculator):
        """Test serialization of a numeric column."""
        result = calculator.calculate_column_stats([1, 2, 3], ColumnType.QUANTITATIVE, 'x').to_dict()

        assert result['type'] == 'quantitative'
        assert 'histogram' in result
        assert 'mode' not in result


@pytest.mark.unit
class TestCategoricalStatistics:
    """Test the frequency distribution path."""

    def test_mode_and_frequencies(self, calculator):
        """Test ["a", "a", "a", "b"] has mode "a"."""
        info = calculator.calculate_column_stats(['a', 'a', 'a', 'b'], ColumnType.QUALITATIVE, 'grade')

        assert info.mode == 'a'
        assert info.frequency_distribution == {'a': 3, 'b': 1}
        assert info.unique_values == 2
        assert info.mean is None

    def test_mode_tie_keeps_first_seen(self, calculator):
        """Test ties resolve to the value that appeared first."""
        info = calculator.calculate_column_stats(['b', 'a', 'a', 'b'], ColumnType.CATEGORICAL, 'x')
        assert info.mode == 'b'

    def test_keys_are_strings(self, calculator):
        """Test numbers in a categorical column are keyed by their string form."""
        info = calculator.calculate_column_stats([1, 1, 2, None], ColumnType.QUALITATIVE, 'zip')

        assert info.frequency_distribution == {'1': 2, '2': 1}

    def test_integral_float_shares_int_key(self, calculator):
        """Test 1 and 1.0 are counted under one key, matching unique_values."""
        info = calculator.calculate_column_stats([1, 1.0, 2.5], ColumnType.QUALITATIVE, 'code')

        assert info.frequency_distribution == {'1': 2, '2.5': 1}
        assert info.unique_values == len(info.frequency_distribution)
        assert info.mode == '1'

    def test_to_dict_contains_categorical_fields_only(self, calculator):
        """Test serialization of a categorical column."""
        result = calculator.calculate_column_stats(['a'], ColumnType.TEXT, 'x').to_dict()

        assert result['mode'] == 'a'
        assert 'histogram' not in result


@pytest.mark.unit
class TestMissingValues:
    """Test missing value accounting."""

    def test_missing_percentage(self, calculator):
        """Test missing_percent is exactly 100 * missing / total."""
        info = calculator.calculate_column_stats([1, None, 'NA', 3], ColumnType.QUANTITATIVE, 'x')

        assert info.missing_values == 2
        assert info.non_null_count == 2
        assert info.missing_percent == 50.0

    @pytest.mark.parametrize("values", [
        [None, None, 1],
        ['', 'null', 'x', 'y', float('nan')],
        [1, 2, 3],
    ])
    def test_missing_plus_present_equals_total(self, calculator, values):
        """Test missing and non-null counts partition the rows."""
        for column_type in (ColumnType.QUANTITATIVE, ColumnType.QUALITATIVE):
            info = calculator.calculate_column_stats(values, column_type, 'x')
            assert info.missing_values + info.non_null_count == len(values)
            assert info.missing_percent == 100 * info.missing_values / len(values)

    def test_empty_column(self, calculator):
        """Test a column with no rows."""
        info = calculator.calculate_column_stats([], ColumnType.QUANTITATIVE, 'x')

        assert info.missing_percent == 0.0
        assert info.non_null_count == 0


@pytest.mark.unit
class TestHistogram:
    """Test adaptive histogram construction."""

    @pytest.mark.parametrize("n, value_range, unique, expected", [
        (1000, 1e6, 1000, 11),
        (10 ** 6, 1e9, 10 ** 6, 15),
        (3, 0.0, 1, 5),
        (50, 5.0, 8, 8),
        (100, 5.0, 50, 20),
        (100, 99.0, 100, 8),
    ])
    def test_bucket_count(self, n, value_range, unique, expected):
        """Test Sturges' rule with range and cardinality adjustments."""
        assert histogram_bucket_count(n, value_range, unique) == expected

    def test_counts_cover_all_values(self):
        """Test every value lands in exactly one bucket, including the maximum."""
        values = np.arange(1, 101, dtype=float)
        buckets = build_histogram(values)

        assert len(buckets) == 8
        assert sum(bucket.count for bucket in buckets) == 100
        assert buckets[0].start == 1
        assert buckets[-1].end == pytest.approx(100)
        assert buckets[-1].count > 0

    def test_empty(self):
        """Test no values gives no buckets."""
        assert build_histogram(np.array([])) == []


@pytest.mark.unit
class TestHelpers:
    """Test type consistency, outlier masks and skew detection."""

    def test_type_consistency_mixed(self):
        """Test a column mixing numbers, strings and booleans."""
        result = analyze_type_consistency([1, 'a', True, None, 'false'])

        assert (result.numeric, result.string, result.boolean, result.null) == (1, 1, 2, 1)
        assert result.has_mixed_types
        assert result.inconsistency_ratio == pytest.approx(0.5)

    def test_type_consistency_uniform(self):
        """Test a single-kind column is not mixed."""
        result = analyze_type_consistency([1, 2.5, None])

        assert not result.has_mixed_types
        assert result.inconsistency_ratio == 0.0

    def test_outlier_mask(self, calculator):
        """Test per-row outlier flags."""
        mask = calculator.get_outlier_mask([1, 2, 3, 4, 100, 'x'], ColumnType.QUANTITATIVE)
        assert mask == [False, False, False, False, True, False]

    def test_outlier_mask_categorical(self, calculator):
        """Test categorical columns have no outliers."""
        assert calculator.get_outlier_mask([1, 100], ColumnType.QUALITATIVE) == [False, False]

    def test_skewed_columns(self, calculator):
        """Test only numeric columns beyond the threshold are reported."""
        columns = [
            calculator.calculate_column_stats([1, 2, 3, 4, 100], ColumnType.QUANTITATIVE, 'skewed'),
            calculator.calculate_column_stats([1, 2, 3, 4, 5], ColumnType.QUANTITATIVE, 'flat'),
            calculator.calculate_column_stats(['a', 'b'], ColumnType.QUALITATIVE, 'label'),
        ]

        assert calculator.get_skewed_columns(columns) == ['skewed']
        assert calculator.get_skewed_columns(columns, threshold=100) == []
