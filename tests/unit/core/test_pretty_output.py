"""
Unit tests for terminal rendering.

Output is captured with capsys; assertions look for text rather than exact
ANSI sequences.
"""

import pytest

from dataset_profiler.core.pretty_output import PrettyOutput as po
from dataset_profiler.profiler.engine import ProfilingOrchestrator
from dataset_profiler.profiler.performance import PerformanceAnalysis
from dataset_profiler.profiler.profile_result import ColumnType, DuplicateReport
from dataset_profiler.profiler.statistics_calculator import StatisticsCalculator


@pytest.mark.unit
class TestStatusLines:
    """Test the generic printers."""

    @pytest.mark.parametrize("printer, symbol", [
        (po.success, "✓"),
        (po.error, "✗"),
        (po.warning, "⚠"),
        (po.info, "ℹ"),
        (po.item, "•"),
    ])
    def test_symbols(self, capsys, printer, symbol):
        """Test each status line carries its symbol and indentation."""
        printer("loaded sales.csv", indent=2)

        out = capsys.readouterr().out
        assert out.startswith("  ")
        assert symbol in out
        assert "loaded sales.csv" in out

    def test_progress_bar(self, capsys):
        """Test the bar is filled in proportion to the percentage."""
        po.progress(50, "Computing column statistics")

        out = capsys.readouterr().out
        assert out.count("█") == 15
        assert out.count("░") == 15
        assert " 50% Computing column statistics" in out


@pytest.mark.unit
class TestScores:
    """Test score colors and bars."""

    @pytest.mark.parametrize("score, color", [
        (95, po.SUCCESS),
        (90, po.SUCCESS),
        (75, po.WARNING),
        (69, po.ERROR),
    ])
    def test_score_color(self, score, color):
        """Test the 90 / 70 thresholds."""
        assert po.score_color(score) == color

    def test_score_bar(self):
        """Test the bar length and trailing percentage."""
        bar = po.score_bar(75)

        assert bar.count("█") == 15
        assert bar.count("░") == 5
        assert bar.endswith(" 75%")


@pytest.mark.unit
class TestColumnRendering:
    """Test per-column digests and the column table."""

    def setup_method(self):
        self.calculator = StatisticsCalculator()

    def test_numeric_summary(self):
        """Test numeric columns show their moments and outlier count."""
        column = self.calculator.calculate_column_stats([1, 2, 3], ColumnType.QUANTITATIVE, 'qty')

        assert po.column_summary(column) == "mean=2 std=0.8165 outliers=0"

    def test_numeric_without_values(self):
        """Test a numeric column with no finite values."""
        column = self.calculator.calculate_column_stats([None, 'x'], ColumnType.NUMERIC, 'qty')

        assert po.column_summary(column) == "no numeric values"

    def test_categorical_summary(self):
        """Test categorical columns show the mode and its count."""
        column = self.calculator.calculate_column_stats(['a', 'b', 'a'], ColumnType.QUALITATIVE, 'grade')

        assert po.column_summary(column) == "mode=a (2)"

    def test_column_table(self, capsys):
        """Test one aligned row per column below the heading."""
        columns = [
            self.calculator.calculate_column_stats([1, 2, None], ColumnType.QUANTITATIVE, 'amount'),
            self.calculator.calculate_column_stats(['n', 's', 'n'], ColumnType.QUALITATIVE, 'region'),
        ]

        po.column_table(columns)

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 4
        assert 'Column' in lines[0] and 'Summary' in lines[0]
        assert lines[2].lstrip().startswith('amount')
        assert '33.3%' in lines[2]
        assert lines[3].lstrip().startswith('region')
        assert lines[2].index('quantitative') == lines[3].index('qualitative')


@pytest.mark.unit
class TestProfileRendering:
    """Test rendering a complete dataset."""

    @pytest.mark.asyncio
    async def test_profile(self, capsys, loop_config, sales_csv):
        """Test every section of a profile is printed."""
        dataset = await ProfilingOrchestrator(loop_config).profile_text(sales_csv, filename='sales.csv')

        po.profile(dataset)

        out = capsys.readouterr().out
        assert 'Dataset Profile: sales.csv' in out
        assert 'Duplicate columns' in out
        assert 'Columns' in out
        assert 'Completeness' in out
        assert 'Top Correlations' in out
        assert 'order_id / quantity: +1.000' in out

    @pytest.mark.asyncio
    async def test_correlations_omitted_without_pairs(self, capsys, loop_config, sales_csv):
        """Test the correlation section is skipped when no pair is requested."""
        dataset = await ProfilingOrchestrator(loop_config).profile_text(sales_csv)

        po.profile(dataset, top_correlations=0)

        assert 'Top Correlations' not in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_renamed_headers(self, capsys, loop_config):
        """Test duplicated headers are reported with their new names."""
        dataset = await ProfilingOrchestrator(loop_config).profile_text("v,v,w\n1,2,3\n4,5,6")

        po.profile(dataset)

        assert "Header 'v' appears 2 times, columns renamed to: v, v_2" in capsys.readouterr().out

    def test_duplicate_note(self, capsys):
        """Test truncated duplicate counts are flagged as a lower bound."""
        po.duplicate_note(DuplicateReport(rows_examined=50_000, column_rows_examined=50_000, total_rows=80_000))
        assert 'first 50,000 rows and are a lower bound' in capsys.readouterr().out

        po.duplicate_note(DuplicateReport(rows_examined=10, column_rows_examined=10, total_rows=10))
        assert capsys.readouterr().out == ''

    def test_performance_notes(self, capsys):
        """Test recommendations and the memory warning."""
        analysis = PerformanceAnalysis(
            columns=10, rows=20_000, is_large=True, is_very_large=True,
            should_use_sampling=True, recommended_sample_size=5_000,
            estimated_memory_mb=2048.0, recommendations=['Sampling 5,000 rows'],
        )

        po.performance_notes(analysis, memory_available=False)

        out = capsys.readouterr().out
        assert 'Sampling 5,000 rows' in out
        assert 'about 2,048 MB' in out
