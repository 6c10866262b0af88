"""
Terminal rendering of profiling progress and dataset profiles.

PrettyOutput is a namespace of static printers. The generic ones (status
lines, sections, progress) back the CLI progress observer; the profile ones
render each part of a Dataset for the profile command.
"""

from typing import Iterable, List, Sequence, Tuple

from colorama import Fore, Style

from dataset_profiler.profiler.correlation import describe_strength, top_pairs
from dataset_profiler.profiler.performance import PerformanceAnalysis
from dataset_profiler.profiler.profile_result import (
    ColumnInfo,
    ColumnMapping,
    CorrelationResult,
    Dataset,
    DuplicateReport,
    QualityScores,
)

RULE_WIDTH = 72
BAR_WIDTH = 30


class PrettyOutput:
    """Colored stdout printers; every method is static."""

    PRIMARY = Fore.CYAN
    SUCCESS = Fore.GREEN
    WARNING = Fore.YELLOW
    ERROR = Fore.RED
    INFO = Fore.BLUE
    HEADER = Fore.WHITE + Style.BRIGHT
    DIM = Style.DIM
    RESET = Style.RESET_ALL

    # ------------------------------------------------------------------
    # Status lines
    # ------------------------------------------------------------------

    @staticmethod
    def _mark(color: str, symbol: str, message: str, indent: int) -> None:
        print(f"{' ' * indent}{color}{symbol}{PrettyOutput.RESET} {message}")

    @staticmethod
    def success(message, indent=0):
        PrettyOutput._mark(PrettyOutput.SUCCESS, "✓", message, indent)

    @staticmethod
    def error(message, indent=0):
        PrettyOutput._mark(PrettyOutput.ERROR, "✗", message, indent)

    @staticmethod
    def warning(message, indent=0):
        PrettyOutput._mark(PrettyOutput.WARNING, "⚠", message, indent)

    @staticmethod
    def info(message, indent=0):
        PrettyOutput._mark(PrettyOutput.INFO, "ℹ", message, indent)

    @staticmethod
    def item(message, indent=0):
        PrettyOutput._mark(PrettyOutput.DIM, "•", message, indent)

    @staticmethod
    def title(text):
        """Double-ruled banner opening a report."""
        rule = "═" * RULE_WIDTH
        print(f"\n{PrettyOutput.PRIMARY}{rule}\n  {text}\n{rule}{PrettyOutput.RESET}")

    @staticmethod
    def section(text):
        print(f"\n{PrettyOutput.HEADER}→ {text}{PrettyOutput.RESET}")
        print(f"{PrettyOutput.DIM}{'─' * RULE_WIDTH}{PrettyOutput.RESET}")

    @staticmethod
    def progress(percent, message=""):
        """Single-line progress bar for a 0-100 percentage."""
        filled = int(BAR_WIDTH * percent / 100)
        bar = "█" * filled + "░" * (BAR_WIDTH - filled)
        print(f"  {PrettyOutput.HEADER}{bar}{PrettyOutput.RESET} {percent:>3.0f}% {message}")

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    @staticmethod
    def score_color(score: float) -> str:
        if score >= 90:
            return PrettyOutput.SUCCESS
        if score >= 70:
            return PrettyOutput.WARNING
        return PrettyOutput.ERROR

    @staticmethod
    def score_bar(score: float, width: int = 20) -> str:
        """Colored bar for a 0-100 score, followed by the score."""
        filled = int(width * score / 100)
        color = PrettyOutput.score_color(score)
        return f"{color}{'█' * filled}{PrettyOutput.DIM}{'░' * (width - filled)}{PrettyOutput.RESET} {score:.0f}%"

    # ------------------------------------------------------------------
    # Dataset profile
    # ------------------------------------------------------------------

    @staticmethod
    def dataset_overview(dataset: Dataset) -> None:
        """Title banner plus the headline counts of a dataset."""
        PrettyOutput.title(f"Dataset Profile: {dataset.filename}")

        rows = f"{dataset.row_count:,}"
        if dataset.is_sampled:
            rows += f" (sampled {dataset.sampled_row_count:,})"
        facts: List[Tuple[str, str, str]] = [
            ("Rows", rows, PrettyOutput.INFO),
            ("Columns", str(dataset.column_count), PrettyOutput.INFO),
            ("Separator", repr(dataset.separator), PrettyOutput.INFO),
            ("Missing values", f"{dataset.missing_values_count:,}", PrettyOutput.INFO),
            ("Duplicate rows", f"{dataset.duplicate_rows_count:,}", PrettyOutput.INFO),
            ("Duplicate columns", str(dataset.duplicate_columns_count), PrettyOutput.INFO),
        ]
        if dataset.quality is not None:
            overall = dataset.quality.overall
            facts.append(("Quality", f"{overall} ({dataset.quality.label})", PrettyOutput.score_color(overall)))

        label_width = max(len(label) for label, _, _ in facts)
        for label, value, color in facts:
            print(f"  {PrettyOutput.DIM}{label:<{label_width}}{PrettyOutput.RESET}  {color}{value}{PrettyOutput.RESET}")

    @staticmethod
    def renamed_headers(mapping: ColumnMapping) -> None:
        for original, count in mapping.duplicate_info.items():
            ids = ', '.join(mapping.original_to_ids[original])
            PrettyOutput.warning(f"Header '{original}' appears {count} times, columns renamed to: {ids}")

    @staticmethod
    def column_summary(column: ColumnInfo) -> str:
        """One-line digest: moments for numeric columns, the mode otherwise."""
        if column.type.is_numeric:
            if column.mean is None:
                return "no numeric values"
            summary = f"mean={column.mean:.4g} std={column.std:.4g} outliers={column.outliers}"
            return summary + " skewed" if column.is_skewed else summary
        if column.mode is None:
            return "no values"
        count = column.frequency_distribution.get(str(column.mode), 0)
        return f"mode={column.mode} ({count:,})"

    @staticmethod
    def column_table(columns: Sequence[ColumnInfo]) -> None:
        """Aligned table with one row per column."""
        headings = ("Column", "Type", "Missing", "Unique", "Summary")
        table = [
            (
                column.name,
                column.type.value,
                f"{column.missing_percent:.1f}%",
                f"{column.unique_values:,}",
                PrettyOutput.column_summary(column),
            )
            for column in columns
        ]
        widths = [max(len(cell) for cell in cells) for cells in zip(headings, *table)]

        def line(cells: Iterable[str]) -> str:
            return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()

        print(f"  {PrettyOutput.HEADER}{line(headings)}{PrettyOutput.RESET}")
        print(f"  {PrettyOutput.DIM}{'─' * (sum(widths) + 2 * (len(widths) - 1))}{PrettyOutput.RESET}")
        for cells in table:
            print(f"  {line(cells)}")

    @staticmethod
    def quality_scores(quality: QualityScores) -> None:
        for label, score in (
            ("Completeness", quality.completeness),
            ("Uniqueness", quality.uniqueness),
            ("Consistency", quality.consistency),
            ("Accuracy", quality.accuracy),
        ):
            print(f"  {PrettyOutput.DIM}{label:<13}{PrettyOutput.RESET} {PrettyOutput.score_bar(score)}")

    @staticmethod
    def correlations(correlation: CorrelationResult, limit: int) -> None:
        """Section listing the strongest pairs; omitted when there are none."""
        pairs = top_pairs(correlation, limit=limit)
        if not pairs:
            return

        PrettyOutput.section("Top Correlations")
        for first, second, coefficient in pairs:
            PrettyOutput.item(f"{first} / {second}: {coefficient:+.3f}  {describe_strength(coefficient)}", indent=2)
        info = correlation.sampling_info
        if info.was_reduced:
            PrettyOutput.info(
                f"Computed over {info.processed_columns} of {info.original_columns} numeric columns "
                f"and {info.sampled_rows:,} of {info.original_rows:,} rows"
            )

    @staticmethod
    def duplicate_note(duplicates: DuplicateReport) -> None:
        if not duplicates.is_exact:
            PrettyOutput.info(
                f"Duplicate counts examined the first {duplicates.rows_examined:,} rows and are a lower bound"
            )

    @staticmethod
    def performance_notes(analysis: PerformanceAnalysis, memory_available: bool = True) -> None:
        for recommendation in analysis.recommendations:
            PrettyOutput.warning(recommendation)
        if not memory_available:
            PrettyOutput.warning(
                f"Full dataset needs about {analysis.estimated_memory_mb:,.0f} MB, more than is available"
            )

    @staticmethod
    def profile(dataset: Dataset, top_correlations: int = 5) -> None:
        """Render a whole profile: overview, columns, quality and correlations."""
        PrettyOutput.dataset_overview(dataset)
        if dataset.column_mapping.has_duplicates:
            PrettyOutput.renamed_headers(dataset.column_mapping)

        PrettyOutput.section("Columns")
        PrettyOutput.column_table(dataset.columns)

        if dataset.quality is not None:
            PrettyOutput.section("Data Quality")
            PrettyOutput.quality_scores(dataset.quality)

        PrettyOutput.correlations(dataset.correlation, top_correlations)

        PrettyOutput.duplicate_note(dataset.duplicates)
        print()
