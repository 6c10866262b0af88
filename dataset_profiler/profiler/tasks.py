"""
Work units executed by the background worker.

Every function here is a module-level pure function taking and returning
picklable values, so it can run in a separate process. The orchestrator runs
the same functions directly when the worker is unavailable.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from dataset_profiler.profiler.correlation import CorrelationEngine
from dataset_profiler.profiler.duplicates import DuplicateDetector
from dataset_profiler.profiler.profile_result import (
    ColumnInfo,
    ColumnType,
    CorrelationResult,
    DuplicateReport,
    Row,
)
from dataset_profiler.profiler.statistics_calculator import StatisticsCalculator

# (unique name, original header, values, resolved type)
ColumnPayload = Tuple[str, Optional[str], List[Any], ColumnType]


class TaskType(str, Enum):
    """Request kinds understood by the background worker."""
    PROCESS_COLUMNS = "process_columns"
    CALCULATE_CORRELATION = "calculate_correlation"
    DETECT_DUPLICATES = "detect_duplicates"


def process_columns(calculator: StatisticsCalculator, columns: Sequence[ColumnPayload]) -> List[ColumnInfo]:
    """Profile a batch of columns, preserving batch order."""
    return [
        calculator.calculate_column_stats(values, column_type, name, original_name)
        for name, original_name, values, column_type in columns
    ]


def calculate_correlation(
    engine: CorrelationEngine,
    rows: Sequence[Row],
    column_names: Sequence[str],
    column_types: Dict[str, ColumnType],
    display_names: Sequence[str]
) -> CorrelationResult:
    return engine.calculate(rows, column_names, column_types, display_names)


def detect_duplicates(
    detector: DuplicateDetector,
    rows: Sequence[Row],
    column_count: int,
    total_rows: Optional[int] = None
) -> DuplicateReport:
    return detector.detect(rows, column_count, total_rows)


TASK_HANDLERS: Dict[TaskType, Callable[..., Any]] = {
    TaskType.PROCESS_COLUMNS: process_columns,
    TaskType.CALCULATE_CORRELATION: calculate_correlation,
    TaskType.DETECT_DUPLICATES: detect_duplicates,
}


def run_task(task_type: TaskType, payload: Dict[str, Any]) -> Any:
    """Dispatch one request to its handler."""
    return TASK_HANDLERS[TaskType(task_type)](**payload)
