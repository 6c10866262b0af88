"""
Observer Pattern for Orchestrator Event Notifications.

The profiling orchestrator reports stage transitions and progress to
observers instead of printing or logging itself, so the same pipeline serves
the CLI, library callers and tests.

Design Pattern: Observer (Behavioral)
Purpose: Decouple the pipeline from presentation
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dataset_profiler.profiler.profile_result import Dataset


class ProgressObserver(ABC):
    """
    Receives orchestrator events.

    Methods are called synchronously on the event loop, so observers must
    not block.

    Example:
        >>> class PercentPrinter(ProgressObserver):
        ...     def on_progress(self, stage, percent, message):
        ...         print(percent)
        ...     def on_complete(self, dataset): pass
        ...     def on_error(self, error, stage): pass
    """

    @abstractmethod
    def on_progress(self, stage: str, percent: int, message: str) -> None:
        """
        Called on every stage transition and progress update.

        Args:
            stage: Orchestrator state name
            percent: Overall progress 0-100, never decreasing within a run
            message: Human-readable description of the current step
        """
        pass

    @abstractmethod
    def on_complete(self, dataset: "Dataset") -> None:
        """Called once with the finished dataset."""
        pass

    @abstractmethod
    def on_error(self, error: Exception, stage: str) -> None:
        """
        Called when a run fails.

        Args:
            error: The error that aborted the run
            stage: State the orchestrator was in when it failed
        """
        pass


class CLIProgressObserver(ProgressObserver):
    """
    Terminal progress output for the CLI.

    Attributes:
        verbose (bool): Print every update rather than stage changes only
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self._last_stage = None

        # Import here to avoid circular dependency
        from dataset_profiler.core.pretty_output import PrettyOutput
        self.po = PrettyOutput

    def on_progress(self, stage: str, percent: int, message: str) -> None:
        if self.verbose or stage != self._last_stage:
            self.po.progress(percent, message)
        self._last_stage = stage

    def on_complete(self, dataset: "Dataset") -> None:
        self.po.success(
            f"Profiled {dataset.filename}: {dataset.column_count} columns, {dataset.row_count:,} rows"
        )

    def on_error(self, error: Exception, stage: str) -> None:
        self.po.error(f"Profiling failed during {stage}: {error}")


class LoggingObserver(ProgressObserver):
    """Log orchestrator events through the standard logging module."""

    def __init__(self):
        self.logger = logging.getLogger('dataset_profiler.orchestrator')

    def on_progress(self, stage: str, percent: int, message: str) -> None:
        self.logger.info(f"[{percent:3d}%] {stage}: {message}")

    def on_complete(self, dataset: "Dataset") -> None:
        self.logger.info(
            f"Profiling complete for {dataset.filename}",
            extra={'row_count': dataset.row_count, 'column_count': dataset.column_count}
        )

    def on_error(self, error: Exception, stage: str) -> None:
        self.logger.error(f"Profiling failed during {stage}: {error}")


class QuietObserver(ProgressObserver):
    """No-op observer."""

    def on_progress(self, stage: str, percent: int, message: str) -> None:
        pass

    def on_complete(self, dataset: "Dataset") -> None:
        pass

    def on_error(self, error: Exception, stage: str) -> None:
        pass
