"""
Profiling Orchestrator - sequences the pipeline for one file.

State machine:

    IDLE -> READING_FILE -> PARSING_CSV -> INFERRING_TYPES
         -> COMPUTING_STATISTICS -> DETECTING_DUPLICATES
         -> COMPUTING_CORRELATION -> FINALIZING -> COMPLETE

with ERROR reachable from every step. Each transition reports a progress
percentage to the registered observers; progress never decreases within a run.

Concurrency model:
    The pipeline runs on the asyncio event loop and yields between column
    batches, so other tasks on the loop keep running. When a BackgroundWorker
    is injected and the table is small enough (rows x columns below
    worker.cell_limit), column statistics and correlation run in the worker.
    Any worker failure disables the worker and the step is redone on the loop.

Failure model:
    A wall-clock timeout guards each run. Every failure moves the orchestrator
    to ERROR with progress 0 and raises a ProfilerException subclass. The last
    successfully profiled dataset is kept until a new run completes.

Usage:
    orchestrator = ProfilingOrchestrator(config, worker=BackgroundWorker())
    dataset = await orchestrator.profile_file('sales.csv')
    dataset = await orchestrator.reclassify({'zip_code': 'qualitative'})
"""

import asyncio
import dataclasses
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from dataset_profiler.core.config import ProfilerConfig
from dataset_profiler.core.exceptions import (
    ProcessingError,
    ProcessingTimeoutError,
    ProfilerConfigError,
    ProfilerException,
    WorkerError,
)
from dataset_profiler.core.observers import ProgressObserver
from dataset_profiler.core.retry import retry_async
from dataset_profiler.loaders.csv_loader import check_file_size, decode_csv_bytes, read_csv_text
from dataset_profiler.profiler.correlation import CorrelationEngine
from dataset_profiler.profiler.duplicates import DuplicateDetector
from dataset_profiler.profiler.performance import analyze_dataset_performance
from dataset_profiler.profiler.profile_result import (
    ColumnInfo,
    ColumnMapping,
    ColumnType,
    CorrelationResult,
    Dataset,
    DuplicateReport,
    Row,
)
from dataset_profiler.profiler.quality import calculate_quality_scores
from dataset_profiler.profiler.row_parser import ParsedCSV, parse_csv
from dataset_profiler.profiler.statistics_calculator import StatisticsCalculator
from dataset_profiler.profiler.tasks import ColumnPayload, TaskType, process_columns
from dataset_profiler.profiler.type_inferrer import TypeInferrer
from dataset_profiler.profiler.worker import BackgroundWorker
from dataset_profiler.storage.base import ObjectStore, VersionRecord, VersionStore

logger = logging.getLogger(__name__)

TypeOverrides = Mapping[str, Union[ColumnType, str]]


class ProfilingState(str, Enum):
    IDLE = "idle"
    READING_FILE = "reading_file"
    PARSING_CSV = "parsing_csv"
    INFERRING_TYPES = "inferring_types"
    COMPUTING_STATISTICS = "computing_statistics"
    DETECTING_DUPLICATES = "detecting_duplicates"
    COMPUTING_CORRELATION = "computing_correlation"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"


# Progress when entering each state, and the span up to the next state
STAGE_PROGRESS = {
    ProfilingState.IDLE: 0,
    ProfilingState.READING_FILE: 0,
    ProfilingState.PARSING_CSV: 10,
    ProfilingState.INFERRING_TYPES: 20,
    ProfilingState.COMPUTING_STATISTICS: 30,
    ProfilingState.DETECTING_DUPLICATES: 80,
    ProfilingState.COMPUTING_CORRELATION: 85,
    ProfilingState.FINALIZING: 95,
    ProfilingState.COMPLETE: 100,
}

STAGE_MESSAGES = {
    ProfilingState.READING_FILE: "Reading file",
    ProfilingState.PARSING_CSV: "Parsing CSV",
    ProfilingState.INFERRING_TYPES: "Inferring column types",
    ProfilingState.COMPUTING_STATISTICS: "Computing column statistics",
    ProfilingState.DETECTING_DUPLICATES: "Detecting duplicates",
    ProfilingState.COMPUTING_CORRELATION: "Computing correlations",
    ProfilingState.FINALIZING: "Finalizing",
    ProfilingState.COMPLETE: "Complete",
}

INFERENCE_SPAN = 10
STATISTICS_SPAN = 40


@dataclass
class LoadedSource:
    """File text handed from the reading step to the rest of the pipeline."""
    text: str
    filename: str
    stored_types: Dict[str, str] = field(default_factory=dict)


class ProfilingOrchestrator:
    """
    Run the profiling pipeline with progress reporting and worker offload.

    Attributes:
        state: Current ProfilingState
        progress: Current progress percentage
        dataset: Last successfully profiled dataset
        last_error: Error that ended the most recent failed run
    """

    def __init__(
        self,
        config: Optional[ProfilerConfig] = None,
        worker: Optional[BackgroundWorker] = None,
        observers: Optional[Sequence[ProgressObserver]] = None,
        object_store: Optional[ObjectStore] = None,
        version_store: Optional[VersionStore] = None
    ):
        self.config = config or ProfilerConfig()
        self.worker = worker
        self.observers: List[ProgressObserver] = list(observers or [])
        self.object_store = object_store
        self.version_store = version_store

        inference = self.config.inference
        self.inferrer = TypeInferrer(
            granularity=inference.granularity,
            coarse_sample_size=inference.coarse_sample_size,
            coarse_numeric_ratio=inference.coarse_numeric_ratio,
            fine_ratio=inference.fine_ratio,
            categorical_unique_ratio=inference.categorical_unique_ratio,
        )
        self.calculator = StatisticsCalculator(
            outlier_multiplier=self.config.statistics.outlier_iqr_multiplier,
            skewness_threshold=self.config.statistics.skewness_threshold,
        )
        self.duplicate_detector = DuplicateDetector(
            row_sample_size=self.config.duplicates.row_sample_size,
            column_sample_size=self.config.duplicates.column_sample_size,
        )
        self.correlation_engine = CorrelationEngine(
            max_columns=self.config.correlation.max_columns,
            max_rows=self.config.correlation.max_rows,
        )

        self.state = ProfilingState.IDLE
        self.progress = 0
        self.dataset: Optional[Dataset] = None
        self.last_error: Optional[ProfilerException] = None

    def add_observer(self, observer: ProgressObserver) -> None:
        self.observers.append(observer)

    # ------------------------------------------------------------------
    # State and progress
    # ------------------------------------------------------------------

    def _transition(self, state: ProfilingState) -> None:
        self.state = state
        self._report(STAGE_PROGRESS[state], STAGE_MESSAGES[state])

    def _report(self, percent: float, message: str) -> None:
        self.progress = max(self.progress, int(percent))
        for observer in self.observers:
            observer.on_progress(self.state.value, self.progress, message)

    def _fail(self, error: ProfilerException) -> None:
        stage = self.state.value
        logger.error(f"Profiling failed during {stage}: {error.message}")
        self.last_error = error
        self.state = ProfilingState.ERROR
        self.progress = 0
        for observer in self.observers:
            observer.on_error(error, stage)

    async def _guarded(self, pipeline: Awaitable[Dataset]) -> Dataset:
        """Run a pipeline under the timeout and normalize its failures."""
        self.state = ProfilingState.IDLE
        self.progress = 0
        self.last_error = None
        timeout = self.config.processing.timeout_seconds

        try:
            dataset = await asyncio.wait_for(pipeline, timeout=timeout)
        except asyncio.TimeoutError:
            error = ProcessingTimeoutError(timeout, stage=self.state.value)
            self._fail(error)
            raise error from None
        except ProfilerException as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            error = ProcessingError(
                f"Profiling failed during {self.state.value}: {exc}",
                stage=self.state.value,
                original_exception=exc
            )
            self._fail(error)
            raise error from exc

        self.dataset = dataset
        for observer in self.observers:
            observer.on_complete(dataset)
        return dataset

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def profile_text(
        self,
        text: str,
        filename: str = "dataset.csv",
        type_overrides: Optional[TypeOverrides] = None
    ) -> Dataset:
        """
        Profile CSV text already in memory.

        Args:
            text: CSV text
            filename: Name recorded on the dataset
            type_overrides: Column -> type taking precedence over inference

        Raises:
            ProfilerException: Any failure, after the state moved to ERROR
        """
        async def read() -> LoadedSource:
            return LoadedSource(text=text, filename=filename)

        return await self._guarded(self._run_pipeline(read, type_overrides))

    async def profile_file(self, file_path: str, type_overrides: Optional[TypeOverrides] = None) -> Dataset:
        """Profile a CSV file on disk, enforcing the upload size cap."""
        max_size = self.config.processing.max_file_size_bytes

        async def read() -> LoadedSource:
            text, encoding = await asyncio.to_thread(read_csv_text, file_path, max_size)
            logger.debug(f"Read {file_path} ({encoding})")
            return LoadedSource(text=text, filename=Path(file_path).name)

        return await self._guarded(self._run_pipeline(read, type_overrides))

    async def profile_version(self, version_id: str, type_overrides: Optional[TypeOverrides] = None) -> Dataset:
        """
        Profile a stored dataset version.

        The version record and file are fetched with fixed-delay retries. The
        record's persisted column types are applied before inference. For a
        root version the resolved types are written back to the record.

        Raises:
            ProfilerConfigError: If no object/version store is configured
        """
        if self.object_store is None or self.version_store is None:
            raise ProfilerConfigError("Profiling a version requires an object store and a version store")

        loaded: Dict[str, VersionRecord] = {}

        async def read() -> LoadedSource:
            record = await self._with_retry(
                lambda: asyncio.to_thread(self.version_store.get_version, version_id),
                f"Loading version {version_id}"
            )
            data = await self._with_retry(
                lambda: asyncio.to_thread(self.object_store.download, record.bucket, record.file_path),
                f"Downloading {record.bucket}/{record.file_path}"
            )
            check_file_size(record.file_path, len(data), self.config.processing.max_file_size_bytes)
            text, _ = decode_csv_bytes(data, record.file_path)
            loaded['record'] = record
            return LoadedSource(
                text=text,
                filename=Path(record.file_path).name,
                stored_types=dict(record.data_types),
            )

        dataset = await self._guarded(self._run_pipeline(read, type_overrides))

        record = loaded['record']
        resolved = {column.name: column.type.value for column in dataset.columns}
        if record.is_root and resolved != record.data_types:
            try:
                await self._persist_types(version_id, resolved)
            except ProfilerException as exc:
                # The profile itself is valid; the next load re-infers
                logger.error(f"Could not persist column types for version {version_id}: {exc.message}")
        return dataset

    async def reclassify(
        self,
        overrides: TypeOverrides,
        dataset: Optional[Dataset] = None,
        version_id: Optional[str] = None
    ) -> Dataset:
        """
        Change column types and recompute only those columns.

        Args:
            overrides: Column identifier (or original header) -> new type
            dataset: Dataset to reclassify; the last profiled one when omitted
            version_id: Persist the new type map to this version when given

        Returns:
            A new Dataset; the input dataset is left unchanged

        Raises:
            ProcessingError: If there is no dataset
            ProfilerConfigError: On unknown columns or types
        """
        dataset = dataset or self.dataset
        if dataset is None:
            raise ProcessingError("No dataset to reclassify")

        resolved = self._resolve_overrides(overrides, dataset.column_names, dataset.column_mapping, strict=True)
        columns = list(dataset.columns)
        for name, column_type in resolved.items():
            index = dataset.column_names.index(name)
            columns[index] = self.calculator.calculate_column_stats(
                [row[index] for row in dataset.rows],
                column_type,
                name,
                dataset.original_column_names[index],
            )
            await asyncio.sleep(0)

        types = {column.name: column.type for column in columns}
        correlation = self._correlate_in_loop(dataset.rows, dataset.column_names, types, dataset.original_column_names)
        updated = dataclasses.replace(
            dataset,
            columns=columns,
            data_types=self._tally_types(columns),
            missing_values_count=sum(column.missing_values for column in columns),
            correlation=correlation,
        )
        updated.quality = calculate_quality_scores(updated)
        logger.info(f"Reclassified {', '.join(resolved)} in {dataset.filename}")

        if version_id is not None:
            if self.version_store is None:
                raise ProfilerConfigError("Persisting column types requires a version store")
            await self._persist_types(version_id, {name: t.value for name, t in types.items()})

        self.dataset = updated
        return updated

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run_pipeline(
        self,
        read: Callable[[], Awaitable[LoadedSource]],
        type_overrides: Optional[TypeOverrides]
    ) -> Dataset:
        self._transition(ProfilingState.READING_FILE)
        source = await read()

        self._transition(ProfilingState.PARSING_CSV)
        parsed = parse_csv(source.text, max_rows=self.config.sampling.max_rows)
        analysis = analyze_dataset_performance(parsed.column_count, parsed.total_rows)
        for recommendation in analysis.recommendations:
            logger.info(recommendation)
        await asyncio.sleep(0)

        names = parsed.headers.unique
        mapping = parsed.headers.mapping
        overrides = self._resolve_overrides(source.stored_types, names, mapping, strict=False)
        overrides.update(self._resolve_overrides(type_overrides or {}, names, mapping, strict=True))

        self._transition(ProfilingState.INFERRING_TYPES)
        types = await self._infer_types(parsed.rows, names, overrides)

        self._transition(ProfilingState.COMPUTING_STATISTICS)
        columns = await self._compute_statistics(parsed, types)

        self._transition(ProfilingState.DETECTING_DUPLICATES)
        duplicates = await self._detect_duplicates(parsed)

        self._transition(ProfilingState.COMPUTING_CORRELATION)
        correlation = await self._compute_correlation(parsed, types)

        self._transition(ProfilingState.FINALIZING)
        dataset = Dataset(
            filename=source.filename,
            column_names=list(names),
            original_column_names=list(parsed.headers.original),
            column_mapping=mapping,
            row_count=parsed.total_rows,
            rows=parsed.rows,
            is_sampled=parsed.is_sampled,
            separator=parsed.separator,
            columns=columns,
            missing_values_count=sum(column.missing_values for column in columns),
            duplicates=duplicates,
            data_types=self._tally_types(columns),
            correlation=correlation,
        )
        dataset.quality = calculate_quality_scores(dataset)

        self._transition(ProfilingState.COMPLETE)
        return dataset

    async def _infer_types(
        self,
        rows: Sequence[Row],
        names: Sequence[str],
        overrides: Dict[str, ColumnType]
    ) -> Dict[str, ColumnType]:
        base = STAGE_PROGRESS[ProfilingState.INFERRING_TYPES]
        batch_size = self.config.processing.batch_size
        types: Dict[str, ColumnType] = {}

        for start in range(0, len(names), batch_size):
            for index in range(start, min(start + batch_size, len(names))):
                name = names[index]
                types[name] = self.inferrer.resolve([row[index] for row in rows], overrides.get(name))
            done = min(start + batch_size, len(names))
            self._report(base + INFERENCE_SPAN * done / len(names), f"Inferred {done}/{len(names)} column types")
            await asyncio.sleep(0)

        return types

    @staticmethod
    def _column_payloads(parsed: ParsedCSV, types: Dict[str, ColumnType], indices: Sequence[int]) -> List[ColumnPayload]:
        names = parsed.headers.unique
        originals = parsed.headers.original
        return [
            (names[i], originals[i], [row[i] for row in parsed.rows], types[names[i]])
            for i in indices
        ]

    def _worker_usable(self, cells: int) -> bool:
        if not self.config.worker.enabled or self.worker is None or not self.worker.available:
            return False
        if cells > self.config.worker.cell_limit:
            logger.debug(f"{cells:,} cells exceed the worker limit, processing on the event loop")
            return False
        return True

    async def _compute_statistics(self, parsed: ParsedCSV, types: Dict[str, ColumnType]) -> List[ColumnInfo]:
        if self._worker_usable(len(parsed.rows) * parsed.column_count):
            try:
                return await self._statistics_in_worker(parsed, types)
            except WorkerError as exc:
                logger.warning(f"Worker failed, computing statistics on the event loop: {exc.message}")
        return await self._statistics_in_loop(parsed, types)

    async def _statistics_in_worker(self, parsed: ParsedCSV, types: Dict[str, ColumnType]) -> List[ColumnInfo]:
        base = STAGE_PROGRESS[ProfilingState.COMPUTING_STATISTICS]
        batch_size = self.config.worker.batch_size
        count = parsed.column_count
        payloads = [
            {
                'calculator': self.calculator,
                'columns': self._column_payloads(parsed, types, range(start, min(start + batch_size, count))),
            }
            for start in range(0, count, batch_size)
        ]

        def on_progress(done: int, total: int) -> None:
            self._report(base + STATISTICS_SPAN * done / total, f"Processed {done}/{total} column batches")

        batches = await self.worker.submit_batches(TaskType.PROCESS_COLUMNS, payloads, on_progress)
        return [info for batch in batches for info in batch]

    async def _statistics_in_loop(self, parsed: ParsedCSV, types: Dict[str, ColumnType]) -> List[ColumnInfo]:
        base = STAGE_PROGRESS[ProfilingState.COMPUTING_STATISTICS]
        batch_size = self.config.processing.batch_size
        count = parsed.column_count
        columns: List[ColumnInfo] = []

        for start in range(0, count, batch_size):
            end = min(start + batch_size, count)
            columns.extend(process_columns(self.calculator, self._column_payloads(parsed, types, range(start, end))))
            self._report(base + STATISTICS_SPAN * end / count, f"Processed {end}/{count} columns")
            await asyncio.sleep(0)

        return columns

    async def _detect_duplicates(self, parsed: ParsedCSV) -> DuplicateReport:
        if self._worker_usable(len(parsed.rows) * parsed.column_count):
            try:
                return await self.worker.submit(
                    TaskType.DETECT_DUPLICATES,
                    {
                        'detector': self.duplicate_detector,
                        'rows': parsed.rows,
                        'column_count': parsed.column_count,
                        'total_rows': parsed.total_rows,
                    },
                )
            except WorkerError as exc:
                logger.warning(f"Worker failed, detecting duplicates on the event loop: {exc.message}")

        report = self.duplicate_detector.detect(parsed.rows, parsed.column_count, parsed.total_rows)
        await asyncio.sleep(0)
        return report

    async def _compute_correlation(self, parsed: ParsedCSV, types: Dict[str, ColumnType]) -> CorrelationResult:
        if not self.config.correlation.enabled:
            return CorrelationResult()

        names = parsed.headers.unique
        originals = parsed.headers.original
        if self._worker_usable(len(parsed.rows) * parsed.column_count):
            try:
                return await self.worker.submit(
                    TaskType.CALCULATE_CORRELATION,
                    {
                        'engine': self.correlation_engine,
                        'rows': parsed.rows,
                        'column_names': list(names),
                        'column_types': dict(types),
                        'display_names': list(originals),
                    },
                )
            except WorkerError as exc:
                logger.warning(f"Worker failed, computing correlation on the event loop: {exc.message}")

        result = self._correlate_in_loop(parsed.rows, names, types, originals)
        await asyncio.sleep(0)
        return result

    def _correlate_in_loop(
        self,
        rows: Sequence[Row],
        names: Sequence[str],
        types: Mapping[str, ColumnType],
        originals: Sequence[str]
    ) -> CorrelationResult:
        if not self.config.correlation.enabled:
            return CorrelationResult()
        return self.correlation_engine.calculate(rows, names, types, originals)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _tally_types(columns: Sequence[ColumnInfo]) -> Dict[str, int]:
        return dict(Counter(column.type.value for column in columns))

    @staticmethod
    def _resolve_overrides(
        overrides: TypeOverrides,
        names: Sequence[str],
        mapping: ColumnMapping,
        strict: bool
    ) -> Dict[str, ColumnType]:
        """
        Map override keys to column identifiers and parse their types.

        A key may be a unique identifier or an original header; a duplicated
        header applies to every column generated from it, except columns
        named by their own identifier in the same map. With strict=False
        (persisted maps) unknown columns and types are skipped with a warning.
        """
        known = set(names)
        resolved: Dict[str, ColumnType] = {}
        explicit = set()
        for key, value in overrides.items():
            if key in mapping.original_to_ids:
                targets = mapping.original_to_ids[key]
            elif key in known:
                targets = [key]
            elif strict:
                raise ProfilerConfigError(f"Unknown column '{key}'", field=key)
            else:
                logger.warning(f"Ignoring stored type for unknown column '{key}'")
                continue

            try:
                column_type = ColumnType.parse(value)
            except ProfilerConfigError:
                if strict:
                    raise
                logger.warning(f"Ignoring unknown stored type '{value}' for column '{key}'")
                continue

            for target in targets:
                if target != key and target in explicit:
                    continue
                resolved[target] = column_type
                if target == key:
                    explicit.add(target)
        return resolved

    async def _with_retry(self, operation: Callable[[], Awaitable[Any]], description: str) -> Any:
        return await retry_async(
            operation,
            description,
            max_retries=self.config.retry.max_retries,
            delay=self.config.retry.delay_seconds,
        )

    async def _persist_types(self, version_id: str, data_types: Dict[str, str]) -> None:
        await self._with_retry(
            lambda: asyncio.to_thread(self.version_store.update_data_types, version_id, data_types),
            f"Saving column types for version {version_id}"
        )
        logger.info(f"Saved {len(data_types)} column types to version {version_id}")
