"""
Background Worker - owned executor for heavy profiling steps.

The worker wraps a concurrent.futures executor with an explicit lifecycle:

    - created lazily on the first request and reused afterwards
    - disposed by shutdown() (or leaving the context manager)
    - permanently disabled after any failure, after which available is False
      and the orchestrator runs everything on the event loop

Requests carry a batch identifier. submit_batches() returns results in
submission order even though executor futures complete in any order.

Usage:
    with BackgroundWorker() as worker:
        orchestrator = ProfilingOrchestrator(worker=worker)
        dataset = await orchestrator.profile_file('sales.csv')
"""

import asyncio
import logging
import threading
import uuid
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

from dataset_profiler.core.exceptions import WorkerError
from dataset_profiler.profiler.tasks import TaskType, run_task

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class BackgroundWorker:
    """
    Lazily created executor with fallback-on-failure semantics.

    Attributes:
        mode: 'process' for a process pool, 'thread' for a thread pool
        max_workers: Executor size
    """

    def __init__(
        self,
        mode: str = 'process',
        max_workers: int = 1,
        executor_factory: Optional[Callable[[], Executor]] = None
    ):
        if mode not in ('process', 'thread'):
            raise ValueError(f"Unknown worker mode: {mode}")
        self.mode = mode
        self.max_workers = max_workers
        self._executor_factory = executor_factory
        self._executor: Optional[Executor] = None
        self._lock = threading.Lock()
        self._failed = False
        self._closed = False
        self.failure_reason: Optional[str] = None

    @property
    def available(self) -> bool:
        return not self._failed and not self._closed

    @property
    def started(self) -> bool:
        return self._executor is not None

    def _get_executor(self) -> Executor:
        with self._lock:
            if not self.available:
                raise WorkerError(f"Worker unavailable: {self.failure_reason or 'shut down'}")
            if self._executor is None:
                try:
                    self._executor = self._create_executor()
                except (OSError, RuntimeError, ValueError) as exc:
                    self._failed = True
                    self.failure_reason = f"executor could not be started: {exc}"
                    logger.warning(f"Disabling background worker: {self.failure_reason}")
                    raise WorkerError(
                        f"Worker unavailable: {self.failure_reason}",
                        original_exception=exc
                    ) from exc
                logger.debug(f"Started {self.mode} worker with {self.max_workers} worker(s)")
            return self._executor

    def _create_executor(self) -> Executor:
        if self._executor_factory is not None:
            return self._executor_factory()
        if self.mode == 'process':
            return ProcessPoolExecutor(max_workers=self.max_workers)
        return ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='profiler-worker')

    async def submit(self, task_type: TaskType, payload: Dict[str, Any], batch_id: Optional[str] = None) -> Any:
        """
        Run one request in the executor.

        Raises:
            WorkerError: If the worker is unavailable or the task failed; the
                worker is disabled in the latter case
        """
        batch_id = batch_id or uuid.uuid4().hex
        executor = self._get_executor()
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(executor, run_task, task_type, payload)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._disable(f"{task_type.value} batch {batch_id} failed: {exc}")
            raise WorkerError(
                f"Background task {task_type.value} failed: {exc}",
                batch_id=batch_id,
                original_exception=exc
            ) from exc

    async def submit_batches(
        self,
        task_type: TaskType,
        payloads: Sequence[Dict[str, Any]],
        on_progress: Optional[ProgressCallback] = None
    ) -> List[Any]:
        """
        Run several requests concurrently and reassemble them in order.

        Args:
            task_type: Request kind shared by all payloads
            payloads: One payload per batch
            on_progress: Called with (completed, total) as batches finish

        Returns:
            Results in the order of payloads
        """
        run_id = uuid.uuid4().hex[:8]
        batch_ids = [f"{run_id}-{index}" for index in range(len(payloads))]

        async def tagged(batch_id: str, payload: Dict[str, Any]):
            return batch_id, await self.submit(task_type, payload, batch_id)

        pending = [asyncio.ensure_future(tagged(b, p)) for b, p in zip(batch_ids, payloads)]
        results: Dict[str, Any] = {}
        try:
            for completed, future in enumerate(asyncio.as_completed(pending), start=1):
                batch_id, result = await future
                results[batch_id] = result
                if on_progress is not None:
                    on_progress(completed, len(payloads))
        finally:
            for task in pending:
                if not task.done():
                    task.cancel()
            # Collect outcomes of siblings so their errors are not reported as unretrieved
            await asyncio.gather(*pending, return_exceptions=True)

        return [results[batch_id] for batch_id in batch_ids]

    def _disable(self, reason: str) -> None:
        logger.warning(f"Disabling background worker: {reason}")
        self._failed = True
        self.failure_reason = reason
        self._dispose()

    def _dispose(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    def shutdown(self) -> None:
        """Dispose of the executor; the worker cannot be used afterwards."""
        self._closed = True
        self._dispose()

    def __enter__(self) -> "BackgroundWorker":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
