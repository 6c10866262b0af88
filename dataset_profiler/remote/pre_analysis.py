"""
Remote pre-analysis client.

The pre-analysis service is an external job: a configuration is POSTed to
<base_url>/pre-analysis and the service later writes its result into the
version record's pre_analysis field. The client polls the version store at a
fixed interval until that field is populated.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from dataset_profiler.core.constants import (
    PRE_ANALYSIS_POLL_INTERVAL_SECONDS,
    REMOTE_REQUEST_TIMEOUT_SECONDS,
)
from dataset_profiler.core.exceptions import ProfilerConfigError, RemoteAnalysisError
from dataset_profiler.core.retry import retry_async
from dataset_profiler.profiler.profile_result import Dataset
from dataset_profiler.storage.base import VersionStore

logger = logging.getLogger(__name__)

PRE_ANALYSIS_MODELS = (
    'Linear Regression',
    'Logistic Regression',
    'Decision Trees',
    'Support Vector Machines',
    'K-Nearest Neighbors',
    'Random Forests',
    'Gradient Boosting',
    'Neural Networks',
    'Linear Discriminant Analysis',
)

DEFAULT_THRESHOLDS: Dict[str, float] = {
    'threshold_check_categorical': 0.3,
    'threshold_check_skewness': 1,
    'threshold_sampling': 100,
    'threshold_check_dimensionality': 0.5,
    'threshold_check_multicollinearity': 0.8,
}


@dataclass
class PreAnalysisConfig:
    """Request body for the pre-analysis endpoint."""
    task_id: str
    model: str = 'Logistic Regression'
    target: Optional[str] = None
    threshold_check_categorical: float = DEFAULT_THRESHOLDS['threshold_check_categorical']
    threshold_check_skewness: float = DEFAULT_THRESHOLDS['threshold_check_skewness']
    threshold_sampling: float = DEFAULT_THRESHOLDS['threshold_sampling']
    threshold_check_dimensionality: float = DEFAULT_THRESHOLDS['threshold_check_dimensionality']
    threshold_check_multicollinearity: float = DEFAULT_THRESHOLDS['threshold_check_multicollinearity']
    columns: Optional[Dict[str, Dict[str, Any]]] = None
    method: str = field(default='pre_analysis', init=False)

    def to_payload(self) -> Dict[str, Any]:
        return {
            'task_id': self.task_id,
            'method': self.method,
            'model': self.model,
            'target': self.target,
            'threshold_check_categorical': self.threshold_check_categorical,
            'threshold_check_skewness': self.threshold_check_skewness,
            'threshold_sampling': self.threshold_sampling,
            'threshold_check_dimensionality': self.threshold_check_dimensionality,
            'threshold_check_multicollinearity': self.threshold_check_multicollinearity,
            'columns': self.columns,
        }


def build_pre_analysis_config(
    dataset: Dataset,
    task_id: str,
    model: str = 'Logistic Regression',
    target: Optional[str] = None,
    thresholds: Optional[Mapping[str, float]] = None,
    selected_columns: Optional[Sequence[str]] = None
) -> PreAnalysisConfig:
    """
    Build a request from a profiled dataset.

    Args:
        dataset: Profiled dataset supplying column names and types
        task_id: Task the analysis belongs to
        model: One of PRE_ANALYSIS_MODELS
        target: Target column identifier
        thresholds: Overrides for DEFAULT_THRESHOLDS
        selected_columns: Restrict the analysis to these columns; all when None

    Raises:
        ProfilerConfigError: On an unknown model, threshold or column
    """
    if model not in PRE_ANALYSIS_MODELS:
        raise ProfilerConfigError(f"Unknown model '{model}'", field='model')
    if target is not None and target not in dataset.column_names:
        raise ProfilerConfigError(f"Unknown target column '{target}'", field='target')

    values = dict(DEFAULT_THRESHOLDS)
    for key, value in (thresholds or {}).items():
        if key not in DEFAULT_THRESHOLDS:
            raise ProfilerConfigError(f"Unknown threshold '{key}'", field=key)
        values[key] = value

    columns = None
    if selected_columns is not None:
        types = dataset.column_types
        unknown: List[str] = [name for name in selected_columns if name not in types]
        if unknown:
            raise ProfilerConfigError(f"Unknown columns: {', '.join(unknown)}", field='columns')
        columns = {
            name: {
                'type': 'QUANTITATIVE' if types[name].is_numeric else 'QUALITATIVE',
                'step': None,
                'value': None,
            }
            for name in selected_columns
        }

    return PreAnalysisConfig(task_id=task_id, model=model, target=target, columns=columns, **values)


class PreAnalysisClient:
    """
    Submit pre-analysis jobs and wait for their results.

    Attributes:
        base_url: Service root URL
        version_store: Store the service writes results into
        poll_interval: Seconds between result checks
    """

    def __init__(
        self,
        base_url: str,
        version_store: VersionStore,
        request_timeout: float = REMOTE_REQUEST_TIMEOUT_SECONDS,
        poll_interval: float = PRE_ANALYSIS_POLL_INTERVAL_SECONDS,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not base_url:
            raise ProfilerConfigError("Pre-analysis base URL is not configured", field='remote.base_url')
        self.base_url = base_url.rstrip('/')
        self.version_store = version_store
        self.request_timeout = request_timeout
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport

    async def submit(self, config: PreAnalysisConfig) -> Dict[str, Any]:
        """
        POST the configuration.

        Returns:
            The response body when it is a JSON object, else an empty dict

        Raises:
            RemoteAnalysisError: On a transport error or non-2xx response
        """
        url = f"{self.base_url}/pre-analysis"
        try:
            async with httpx.AsyncClient(timeout=self.request_timeout, transport=self._transport) as client:
                response = await client.post(url, json=config.to_payload())
        except httpx.HTTPError as e:
            raise RemoteAnalysisError(f"Pre-analysis request failed: {e}", original_exception=e)

        if response.is_error:
            raise RemoteAnalysisError(
                f"Pre-analysis request rejected with HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code
            )

        logger.info(f"Submitted pre-analysis for task {config.task_id}")
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    async def wait_for_result(self, version_id: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Poll the version record until its pre-analysis result is populated.

        Args:
            version_id: Version the result is written to
            timeout: Give up after this many seconds; poll forever when None

        Raises:
            RemoteAnalysisError: If the timeout elapses first
            StorageError: If reading the version keeps failing
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        polls = 0
        while True:
            result = await retry_async(
                lambda: asyncio.to_thread(self.version_store.get_pre_analysis, version_id),
                f"Reading pre-analysis for {version_id}",
                max_retries=self.max_retries,
                delay=self.retry_delay,
            )
            polls += 1
            if result:
                logger.info(f"Pre-analysis for version {version_id} ready after {polls} poll(s)")
                return result
            if deadline is not None and time.monotonic() + self.poll_interval > deadline:
                raise RemoteAnalysisError(f"Pre-analysis result for version {version_id} not ready after {timeout:g}s")
            await asyncio.sleep(self.poll_interval)

    async def run(self, config: PreAnalysisConfig, version_id: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Submit and wait for the result."""
        await self.submit(config)
        return await self.wait_for_result(version_id, timeout)
