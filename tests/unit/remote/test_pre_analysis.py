"""
Unit tests for the remote pre-analysis client.

HTTP calls go through httpx.MockTransport; results are polled from a local
version store.
"""

import asyncio
import json

import httpx
import pytest

from dataset_profiler.core.exceptions import ProfilerConfigError, RemoteAnalysisError
from dataset_profiler.profiler.profile_result import Dataset
from dataset_profiler.profiler.row_parser import parse_csv
from dataset_profiler.profiler.statistics_calculator import StatisticsCalculator
from dataset_profiler.profiler.type_inferrer import TypeInferrer
from dataset_profiler.remote.pre_analysis import (
    DEFAULT_THRESHOLDS,
    PreAnalysisClient,
    build_pre_analysis_config,
)
from dataset_profiler.storage.base import VersionRecord


@pytest.fixture
def dataset(sales_csv):
    """Sales fixture with column types resolved."""
    parsed = parse_csv(sales_csv)
    names = parsed.headers.unique
    types = TypeInferrer().infer_columns(parsed.rows, names)
    calculator = StatisticsCalculator()
    return Dataset(
        filename="sales.csv",
        column_names=names,
        original_column_names=parsed.headers.original,
        column_mapping=parsed.headers.mapping,
        row_count=parsed.total_rows,
        rows=parsed.rows,
        columns=[
            calculator.calculate_column_stats([row[i] for row in parsed.rows], types[name], name)
            for i, name in enumerate(names)
        ],
    )


@pytest.fixture
def saved_version(version_store):
    version_store.save_version(VersionRecord(id='v1', task_id='t1', file_path='sales.csv'))
    return 'v1'


def make_client(version_store, handler, **kwargs):
    return PreAnalysisClient(
        'http://analysis.local/',
        version_store,
        transport=httpx.MockTransport(handler),
        retry_delay=0,
        **kwargs
    )


@pytest.mark.unit
class TestBuildPreAnalysisConfig:
    """Test request construction from a profiled dataset."""

    def test_defaults(self, dataset):
        """Test the default model and thresholds."""
        payload = build_pre_analysis_config(dataset, 't1').to_payload()

        assert payload['method'] == 'pre_analysis'
        assert payload['model'] == 'Logistic Regression'
        assert payload['columns'] is None
        for key, value in DEFAULT_THRESHOLDS.items():
            assert payload[key] == value

    def test_selected_columns(self, dataset):
        """Test selected columns carry a coarse type."""
        config = build_pre_analysis_config(dataset, 't1', target='shipped', selected_columns=['amount', 'region'])

        assert config.target == 'shipped'
        assert config.columns == {
            'amount': {'type': 'QUANTITATIVE', 'step': None, 'value': None},
            'region': {'type': 'QUALITATIVE', 'step': None, 'value': None},
        }

    def test_threshold_override(self, dataset):
        """Test thresholds can be overridden individually."""
        config = build_pre_analysis_config(dataset, 't1', thresholds={'threshold_sampling': 50})

        assert config.threshold_sampling == 50
        assert config.threshold_check_skewness == 1

    @pytest.mark.parametrize("kwargs, field", [
        ({'model': 'Deep Magic'}, 'model'),
        ({'target': 'nope'}, 'target'),
        ({'thresholds': {'threshold_unknown': 1}}, 'threshold_unknown'),
        ({'selected_columns': ['amount', 'nope']}, 'columns'),
    ])
    def test_validation(self, dataset, kwargs, field):
        """Test unknown models, columns and thresholds are rejected."""
        with pytest.raises(ProfilerConfigError) as exc_info:
            build_pre_analysis_config(dataset, 't1', **kwargs)
        assert exc_info.value.field == field


@pytest.mark.unit
class TestPreAnalysisClient:
    """Test submission and result polling."""

    def test_base_url_required(self, version_store):
        """Test the client needs a configured service URL."""
        with pytest.raises(ProfilerConfigError, match="base URL"):
            PreAnalysisClient('', version_store)

    @pytest.mark.asyncio
    async def test_submit(self, dataset, version_store):
        """Test the configuration is POSTed as JSON."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(202, json={'status': 'queued'})

        client = make_client(version_store, handler)
        body = await client.submit(build_pre_analysis_config(dataset, 't1'))

        assert body == {'status': 'queued'}
        assert str(requests[0].url) == 'http://analysis.local/pre-analysis'
        assert requests[0].method == 'POST'
        assert json.loads(requests[0].content)['task_id'] == 't1'

    @pytest.mark.asyncio
    async def test_submit_non_json_body(self, dataset, version_store):
        """Test an empty or non-JSON body is tolerated."""
        client = make_client(version_store, lambda request: httpx.Response(204))

        assert await client.submit(build_pre_analysis_config(dataset, 't1')) == {}

    @pytest.mark.asyncio
    async def test_submit_http_error(self, dataset, version_store):
        """Test non-2xx responses raise RemoteAnalysisError with the status."""
        client = make_client(version_store, lambda request: httpx.Response(500, text='boom'))

        with pytest.raises(RemoteAnalysisError) as exc_info:
            await client.submit(build_pre_analysis_config(dataset, 't1'))

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_submit_transport_error(self, dataset, version_store):
        """Test connection failures raise RemoteAnalysisError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(version_store, handler)

        with pytest.raises(RemoteAnalysisError, match="request failed"):
            await client.submit(build_pre_analysis_config(dataset, 't1'))

    @pytest.mark.asyncio
    async def test_wait_for_result(self, version_store, saved_version):
        """Test polling stops once the service writes the result."""
        client = make_client(version_store, lambda request: httpx.Response(200), poll_interval=0.01)
        asyncio.get_running_loop().call_later(
            0.05, version_store.set_pre_analysis, saved_version, {'recommendations': []}
        )

        result = await client.wait_for_result(saved_version, timeout=5)

        assert result == {'recommendations': []}

    @pytest.mark.asyncio
    async def test_wait_timeout(self, version_store, saved_version):
        """Test the wait gives up after the timeout."""
        client = make_client(version_store, lambda request: httpx.Response(200), poll_interval=0.01)

        with pytest.raises(RemoteAnalysisError, match="not ready"):
            await client.wait_for_result(saved_version, timeout=0.05)

    @pytest.mark.asyncio
    async def test_run(self, dataset, version_store, saved_version):
        """Test submit followed by polling."""
        def handler(request):
            version_store.set_pre_analysis(saved_version, {'done': True})
            return httpx.Response(200, json={})

        client = make_client(version_store, handler, poll_interval=0.01)

        assert await client.run(build_pre_analysis_config(dataset, 't1'), saved_version, timeout=1) == {'done': True}
