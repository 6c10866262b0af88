"""
Shared pytest fixtures for the dataset profiler test suite.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from dataset_profiler.core.config import ProfilerConfig
from dataset_profiler.profiler.worker import BackgroundWorker
from dataset_profiler.storage.local import LocalObjectStore, LocalVersionStore


SALES_CSV = """order_id,region,amount,quantity,shipped
1,north,10.5,1,true
2,south,20.0,2,false
3,north,30.25,3,true
4,east,,4,true
5,south,1000,5,false
6,north,12.0,6,true
"""


@pytest.fixture
def sales_csv() -> str:
    """Small comma-separated file with one missing amount and one outlier."""
    return SALES_CSV


@pytest.fixture
def sales_file(tmp_path: Path, sales_csv: str) -> Path:
    """sales_csv written to disk."""
    path = tmp_path / "sales.csv"
    path.write_text(sales_csv, encoding="utf-8")
    return path


@pytest.fixture
def loop_config() -> ProfilerConfig:
    """Configuration that keeps every step on the event loop."""
    config = ProfilerConfig()
    config.worker.enabled = False
    return config


@pytest.fixture
def thread_worker():
    """Background worker backed by a thread pool, shut down after the test."""
    worker = BackgroundWorker(
        mode="thread",
        executor_factory=lambda: ThreadPoolExecutor(max_workers=2),
    )
    yield worker
    worker.shutdown()


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for stored objects and versions."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir(exist_ok=True)
    return data_dir


@pytest.fixture
def object_store(temp_data_dir: Path) -> LocalObjectStore:
    return LocalObjectStore(str(temp_data_dir))


@pytest.fixture
def version_store(temp_data_dir: Path) -> LocalVersionStore:
    return LocalVersionStore(str(temp_data_dir))


@pytest.fixture
def package_logger():
    """Restore the package logger after tests that call setup_logging."""
    logger = logging.getLogger("dataset_profiler")
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    level, handlers, propagate = saved
    logger.setLevel(level)
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = propagate
