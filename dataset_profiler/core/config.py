"""Configuration parsing and validation."""

import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from dataset_profiler.core.constants import (
    CATEGORICAL_UNIQUE_RATIO,
    COARSE_INFERENCE_SAMPLE_SIZE,
    COARSE_NUMERIC_RATIO,
    DEFAULT_MAX_ROWS,
    DUPLICATE_COLUMN_SAMPLE_SIZE,
    DUPLICATE_ROW_SAMPLE_SIZE,
    FINE_TYPE_RATIO,
    MAIN_THREAD_BATCH_SIZE,
    MAX_CORRELATION_COLUMNS,
    MAX_CORRELATION_ROWS,
    MAX_FILE_SIZE_BYTES,
    MAX_RETRIES,
    MAX_YAML_FILE_SIZE,
    MAX_YAML_KEY_COUNT,
    MAX_YAML_NESTING_DEPTH,
    MAX_YAML_STRING_LENGTH,
    MIN_SAMPLE_ROWS,
    OUTLIER_IQR_MULTIPLIER,
    PRE_ANALYSIS_POLL_INTERVAL_SECONDS,
    PROCESSING_TIMEOUT_SECONDS,
    REMOTE_REQUEST_TIMEOUT_SECONDS,
    RETRY_DELAY_SECONDS,
    SKEWNESS_THRESHOLD,
    WORKER_BATCH_SIZE,
    WORKER_CELL_LIMIT,
)
from dataset_profiler.core.exceptions import (
    ProfilerConfigError,
    YAMLSizeError,
    ConfigValidationError,
)

# Environment variable naming a default configuration file for the CLI
CONFIG_ENV_VAR = 'DATASET_PROFILER_CONFIG'


@dataclass
class SamplingConfig:
    max_rows: int = DEFAULT_MAX_ROWS


@dataclass
class InferenceConfig:
    granularity: str = 'coarse'
    coarse_sample_size: int = COARSE_INFERENCE_SAMPLE_SIZE
    coarse_numeric_ratio: float = COARSE_NUMERIC_RATIO
    fine_ratio: float = FINE_TYPE_RATIO
    categorical_unique_ratio: float = CATEGORICAL_UNIQUE_RATIO


@dataclass
class StatisticsConfig:
    outlier_iqr_multiplier: float = OUTLIER_IQR_MULTIPLIER
    skewness_threshold: float = SKEWNESS_THRESHOLD


@dataclass
class DuplicatesConfig:
    row_sample_size: int = DUPLICATE_ROW_SAMPLE_SIZE
    column_sample_size: int = DUPLICATE_COLUMN_SAMPLE_SIZE


@dataclass
class CorrelationConfig:
    enabled: bool = True
    max_columns: int = MAX_CORRELATION_COLUMNS
    max_rows: int = MAX_CORRELATION_ROWS


@dataclass
class WorkerConfig:
    enabled: bool = True
    mode: str = 'process'
    max_workers: int = 1
    batch_size: int = WORKER_BATCH_SIZE
    cell_limit: int = WORKER_CELL_LIMIT


@dataclass
class ProcessingConfig:
    timeout_seconds: float = PROCESSING_TIMEOUT_SECONDS
    batch_size: int = MAIN_THREAD_BATCH_SIZE
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES


@dataclass
class RetryConfig:
    max_retries: int = MAX_RETRIES
    delay_seconds: float = RETRY_DELAY_SECONDS


@dataclass
class StorageConfig:
    data_dir: str = './data'


@dataclass
class RemoteConfig:
    base_url: Optional[str] = None
    request_timeout_seconds: float = REMOTE_REQUEST_TIMEOUT_SECONDS
    poll_interval_seconds: float = PRE_ANALYSIS_POLL_INTERVAL_SECONDS
    poll_timeout_seconds: Optional[float] = None


# Allowed values for string settings
_CHOICES = {
    'inference.granularity': ('coarse', 'fine'),
    'worker.mode': ('process', 'thread'),
}

# Settings that may be zero (everything else numeric must be positive)
_NON_NEGATIVE = {'retry.max_retries', 'retry.delay_seconds'}

# Settings with a larger lower bound
_MINIMUMS = {'sampling.max_rows': MIN_SAMPLE_ROWS}


@dataclass
class ProfilerConfig:
    """
    Profiler settings, one dataclass per YAML section.

    Example YAML:
        inference:
          granularity: fine
        correlation:
          max_columns: 10
        worker:
          enabled: false
    """
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    duplicates: DuplicatesConfig = field(default_factory=DuplicatesConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)

    # Security limits for YAML files
    MAX_YAML_FILE_SIZE = MAX_YAML_FILE_SIZE
    MAX_YAML_NESTING_DEPTH = MAX_YAML_NESTING_DEPTH
    MAX_YAML_KEYS = MAX_YAML_KEY_COUNT

    @classmethod
    def from_yaml(cls, config_path: str) -> "ProfilerConfig":
        """
        Load configuration from a YAML file.

        Security protections:
        - File size limit: 1 MB
        - Nesting depth limit: 10 levels
        - Total keys limit: 1,000 keys

        Raises:
            ProfilerConfigError: If file not found or invalid
            YAMLSizeError: If file exceeds size limit
            ConfigValidationError: If structure or values are invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ProfilerConfigError(f"Configuration file not found: {config_path}")

        file_size = os.path.getsize(config_file)
        if file_size > cls.MAX_YAML_FILE_SIZE:
            raise YAMLSizeError(
                f"Configuration file too large: {file_size:,} bytes. "
                f"Maximum allowed: {cls.MAX_YAML_FILE_SIZE:,} bytes",
                file_size=file_size,
                max_size=cls.MAX_YAML_FILE_SIZE
            )

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ProfilerConfigError(f"Failed to parse YAML file: {str(e)}")
        except UnicodeDecodeError as e:
            raise ProfilerConfigError(f"Invalid file encoding (expected UTF-8): {str(e)}")

        if config_dict is None:
            return cls()

        cls._validate_yaml_structure(config_dict)
        return cls.from_dict(config_dict)

    @classmethod
    def from_env(cls) -> "ProfilerConfig":
        """Load the file named by DATASET_PROFILER_CONFIG, or defaults when unset."""
        config_path = os.environ.get(CONFIG_ENV_VAR)
        if config_path:
            return cls.from_yaml(config_path)
        return cls()

    @classmethod
    def _validate_yaml_structure(cls, obj: Any, current_depth: int = 0, total_keys: List[int] = None) -> None:
        """
        Reject YAML that is too deep, too wide or holds huge strings.

        Args:
            obj: Object to validate (dict, list, or primitive)
            current_depth: Current nesting depth
            total_keys: Mutable list with single element tracking total key count
        """
        if total_keys is None:
            total_keys = [0]

        if current_depth > cls.MAX_YAML_NESTING_DEPTH:
            raise ConfigValidationError(
                f"YAML nesting depth exceeds maximum of {cls.MAX_YAML_NESTING_DEPTH} levels"
            )

        if isinstance(obj, dict):
            total_keys[0] += len(obj)
            if total_keys[0] > cls.MAX_YAML_KEYS:
                raise ConfigValidationError(
                    f"YAML structure contains more than {cls.MAX_YAML_KEYS:,} keys/items"
                )
            for value in obj.values():
                cls._validate_yaml_structure(value, current_depth + 1, total_keys)

        elif isinstance(obj, list):
            total_keys[0] += len(obj)
            if total_keys[0] > cls.MAX_YAML_KEYS:
                raise ConfigValidationError(
                    f"YAML structure contains more than {cls.MAX_YAML_KEYS:,} keys/items"
                )
            for item in obj:
                cls._validate_yaml_structure(item, current_depth + 1, total_keys)

        elif isinstance(obj, str) and len(obj) > MAX_YAML_STRING_LENGTH:
            raise ConfigValidationError(
                f"YAML contains string exceeding maximum length ({MAX_YAML_STRING_LENGTH:,}): '{obj[:50]}...'"
            )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "ProfilerConfig":
        """
        Build a configuration from nested dictionaries, validating every value.

        Raises:
            ConfigValidationError: On unknown sections/keys or invalid values
        """
        if not isinstance(config_dict, dict):
            raise ConfigValidationError(
                "Configuration must be a mapping of sections",
                expected="mapping",
                actual=type(config_dict).__name__
            )

        config = cls()
        section_names = {f.name for f in fields(cls)}
        for section_name, section_values in config_dict.items():
            if section_name not in section_names:
                raise ConfigValidationError(
                    f"Unknown configuration section '{section_name}'",
                    field=str(section_name),
                    expected=', '.join(sorted(section_names))
                )
            if section_values is None:
                continue
            if not isinstance(section_values, dict):
                raise ConfigValidationError(
                    f"Section '{section_name}' must be a mapping",
                    field=section_name,
                    expected="mapping",
                    actual=type(section_values).__name__
                )
            section = getattr(config, section_name)
            for key, value in section_values.items():
                cls._set_value(section, f"{section_name}.{key}", key, value)
        return config

    @staticmethod
    def _set_value(section: Any, path: str, key: str, value: Any) -> None:
        known = {f.name: f for f in fields(section)}
        if key not in known:
            raise ConfigValidationError(
                f"Unknown setting '{path}'",
                field=path,
                expected=', '.join(sorted(known))
            )

        default = getattr(type(section)(), key)
        if value is None and default is None:
            setattr(section, key, None)
            return

        if isinstance(default, bool) or (default is None and isinstance(value, bool)):
            if not isinstance(value, bool):
                raise ConfigValidationError(
                    f"'{path}' must be true or false", field=path, expected="bool", actual=repr(value)
                )
        elif isinstance(default, int) and not isinstance(default, bool):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigValidationError(
                    f"'{path}' must be an integer", field=path, expected="int", actual=repr(value)
                )
        elif isinstance(default, float) or key.endswith('_seconds'):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigValidationError(
                    f"'{path}' must be a number", field=path, expected="number", actual=repr(value)
                )
            value = float(value)
        elif not isinstance(value, str):
            raise ConfigValidationError(
                f"'{path}' must be a string", field=path, expected="str", actual=repr(value)
            )

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            minimum_ok = value >= 0 if path in _NON_NEGATIVE else value > 0
            if not minimum_ok:
                raise ConfigValidationError(
                    f"'{path}' must be {'non-negative' if path in _NON_NEGATIVE else 'positive'}",
                    field=path,
                    expected=">= 0" if path in _NON_NEGATIVE else "> 0",
                    actual=repr(value)
                )
            if path in _MINIMUMS and value < _MINIMUMS[path]:
                raise ConfigValidationError(
                    f"'{path}' must be at least {_MINIMUMS[path]}",
                    field=path,
                    expected=f">= {_MINIMUMS[path]}",
                    actual=repr(value)
                )
            if key.endswith('_ratio') and value > 1:
                raise ConfigValidationError(
                    f"'{path}' must be at most 1", field=path, expected="<= 1", actual=repr(value)
                )

        if path in _CHOICES:
            value = value.lower()
            if value not in _CHOICES[path]:
                raise ConfigValidationError(
                    f"'{path}' must be one of {', '.join(_CHOICES[path])}",
                    field=path,
                    expected=', '.join(_CHOICES[path]),
                    actual=repr(value)
                )

        setattr(section, key, value)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False)
