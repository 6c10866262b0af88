"""
Dataset Profiler Constants.

This module defines the thresholds, caps and defaults used throughout the
profiling pipeline. Centralizing these values keeps the individual components
free of magic numbers and documents where each limit comes from.
"""

# ============================================================================
# File Input Limits
# ============================================================================

# Hard upload cap. Files at or above this size are rejected before reading.
MAX_FILE_SIZE_BYTES: int = 100 * 1024 * 1024  # 100MB

# Encodings attempted, in order, when decoding a CSV file
CSV_ENCODINGS: tuple = ('utf-8', 'utf-8-sig', 'cp1252', 'latin-1')

# Separators recognised by the separator detector
SUPPORTED_SEPARATORS: tuple = (',', ';')
DEFAULT_SEPARATOR: str = ','

# Lines inspected by the separator detector
SEPARATOR_SAMPLE_LINES: int = 5

# A separator whose total count is at least this multiple of the other wins
SEPARATOR_DOMINANCE_RATIO: float = 3.0

# Cell values (case-insensitive) treated as missing when parsing
NULL_TOKENS: frozenset = frozenset({'', 'na', 'null'})


# ============================================================================
# Configuration Security Limits
# ============================================================================

MAX_YAML_FILE_SIZE: int = 1 * 1024 * 1024  # 1MB
MAX_YAML_NESTING_DEPTH: int = 10
MAX_YAML_KEY_COUNT: int = 1_000
MAX_YAML_STRING_LENGTH: int = 10_000


# ============================================================================
# Row Sampling
# ============================================================================

# Rows held in memory for an ordinary file
DEFAULT_MAX_ROWS: int = 10_000

# Smallest configurable budget: one row per head, middle and tail slice
MIN_SAMPLE_ROWS: int = 4

# Reduced budgets for large files: (row threshold, sample size)
LARGE_FILE_ROW_THRESHOLD: int = 50_000
LARGE_FILE_MAX_ROWS: int = 7_500
VERY_LARGE_FILE_ROW_THRESHOLD: int = 100_000
VERY_LARGE_FILE_MAX_ROWS: int = 5_000


# ============================================================================
# Type Inference
# ============================================================================

# Coarse (quantitative/qualitative) classifier
COARSE_INFERENCE_SAMPLE_SIZE: int = 100
COARSE_NUMERIC_RATIO: float = 0.6

# Fine (numeric/boolean/datetime/categorical/text) classifier
FINE_TYPE_RATIO: float = 0.8
CATEGORICAL_UNIQUE_RATIO: float = 0.2

BOOLEAN_STRINGS: frozenset = frozenset({'true', 'false', 'yes', 'no'})


# ============================================================================
# Column Statistics
# ============================================================================

OUTLIER_IQR_MULTIPLIER: float = 1.5
SKEWNESS_THRESHOLD: float = 1.0

# Histogram bucket bounds
MIN_HISTOGRAM_BUCKETS: int = 5
MAX_HISTOGRAM_BUCKETS: int = 20
WIDE_RANGE_MAX_BUCKETS: int = 15

# Range/row ratio above which a range is considered very wide
WIDE_RANGE_FACTOR: int = 10

# Fewer unique values than this: one bucket per unique value
LOW_CARDINALITY_UNIQUE: int = 10

# Narrow ranges with more unique values than this get extra buckets
NARROW_RANGE_LIMIT: float = 10.0
NARROW_RANGE_MIN_UNIQUE: int = 5

# Width added past max so the last bucket is closed on the right
HISTOGRAM_EDGE_EPSILON: float = 0.0001


# ============================================================================
# Duplicate Detection
# ============================================================================

DUPLICATE_ROW_SAMPLE_SIZE: int = 10_000
DUPLICATE_COLUMN_SAMPLE_SIZE: int = 1_000


# ============================================================================
# Correlation
# ============================================================================

MAX_CORRELATION_COLUMNS: int = 20
MAX_CORRELATION_ROWS: int = 5_000

STRONG_CORRELATION: float = 0.7
MODERATE_CORRELATION: float = 0.5
WEAK_CORRELATION: float = 0.3


# ============================================================================
# Orchestration
# ============================================================================

# Columns per batch on the event loop and in the background worker
MAIN_THREAD_BATCH_SIZE: int = 3
WORKER_BATCH_SIZE: int = 5

# Largest rows x columns volume handed to the background worker
WORKER_CELL_LIMIT: int = 100_000

# Wall-clock guard for one profiling run (seconds)
PROCESSING_TIMEOUT_SECONDS: float = 30.0

# ============================================================================
# Storage and Remote Analysis
# ============================================================================

MAX_RETRIES: int = 3
RETRY_DELAY_SECONDS: float = 1.0

RAW_DATA_BUCKET: str = 'raw-data'
PROCESSED_DATA_BUCKET: str = 'processed-data'

PRE_ANALYSIS_POLL_INTERVAL_SECONDS: float = 3.0
REMOTE_REQUEST_TIMEOUT_SECONDS: float = 30.0


# ============================================================================
# Dataset Performance Analysis
# ============================================================================

LARGE_DATASET_COLUMNS: int = 1_000
LARGE_DATASET_ROWS: int = 5_000
VERY_LARGE_DATASET_COLUMNS: int = 2_000
VERY_LARGE_DATASET_ROWS: int = 10_000

# Bytes assumed per cell when estimating memory use
BYTES_PER_CELL: int = 8


# ============================================================================
# Data Quality Scores
# ============================================================================

# Accuracy reported when a dataset has no numeric columns
DEFAULT_ACCURACY_SCORE: int = 90

# (minimum score, label), checked in order
QUALITY_LABELS: tuple = (
    (90, 'Excellent'),
    (80, 'Good'),
    (70, 'Fair'),
    (50, 'Poor'),
    (0, 'Very Poor'),
)
