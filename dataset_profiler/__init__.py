"""Dataset Profiler - CSV structure and quality profiling."""

__version__ = "0.1.0"
