"""
Data models for the benchmark.

Configuration Models:
- Immutable benchmark configuration with named timing and media settings

Runtime Models:
- Stream slots and their monotonic lifecycle
- Metric samples, host snapshots, hardware acceleration and video descriptors
- The benchmark run record

Result Models:
- Per-trial results and the log column contracts
"""

from .config import BenchmarkConfig, MediaConfig, TimingConfig
from .results import PERSISTENT_LOG_HEADER, RUN_LOG_HEADER, TrialResult
from .runtime import (
    BenchmarkRun,
    HostSnapshot,
    HwAccelConfig,
    MetricSample,
    SlotStatus,
    StreamSlot,
    TrialContext,
    VideoMetadata,
)

__all__ = [
    # Configuration
    "BenchmarkConfig",
    "MediaConfig",
    "TimingConfig",
    # Runtime
    "BenchmarkRun",
    "HostSnapshot",
    "HwAccelConfig",
    "MetricSample",
    "SlotStatus",
    "StreamSlot",
    "TrialContext",
    "VideoMetadata",
    # Results
    "PERSISTENT_LOG_HEADER",
    "RUN_LOG_HEADER",
    "TrialResult",
]
