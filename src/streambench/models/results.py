"""
Trial result data model.

A `TrialResult` is created once per trial by the aggregator and is immutable
afterwards. It knows how to render itself as a row of the run-scoped log and
of the persistent cross-run log.
"""

from dataclasses import astuple, dataclass
from typing import List

# Column names of the run-scoped log, in order.
RUN_LOG_HEADER: List[str] = [
    "TestIteration",
    "StreamCount",
    "ActiveStreams",
    "FailedStreams",
    "CPUUsage",
    "CPUName",
    "GPUName",
    "Resolution",
    "InputCodec",
    "Encoder",
    "AvgReadIOPS",
    "AvgWriteIOPS",
    "RunID",
    "VideoFile",
]

# The persistent log carries one extra trailing column.
PERSISTENT_LOG_HEADER: List[str] = RUN_LOG_HEADER + ["Timestamp"]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def sanitize_field(value: object) -> str:
    """Render a value as a single CSV field; embedded separators would shift columns."""
    return str(value).replace("\r", " ").replace("\n", " ").replace(",", ";").strip()


@dataclass(frozen=True)
class TrialResult:
    """Summary of one trial, in log column order."""

    iteration: int
    requested_streams: int
    active_count: int
    failed_count: int
    cpu_usage: str
    cpu_name: str
    gpu_name: str
    resolution: str
    input_codec: str
    encoder_name: str
    avg_read_iops: int
    avg_write_iops: int
    run_id: str
    video_file: str
    timestamp: str

    @property
    def succeeded(self) -> bool:
        return self.failed_count == 0

    def to_run_row(self) -> List[str]:
        """The 14 fields of the run-scoped log."""
        return [sanitize_field(v) for v in astuple(self)[: len(RUN_LOG_HEADER)]]

    def to_persistent_row(self) -> List[str]:
        """The 15 fields of the persistent log."""
        return [sanitize_field(v) for v in astuple(self)]

    def to_run_line(self) -> str:
        return ",".join(self.to_run_row())

    def to_persistent_line(self) -> str:
        return ",".join(self.to_persistent_row())
