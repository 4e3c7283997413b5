"""
Runtime data models.

This module contains the data structures that live for the duration of a
benchmark run or a single trial: stream slots and their lifecycle, metric
samples, hardware/video descriptors and the run record itself.
"""

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

from ..validation import InvalidSlotTransition

if TYPE_CHECKING:
    from ..system.processes import ProcessHandle
    from ..validation import StreamBenchError
    from .results import TrialResult


class SlotStatus(enum.Enum):
    """Lifecycle state of one producer/consumer pair."""

    PENDING = "pending"
    ACTIVE = "active"
    FAILED = "failed"
    FAILED_WITH_ERRORS = "failed_with_errors"

    @property
    def is_failed(self) -> bool:
        return self in (SlotStatus.FAILED, SlotStatus.FAILED_WITH_ERRORS)


# Allowed forward moves; everything else is rejected.
_TRANSITIONS = {
    SlotStatus.PENDING: {SlotStatus.ACTIVE, SlotStatus.FAILED},
    SlotStatus.ACTIVE: {SlotStatus.FAILED, SlotStatus.FAILED_WITH_ERRORS},
    SlotStatus.FAILED: set(),
    SlotStatus.FAILED_WITH_ERRORS: set(),
}


@dataclass
class StreamSlot:
    """
    The producer/consumer pair and state of one stream within a trial.

    Status only ever moves forward: PENDING -> ACTIVE -> FAILED or
    FAILED_WITH_ERRORS, or PENDING -> FAILED when startup fails.
    """

    slot_id: int
    producer: Optional["ProcessHandle"] = None
    consumer: Optional["ProcessHandle"] = None
    status: SlotStatus = SlotStatus.PENDING
    failure: Optional["StreamBenchError"] = None

    def _move_to(self, new_status: SlotStatus) -> None:
        if new_status == self.status and new_status.is_failed:
            return
        if new_status not in _TRANSITIONS[self.status]:
            raise InvalidSlotTransition(
                f"Stream {self.slot_id} cannot move from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    def mark_active(self, producer: "ProcessHandle", consumer: "ProcessHandle") -> None:
        self._move_to(SlotStatus.ACTIVE)
        self.producer = producer
        self.consumer = consumer

    def mark_failed(self, reason: Optional["StreamBenchError"] = None) -> None:
        self._move_to(SlotStatus.FAILED)
        if reason is not None and self.failure is None:
            self.failure = reason

    def mark_failed_with_errors(self, reason: Optional["StreamBenchError"] = None) -> None:
        self._move_to(SlotStatus.FAILED_WITH_ERRORS)
        if reason is not None and self.failure is None:
            self.failure = reason

    @property
    def is_active(self) -> bool:
        return self.status is SlotStatus.ACTIVE


@dataclass(frozen=True)
class MetricSample:
    """One disk activity reading taken during a trial."""

    timestamp: float
    read_iops: int
    write_iops: int


@dataclass(frozen=True)
class HostSnapshot:
    """Host description captured once per trial."""

    cpu_usage: str
    cpu_name: str
    gpu_name: str


@dataclass(frozen=True)
class HwAccelConfig:
    """
    The hardware acceleration path chosen for the run.

    The benchmark core treats these values as opaque strings that are passed
    through to the media tool.
    """

    method: str
    encoder: str
    decoder: str = ""
    # Extra environment variables for the media tool processes.
    env: Dict[str, str] = field(default_factory=dict)

    @property
    def uses_hwaccel(self) -> bool:
        return self.method not in ("", "none")


@dataclass(frozen=True)
class VideoMetadata:
    """Read-only description of the input video."""

    resolution: str
    friendly_resolution: str
    codec: str


@dataclass(frozen=True)
class TrialContext:
    """Everything the aggregator needs besides slots and samples."""

    run_id: str
    video_file: Path
    hw_accel: HwAccelConfig
    video: VideoMetadata
    host: HostSnapshot


@dataclass
class BenchmarkRun:
    """
    The record of one benchmark invocation, owned by the load controller.
    """

    run_id: str
    hw_accel: HwAccelConfig
    video: VideoMetadata
    input_file: Path
    trials: List["TrialResult"] = field(default_factory=list)
    max_successful_streams: int = 0
    reached_ceiling: bool = False
    interrupted: bool = False

    @property
    def encoder_name(self) -> str:
        return self.hw_accel.encoder

    @property
    def decoder_name(self) -> str:
        return self.hw_accel.decoder
