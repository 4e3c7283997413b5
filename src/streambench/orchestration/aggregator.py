"""
Per-trial classification and aggregation.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, TextIO, Tuple

from ..models.config import BenchmarkConfig
from ..models.results import TIMESTAMP_FORMAT, TrialResult
from ..models.runtime import MetricSample, SlotStatus, StreamSlot, TrialContext
from ..system.stats import MetricSampler
from .log_manager import ResultLogManager

logger = logging.getLogger(__name__)


def average_iops(samples: List[MetricSample]) -> Tuple[int, int]:
    """Floor of the arithmetic mean of read and write IOPS."""
    count = len(samples)
    total_read = sum(s.read_iops for s in samples)
    total_write = sum(s.write_iops for s in samples)
    return total_read // count, total_write // count


class TrialAggregator:
    """
    Turns the slots and samples of a finished trial into a TrialResult,
    records it and decides whether the trial succeeded.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        log_manager: ResultLogManager,
        sampler: MetricSampler,
        out: Optional[TextIO] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.log_manager = log_manager
        self.sampler = sampler
        self.out = out or sys.stdout
        self._now = now

    def summarize(
        self,
        iteration: int,
        requested: int,
        slots: List[StreamSlot],
        samples: List[MetricSample],
        context: TrialContext,
    ) -> Tuple[TrialResult, bool]:
        """
        Build, log and report the result of one trial.

        Returns:
            Tuple of (result, verdict); the verdict is True when no slot failed.
        """
        active_count = sum(1 for slot in slots if slot.status is SlotStatus.ACTIVE)
        failed_count = sum(1 for slot in slots if slot.status.is_failed)

        if not samples:
            logger.debug("No samples collected during the trial, taking one now")
            samples = [self.sampler.sample()]
        avg_read, avg_write = average_iops(samples)

        result = TrialResult(
            iteration=iteration,
            requested_streams=requested,
            active_count=active_count,
            failed_count=failed_count,
            cpu_usage=context.host.cpu_usage,
            cpu_name=context.host.cpu_name,
            gpu_name=context.host.gpu_name,
            resolution=context.video.friendly_resolution,
            input_codec=context.video.codec,
            encoder_name=context.hw_accel.encoder,
            avg_read_iops=avg_read,
            avg_write_iops=avg_write,
            run_id=context.run_id,
            video_file=Path(context.video_file).name,
            timestamp=self._now().strftime(TIMESTAMP_FORMAT),
        )
        self.log_manager.append_trial(result)

        self.out.write(
            f"  Results: {active_count} streams active, {failed_count} failed, "
            f"CPU: {result.cpu_usage}%, Avg Read IOPS: {avg_read}, Avg Write IOPS: {avg_write}\n"
        )
        if self.config.debug and failed_count:
            self.out.write("  Failed streams:\n")
            for slot in slots:
                if slot.status.is_failed:
                    self.out.write(f"    - Stream {slot.slot_id} ({slot.status.value})\n")
        self.out.flush()

        logger.debug(f"Trial {iteration}: {len(samples)} samples, verdict {'pass' if result.succeeded else 'fail'}")
        return result, result.succeeded
