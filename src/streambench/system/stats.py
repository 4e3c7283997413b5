"""
Host metric sampling.

The sampler reads cumulative disk operation counters through psutil and turns
two readings into per-second read/write IOPS. When the host cannot be queried
the sampler returns a conservative default sample instead of failing the
trial.
"""

import logging
import time
from typing import Callable, Optional, Tuple

import psutil

from ..models.runtime import MetricSample
from ..validation import MetricUnavailable

logger = logging.getLogger(__name__)

# Returned when a reading is missing or zero.
DEFAULT_READ_IOPS = 50
DEFAULT_WRITE_IOPS = 25


class MetricSampler:
    """
    On-demand disk IOPS and CPU utilization readings.
    """

    def __init__(
        self,
        sample_window: float = 1.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sample_window = sample_window
        self._clock = clock
        self._sleep = sleep

    def read_disk_iops(self) -> Tuple[int, int]:
        """
        Measure read and write operations per second over the sample window.

        Raises:
            MetricUnavailable: If disk counters cannot be read
        """
        try:
            first = psutil.disk_io_counters()
            self._sleep(self.sample_window)
            second = psutil.disk_io_counters()
        except (OSError, RuntimeError, AttributeError) as e:
            raise MetricUnavailable(f"disk counters unavailable: {e}") from e

        if first is None or second is None:
            raise MetricUnavailable("no disks reported by the host")

        window = self.sample_window or 1.0
        read_iops = int(max(second.read_count - first.read_count, 0) / window)
        write_iops = int(max(second.write_count - first.write_count, 0) / window)
        return read_iops, write_iops

    def sample(self) -> MetricSample:
        """Take one IOPS sample, falling back to defaults for missing values."""
        read_iops: Optional[int] = None
        write_iops: Optional[int] = None
        try:
            read_iops, write_iops = self.read_disk_iops()
        except MetricUnavailable as e:
            logger.warning(f"Disk metrics unavailable, using defaults: {e}")

        sample = MetricSample(
            timestamp=self._clock(),
            read_iops=read_iops or DEFAULT_READ_IOPS,
            write_iops=write_iops or DEFAULT_WRITE_IOPS,
        )
        logger.debug(f"IOPS measurement: Read={sample.read_iops}, Write={sample.write_iops}")
        return sample

    def cpu_usage(self) -> str:
        """Current CPU utilization in whole percent, as logged."""
        try:
            usage = psutil.cpu_percent(interval=self.sample_window)
        except (OSError, RuntimeError) as e:
            logger.warning(f"CPU usage unavailable: {e}")
            return "0"
        return str(int(round(usage)))
