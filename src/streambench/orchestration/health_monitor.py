"""
Trial health monitoring.

Watches the slots of a running trial for a fixed wall-clock duration,
sampling disk activity at one cadence and checking process liveness at
another. Slots whose processes die are marked failed; in diagnostic mode the
output of surviving slots is additionally scanned for error text once the
window closes.
"""

import logging
import sys
import time
from typing import Callable, List, Optional, TextIO, Tuple

from ..classification import LogErrorScanner
from ..models.config import BenchmarkConfig
from ..models.runtime import MetricSample, SlotStatus, StreamSlot
from ..system.stats import MetricSampler
from ..validation import BenchmarkInterrupted, HeuristicErrorDetected, ProcessDeath
from .shared_state import RuntimeState, TimeoutConstants

logger = logging.getLogger(__name__)


class HealthMonitor:
    """
    Synchronous polling loop over the slots of one trial.

    `clock` and `sleep` are injectable so the loop can be driven by a fake
    clock in tests.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        sampler: MetricSampler,
        scanner: Optional[LogErrorScanner] = None,
        state: Optional[RuntimeState] = None,
        out: Optional[TextIO] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.sampler = sampler
        self.scanner = scanner or LogErrorScanner()
        self.state = state
        self.out = out or sys.stdout
        self._clock = clock
        self._sleep = sleep

    def monitor(self, slots: List[StreamSlot], duration: float) -> Tuple[List[StreamSlot], List[MetricSample]]:
        """
        Run the monitoring window.

        Args:
            slots: The slots of the current trial; modified in place
            duration: Window length in seconds

        Returns:
            The same slots and the metric samples collected.
        """
        timing = self.config.timing
        self.out.write(f"  Monitoring streams for {duration:g} seconds...\n  [")
        self.out.flush()

        samples: List[MetricSample] = [self.sampler.sample()]
        start = self._clock()
        last_sample = start
        # Check liveness on the first pass, before any sleep.
        last_check = start - timing.check_interval

        while self._clock() - start < duration:
            if self.state is not None and self.state.shutdown_requested.is_set():
                raise BenchmarkInterrupted()

            self.out.write("#")
            self.out.flush()

            now = self._clock()
            if now - last_sample >= timing.sample_interval:
                samples.append(self.sampler.sample())
                last_sample = now

            if now - last_check >= timing.check_interval:
                self._check_slots(slots)
                last_check = now
                if slots and all(slot.status.is_failed for slot in slots):
                    logger.warning("All streams have failed, ending monitoring early")
                    break

            self._sleep(TimeoutConstants.MONITOR_TICK)

        self.out.write("] Done.\n")
        self.out.flush()

        if self.config.debug:
            self._scan_active_slots(slots)

        return slots, samples

    def _check_slots(self, slots: List[StreamSlot]) -> None:
        for slot in slots:
            if slot.status is not SlotStatus.ACTIVE:
                continue
            producer_alive = slot.producer is not None and slot.producer.is_alive()
            consumer_alive = slot.consumer is not None and slot.consumer.is_alive()
            if producer_alive and consumer_alive:
                continue

            death = ProcessDeath(slot.slot_id, producer_alive, consumer_alive)
            slot.mark_failed(death)
            logger.warning(str(death))
            if self.config.debug:
                self._log_error_lines(slot.slot_id)

    def _log_error_lines(self, slot_id: int) -> None:
        limit = TimeoutConstants.MAX_LOGGED_ERROR_LINES
        producer_log = self.config.producer_log(slot_id)
        consumer_log = self.config.consumer_log(slot_id)
        for line in self.scanner.producer_errors(producer_log)[:limit]:
            logger.debug(f"  {producer_log.name}: {line}")
        for line in self.scanner.consumer_errors(consumer_log)[:limit]:
            logger.debug(f"  {consumer_log.name}: {line}")

    def _scan_active_slots(self, slots: List[StreamSlot]) -> None:
        """Downgrade nominally active slots whose output shows errors."""
        for slot in slots:
            if slot.status is not SlotStatus.ACTIVE:
                continue
            has_errors, matches = self.scanner.slot_has_errors(
                self.config.producer_log(slot.slot_id),
                self.config.consumer_log(slot.slot_id),
            )
            if has_errors:
                slot.mark_failed_with_errors(HeuristicErrorDetected(slot.slot_id, matches))
                logger.warning(f"Stream {slot.slot_id} output contains errors")
                for line in matches[: TimeoutConstants.MAX_LOGGED_ERROR_LINES]:
                    logger.debug(f"    {line}")
