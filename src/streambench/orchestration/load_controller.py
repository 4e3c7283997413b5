"""
Escalating load controller.

Runs trials with 1, 2, 3, ... concurrent streams until a trial has a failed
stream or the configured maximum is reached. The number of streams of the
last fully successful trial is the benchmark's result.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional, TextIO

from ..classification import LogErrorScanner
from ..models.config import BenchmarkConfig
from ..models.runtime import BenchmarkRun, HostSnapshot, StreamSlot, TrialContext
from ..system.host_info import log_gpu_resources, take_host_snapshot
from ..system.stats import MetricSampler
from ..validation import BenchmarkInterrupted, LaunchFailure, ValidationError
from .aggregator import TrialAggregator
from .health_monitor import HealthMonitor
from .launcher import StreamPairLauncher
from .log_manager import ResultLogManager
from .reaper import Reaper
from .shared_state import RuntimeState

logger = logging.getLogger(__name__)

BANNER_WIDTH = 58


def _banner(lines: List[str]) -> str:
    inner = BANNER_WIDTH - 2
    body = [f"|{(' ' + line).ljust(inner)}|" for line in lines]
    rule = "+" + "-" * inner + "+"
    return "\n".join(["", rule, *body, rule, ""])


class LoadController:
    """
    Drives the trial sequence of one benchmark run.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        state: RuntimeState,
        launcher: StreamPairLauncher,
        monitor: HealthMonitor,
        aggregator: TrialAggregator,
        reaper: Reaper,
        sampler: MetricSampler,
        out: Optional[TextIO] = None,
        sleep: Callable[[float], None] = time.sleep,
        host_snapshot: Callable[[MetricSampler], HostSnapshot] = take_host_snapshot,
        gpu_reporter: Callable[[], None] = log_gpu_resources,
    ):
        self.config = config
        self.state = state
        self.launcher = launcher
        self.monitor = monitor
        self.aggregator = aggregator
        self.reaper = reaper
        self.sampler = sampler
        self.out = out or sys.stdout
        self._sleep = sleep
        self._host_snapshot = host_snapshot
        self._gpu_reporter = gpu_reporter

    @classmethod
    def from_config(
        cls,
        config: BenchmarkConfig,
        state: Optional[RuntimeState] = None,
        log_manager: Optional[ResultLogManager] = None,
        out: Optional[TextIO] = None,
    ) -> "LoadController":
        """Assemble a controller with the standard collaborators."""
        state = state or RuntimeState()
        out = out or sys.stdout
        scanner = LogErrorScanner()
        sampler = MetricSampler(sample_window=config.timing.sample_window)
        log_manager = log_manager or ResultLogManager(config)
        return cls(
            config=config,
            state=state,
            launcher=StreamPairLauncher(config, state, scanner),
            monitor=HealthMonitor(config, sampler, scanner, state=state, out=out),
            aggregator=TrialAggregator(config, log_manager, sampler, out=out),
            reaper=Reaper(config, state),
            sampler=sampler,
            out=out,
        )

    def _say(self, text: str) -> None:
        self.out.write(text + "\n")
        self.out.flush()

    def _launch_slots(self, stream_count: int, input_file: Path, run: BenchmarkRun) -> List[StreamSlot]:
        slots = [StreamSlot(slot_id=i) for i in range(1, stream_count + 1)]
        for slot in slots:
            if slot.slot_id > 1:
                self._sleep(self.config.inter_launch_delay)
            result = self.launcher.launch(slot.slot_id, input_file, run.hw_accel)
            if result.ok:
                slot.mark_active(result.producer, result.consumer)
                logger.debug(f"Started stream {slot.slot_id} on port {self.config.port_start + slot.slot_id}")
            else:
                slot.producer, slot.consumer = result.producer, result.consumer
                slot.mark_failed(LaunchFailure(slot.slot_id, result.failed_role, result.diagnostic))
        return slots

    def run_trial(self, iteration: int, stream_count: int, run: BenchmarkRun) -> bool:
        """
        Run one trial with `stream_count` streams and record its result.

        Returns:
            True when every stream survived the trial.
        """
        self.state.current_trial = iteration
        self._say(
            f"\nTest #{iteration}: Testing {stream_count} concurrent stream(s) "
            f"with {run.hw_accel.method} acceleration..."
        )

        self.reaper.cleanup()
        slots = self._launch_slots(stream_count, run.input_file, run)

        host = self._host_snapshot(self.sampler)
        slots, samples = self.monitor.monitor(slots, self.config.trial_duration)

        if self.config.debug:
            logger.debug("System state after test:")
            self._gpu_reporter()

        context = TrialContext(
            run_id=run.run_id,
            video_file=run.input_file,
            hw_accel=run.hw_accel,
            video=run.video,
            host=host,
        )
        result, verdict = self.aggregator.summarize(iteration, stream_count, slots, samples, context)
        run.trials.append(result)

        self.reaper.cleanup()
        return verdict

    def run(self, run: BenchmarkRun, max_streams: Optional[int] = None) -> int:
        """
        Escalate the stream count until a trial fails.

        Args:
            run: The run record; trials and the result are recorded on it
            max_streams: Upper bound on concurrent streams (defaults to the
                configured maximum)

        Returns:
            The highest stream count whose trial had no failed stream.

        Raises:
            ValidationError: If max_streams is below 1
            BenchmarkInterrupted: If a signal cancels the run; processes are
                cleaned up before the exception propagates
        """
        limit = self.config.max_streams if max_streams is None else max_streams
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(
                f"max_streams must be at least 1, got {limit!r}", field_name="max_streams", value=limit
            )

        self._say(f"Run ID: {run.run_id}")
        max_successful = 0
        try:
            for stream_count in range(1, limit + 1):
                passed = self.run_trial(stream_count, stream_count, run)
                if not passed:
                    self._say(_banner([
                        f"GPU reached its limit at {stream_count} streams",
                        "Some streams failed, indicating system cannot handle",
                        f"this load. Maximum reliable streams: {max_successful}",
                    ]))
                    break

                max_successful = stream_count
                run.max_successful_streams = max_successful
                if stream_count == limit:
                    run.reached_ceiling = True
                    logger.info(f"All {limit} streams completed successfully, the host may scale higher")
                    self._say(_banner([
                        f"All {limit} streams completed successfully",
                        "Your GPU might be able to handle more streams.",
                        "Increase max_streams in config.toml and run again.",
                    ]))
        except BenchmarkInterrupted:
            logger.warning("Benchmark interrupted, cleaning up running streams")
            run.interrupted = True
            run.max_successful_streams = max_successful
            self.reaper.cleanup()
            raise

        run.max_successful_streams = max_successful
        self._say(
            f"\nBenchmark complete! Maximum successful streams: {max_successful} "
            f"with {run.hw_accel.method} acceleration"
        )
        self._say(f"Check {self.config.run_log_file} for detailed performance data.")
        return max_successful
