"""
Process cleanup between trials.

The reaper terminates every tracked producer and consumer, sweeps up media
processes that escaped tracking, clears the registry and, outside diagnostic
mode, deletes the per-process output files.
"""

import logging
import time
from typing import Callable, List

import psutil

from ..models.config import BenchmarkConfig
from ..system.processes import ProcessHandle, find_processes_by_name, kill_processes
from .shared_state import RuntimeState, TimeoutConstants

logger = logging.getLogger(__name__)

PROCESS_LOG_PATTERNS = ("server_*.log", "client_*.log")


class Reaper:
    """
    Idempotent cleanup of all processes started by the benchmark.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        state: RuntimeState,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        find_orphans: Callable[[str], List[psutil.Process]] = find_processes_by_name,
        kill_orphans: Callable[..., int] = kill_processes,
    ):
        self.config = config
        self.state = state
        self._sleep = sleep
        self._clock = clock
        self._find_orphans = find_orphans
        self._kill_orphans = kill_orphans

    def cleanup(self) -> None:
        """
        Stop everything and reset bookkeeping. Safe to call at any time and
        any number of times; individual failures are logged, never raised.
        """
        handles = list(self.state.tracked_processes)
        if handles:
            logger.debug(f"Stopping {len(handles)} tracked processes")
            self._sleep(self.config.timing.reaper_settle_delay)
            self._terminate_all(handles)
        self.state.tracked_processes.clear()

        if self.config.media.sweep_orphans:
            self._sweep_orphans()

        if not self.config.debug:
            self._purge_process_logs()

    def _terminate_all(self, handles: List[ProcessHandle]) -> None:
        for handle in handles:
            try:
                if handle.is_alive():
                    handle.terminate()
            except (OSError, psutil.Error) as e:
                logger.warning(f"Error terminating {handle.name}: {e}")

        deadline = self._clock() + self.config.timing.termination_grace
        for handle in handles:
            try:
                if handle.is_alive():
                    remaining = max(deadline - self._clock(), 0.0)
                    if not handle.wait(remaining) and handle.is_alive():
                        logger.debug(f"{handle.name} ignored SIGTERM, killing")
                        handle.force_kill()
                        handle.wait(TimeoutConstants.ORPHAN_KILL_TIMEOUT)
            except (OSError, psutil.Error) as e:
                logger.warning(f"Error killing {handle.name}: {e}")
            finally:
                handle.close()

    def _sweep_orphans(self) -> None:
        process_name = self.config.media.process_name
        try:
            orphans = self._find_orphans(process_name)
            if orphans:
                logger.debug(f"Killing {len(orphans)} remaining '{process_name}' processes")
                self._kill_orphans(orphans, timeout=TimeoutConstants.ORPHAN_KILL_TIMEOUT)
        except (OSError, psutil.Error) as e:
            logger.warning(f"Orphan sweep for '{process_name}' failed: {e}")

    def _purge_process_logs(self) -> None:
        output_dir = self.config.output_dir
        if not output_dir.is_dir():
            return
        for pattern in PROCESS_LOG_PATTERNS:
            for path in output_dir.glob(pattern):
                try:
                    path.unlink()
                except FileNotFoundError:
                    continue
                except OSError as e:
                    logger.warning(f"Could not remove {path}: {e}")
