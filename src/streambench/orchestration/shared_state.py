"""
Shared data structures for the orchestration module.

This module defines the runtime state and constants used across the
launcher, monitor, reaper and load controller.
"""

import threading
from dataclasses import dataclass, field
from typing import List

from ..system.processes import ProcessHandle


@dataclass
class RuntimeState:
    """
    Runtime state shared across orchestration components.

    `tracked_processes` is the reaper's registry: every handle the launcher
    spawns is added here immediately and removed only by the reaper.
    """
    tracked_processes: List[ProcessHandle] = field(default_factory=list)
    shutdown_requested: threading.Event = field(default_factory=threading.Event)
    current_trial: int = 0

    def track(self, handle: ProcessHandle) -> None:
        self.tracked_processes.append(handle)


class TimeoutConstants:
    """
    Fixed timeouts that are not user configurable.
    """
    # Health monitor loop granularity
    MONITOR_TICK = 1.0

    # Lines of process output kept as launch diagnostics
    DIAGNOSTIC_TAIL_LINES = 10

    # Maximum error lines logged per process in diagnostic mode
    MAX_LOGGED_ERROR_LINES = 5

    # Orphan sweep
    ORPHAN_KILL_TIMEOUT = 2.0
