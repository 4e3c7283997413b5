"""
Benchmark orchestration.

This package contains the components that run a benchmark:

- LoadController: escalates the stream count trial by trial
- StreamPairLauncher: starts and verifies producer/consumer pairs
- HealthMonitor: watches slots and samples metrics during a trial
- TrialAggregator: turns a trial into a logged TrialResult and a verdict
- Reaper: stops all processes between trials
- ResultLogManager: trial logs, summary report and output pruning
- SignalHandler: turns SIGINT/SIGTERM into a clean cancellation
"""

from .aggregator import TrialAggregator, average_iops
from .health_monitor import HealthMonitor
from .launcher import LaunchResult, StreamPairLauncher
from .load_controller import LoadController
from .log_manager import ResultLogManager
from .reaper import Reaper
from .shared_state import RuntimeState, TimeoutConstants
from .signal_handler import SignalHandler

__all__ = [
    "TrialAggregator",
    "average_iops",
    "HealthMonitor",
    "LaunchResult",
    "StreamPairLauncher",
    "LoadController",
    "ResultLogManager",
    "Reaper",
    "RuntimeState",
    "TimeoutConstants",
    "SignalHandler",
]
