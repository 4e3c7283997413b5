"""
System interaction utilities.

This module provides the host-facing pieces of the benchmark:

- Command execution with error handling and logging
- Process handles for spawned media processes, and orphan lookup
- Disk IOPS and CPU utilization sampling
- CPU/GPU identification
- The persisted run identifier
"""

from .commands import is_tool_installed, run_command
from .host_info import get_cpu_name, get_gpu_name, log_gpu_resources, take_host_snapshot
from .processes import ProcessHandle, find_processes_by_name, kill_processes, spawn_process
from .run_id import generate_run_id, load_or_create_run_id
from .stats import DEFAULT_READ_IOPS, DEFAULT_WRITE_IOPS, MetricSampler

__all__ = [
    # Commands
    "is_tool_installed",
    "run_command",
    # Host information
    "get_cpu_name",
    "get_gpu_name",
    "log_gpu_resources",
    "take_host_snapshot",
    # Processes
    "ProcessHandle",
    "find_processes_by_name",
    "kill_processes",
    "spawn_process",
    # Run identity
    "generate_run_id",
    "load_or_create_run_id",
    # Metrics
    "DEFAULT_READ_IOPS",
    "DEFAULT_WRITE_IOPS",
    "MetricSampler",
]
