"""
Host hardware identification.

CPU and GPU names are looked up once per process through the platform's
usual tools; every lookup degrades to "Unknown" rather than raising.
"""

import functools
import logging
import platform
import sys
from pathlib import Path

from ..models.runtime import HostSnapshot
from .commands import is_tool_installed, run_command
from .stats import MetricSampler

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


@functools.lru_cache(maxsize=1)
def get_cpu_name() -> str:
    """Return the CPU model name."""
    cpu_name = ""
    if sys.platform == "darwin":
        rc, out, _ = run_command(["sysctl", "-n", "machdep.cpu.brand_string"])
        if rc == 0:
            cpu_name = " ".join(out.split())
    elif sys.platform.startswith("linux"):
        cpuinfo = Path("/proc/cpuinfo")
        try:
            for line in cpuinfo.read_text(errors="replace").splitlines():
                if line.startswith("model name"):
                    cpu_name = line.split(":", 1)[1].strip()
                    break
        except OSError as e:
            logger.debug(f"Cannot read {cpuinfo}: {e}")

    if not cpu_name and is_tool_installed("lscpu"):
        rc, out, _ = run_command(["lscpu"])
        if rc == 0:
            for line in out.splitlines():
                if line.startswith("Model name"):
                    cpu_name = line.split(":", 1)[1].strip()
                    break

    if not cpu_name:
        cpu_name = platform.processor()

    return cpu_name or UNKNOWN


def _amd_gpu_from_drm() -> str:
    for uevent in sorted(Path("/sys/class/drm").glob("card?/device/uevent")):
        try:
            content = uevent.read_text(errors="replace")
        except OSError:
            continue
        if "DRIVER=amdgpu" not in content:
            continue
        device_file = uevent.parent / "device"
        try:
            return f"AMD GPU ({device_file.read_text().strip()})"
        except OSError:
            return "AMD GPU"
    return ""


@functools.lru_cache(maxsize=1)
def get_gpu_name() -> str:
    """Return the name of the first GPU found."""
    gpu_name = ""
    if is_tool_installed("nvidia-smi"):
        rc, out, _ = run_command(["nvidia-smi", "--query-gpu=name", "--format=csv,noheader"])
        if rc == 0:
            gpu_name = _first_line(out)
    elif sys.platform.startswith("linux") and Path("/sys/class/drm").is_dir() and _amd_gpu_from_drm():
        gpu_name = _amd_gpu_from_drm()
    elif sys.platform == "darwin" and is_tool_installed("system_profiler"):
        rc, out, _ = run_command(["system_profiler", "SPDisplaysDataType"])
        if rc == 0:
            for line in out.splitlines():
                if "Chipset Model:" in line:
                    gpu_name = line.split(":", 1)[1].strip()
                    break
    elif is_tool_installed("lspci"):
        rc, out, _ = run_command(["lspci"])
        if rc == 0:
            for line in out.splitlines():
                lowered = line.lower()
                if "vga" in lowered or "3d" in lowered or "2d" in lowered:
                    parts = line.split(":", 2)
                    gpu_name = parts[-1].strip()
                    break

    return gpu_name or UNKNOWN


def take_host_snapshot(sampler: MetricSampler) -> HostSnapshot:
    """Capture CPU usage and hardware names for one trial."""
    return HostSnapshot(
        cpu_usage=sampler.cpu_usage(),
        cpu_name=get_cpu_name(),
        gpu_name=get_gpu_name(),
    )


def log_gpu_resources() -> None:
    """Log GPU utilization after a trial, where the platform exposes it."""
    if is_tool_installed("nvidia-smi"):
        rc, out, _ = run_command(
            [
                "nvidia-smi",
                "--query-gpu=utilization.gpu,memory.used,temperature.gpu",
                "--format=csv,noheader,nounits",
            ]
        )
        line = _first_line(out) if rc == 0 else ""
        fields = [f.strip() for f in line.split(",")]
        if len(fields) == 3:
            logger.debug(
                f"  GPU Usage: {fields[0]}%, Memory: {fields[1]} MiB, Temperature: {fields[2]}C"
            )
        else:
            logger.debug("  GPU statistics could not be parsed")
    elif sys.platform == "darwin":
        logger.debug("  Apple GPU: Limited monitoring available")
    elif is_tool_installed("intel_gpu_top"):
        logger.debug("  Intel GPU monitoring data available (intel_gpu_top)")
    else:
        logger.debug("  GPU monitoring not available for this platform")
