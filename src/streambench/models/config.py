"""
Configuration data models.

The benchmark configuration is an explicit immutable value that is built once
from `config.toml` plus command-line overrides and then handed to the load
controller and its components. Nothing reads process-wide variables.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class TimingConfig:
    """
    Named delays and cadences, loaded from the `[timing]` table.

    All values are seconds.
    """

    # Producer startup verification: longer outside diagnostic mode so that
    # slow encoder initialisation is not reported as a failure.
    startup_grace: float = 8.0
    startup_grace_debug: float = 3.0
    # Extra wait after early VideoToolbox errors (outside diagnostic mode only).
    videotoolbox_extra_grace: float = 3.0
    # Pause between a verified producer and its consumer, and before the
    # consumer liveness check.
    consumer_start_delay: float = 1.0
    consumer_check_delay: float = 1.0
    # Pacing between consecutive slot launches.
    inter_launch_delay: float = 5.0
    inter_launch_delay_debug: float = 1.0
    # Health monitor cadences.
    check_interval: float = 5.0
    sample_interval: float = 10.0
    # Window over which one IOPS sample is measured.
    sample_window: float = 1.0
    # Reaper delays.
    reaper_settle_delay: float = 2.0
    termination_grace: float = 1.0


@dataclass(frozen=True)
class MediaConfig:
    """
    External media tool settings, loaded from the `[media]` table.
    """

    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    # Process name used by the reaper's orphan sweep.
    process_name: str = "ffmpeg"
    video_bitrate: str = "3M"
    # How long a producer waits for its consumer to connect (microseconds).
    listen_timeout_us: int = 5000000
    sweep_orphans: bool = True


@dataclass(frozen=True)
class BenchmarkConfig:
    """
    The complete, validated configuration of one benchmark invocation.
    """

    # [benchmark]
    port_start: int = 8090
    max_streams: int = 100
    trial_duration: float = 60.0
    output_dir: Path = Path("./logs")
    debug: bool = False
    hw_accel: str = "auto"

    # [general]
    run_id_file: Path = Path("~/.streambench/run_id")
    videos_dir: Path = Path("videos")
    skip_plots: bool = True
    export_parquet: bool = True

    timing: TimingConfig = field(default_factory=TimingConfig)
    media: MediaConfig = field(default_factory=MediaConfig)

    # Resolved input video; set by the CLI once the file is validated.
    input_file: Optional[Path] = None

    @property
    def run_log_file(self) -> Path:
        """Run-scoped log, truncated at the start of every run."""
        return self.output_dir / "stream.log"

    @property
    def persistent_log_file(self) -> Path:
        """Cross-run log, appended to by every run."""
        return self.output_dir / "stream_all.log"

    @property
    def summary_file(self) -> Path:
        return self.output_dir / "benchmark_summary.txt"

    @property
    def parquet_file(self) -> Path:
        return self.output_dir / "trial_results.parquet"

    @property
    def startup_grace(self) -> float:
        """Producer startup grace for the current mode."""
        if self.debug:
            return self.timing.startup_grace_debug
        return self.timing.startup_grace

    @property
    def inter_launch_delay(self) -> float:
        """Pacing between slot launches for the current mode."""
        if self.debug:
            return self.timing.inter_launch_delay_debug
        return self.timing.inter_launch_delay

    @property
    def ffmpeg_loglevel(self) -> str:
        return "info" if self.debug else "warning"

    def producer_log(self, slot_id: int) -> Path:
        return self.output_dir / f"server_{slot_id}.log"

    def consumer_log(self, slot_id: int) -> Path:
        return self.output_dir / f"client_{slot_id}.log"

    def with_overrides(self, **changes) -> "BenchmarkConfig":
        """Return a copy with the given fields replaced (None values are ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
