"""
Result log management for the orchestration module.

This module owns the benchmark's output files: the run-scoped trial log that
is rewritten at the start of every run, the persistent log that accumulates
across runs, the plain-text summary report and the final pruning of the
output directory.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..models.config import BenchmarkConfig
from ..models.results import PERSISTENT_LOG_HEADER, RUN_LOG_HEADER, TrialResult
from ..models.runtime import BenchmarkRun
from ..system.host_info import get_cpu_name, get_gpu_name
from ..validation import SetupFailure

logger = logging.getLogger(__name__)

SUMMARY_RULE = "=" * 53

# Patterns of files that survive pruning besides the logs and the summary.
KEPT_PATTERNS = ("*.json", "*.parquet", "*.html")


class ResultLogManager:
    """
    Handles the CSV trial logs and the summary report.
    """

    def __init__(self, config: BenchmarkConfig):
        self.config = config

    def initialize_logs(self) -> None:
        """
        Create the output directory, reset the run log and make sure the
        persistent log has its header.

        Raises:
            SetupFailure: If the output directory or logs cannot be written
        """
        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config.run_log_file, "w", encoding="utf-8") as f:
                f.write(",".join(RUN_LOG_HEADER) + "\n")
            persistent = self.config.persistent_log_file
            if not persistent.exists():
                with open(persistent, "w", encoding="utf-8") as f:
                    f.write(",".join(PERSISTENT_LOG_HEADER) + "\n")
                logger.info(f"Created persistent log {persistent}")
        except OSError as e:
            raise SetupFailure(f"Cannot initialize logs in {self.config.output_dir}: {e}") from e

    def append_trial(self, result: TrialResult) -> None:
        """Append one trial to both logs."""
        with open(self.config.run_log_file, "a", encoding="utf-8") as f:
            f.write(result.to_run_line() + "\n")
        with open(self.config.persistent_log_file, "a", encoding="utf-8") as f:
            f.write(result.to_persistent_line() + "\n")

    def find_run_row(self, stream_count: int) -> Optional[List[str]]:
        """Return the run log fields of the trial that requested `stream_count` streams."""
        try:
            with open(self.config.run_log_file, "r", encoding="utf-8") as f:
                next(f, None)
                for line in f:
                    fields = line.rstrip("\n").split(",")
                    if len(fields) > 1 and fields[1] == str(stream_count):
                        return fields
        except FileNotFoundError:
            return None
        return None

    def write_summary_report(self, run: BenchmarkRun) -> Path:
        """
        Write `benchmark_summary.txt` for a finished or interrupted run.

        Returns:
            Path of the written report.
        """
        config = self.config
        if run.trials:
            cpu_name, gpu_name = run.trials[-1].cpu_name, run.trials[-1].gpu_name
        else:
            cpu_name, gpu_name = get_cpu_name(), get_gpu_name()

        lines = [
            SUMMARY_RULE,
            "  Streaming Benchmark Summary",
            SUMMARY_RULE,
            "",
            f" Test performed on: {datetime.now().strftime('%a %b %d %H:%M:%S %Y')}",
            f" Run ID: {run.run_id}",
            f" Video file: {run.input_file}",
            f" - Video filename: {Path(run.input_file).name}",
            f" Resolution: {run.video.friendly_resolution} ({run.video.resolution})",
            f" Input codec: {run.video.codec}",
            "",
            " Hardware details:",
            f" - CPU: {cpu_name}",
            f" - GPU: {gpu_name}",
            f" - Hardware acceleration: {run.hw_accel.method}",
            f" - Encoder used: {run.encoder_name}",
            "",
            " Results:",
            f" - Maximum successful streams: {run.max_successful_streams}",
            f" - Test duration per stream count: {config.trial_duration:g} seconds",
        ]
        if run.interrupted:
            lines.append(" - Run was interrupted before completion")

        row = self.find_run_row(run.max_successful_streams)
        if row is not None and len(row) >= 12:
            lines += [
                "",
                " IOPS Metrics at max streams:",
                f" - Average Read IOPS: {row[10]}",
                f" - Average Write IOPS: {row[11]}",
            ]

        lines += ["", f" For detailed metrics, see: {config.run_log_file}", ""]
        if config.debug:
            lines.append(f" Debug mode was enabled - detailed logs were preserved in: {config.output_dir}/")
        else:
            lines.append(" Debug mode was disabled - only summary data was preserved")

        config.summary_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info(f"Summary report generated: {config.summary_file}")
        return config.summary_file

    def prune_output_dir(self) -> int:
        """
        Outside diagnostic mode, delete everything in the output directory
        except the logs, the summary and exported data.

        Returns:
            Number of files removed.
        """
        if self.config.debug:
            return 0

        output_dir = self.config.output_dir
        if not output_dir.is_dir():
            return 0

        keep = {
            self.config.run_log_file.name,
            self.config.persistent_log_file.name,
            self.config.summary_file.name,
        }
        removed = 0
        for path in output_dir.iterdir():
            if not path.is_file() or path.name in keep:
                continue
            if any(path.match(pattern) for pattern in KEPT_PATTERNS):
                continue
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.warning(f"Could not remove {path}: {e}")
        if removed:
            logger.debug(f"Removed {removed} intermediate files from {output_dir}")
        return removed
