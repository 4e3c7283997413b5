"""
Command-line interface for the streambench stream capacity benchmark.

This module provides the CLI entry point: it parses arguments, loads and
overrides the configuration, prepares the input video, hardware acceleration
and run identity, runs the load controller and writes the end-of-run
artifacts.
"""

import argparse
import logging
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

import polars as pl

from .. import __version__
from ..config import HW_ACCEL_CHOICES, get_config, set_config_path
from ..media import (
    detect_hw_accel,
    download_videos,
    format_size,
    list_available_videos,
    probe_video,
    resolve_input_file,
    validate_input_file,
)
from ..media.video_info import find_default_video
from ..models.config import BenchmarkConfig
from ..models.runtime import BenchmarkRun
from ..orchestration import LoadController, ResultLogManager, RuntimeState, SignalHandler
from ..storage import export_run
from ..system import is_tool_installed, load_or_create_run_id
from ..validation import (
    BenchmarkInterrupted,
    SetupFailure,
    ValidationError,
    handle_cli_error,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
)

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

PLOTTER_PATH = Path(__file__).parent.parent.parent.parent / "tools" / "plotter.py"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streambench",
        description="Find how many concurrent hardware-accelerated streams this host can sustain.",
    )
    parser.add_argument("input_file", nargs="?", type=Path, help="Input video file.")
    parser.add_argument(
        "--hw-accel",
        type=str,
        help=f"Hardware acceleration method. One of: {', '.join(HW_ACCEL_CHOICES)}.",
    )
    parser.add_argument("--debug", action="store_true", help="Diagnostic mode: verbose logs, keep process output.")
    parser.add_argument("--duration", type=float, help="Seconds to monitor each trial.")
    parser.add_argument("--max-streams", type=int, help="Highest stream count to try.")
    parser.add_argument("--port-start", type=int, help="Base port; stream N listens on base + N.")
    parser.add_argument("--output-dir", type=Path, help="Directory for logs and reports.")
    parser.add_argument("--config", type=Path, help="Path to an alternative config.toml.")
    parser.add_argument("--download-videos", action="store_true", help="Download the sample videos and exit.")
    parser.add_argument("--list-videos", action="store_true", help="List available videos and exit.")
    parser.add_argument("--plots", action="store_true", help="Generate HTML plots after the run.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_cli_overrides(config: BenchmarkConfig, args: argparse.Namespace) -> BenchmarkConfig:
    """
    Return `config` with validated command-line values applied.

    Raises:
        ValidationError: If an override is out of range
    """
    hw_accel = None
    if args.hw_accel is not None:
        hw_accel = validate_enum_choice(args.hw_accel, HW_ACCEL_CHOICES, field_name="--hw-accel")

    max_streams = None
    if args.max_streams is not None:
        max_streams = validate_positive_integer(args.max_streams, min_value=1, max_value=1000, field_name="--max-streams")

    port_start = None
    if args.port_start is not None:
        port_start = validate_positive_integer(args.port_start, min_value=1024, max_value=65000, field_name="--port-start")

    duration = None
    if args.duration is not None:
        duration = validate_positive_float(args.duration, min_value=1.0, max_value=86400.0, field_name="--duration")

    updated = config.with_overrides(
        hw_accel=hw_accel,
        max_streams=max_streams,
        port_start=port_start,
        trial_duration=duration,
        output_dir=args.output_dir,
        debug=True if args.debug else None,
        skip_plots=False if args.plots else None,
    )
    if updated.port_start + updated.max_streams > 65535:
        raise ValidationError(
            f"Ports {updated.port_start + 1}..{updated.port_start + updated.max_streams} exceed 65535",
            field_name="--port-start",
            value=updated.port_start,
        )
    return updated


def list_videos(videos_dir: Path) -> None:
    videos = list_available_videos(videos_dir)
    if not videos:
        print(f"No videos found in {videos_dir}. Use --download-videos to fetch samples.")
        return
    print(f"Available videos in {videos_dir}:")
    for name, size in videos:
        print(f"  {name} ({format_size(size)})")


def prepare_input_file(config: BenchmarkConfig, input_file: Optional[Path]) -> Path:
    """
    Resolve and validate the video to benchmark with.

    Raises:
        ValidationError: If no usable video is found
    """
    if input_file is None:
        input_file = find_default_video(config.videos_dir)
        if input_file is None:
            raise ValidationError(
                f"No input file given and no videos found in {config.videos_dir}",
                field_name="input_file",
            )
        logger.info(f"No input file given, using {input_file}")
    resolved = resolve_input_file(input_file, config.videos_dir)
    return validate_input_file(resolved, config.media.ffprobe_binary)


def generate_plots(output_dir: Path) -> None:
    """Run the stand-alone plotter on the output directory."""
    logger.info("--- Starting plot generation via external tool ---")
    base_cmd = [sys.executable, str(PLOTTER_PATH), "--log-dir", str(output_dir)]
    for plotter_cmd in (base_cmd, base_cmd + ["--history"]):
        logger.info(f"Executing plotter: {' '.join(plotter_cmd)}")
        try:
            result = subprocess.run(plotter_cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            logger.error(f"Failed to execute plotter tool: {type(e).__name__}: {e}")
            return
        if result.stdout:
            logger.info("Plotter tool output:\n" + result.stdout)
        if result.returncode != 0:
            logger.warning(f"Plotter tool exited with code {result.returncode}:\n{result.stderr}")
    logger.info("--- Plot generation finished ---")


def finalize_run(config: BenchmarkConfig, run: BenchmarkRun, log_manager: ResultLogManager) -> None:
    """Write the summary, export results, plot and prune the output directory."""
    log_manager.write_summary_report(run)
    print(f"Summary report generated: {config.summary_file}")

    if config.export_parquet:
        try:
            export_run(run, config.parquet_file)
        except (OSError, pl.exceptions.PolarsError) as e:
            logger.warning(f"Could not export trial results to {config.parquet_file}: {e}")

    if not config.skip_plots and run.trials:
        generate_plots(config.output_dir)

    log_manager.prune_output_dir()


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for streambench.

    Exit codes: 0 when the benchmark completes, 1 on invalid input, setup
    failure or interruption by a signal.

    Raises:
        SystemExit: On configuration errors, validation failures or interruption.
    """
    args = build_parser().parse_args(argv)

    if args.config is not None:
        set_config_path(args.config)

    try:
        config = apply_cli_overrides(get_config(), args)
    except (FileNotFoundError, ValidationError, ValueError) as e:
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Diagnostic mode enabled")

    if args.list_videos:
        list_videos(config.videos_dir)
        return

    if args.download_videos:
        report = download_videos(config.videos_dir)
        list_videos(config.videos_dir)
        if report.failed:
            sys.exit(1)
        return

    if not is_tool_installed(config.media.ffmpeg_binary):
        logger.error(f"{config.media.ffmpeg_binary} is not installed or not on PATH")
        sys.exit(1)

    try:
        input_file = prepare_input_file(config, args.input_file)
    except ValidationError as e:
        handle_cli_error(error=e, context="input file validation", exit_code=1, logger=logger)

    config = config.with_overrides(input_file=input_file)
    log_manager = ResultLogManager(config)
    try:
        log_manager.initialize_logs()
        run_id = load_or_create_run_id(config.run_id_file)
    except SetupFailure as e:
        handle_cli_error(error=e, context="setup", exit_code=1, logger=logger)

    hw_accel = detect_hw_accel(config.hw_accel, config.media.ffmpeg_binary)
    video = probe_video(input_file, config.media.ffprobe_binary)

    run = BenchmarkRun(run_id=run_id, hw_accel=hw_accel, video=video, input_file=input_file)
    state = RuntimeState()
    controller = LoadController.from_config(config, state=state, log_manager=log_manager)

    logger.info(
        f"Starting benchmark: up to {config.max_streams} streams, {config.trial_duration:g}s per trial, "
        f"output in {config.output_dir}"
    )
    try:
        with SignalHandler(state):
            controller.run(run)
    except BenchmarkInterrupted as e:
        run.interrupted = True
        logger.error(f"Benchmark interrupted: {e}")
    finally:
        finalize_run(config, run, log_manager)

    if run.interrupted:
        sys.exit(1)


if __name__ == "__main__":
    main_cli()
