"""
Conversion of trial results to and from tabular form.

The CSV trial logs are the primary record; this module turns them, or the
in-memory results of a run, into typed Polars frames and exports them next to
the logs.
"""

import logging
from dataclasses import astuple
from pathlib import Path
from typing import Any, Dict, List, Optional

import polars as pl

from ..models.results import PERSISTENT_LOG_HEADER, RUN_LOG_HEADER, TrialResult
from ..models.runtime import BenchmarkRun
from .base import DataStorage
from .factory import create_storage

logger = logging.getLogger(__name__)

# Column name -> dtype for both log layouts.
LOG_SCHEMA: Dict[str, Any] = {
    "TestIteration": pl.Int64,
    "StreamCount": pl.Int64,
    "ActiveStreams": pl.Int64,
    "FailedStreams": pl.Int64,
    "CPUUsage": pl.Utf8,
    "CPUName": pl.Utf8,
    "GPUName": pl.Utf8,
    "Resolution": pl.Utf8,
    "InputCodec": pl.Utf8,
    "Encoder": pl.Utf8,
    "AvgReadIOPS": pl.Int64,
    "AvgWriteIOPS": pl.Int64,
    "RunID": pl.Utf8,
    "VideoFile": pl.Utf8,
    "Timestamp": pl.Utf8,
}


def trials_to_dataframe(trials: List[TrialResult]) -> pl.DataFrame:
    """Build a frame with the persistent log's columns from in-memory results."""
    columns: Dict[str, List[Any]] = {name: [] for name in PERSISTENT_LOG_HEADER}
    for trial in trials:
        for name, value in zip(PERSISTENT_LOG_HEADER, astuple(trial)):
            columns[name].append(value)
    schema = {name: LOG_SCHEMA[name] for name in PERSISTENT_LOG_HEADER}
    df = pl.DataFrame(columns, schema=schema)
    return df.with_columns(pl.col("CPUUsage").cast(pl.Int64, strict=False))


def load_trial_log(path: Path) -> pl.DataFrame:
    """
    Read a run-scoped or persistent trial log into a typed frame.

    Raises:
        FileNotFoundError: If the log does not exist
        ValueError: If the header matches neither log layout
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        header = f.readline().strip().split(",")
    if header not in (RUN_LOG_HEADER, PERSISTENT_LOG_HEADER):
        raise ValueError(f"{path} is not a trial log (header: {header})")

    schema = {name: LOG_SCHEMA[name] for name in header}
    df = pl.read_csv(path, schema=schema, has_header=True)
    return df.with_columns(pl.col("CPUUsage").cast(pl.Int64, strict=False))


def run_metadata(run: BenchmarkRun) -> Dict[str, Any]:
    """Flat description of a run for the JSON sidecar."""
    return {
        "run_id": run.run_id,
        "input_file": str(run.input_file),
        "hw_accel": run.hw_accel.method,
        "encoder": run.encoder_name,
        "decoder": run.decoder_name,
        "resolution": run.video.resolution,
        "friendly_resolution": run.video.friendly_resolution,
        "codec": run.video.codec,
        "trials": len(run.trials),
        "max_successful_streams": run.max_successful_streams,
        "reached_ceiling": run.reached_ceiling,
        "interrupted": run.interrupted,
    }


def export_run(
    run: BenchmarkRun,
    parquet_path: Path,
    storage: Optional[DataStorage] = None,
) -> Path:
    """
    Write the run's trials to Parquet and its metadata to a JSON file
    alongside.

    Returns:
        Path of the Parquet file.
    """
    storage = storage or create_storage("parquet")
    df = trials_to_dataframe(run.trials)
    storage.save_dataframe(df, str(parquet_path))
    metadata_path = Path(parquet_path).with_name("benchmark_run.json")
    storage.save_dict(run_metadata(run), str(metadata_path))
    logger.info(f"Exported {len(df)} trial results to {parquet_path}")
    return Path(parquet_path)
