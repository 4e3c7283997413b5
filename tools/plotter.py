"""Standalone Command-Line Tool for Generating Plots from streambench Results.

This script visualizes the trial results of a streambench run. It reads the
`trial_results.parquet` export (or, when that is missing, the run-scoped
`stream.log`) from an output directory and writes interactive Plotly charts
as HTML files next to the data.

The tool can be executed in two modes:
1.  **Run Plot Mode (Default)**: One chart for the latest run, showing active
    and failed streams per trial as stacked bars with the average read/write
    IOPS on a secondary axis.
2.  **History Plot Mode (`--history`)**: Reads the persistent
    `stream_all.log` and compares the maximum sustained stream count across
    every recorded run, grouped by encoder and resolution.

It is invoked by the `streambench` CLI when plots are enabled, and can be run
manually to re-plot an existing output directory.

Usage examples:
  # Plot the latest run
  python tools/plotter.py --log-dir ./logs

  # Compare all runs recorded in the persistent log
  python tools/plotter.py --log-dir ./logs --history
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

# Third-party library imports
import pandas as pd
import plotly.graph_objects as go
import polars as pl

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("PlotterTool")

# --- Module Constants ---

PARQUET_FILE = "trial_results.parquet"
RUN_LOG_FILE = "stream.log"
PERSISTENT_LOG_FILE = "stream_all.log"

NUMERIC_COLUMNS = [
    "TestIteration",
    "StreamCount",
    "ActiveStreams",
    "FailedStreams",
    "AvgReadIOPS",
    "AvgWriteIOPS",
]


# --- Helper Functions ---


def _read_log_csv(path: Path) -> pl.DataFrame:
    """Reads a trial log, keeping text columns as strings."""
    df = pl.read_csv(path, infer_schema_length=0)
    return df.with_columns(
        [pl.col(c).cast(pl.Int64, strict=False) for c in NUMERIC_COLUMNS if c in df.columns]
    )


def load_run_trials(log_dir: Path) -> Optional[pd.DataFrame]:
    """Loads the trials of the latest run from a streambench output directory.

    Prefers the Parquet export and falls back to the run-scoped CSV log.

    Args:
        log_dir: The streambench output directory.

    Returns:
        A pandas DataFrame sorted by stream count, or None if no data exists.
    """
    parquet_path = log_dir / PARQUET_FILE
    csv_path = log_dir / RUN_LOG_FILE

    if parquet_path.is_file():
        df_pl = pl.read_parquet(parquet_path)
        logger.info(f"Loaded {len(df_pl)} trials from {parquet_path.name}")
    elif csv_path.is_file():
        df_pl = _read_log_csv(csv_path)
        logger.info(f"Loaded {len(df_pl)} trials from {csv_path.name}")
    else:
        logger.warning(f"No trial data found in {log_dir}")
        return None

    if df_pl.is_empty():
        logger.warning("Trial data is empty, nothing to plot.")
        return None
    return df_pl.sort("StreamCount").to_pandas()


def summarize_history(df: pd.DataFrame) -> pd.DataFrame:
    """Reduces the persistent log to one row per run configuration.

    A run's capacity is the highest stream count among its trials without
    failed streams (0 when every trial failed).

    Args:
        df: The persistent log as a pandas DataFrame.

    Returns:
        A DataFrame with columns RunID, Encoder, Resolution, VideoFile,
        MaxStreams and LastTimestamp.
    """
    keys = ["RunID", "Encoder", "Resolution", "VideoFile"]
    passed = df[df["FailedStreams"] == 0]
    capacity = passed.groupby(keys, as_index=False)["StreamCount"].max()
    capacity = capacity.rename(columns={"StreamCount": "MaxStreams"})

    last_seen = df.groupby(keys, as_index=False)["Timestamp"].max()
    last_seen = last_seen.rename(columns={"Timestamp": "LastTimestamp"})

    summary = last_seen.merge(capacity, on=keys, how="left")
    summary["MaxStreams"] = summary["MaxStreams"].fillna(0).astype(int)
    return summary.sort_values("LastTimestamp").reset_index(drop=True)


def create_run_figure(df: pd.DataFrame) -> go.Figure:
    """Creates the chart for a single run.

    Active and failed streams are stacked bars per trial; average read and
    write IOPS are lines on a secondary y-axis.

    Args:
        df: Trials of one run, with the log's column names.

    Returns:
        A configured Plotly Figure object ready for saving.
    """
    fig = go.Figure()

    fig.add_trace(
        go.Bar(
            x=df["StreamCount"],
            y=df["ActiveStreams"],
            name="Active streams",
            marker_color="seagreen",
        )
    )
    fig.add_trace(
        go.Bar(
            x=df["StreamCount"],
            y=df["FailedStreams"],
            name="Failed streams",
            marker_color="indianred",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=df["StreamCount"],
            y=df["AvgReadIOPS"],
            name="Avg read IOPS",
            mode="lines+markers",
            marker_color="cornflowerblue",
            yaxis="y2",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=df["StreamCount"],
            y=df["AvgWriteIOPS"],
            name="Avg write IOPS",
            mode="lines+markers",
            marker_color="darkorange",
            yaxis="y2",
        )
    )

    first = df.iloc[0]
    title = (
        f"Stream capacity: {first['Encoder']} on {first['GPUName']} "
        f"({first['Resolution']} {first['InputCodec']}, {first['VideoFile']})"
    )
    fig.update_layout(
        title_text=title,
        barmode="stack",
        xaxis=dict(title_text="Requested streams", type="category"),
        yaxis=dict(title_text="Streams"),
        yaxis2=dict(title_text="IOPS", overlaying="y", side="right"),
        legend=dict(x=0.01, y=0.98, bordercolor="Black", borderwidth=1),
    )
    return fig


def create_history_figure(summary: pd.DataFrame) -> go.Figure:
    """Creates a bar chart of the maximum streams of every recorded run."""
    fig = go.Figure()
    for (encoder, resolution), group in summary.groupby(["Encoder", "Resolution"]):
        fig.add_trace(
            go.Bar(
                x=group["LastTimestamp"],
                y=group["MaxStreams"],
                name=f"{encoder} / {resolution}",
                text=group["MaxStreams"],
                textposition="auto",
                hovertext=group["VideoFile"],
            )
        )
    fig.update_layout(
        title_text="Maximum sustained streams per run",
        barmode="group",
        xaxis=dict(title_text="Run", type="category"),
        yaxis=dict(title_text="Max streams"),
    )
    return fig


def _save_plotly_figure(fig: go.Figure, base_filename: str, output_dir: Path) -> Optional[Path]:
    """Saves a Plotly figure as an interactive HTML file."""
    plot_filename_html = output_dir / f"{base_filename}.html"
    try:
        fig.write_html(plot_filename_html)
    except OSError as e:
        logger.error(f"Failed to save plot {plot_filename_html}: {e}")
        return None
    logger.info(f"Interactive plot saved to: {plot_filename_html}")
    return plot_filename_html


def generate_run_plot(log_dir: Path, output_dir: Path) -> Optional[Path]:
    """Plots the latest run found in `log_dir`."""
    logger.info("--- Generating Run Plot ---")
    df = load_run_trials(log_dir)
    if df is None:
        return None
    fig = create_run_figure(df)
    return _save_plotly_figure(fig, "stream_capacity_plot", output_dir)


def generate_history_plot(log_dir: Path, output_dir: Path) -> Optional[Path]:
    """Plots every run recorded in the persistent log."""
    logger.info("--- Generating History Plot ---")
    log_path = log_dir / PERSISTENT_LOG_FILE
    if not log_path.is_file():
        logger.warning(f"Persistent log not found: {log_path}")
        return None

    df = _read_log_csv(log_path).to_pandas()
    if df.empty:
        logger.warning("Persistent log has no trials, nothing to plot.")
        return None

    summary = summarize_history(df)
    logger.info(f"Found {len(summary)} recorded run configuration(s)")
    fig = create_history_figure(summary)
    return _save_plotly_figure(fig, "stream_capacity_history", output_dir)


def main():
    """Main command-line interface function for the plotter tool."""
    parser = argparse.ArgumentParser(
        description="Generate plots from streambench results.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        required=True,
        help="Required. The streambench output directory containing the trial logs.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory to save plots. Defaults to the specified --log-dir.",
    )
    parser.add_argument(
        "--history",
        action="store_true",
        help="Plot every run recorded in stream_all.log instead of the latest run.",
    )
    args = parser.parse_args()

    if not args.log_dir.is_dir():
        logger.error(f"Log directory not found: {args.log_dir}")
        sys.exit(1)

    output_dir = args.output_dir or args.log_dir
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Cannot create output directory '{output_dir}': {e}")
        sys.exit(1)

    if args.history:
        generate_history_plot(args.log_dir, output_dir)
    else:
        generate_run_plot(args.log_dir, output_dir)


if __name__ == "__main__":
    main()
