"""
Storage of benchmark results.

Trial results are exported as compressed Parquet through Polars, with a JSON
sidecar describing the run. The CSV trial logs can be loaded back as typed
frames for analysis and plotting.
"""

from .base import DataStorage
from .factory import create_storage
from .parquet_storage import ParquetStorage
from .results import export_run, load_trial_log, run_metadata, trials_to_dataframe

__all__ = [
    "DataStorage",
    "ParquetStorage",
    "create_storage",
    "export_run",
    "load_trial_log",
    "run_metadata",
    "trials_to_dataframe",
]
