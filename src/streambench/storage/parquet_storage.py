"""
Parquet storage backend built on Polars.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal

import polars as pl

from .base import DataStorage

logger = logging.getLogger(__name__)

Compression = Literal["snappy", "gzip", "brotli", "lz4", "zstd"]


class ParquetStorage(DataStorage):
    """
    Stores tables as compressed Parquet files and metadata as JSON.
    """

    def __init__(self, compression: Compression = "snappy"):
        self.compression = compression
        logger.debug(f"Initialized ParquetStorage with compression: {compression}")

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            df.write_parquet(path, compression=self.compression)
        except (OSError, pl.exceptions.PolarsError) as e:
            logger.error(f"Failed to save {len(df)} trial rows to {path}: {e}")
            raise
        logger.debug(f"Saved {len(df)} rows to {path}")

    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved metadata to {path}")
