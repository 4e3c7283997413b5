"""
Factory for creating storage instances.
"""

import logging

from .base import DataStorage
from .parquet_storage import Compression, ParquetStorage

logger = logging.getLogger(__name__)


def create_storage(format_type: str = "parquet", compression: Compression = "snappy") -> DataStorage:
    """
    Create a storage backend.

    Args:
        format_type: Storage format; only 'parquet' is supported
        compression: Parquet compression algorithm

    Raises:
        ValueError: If an unsupported format type is specified
    """
    if format_type == "parquet":
        return ParquetStorage(compression=compression)
    raise ValueError(f"Unsupported storage format: {format_type}")
