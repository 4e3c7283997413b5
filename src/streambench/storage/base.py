"""
Abstract interface for result storage backends.

Trial results are tabular and small; run metadata is a flat dictionary.
A backend writes both next to the run's logs.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

import polars as pl


class DataStorage(ABC):
    """Abstract base class for result storage backends."""

    @abstractmethod
    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        """Write `df` to `path`, replacing any existing file."""

    @abstractmethod
    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        """Write a metadata dictionary to `path`."""
