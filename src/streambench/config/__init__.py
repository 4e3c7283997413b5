"""
Configuration management for the streambench package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

from .loader import read_config_file
from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)
from .validators import (
    HW_ACCEL_CHOICES,
    validate_benchmark_config,
    validate_media_config,
    validate_timing_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    # Advanced interface
    "read_config_file",
    "validate_benchmark_config",
    "validate_media_config",
    "validate_timing_config",
    "HW_ACCEL_CHOICES",
]
