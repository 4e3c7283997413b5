"""
Configuration management and singleton pattern.

This module provides the main configuration loading interface, ensuring the
configuration file is read and validated only once per process.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import BenchmarkConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import read_config_file
from .validators import validate_benchmark_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[BenchmarkConfig] = None

# Default location of the configuration file, at the repository root.
_DEFAULT_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"
_CONFIG_FILE_PATH = _DEFAULT_CONFIG_FILE_PATH


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path and drop any cached configuration.

    Args:
        config_path: Path to the config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path) -> BenchmarkConfig:
    """
    Load and validate the configuration file.

    A missing file at the default location is not an error: the built-in
    defaults are used instead. A missing file that was explicitly requested
    is.

    Raises:
        FileNotFoundError: If an explicitly configured file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the file is malformed
    """
    if config_path == _DEFAULT_CONFIG_FILE_PATH and not config_path.exists():
        logger.info(f"No configuration file at {config_path}, using built-in defaults")
        return BenchmarkConfig()

    try:
        config_data = read_config_file(config_path)
        config = validate_benchmark_config(config_data)
        logger.info(
            f"Loaded configuration: max_streams={config.max_streams}, "
            f"trial_duration={config.trial_duration}s, output_dir={config.output_dir}"
        )
        return config
    except Exception as e:
        handle_config_error(
            error=e,
            context=f"loading {config_path}",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> BenchmarkConfig:
    """
    Get the benchmark configuration, loading it on first use.

    Returns:
        The cached BenchmarkConfig instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None


def get_config_info() -> dict:
    """Get information about the current configuration state."""
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
    }
