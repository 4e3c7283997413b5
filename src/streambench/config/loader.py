"""
Reading of `config.toml`.

The file is parsed into plain tables here; turning them into the
configuration dataclasses is the job of `validators`.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)

# Tables the benchmark understands; anything else in the file is ignored.
KNOWN_TABLES = ("benchmark", "general", "timing", "media")


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Parse the benchmark configuration file.

    Returns:
        The top-level tables of the file

    Raises:
        FileNotFoundError: If the file does not exist
        tomllib.TOMLDecodeError: If the file is not valid TOML
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Reading benchmark configuration from {config_path}")
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {config_path.name}",
            severity=ErrorSeverity.CRITICAL,
            reraise=False,
            logger=logger,
        )
        raise

    unknown = sorted(set(data) - set(KNOWN_TABLES))
    if unknown:
        logger.warning(f"Ignoring unknown tables in {config_path.name}: {', '.join(unknown)}")
    return data
