"""
Stable run identifier.

The identifier is generated once per host from a nanosecond clock reading and
a random UUID, hashed with SHA-256, and stored on disk so that every later
invocation reports the same value in the persistent log.
"""

import hashlib
import logging
import time
import uuid
from pathlib import Path

from ..validation import SetupFailure

logger = logging.getLogger(__name__)


def generate_run_id() -> str:
    """Return a fresh 64-character hexadecimal identifier."""
    raw_id = f"{time.time_ns()}{uuid.uuid4()}"
    return hashlib.sha256(raw_id.encode("utf-8")).hexdigest()


def load_or_create_run_id(path: Path) -> str:
    """
    Return the identifier stored at `path`, creating it on first use.

    Raises:
        SetupFailure: If the file cannot be read or written
    """
    path = Path(path).expanduser()
    try:
        if path.is_file():
            existing = path.read_text(encoding="utf-8").strip()
            if existing:
                logger.debug(f"Reusing run identifier from {path}")
                return existing
            logger.warning(f"Run identifier file {path} is empty, generating a new one")

        run_id = generate_run_id()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(run_id + "\n", encoding="utf-8")
        logger.info(f"Generated new run identifier, stored in {path}")
        return run_id
    except OSError as e:
        raise SetupFailure(f"Cannot establish run identifier at {path}: {e}") from e
