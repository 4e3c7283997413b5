"""
Heuristic classification of media process output.
"""

from .log_scanner import (
    CONSUMER_ERROR_PATTERNS,
    PRODUCER_ERROR_PATTERNS,
    VIDEOTOOLBOX_EARLY_PATTERNS,
    LogErrorScanner,
)

__all__ = [
    "CONSUMER_ERROR_PATTERNS",
    "PRODUCER_ERROR_PATTERNS",
    "VIDEOTOOLBOX_EARLY_PATTERNS",
    "LogErrorScanner",
]
