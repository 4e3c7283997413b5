"""
Heuristic error detection over media process output.

This module holds the only place where process output text is interpreted.
The matching is a best-effort substring search: it can report benign lines
that happen to contain a word like "error" (false positives) and it misses
failures the media tool reports in wording not listed here (false negatives).
Callers must treat a match as a hint, not as proof of failure.
"""

import logging
from collections import deque
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Substrings that indicate a producer (server) problem.
PRODUCER_ERROR_PATTERNS: Tuple[str, ...] = (
    "Error",
    "GPU rejected",
    "No hardware",
    "Cannot",
    "failed",
    "Unable",
    "too slow",
)

# Substrings that indicate a consumer (client) problem.
CONSUMER_ERROR_PATTERNS: Tuple[str, ...] = (
    "Error",
    "Invalid",
    "Failed",
    "Cannot",
    "Conversion failed",
)

# Substrings checked in a VideoToolbox producer's first output.
VIDEOTOOLBOX_EARLY_PATTERNS: Tuple[str, ...] = (
    "Error",
    "Failed",
    "Cannot",
)


class LogErrorScanner:
    """
    Case-insensitive substring matcher for producer and consumer output files.
    """

    def __init__(
        self,
        producer_patterns: Iterable[str] = PRODUCER_ERROR_PATTERNS,
        consumer_patterns: Iterable[str] = CONSUMER_ERROR_PATTERNS,
        early_patterns: Iterable[str] = VIDEOTOOLBOX_EARLY_PATTERNS,
    ):
        self.producer_patterns = tuple(p.lower() for p in producer_patterns)
        self.consumer_patterns = tuple(p.lower() for p in consumer_patterns)
        self.early_patterns = tuple(p.lower() for p in early_patterns)

    @staticmethod
    def _read_lines(path: Path) -> Optional[List[str]]:
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return [line.rstrip("\n") for line in f]
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read process output {path}: {e}")
            return None

    def tail(self, path: Path, lines: int = 10) -> str:
        """Return the last `lines` lines of a file, or an empty string if unreadable."""
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return "".join(deque(f, maxlen=lines)).rstrip("\n")
        except OSError:
            return ""

    def find_errors(self, path: Path, patterns: Iterable[str]) -> List[str]:
        """
        Return the lines of `path` containing any of `patterns`.

        A missing or unreadable file yields no lines; use `slot_has_errors`
        when absence itself is meaningful.
        """
        content = self._read_lines(path)
        if not content:
            return []
        lowered = [p.lower() for p in patterns]
        return [line for line in content if any(p in line.lower() for p in lowered)]

    def producer_errors(self, path: Path) -> List[str]:
        return self.find_errors(path, self.producer_patterns)

    def consumer_errors(self, path: Path) -> List[str]:
        return self.find_errors(path, self.consumer_patterns)

    def has_early_videotoolbox_errors(self, path: Path) -> bool:
        """Check a just-started VideoToolbox producer's output for early failures."""
        return bool(self.find_errors(path, self.early_patterns))

    def slot_has_errors(self, producer_log: Path, consumer_log: Path) -> Tuple[bool, List[str]]:
        """
        Decide whether a nominally active slot should be treated as failing.

        A missing output file of either process counts as an error, and so do
        consumer error lines. Producer error lines are only reported, since
        producers routinely print recoverable warnings.

        Returns:
            Tuple of (has_errors, matched_or_explanatory_lines).
        """
        matches: List[str] = []
        has_errors = False

        if not Path(producer_log).exists():
            matches.append(f"missing producer output {producer_log}")
            has_errors = True
        else:
            producer_matches = self.producer_errors(producer_log)
            if producer_matches:
                logger.debug(f"Producer output {producer_log} contains {len(producer_matches)} suspicious lines")
                for line in producer_matches[:5]:
                    logger.debug(f"    {line}")

        if not Path(consumer_log).exists():
            matches.append(f"missing consumer output {consumer_log}")
            has_errors = True
        else:
            consumer_matches = self.consumer_errors(consumer_log)
            if consumer_matches:
                matches.extend(consumer_matches)
                has_errors = True

        return has_errors, matches
