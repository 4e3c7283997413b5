"""
Signal handling for the orchestration module.

SIGINT and SIGTERM are turned into a `BenchmarkInterrupted` exception raised
in the control thread, so that the load controller can run the reaper before
the process exits.
"""

import logging
import signal
from typing import Any

from ..validation import BenchmarkInterrupted
from .shared_state import RuntimeState

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Installs and restores the benchmark's interrupt handlers.

    Usable as a context manager around the benchmark run.
    """

    def __init__(self, state: RuntimeState):
        self.state = state
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install handlers for SIGINT and SIGTERM, remembering the originals."""
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._handle_signal)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up")
        except ValueError as e:
            # Only the main thread may install handlers.
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore the original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def _handle_signal(self, signum: int, frame: Any) -> None:
        if self.state.shutdown_requested.is_set():
            logger.warning(f"Signal {signum} received while already shutting down, cleanup in progress")
            return
        logger.warning(f"Signal {signum} received, stopping benchmark")
        self.state.shutdown_requested.set()
        raise BenchmarkInterrupted(signum)

    def __enter__(self) -> "SignalHandler":
        self.setup_signal_handlers()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup_signal_handlers()
