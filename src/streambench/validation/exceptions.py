"""
Exception types and error handling helpers.

This module provides the error taxonomy of the benchmark together with the
small set of handling helpers used across the application, so that errors
are logged consistently before being re-raised or turned into an exit code.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation of user input or configuration fails.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class StreamBenchError(Exception):
    """Base class for benchmark runtime errors."""


class SetupFailure(StreamBenchError):
    """
    The run cannot start: the output directory or the run identifier could
    not be established. Fatal before the first trial.
    """


class LaunchFailure(StreamBenchError):
    """A producer or consumer did not survive its startup grace period."""

    def __init__(self, slot_id: int, role: str, diagnostic: str = ""):
        super().__init__(f"{role} for stream {slot_id} failed to start")
        self.slot_id = slot_id
        self.role = role
        self.diagnostic = diagnostic


class ProcessDeath(StreamBenchError):
    """A process of an active slot died while the trial was running."""

    def __init__(self, slot_id: int, producer_alive: bool, consumer_alive: bool):
        super().__init__(
            f"Stream {slot_id} died (producer alive: {producer_alive}, "
            f"consumer alive: {consumer_alive})"
        )
        self.slot_id = slot_id
        self.producer_alive = producer_alive
        self.consumer_alive = consumer_alive


class HeuristicErrorDetected(StreamBenchError):
    """Process output of a nominally active slot matched known error text."""

    def __init__(self, slot_id: int, matches: Optional[list] = None):
        super().__init__(f"Stream {slot_id} output contains errors")
        self.slot_id = slot_id
        self.matches = matches or []


class MetricUnavailable(StreamBenchError):
    """Host metrics could not be queried."""


class BenchmarkInterrupted(StreamBenchError):
    """An interrupt or terminate signal cancelled the run."""

    def __init__(self, signum: Optional[int] = None):
        super().__init__(f"Benchmark interrupted by signal {signum}")
        self.signum = signum


class InvalidSlotTransition(ValueError):
    """A stream slot was asked to move backwards in its lifecycle."""


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_subprocess_error(error: Exception, command: str, **kwargs) -> None:
    """Handle subprocess-related errors."""
    handle_error(error, f"subprocess command '{command}'", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI-level error and exit with the requested code."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)

    severity = kwargs.pop('severity', ErrorSeverity.CRITICAL if include_traceback else ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
