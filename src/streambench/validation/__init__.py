"""
Validation and error handling for the streambench package.

This module provides input validation, the benchmark error taxonomy and
error handling helpers with consistent error reporting across the application.
"""

from .exceptions import (
    BenchmarkInterrupted,
    ErrorSeverity,
    HeuristicErrorDetected,
    InvalidSlotTransition,
    LaunchFailure,
    MetricUnavailable,
    ProcessDeath,
    SetupFailure,
    StreamBenchError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_subprocess_error,
)
from .validators import (
    validate_boolean,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    # Errors
    "BenchmarkInterrupted",
    "ErrorSeverity",
    "HeuristicErrorDetected",
    "InvalidSlotTransition",
    "LaunchFailure",
    "MetricUnavailable",
    "ProcessDeath",
    "SetupFailure",
    "StreamBenchError",
    "ValidationError",
    # Handlers
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_subprocess_error",
    # Validators
    "validate_boolean",
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_positive_float",
    "validate_positive_integer",
]
