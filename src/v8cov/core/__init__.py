"""Core module exports."""

from v8cov.core.errors import (
    ConfigError,
    CoverageError,
    ErrorCode,
    InternalError,
    V8CovError,
)
from v8cov.core.logging import configure_logging, get_logger, script_context

__all__ = [
    # Errors
    "ConfigError",
    "CoverageError",
    "ErrorCode",
    "InternalError",
    "V8CovError",
    # Logging
    "configure_logging",
    "get_logger",
    "script_context",
]
