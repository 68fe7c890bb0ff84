"""Config module exports."""

from v8cov.config.loader import V8CovSettings, load_config
from v8cov.config.models import (
    ConversionConfig,
    LoggingConfig,
    LogOutputConfig,
    V8CovConfig,
)

__all__ = [
    "load_config",
    "ConversionConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "V8CovConfig",
    "V8CovSettings",
]
