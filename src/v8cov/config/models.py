"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (V8COV__SECTION__KEY)
3. Repo YAML (.v8cov/config.yaml)
4. Global YAML (~/.config/v8cov/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    V8COV__<SECTION>__<KEY>=<VALUE>

Examples:
    V8COV__LOGGING__LEVEL=DEBUG
    V8COV__CONVERSION__STRATEGY=structural
    V8COV__CONVERSION__CJS_WRAPPER_PROLOGUE="(function (exports) { "
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from v8cov.config.constants import NODE_CJS_WRAPPER_EPILOGUE, NODE_CJS_WRAPPER_PROLOGUE

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Strategy = Literal["lines", "structural"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        V8COV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every discarded range.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ConversionConfig(BaseModel):
    """Coverage conversion configuration.

    Env vars:
        V8COV__CONVERSION__STRATEGY: lines or structural
        V8COV__CONVERSION__CJS_WRAPPER_PROLOGUE: Text the host prepends to CommonJS modules
        V8COV__CONVERSION__WORKERS: Process pool size for multi-file conversion
    """

    cjs_wrapper_prologue: str = Field(
        default=NODE_CJS_WRAPPER_PROLOGUE,
        description="Wrapper text prepended to CommonJS scripts by the host runtime. "
        "Profiler offsets of CommonJS scripts are shifted left by its length.",
    )
    cjs_wrapper_epilogue: str = Field(
        default=NODE_CJS_WRAPPER_EPILOGUE,
        description="Wrapper text appended to CommonJS scripts by the host runtime.",
    )
    strategy: Strategy = Field(
        default="lines",
        description="'lines' maps ranges onto whole lines; 'structural' correlates "
        "ranges with a JavaScript syntax tree.",
    )
    source_encoding: str = Field(
        default="utf-8",
        description="Encoding used when reading script sources from disk.",
    )
    workers: int = Field(
        default=1,
        description="Number of worker processes for multi-file conversion. 1 disables the pool.",
    )
    include_non_file_urls: bool = Field(
        default=False,
        description="Convert scripts with engine-internal URLs (node:, internal/) too.",
    )

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"workers must be >= 1, got {v}")
        return v


class V8CovConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
