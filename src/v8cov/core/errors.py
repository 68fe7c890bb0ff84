"""v8cov error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Coverage
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Coverage (3xxx)
    MALFORMED_INPUT = 3001
    OFFSET_OUT_OF_BOUNDS = 3002
    UNMATCHED_FUNCTION = 3003
    QUERY_RANGE_VIOLATION = 3004
    SOURCE_NOT_FOUND = 3005
    SOURCE_UNREADABLE = 3006

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class V8CovError(Exception):
    """Base error with structured context for JSON output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'MALFORMED_INPUT')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(V8CovError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class CoverageError(V8CovError):
    """Errors raised while reconstructing coverage for one script."""

    @classmethod
    def malformed_input(cls, reason: str, **details: Any) -> "CoverageError":
        return cls(
            code=ErrorCode.MALFORMED_INPUT,
            message=f"Malformed profiler coverage: {reason}",
            details={"reason": reason, **details},
        )

    @classmethod
    def offset_out_of_bounds(cls, start: int, end: int, eof: int) -> "CoverageError":
        return cls(
            code=ErrorCode.OFFSET_OUT_OF_BOUNDS,
            message=f"Range [{start}, {end}) lies outside of [0, {eof}]",
            details={"start": start, "end": end, "eof": eof},
        )

    @classmethod
    def unmatched_function(cls, name: str, start: int, end: int) -> "CoverageError":
        label = name or "(anonymous)"
        return cls(
            code=ErrorCode.UNMATCHED_FUNCTION,
            message=f"No syntax node spans [{start}, {end}) for function {label}",
            details={"function": name, "start": start, "end": end},
        )

    @classmethod
    def query_range_violation(
        cls, start: int, end: int, bounds: tuple[int, int]
    ) -> "CoverageError":
        return cls(
            code=ErrorCode.QUERY_RANGE_VIOLATION,
            message=(
                f"Query [{start}, {end}) is not inside a single interval of "
                f"[{bounds[0]}, {bounds[1]})"
            ),
            details={"start": start, "end": end, "bounds": list(bounds)},
        )

    @classmethod
    def source_not_found(cls, path: str) -> "CoverageError":
        return cls(
            code=ErrorCode.SOURCE_NOT_FOUND,
            message=f"Source file not found: {path}",
            details={"path": path},
        )

    @classmethod
    def source_unreadable(cls, path: str, reason: str) -> "CoverageError":
        return cls(
            code=ErrorCode.SOURCE_UNREADABLE,
            message=f"Cannot read source file {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class InternalError(V8CovError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
