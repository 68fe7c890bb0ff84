"""Profiler input schema and reconstructed coverage records.

Input models mirror the DevTools protocol ``Profiler.ScriptCoverage`` shape and
are validated once, at the boundary:

{
  "url": "file:///path/to/file.mjs",
  "functions": [
    {
      "functionName": "foo",
      "isBlockCoverage": true,
      "ranges": [{"startOffset": 0, "endOffset": 100, "count": 1}, ...]
    }
  ]
}

Output records (Statement, Branch, Function) refer to lines by index into the
owning script's line sequence and resolve to coordinates only when serialized.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _ProfilerModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class OffsetRange(_ProfilerModel):
    """Half-open ``[start_offset, end_offset)`` span with a hit count."""

    start_offset: int = Field(alias="startOffset", ge=0)
    end_offset: int = Field(alias="endOffset", ge=0)
    count: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> OffsetRange:
        if self.start_offset >= self.end_offset:
            raise ValueError(
                f"range [{self.start_offset}, {self.end_offset}) must have startOffset < endOffset"
            )
        return self


class FunctionCoverage(_ProfilerModel):
    """Coverage of one function as reported by the profiler."""

    function_name: str = Field(default="", alias="functionName")
    ranges: list[OffsetRange] = Field(min_length=1)
    is_block_coverage: bool = Field(default=False, alias="isBlockCoverage")

    @model_validator(mode="after")
    def _check_nesting(self) -> FunctionCoverage:
        violation = find_nesting_violation(self.ranges)
        if violation is not None:
            raise ValueError(violation)
        return self

    @property
    def declaration(self) -> OffsetRange:
        """The enclosing range, spanning the whole function."""
        return self.ranges[0]


class ScriptCoverage(_ProfilerModel):
    """Coverage of one top-level script."""

    script_id: str = Field(default="", alias="scriptId")
    url: str
    functions: list[FunctionCoverage] = Field(default_factory=list)


class ProcessCoverage(_ProfilerModel):
    """A ``Profiler.takePreciseCoverage`` result, as written by ``NODE_V8_COVERAGE``."""

    result: list[ScriptCoverage] = Field(default_factory=list)


def find_nesting_violation(ranges: list[OffsetRange]) -> str | None:
    """Describe the first range breaking the nesting order, or None.

    Valid lists have ``ranges[0]`` enclosing everything and every later range
    either disjoint from or inside each earlier one.
    """
    first = ranges[0]
    for idx, rng in enumerate(ranges[1:], start=1):
        if rng.start_offset < first.start_offset or rng.end_offset > first.end_offset:
            return (
                f"range {idx} [{rng.start_offset}, {rng.end_offset}) is not inside "
                f"[{first.start_offset}, {first.end_offset})"
            )

    # Sweep ranges sorted by (start, -end, position): containers come first and
    # the stack holds the chain of ranges enclosing the current one.
    order = sorted(
        range(len(ranges)),
        key=lambda i: (ranges[i].start_offset, -ranges[i].end_offset, i),
    )
    stack: list[int] = []
    for idx in order:
        rng = ranges[idx]
        while stack and ranges[stack[-1]].end_offset <= rng.start_offset:
            stack.pop()
        if stack:
            parent = ranges[stack[-1]]
            if rng.end_offset > parent.end_offset:
                return (
                    f"range {idx} [{rng.start_offset}, {rng.end_offset}) partially overlaps "
                    f"range {stack[-1]} [{parent.start_offset}, {parent.end_offset})"
                )
            same_span = (
                rng.start_offset == parent.start_offset and rng.end_offset == parent.end_offset
            )
            if stack[-1] > idx and not same_span:
                return f"range {idx} is listed before its enclosing range {stack[-1]}"
        stack.append(idx)
    return None


@dataclass(frozen=True, slots=True)
class Location:
    """1-based line, 0-based column position."""

    line: int
    column: int

    def to_istanbul(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True, slots=True)
class Span:
    """Start and end locations of a coverage entry."""

    start: Location
    end: Location

    def to_istanbul(self) -> dict[str, Any]:
        return {"start": self.start.to_istanbul(), "end": self.end.to_istanbul()}


@dataclass(frozen=True, slots=True)
class Region:
    """Offset span of a coverage entry plus the indices of its boundary lines.

    Line indices point into the owning script's line sequence; columns are
    resolved against those lines only at serialization time.
    """

    start_line: int
    start_offset: int
    end_line: int
    end_offset: int


@dataclass(frozen=True, slots=True)
class Statement:
    region: Region
    count: int


@dataclass(frozen=True, slots=True)
class Branch:
    """A block span, or a conditional whose arms each carry a count."""

    region: Region
    counts: tuple[int, ...]
    arms: tuple[Region, ...] = ()
    type: str = "branch"

    @property
    def count(self) -> int:
        return self.counts[0]


@dataclass(frozen=True, slots=True)
class Function:
    """One function body span and its invocation count."""

    name: str
    region: Region
    count: int
