"""Coverage summaries computed from converted Istanbul data.

Output schema for build_summary:
{
    "summary": {
        "total_files": int,
        "statements_found": int, "statements_hit": int, "statement_rate": float,
        "branches_found": int, "branches_hit": int, "branch_rate": float,
        "functions_found": int, "functions_hit": int, "function_rate": float
    },
    "files": [
        {"path": str, "statements_found": int, ..., "uncovered_lines": [int, ...]},
        ...
    ]
}
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any


def _rate(hit: int, found: int) -> float:
    return hit / found if found > 0 else 0.0


@dataclass(frozen=True, slots=True)
class CoverageSummary:
    """Found/hit counters for one file or an aggregate of files."""

    statements_found: int = 0
    statements_hit: int = 0
    branches_found: int = 0
    branches_hit: int = 0
    functions_found: int = 0
    functions_hit: int = 0

    @property
    def statement_rate(self) -> float:
        return _rate(self.statements_hit, self.statements_found)

    @property
    def branch_rate(self) -> float:
        return _rate(self.branches_hit, self.branches_found)

    @property
    def function_rate(self) -> float:
        return _rate(self.functions_hit, self.functions_found)

    def __add__(self, other: CoverageSummary) -> CoverageSummary:
        return CoverageSummary(
            statements_found=self.statements_found + other.statements_found,
            statements_hit=self.statements_hit + other.statements_hit,
            branches_found=self.branches_found + other.branches_found,
            branches_hit=self.branches_hit + other.branches_hit,
            functions_found=self.functions_found + other.functions_found,
            functions_hit=self.functions_hit + other.functions_hit,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **asdict(self),
            "statement_rate": round(self.statement_rate, 4),
            "branch_rate": round(self.branch_rate, 4),
            "function_rate": round(self.function_rate, 4),
        }


def summarize_file(file_coverage: Mapping[str, Any]) -> CoverageSummary:
    """Counters for one Istanbul ``FileCoverage`` object.

    Every arm of a branch counts as one branch, matching Istanbul reporters.
    """
    statements = file_coverage.get("s", {})
    arms = [hits for counts in file_coverage.get("b", {}).values() for hits in counts]
    functions = file_coverage.get("f", {})
    return CoverageSummary(
        statements_found=len(statements),
        statements_hit=sum(1 for hits in statements.values() if hits > 0),
        branches_found=len(arms),
        branches_hit=sum(1 for hits in arms if hits > 0),
        functions_found=len(functions),
        functions_hit=sum(1 for hits in functions.values() if hits > 0),
    )


def uncovered_lines(file_coverage: Mapping[str, Any]) -> list[int]:
    """Sorted start lines of statements with zero hits."""
    statement_map = file_coverage.get("statementMap", {})
    return sorted(
        {
            statement_map[sid]["start"]["line"]
            for sid, hits in file_coverage.get("s", {}).items()
            if hits == 0 and sid in statement_map
        }
    )


def summarize(coverage: Mapping[str, Mapping[str, Any]]) -> CoverageSummary:
    """Aggregate counters across a coverage map keyed by path."""
    return sum(
        (summarize_file(fc) for fc in coverage.values()),
        CoverageSummary(),
    )


def compute_file_stats(coverage: Mapping[str, Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Per-file counters, sorted by path."""
    return [
        {
            "path": path,
            **summarize_file(coverage[path]).to_dict(),
            "uncovered_lines": uncovered_lines(coverage[path]),
        }
        for path in sorted(coverage)
    ]


def build_summary(coverage: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
    """Structured summary of a coverage map."""
    return {
        "summary": {"total_files": len(coverage), **summarize(coverage).to_dict()},
        "files": compute_file_stats(coverage),
    }


def compress_ranges(lines: Iterable[int]) -> str:
    """Compress sorted line numbers: [1, 2, 3, 5] -> "1-3,5"."""
    parts: list[str] = []
    start = prev = None
    for line in lines:
        if prev is not None and line == prev + 1:
            prev = line
            continue
        if start is not None:
            parts.append(str(start) if start == prev else f"{start}-{prev}")
        start = prev = line
    if start is not None:
        parts.append(str(start) if start == prev else f"{start}-{prev}")
    return ",".join(parts)
