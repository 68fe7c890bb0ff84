"""Per-file coverage model and its Istanbul serialization.

A ``CoverageScript`` is built once from source text with one Line per
newline-delimited segment, receives one coverage pass (line mapper or
structural correlator), then serializes to Istanbul's ``FileCoverage`` data:

{
  "path": "/path/to/file.js",
  "statementMap": {"0": {"start": {"line": 1, "column": 0}, "end": ...}, ...},
  "s": {"0": 1, ...},
  "fnMap": {"0": {"name": "f", "decl": Loc, "loc": Loc, "line": 1}, ...},
  "f": {"0": 1, ...},
  "branchMap": {"0": {"type": "branch", "line": 1, "loc": Loc, "locations": [Loc]}, ...},
  "b": {"0": [1], ...}
}

Identifiers are positional: the index of the entry in its collection.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from v8cov.core.errors import CoverageError
from v8cov.coverage.lines import LineIndex
from v8cov.coverage.models import Branch, Function, Statement
from v8cov.coverage.offsets import (
    ModuleKind,
    OffsetNormalizer,
    WrapperConvention,
    parse_script_url,
)


class CoverageScript:
    """Coverage of one source file.

    ``statements`` stays None while coverage is tracked per line; the
    structural correlator replaces it with one entry per syntax statement.
    """

    def __init__(
        self,
        path: str,
        source_text: str,
        kind: ModuleKind,
        *,
        wrapper: WrapperConvention | None = None,
    ) -> None:
        self.path = path
        self.source_text = source_text
        self.kind = kind
        self.lines = LineIndex(source_text)
        self.normalizer = OffsetNormalizer(kind, self.lines.eof, wrapper)
        self.branches: list[Branch] = []
        self.functions: list[Function] = []
        self.statements: list[Statement] | None = None

    @classmethod
    def from_source(
        cls, url: str, source_text: str, *, wrapper: WrapperConvention | None = None
    ) -> CoverageScript:
        parsed = parse_script_url(url)
        return cls(parsed.path, source_text, parsed.kind, wrapper=wrapper)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        encoding: str = "utf-8",
        wrapper: WrapperConvention | None = None,
    ) -> CoverageScript:
        """Read the script's source from the path its URL designates."""
        parsed = parse_script_url(url)
        path = Path(parsed.path)
        try:
            source_text = path.read_text(encoding=encoding)
        except FileNotFoundError as e:
            raise CoverageError.source_not_found(parsed.path) from e
        except (OSError, UnicodeDecodeError, LookupError) as e:
            raise CoverageError.source_unreadable(parsed.path, str(e)) from e
        return cls(parsed.path, source_text, parsed.kind, wrapper=wrapper)

    @property
    def eof(self) -> int:
        return self.lines.eof

    @property
    def header_length(self) -> int:
        return self.normalizer.shift

    def to_istanbul_file_coverage(self) -> dict[str, Any]:
        return {
            "path": self.path,
            **self._statements_to_istanbul(),
            **self._branches_to_istanbul(),
            **self._functions_to_istanbul(),
        }

    def to_istanbul(self) -> dict[str, dict[str, Any]]:
        """Coverage map keyed by file path."""
        return {self.path: self.to_istanbul_file_coverage()}

    def _statements_to_istanbul(self) -> dict[str, Any]:
        statement_map: dict[str, Any] = {}
        s: dict[str, int] = {}
        if self.statements is None:
            for index, line in enumerate(self.lines):
                statement_map[str(index)] = line.span().to_istanbul()
                s[str(index)] = line.count
        else:
            for index, statement in enumerate(self.statements):
                statement_map[str(index)] = self.lines.resolve(statement.region).to_istanbul()
                s[str(index)] = statement.count
        return {"statementMap": statement_map, "s": s}

    def _branches_to_istanbul(self) -> dict[str, Any]:
        branch_map: dict[str, Any] = {}
        b: dict[str, list[int]] = {}
        for index, branch in enumerate(self.branches):
            loc = self.lines.resolve(branch.region).to_istanbul()
            arms = branch.arms or (branch.region,)
            branch_map[str(index)] = {
                "type": branch.type,
                "line": loc["start"]["line"],
                "loc": loc,
                "locations": [self.lines.resolve(arm).to_istanbul() for arm in arms],
            }
            b[str(index)] = list(branch.counts)
        return {"branchMap": branch_map, "b": b}

    def _functions_to_istanbul(self) -> dict[str, Any]:
        fn_map: dict[str, Any] = {}
        f: dict[str, int] = {}
        for index, fn in enumerate(self.functions):
            loc = self.lines.resolve(fn.region).to_istanbul()
            fn_map[str(index)] = {
                "name": fn.name,
                "decl": loc,
                "loc": loc,
                "line": loc["start"]["line"],
            }
            f[str(index)] = fn.count
        return {"fnMap": fn_map, "f": f}
