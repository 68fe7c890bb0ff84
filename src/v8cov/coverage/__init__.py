"""V8 profiler coverage -> Istanbul coverage reconstruction.

This package provides:
- IntervalPartition: flattening of nested profiler ranges
- LineIndex: offset -> line/column lookup
- OffsetNormalizer: CommonJS wrapper correction
- CoverageMapper: line-granularity mapping (default)
- StructuralCorrelator: syntax-tree based mapping
- convert_script / convert_process: entry points
- build_summary: statement/branch/function statistics

Usage:
    from v8cov.coverage import convert_process, build_summary

    result = convert_process(json.loads(Path("coverage-1.json").read_text()))
    summary = build_summary(result.coverage)
"""

from v8cov.coverage.convert import (
    ConversionFailure,
    ConversionResult,
    build_script,
    convert_process,
    convert_script,
    entry_url,
    script_entries,
    validate_script,
)
from v8cov.coverage.lines import Line, LineIndex
from v8cov.coverage.mapper import CoverageMapper, apply_coverage
from v8cov.coverage.models import (
    Branch,
    Function,
    FunctionCoverage,
    Location,
    OffsetRange,
    ProcessCoverage,
    Region,
    ScriptCoverage,
    Span,
    Statement,
)
from v8cov.coverage.offsets import (
    ModuleKind,
    OffsetNormalizer,
    WrapperConvention,
    parse_script_url,
)
from v8cov.coverage.ranges import IntervalPartition, find_split
from v8cov.coverage.report import (
    CoverageSummary,
    build_summary,
    compute_file_stats,
    summarize,
    summarize_file,
)
from v8cov.coverage.script import CoverageScript
from v8cov.coverage.structural import NodeKind, StructuralCorrelator, SyntaxNode, traverse

__all__ = [
    # Models
    "Branch",
    "Function",
    "FunctionCoverage",
    "Location",
    "OffsetRange",
    "ProcessCoverage",
    "Region",
    "ScriptCoverage",
    "Span",
    "Statement",
    # Engine
    "CoverageMapper",
    "CoverageScript",
    "IntervalPartition",
    "Line",
    "LineIndex",
    "ModuleKind",
    "NodeKind",
    "OffsetNormalizer",
    "StructuralCorrelator",
    "SyntaxNode",
    "WrapperConvention",
    "apply_coverage",
    "find_split",
    "parse_script_url",
    "traverse",
    # Conversion
    "ConversionFailure",
    "ConversionResult",
    "build_script",
    "convert_process",
    "convert_script",
    "entry_url",
    "script_entries",
    "validate_script",
    # Report
    "CoverageSummary",
    "build_summary",
    "compute_file_stats",
    "summarize",
    "summarize_file",
]
