"""Conversion entry points: profiler coverage in, Istanbul coverage out.

Usage::

    from v8cov.coverage import convert_script, convert_process

    # One script, source supplied (or read from the URL's path when omitted)
    file_coverage = convert_script(script_coverage, source_text)

    # A whole NODE_V8_COVERAGE document, one Istanbul map keyed by path
    result = convert_process(json.loads(Path("coverage-1234.json").read_text()))
    result.coverage  # {path: fileCoverage}
    result.failures  # scripts that could not be converted

Each script is converted independently: a failed script contributes nothing
to the result, never a partial file coverage.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError

from v8cov.config.models import ConversionConfig
from v8cov.core.errors import CoverageError, InternalError, V8CovError
from v8cov.core.logging import script_context
from v8cov.coverage.mapper import CoverageMapper
from v8cov.coverage.models import ProcessCoverage, ScriptCoverage
from v8cov.coverage.offsets import WrapperConvention, parse_script_url
from v8cov.coverage.script import CoverageScript

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class ConversionFailure:
    url: str
    error: dict[str, Any]


@dataclass(slots=True)
class ConversionResult:
    coverage: dict[str, dict[str, Any]] = field(default_factory=dict)
    failures: list[ConversionFailure] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


ScriptEntry = ScriptCoverage | Mapping[str, Any]


def validate_script(data: ScriptEntry) -> ScriptCoverage:
    """Validate one raw ``ScriptCoverage`` object.

    Raises:
        CoverageError: MALFORMED_INPUT, naming the offending field.
    """
    if isinstance(data, ScriptCoverage):
        return data
    try:
        return ScriptCoverage.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        location = ".".join(str(loc) for loc in err["loc"])
        raise CoverageError.malformed_input(
            f"{location}: {err['msg']}", url=entry_url(data)
        ) from e


def script_entries(
    data: ProcessCoverage | Mapping[str, Any] | Sequence[ScriptEntry],
) -> list[ScriptEntry]:
    """Scripts of a process coverage document, a bare script list, or one script.

    Entries are validated one at a time during conversion so that a malformed
    script only fails itself.
    """
    if isinstance(data, ProcessCoverage):
        return list(data.result)
    if isinstance(data, Mapping):
        if "result" not in data:
            return [data]
        data = data["result"]
    if isinstance(data, str | bytes) or not isinstance(data, Sequence):
        raise CoverageError.malformed_input("'result' must be a list of script coverages")
    return list(data)


def entry_url(entry: Any) -> str:
    if isinstance(entry, ScriptCoverage):
        return entry.url
    if isinstance(entry, Mapping):
        return str(entry.get("url", ""))
    return ""


def build_script(
    script_coverage: ScriptEntry,
    source_text: str | None = None,
    *,
    config: ConversionConfig | None = None,
) -> CoverageScript:
    """Reconstruct a CoverageScript from profiler coverage.

    Raises:
        CoverageError: On malformed input, a missing source file, or (for the
            structural strategy) a function no syntax node matches.
    """
    config = config or ConversionConfig()
    coverage = validate_script(script_coverage)
    wrapper = WrapperConvention(config.cjs_wrapper_prologue, config.cjs_wrapper_epilogue)

    with script_context(coverage.url):
        if source_text is None:
            script = CoverageScript.from_url(
                coverage.url, encoding=config.source_encoding, wrapper=wrapper
            )
        else:
            script = CoverageScript.from_source(coverage.url, source_text, wrapper=wrapper)

        if config.strategy == "structural":
            # Deferred: tree-sitter is only loaded when the syntax tree is needed.
            from v8cov.coverage.structural import StructuralCorrelator
            from v8cov.coverage.treesitter import JavaScriptParser

            root = JavaScriptParser().parse(script.source_text)
            StructuralCorrelator(script, root).apply_coverage(coverage.functions)
        else:
            CoverageMapper(script).apply_coverage(coverage.functions)

        log.debug(
            "convert.script_done",
            kind=script.kind.value,
            lines=len(script.lines),
            branches=len(script.branches),
            functions=len(script.functions),
        )
    return script


def convert_script(
    script_coverage: ScriptEntry,
    source_text: str | None = None,
    *,
    config: ConversionConfig | None = None,
) -> dict[str, Any]:
    """Istanbul ``FileCoverage`` data for one script."""
    return build_script(script_coverage, source_text, config=config).to_istanbul_file_coverage()


Outcome = tuple[dict[str, Any] | None, dict[str, Any] | None]


def _convert_one(entry: ScriptEntry, source_text: str | None, config: ConversionConfig) -> Outcome:
    """Worker entry point: returns (file coverage, None) or (None, error dict)."""
    try:
        return convert_script(entry, source_text, config=config), None
    except V8CovError as e:
        return None, e.to_dict()


def convert_process(
    data: ProcessCoverage | Mapping[str, Any] | Sequence[ScriptEntry],
    *,
    sources: Mapping[str, str] | None = None,
    config: ConversionConfig | None = None,
) -> ConversionResult:
    """Convert every script of a process coverage document.

    Args:
        data: ``{"result": [ScriptCoverage, ...]}``, a bare list, or one script.
        sources: Source texts keyed by script URL; other scripts are read from disk.
        config: Conversion settings (strategy, wrapper, workers, ...).

    Returns:
        ConversionResult with one Istanbul entry per converted script, in
        input order, and the failures of the others.

    Raises:
        CoverageError: If the document itself is not a list of scripts.
    """
    config = config or ConversionConfig()
    sources = sources or {}
    result = ConversionResult()

    entries: list[ScriptEntry] = []
    for entry in script_entries(data):
        url = entry_url(entry)
        if not config.include_non_file_urls and parse_script_url(url).is_internal:
            result.skipped.append(url)
            continue
        entries.append(entry)
    if result.skipped:
        log.debug("convert.scripts_skipped", count=len(result.skipped))

    if config.workers > 1 and len(entries) > 1:
        outcomes = _parallel_convert(entries, sources, config)
    else:
        outcomes = [_convert_one(e, sources.get(entry_url(e)), config) for e in entries]

    for entry, (file_coverage, error) in zip(entries, outcomes, strict=True):
        url = entry_url(entry)
        if file_coverage is None:
            error = error or {}
            log.warning("convert.script_failed", script=url, error=error.get("error"))
            result.failures.append(ConversionFailure(url=url, error=error))
            continue
        path = file_coverage["path"]
        if path in result.coverage:
            log.warning("convert.duplicate_path", path=path)
        result.coverage[path] = file_coverage

    log.info(
        "convert.done",
        converted=len(result.coverage),
        failed=len(result.failures),
        skipped=len(result.skipped),
    )
    return result


def _parallel_convert(
    entries: list[ScriptEntry],
    sources: Mapping[str, str],
    config: ConversionConfig,
) -> list[Outcome]:
    """Convert scripts in a process pool, keeping input order."""
    with ProcessPoolExecutor(max_workers=config.workers) as executor:
        futures = [
            executor.submit(_convert_one, entry, sources.get(entry_url(entry)), config)
            for entry in entries
        ]
        outcomes: list[Outcome] = []
        for entry, future in zip(entries, futures, strict=True):
            try:
                outcomes.append(future.result())
            except BrokenProcessPool as e:
                # A worker exited abruptly; every script still queued fails with it.
                error = InternalError.unexpected(
                    "conversion worker terminated", url=entry_url(entry), reason=str(e)
                )
                outcomes.append((None, error.to_dict()))
        return outcomes
