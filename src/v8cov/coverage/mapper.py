"""Line-granularity mapping of profiler ranges onto a CoverageScript.

Each range becomes a branch (block coverage), a function (named, non-block
coverage) or neither, and assigns its count to every line it fully spans.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from v8cov.coverage.models import Branch, Function, FunctionCoverage, Region
from v8cov.coverage.script import CoverageScript

log = structlog.get_logger()


class CoverageMapper:
    """Applies a script's function coverage list to a CoverageScript."""

    def __init__(self, script: CoverageScript) -> None:
        self.script = script

    def apply_coverage(self, functions: Iterable[FunctionCoverage]) -> CoverageScript:
        script = self.script
        lines = script.lines
        discarded = 0

        for block in functions:
            for rng in block.ranges:
                start, end = script.normalizer.normalize(rng.start_offset, rng.end_offset)
                matched = lines.overlapping(start, end)
                if not matched:
                    discarded += 1
                    continue

                region = Region(matched[0], start, matched[-1], end)
                if block.is_block_coverage:
                    script.branches.append(Branch(region, (rng.count,)))
                elif block.function_name:
                    script.functions.append(Function(block.function_name, region, rng.count))

                # Only ranges spanning a whole line set its count: the unexecuted
                # arm of `x ? 'a' : 'b'` must not zero out the line.
                for index in matched:
                    line = lines[index]
                    if start <= line.start_offset and end >= line.end_offset:
                        line.count = rng.count

        if discarded:
            log.debug("mapper.ranges_discarded", path=script.path, count=discarded)
        return script


def apply_coverage(script: CoverageScript, functions: Iterable[FunctionCoverage]) -> CoverageScript:
    return CoverageMapper(script).apply_coverage(functions)
