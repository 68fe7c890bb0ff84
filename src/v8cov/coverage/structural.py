"""Syntax-tree correlation of profiler ranges.

Instead of smearing counts over whole lines, the correlator pairs every
profiler function with the syntax node spanning exactly its declaration
range, then walks the tree emitting one entry per statement, per function and
per conditional expression. Counts come from the enclosing function's ranges.

The correlator only needs a narrow view of the tree (see ``SyntaxNode``);
``v8cov.coverage.treesitter`` provides it for JavaScript.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol, TypeVar

import structlog

from v8cov.core.errors import CoverageError
from v8cov.coverage.models import (
    Branch,
    Function,
    FunctionCoverage,
    OffsetRange,
    Statement,
)
from v8cov.coverage.ranges import IntervalPartition
from v8cov.coverage.script import CoverageScript

log = structlog.get_logger()


class NodeKind(Enum):
    """Parser-independent categories of syntax nodes."""

    PROGRAM = auto()
    FUNCTION = auto()
    CLASS = auto()  # profiled as its (possibly implicit) constructor
    BLOCK = auto()
    DECLARATION = auto()
    STATEMENT = auto()
    CONDITIONAL = auto()  # children: test, consequent, alternate
    OTHER = auto()


MATCHABLE_KINDS = frozenset({NodeKind.PROGRAM, NodeKind.FUNCTION, NodeKind.CLASS})


class SyntaxNode(Protocol):
    """Offsets are character offsets into the source text, end exclusive."""

    @property
    def kind(self) -> NodeKind: ...

    @property
    def start(self) -> int: ...

    @property
    def end(self) -> int: ...

    def children(self) -> Sequence[SyntaxNode]: ...


class Traversal(Enum):
    SKIP = auto()


S = TypeVar("S")
N = TypeVar("N", bound=SyntaxNode)


def traverse(root: N, visit: Callable[[N, S], S | Traversal], state: S) -> None:
    """Depth-first, pre-order walk of ``root``.

    ``visit`` receives each node with the state its parent returned and
    returns the state for the node's children, or ``Traversal.SKIP`` to leave
    the subtree unvisited.
    """
    stack: list[tuple[N, S]] = [(root, state)]
    while stack:
        node, node_state = stack.pop()
        child_state = visit(node, node_state)
        if child_state is Traversal.SKIP:
            continue
        children = reversed(node.children())
        stack.extend((child, child_state) for child in children)  # type: ignore[misc]


@dataclass(slots=True)
class _Scope:
    """Ranges of the innermost matched function, clipped to the source."""

    function: FunctionCoverage
    ranges: list[OffsetRange]
    partition: IntervalPartition | None

    def count(self, start: int, end: int) -> int:
        """Count of the most specific range containing ``[start, end)``."""
        partition = self.partition
        if partition is not None and partition.is_single_interval(start, end):
            return partition.get_count(start, end)
        # Spans crossing an inner range: ranges are listed outer-to-inner,
        # so the last container is the most specific one.
        count = self.function.declaration.count
        for rng in self.ranges:
            if rng.start_offset <= start and end <= rng.end_offset:
                count = rng.count
        return count


class StructuralCorrelator:
    """Applies function coverage to a CoverageScript through its syntax tree."""

    def __init__(self, script: CoverageScript, root: SyntaxNode) -> None:
        self.script = script
        self.root = root
        self._pending: dict[tuple[int, int], list[FunctionCoverage]] = {}
        self._wrappers: list[FunctionCoverage] = []
        self._statements: list[Statement] = []

    def apply_coverage(self, functions: Iterable[FunctionCoverage]) -> CoverageScript:
        """Match every function to a node and record its statements and branches.

        Raises:
            CoverageError: If a declaration range falls outside the source or
                no syntax node spans it exactly.
        """
        normalizer = self.script.normalizer
        self._pending = {}
        self._wrappers = []
        for block in functions:
            decl = block.declaration
            if not normalizer.in_bounds(decl.start_offset, decl.end_offset):
                raise CoverageError.offset_out_of_bounds(
                    decl.start_offset - normalizer.shift,
                    decl.end_offset - normalizer.shift,
                    normalizer.eof,
                )
            if decl.start_offset < normalizer.shift:
                # The script record and the host wrapper function both start in
                # the prologue; they describe the program itself.
                self._wrappers.append(block)
                continue
            span = normalizer.normalize(decl.start_offset, decl.end_offset)
            self._pending.setdefault(span, []).append(block)

        self._statements = []
        self.script.statements = self._statements
        traverse(self.root, self._visit, None)

        if self._wrappers:
            decl = self._wrappers[0].declaration
            start, end = normalizer.normalize(decl.start_offset, decl.end_offset)
            raise CoverageError.unmatched_function(self._wrappers[0].function_name, start, end)
        if self._pending:
            (start, end), blocks = next(iter(self._pending.items()))
            raise CoverageError.unmatched_function(blocks[0].function_name, start, end)
        return self.script

    def _match(self, node: SyntaxNode) -> FunctionCoverage | None:
        # One record per node, in profiler order: the script-level record
        # claims the program even when a function spans the whole file.
        key = (node.start, node.end)
        blocks = self._pending.get(key)
        if not blocks:
            return None
        block = blocks.pop(0)
        if not blocks:
            del self._pending[key]
        return block

    def _visit(self, node: SyntaxNode, scope: _Scope | None) -> _Scope | None | Traversal:
        script = self.script
        if node.kind is NodeKind.PROGRAM and self._wrappers:
            # The wrapper function, listed after the script record, carries
            # the top-level block ranges.
            scope = self._scope(self._wrappers[-1])
            self._wrappers = []
        elif node.kind in MATCHABLE_KINDS:
            block = self._match(node)
            if block is not None:
                if node.kind is not NodeKind.PROGRAM:
                    name = block.function_name or f"(anonymous_{len(script.functions)})"
                    region = script.lines.region(node.start, node.end)
                    script.functions.append(Function(name, region, block.declaration.count))
                scope = self._scope(block)

        if scope is None:
            # Outside every profiled function: only descend where a
            # declaration is still waiting for its node.
            if not any(node.start <= s and e <= node.end for s, e in self._pending):
                return Traversal.SKIP
            return None

        if node.kind is NodeKind.STATEMENT:
            region = script.lines.region(node.start, node.end)
            self._statements.append(Statement(region, scope.count(node.start, node.end)))
        elif node.kind is NodeKind.CONDITIONAL:
            self._record_conditional(node, scope)
        return scope

    def _record_conditional(self, node: SyntaxNode, scope: _Scope) -> None:
        children = node.children()
        if len(children) != 3:
            log.debug("structural.conditional_skipped", start=node.start, children=len(children))
            return
        lines = self.script.lines
        _, consequent, alternate = children
        self.script.branches.append(
            Branch(
                region=lines.region(node.start, node.end),
                counts=(
                    scope.count(consequent.start, consequent.end),
                    scope.count(alternate.start, alternate.end),
                ),
                arms=(
                    lines.region(consequent.start, consequent.end),
                    lines.region(alternate.start, alternate.end),
                ),
                type="cond-expr",
            )
        )

    def _scope(self, block: FunctionCoverage) -> _Scope:
        normalizer = self.script.normalizer
        ranges: list[OffsetRange] = []
        for rng in block.ranges:
            start, end = normalizer.normalize(rng.start_offset, rng.end_offset)
            if start < end:
                ranges.append(OffsetRange(start_offset=start, end_offset=end, count=rng.count))
        partition = IntervalPartition(ranges) if ranges else None
        return _Scope(block, ranges, partition)
