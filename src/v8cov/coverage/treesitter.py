"""JavaScript syntax trees for the structural correlator, via tree-sitter.

Tree-sitter reports byte offsets into the UTF-8 encoding of the source while
profiler offsets index characters, so node offsets are translated before the
correlator sees them.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import tree_sitter
import tree_sitter_javascript

from v8cov.coverage.structural import NodeKind

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "function_expression",
        "function",
        "generator_function_declaration",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)
CLASS_TYPES = frozenset({"class_declaration", "class"})
BLOCK_TYPES = frozenset({"statement_block", "class_body", "switch_body"})
DECLARATION_TYPES = frozenset(
    {
        "lexical_declaration",
        "variable_declaration",
        "import_statement",
        "export_statement",
    }
)
CONDITIONAL_TYPES = frozenset({"ternary_expression"})
IGNORED_TYPES = frozenset({"comment", "html_comment"})


def classify(node_type: str) -> NodeKind:
    """Map a tree-sitter-javascript node type onto a NodeKind."""
    if node_type == "program":
        return NodeKind.PROGRAM
    if node_type in FUNCTION_TYPES:
        return NodeKind.FUNCTION
    if node_type in CLASS_TYPES:
        return NodeKind.CLASS
    if node_type in BLOCK_TYPES:
        return NodeKind.BLOCK
    if node_type in DECLARATION_TYPES:
        return NodeKind.DECLARATION
    if node_type in CONDITIONAL_TYPES:
        return NodeKind.CONDITIONAL
    if node_type.endswith("_statement"):
        return NodeKind.STATEMENT
    return NodeKind.OTHER


class _CharOffsets:
    """Translates UTF-8 byte offsets into character offsets."""

    __slots__ = ("_byte_starts",)

    def __init__(self, source_text: str) -> None:
        if source_text.isascii():
            self._byte_starts: list[int] | None = None
            return
        starts = []
        position = 0
        for char in source_text:
            starts.append(position)
            position += len(char.encode("utf-8"))
        starts.append(position)
        self._byte_starts = starts

    def __call__(self, byte_offset: int) -> int:
        if self._byte_starts is None:
            return byte_offset
        return bisect_left(self._byte_starts, byte_offset)


@dataclass(frozen=True, slots=True)
class TreeSitterNode:
    """SyntaxNode view over a tree-sitter node."""

    node: Any = field(repr=False)
    offsets: _CharOffsets = field(repr=False)
    kind: NodeKind
    start: int
    end: int

    @classmethod
    def wrap(cls, node: Any, offsets: _CharOffsets) -> TreeSitterNode:
        return cls(
            node=node,
            offsets=offsets,
            kind=classify(node.type),
            start=offsets(node.start_byte),
            end=offsets(node.end_byte),
        )

    @property
    def type(self) -> str:
        return str(self.node.type)

    def children(self) -> Sequence[TreeSitterNode]:
        return [
            TreeSitterNode.wrap(child, self.offsets)
            for child in self.node.named_children
            if child.type not in IGNORED_TYPES
        ]


class JavaScriptParser:
    """Parses JavaScript source into SyntaxNode trees.

    Usage::

        root = JavaScriptParser().parse(source_text)
        StructuralCorrelator(script, root).apply_coverage(functions)
    """

    def __init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._parser.language = tree_sitter.Language(tree_sitter_javascript.language())

    def parse(self, source_text: str) -> TreeSitterNode:
        """Parse ``source_text``; the root spans the whole text.

        Tree-sitter starts the program node at the first token, but the
        script-level profiler function covers leading whitespace too.
        """
        tree = self._parser.parse(source_text.encode("utf-8"))
        offsets = _CharOffsets(source_text)
        return TreeSitterNode(
            node=tree.root_node,
            offsets=offsets,
            kind=NodeKind.PROGRAM,
            start=0,
            end=len(source_text),
        )
