"""Tests for the tree-sitter JavaScript adapter and structural conversion."""

import pytest

from v8cov.config.models import ConversionConfig
from v8cov.coverage.convert import convert_script
from v8cov.coverage.structural import NodeKind
from v8cov.coverage.treesitter import JavaScriptParser, TreeSitterNode, classify


@pytest.fixture(scope="module")
def parser() -> JavaScriptParser:
    return JavaScriptParser()


class TestClassify:
    """Node type -> NodeKind mapping."""

    @pytest.mark.parametrize(
        ("node_type", "kind"),
        [
            ("program", NodeKind.PROGRAM),
            ("function_declaration", NodeKind.FUNCTION),
            ("arrow_function", NodeKind.FUNCTION),
            ("method_definition", NodeKind.FUNCTION),
            ("class_declaration", NodeKind.CLASS),
            ("statement_block", NodeKind.BLOCK),
            ("lexical_declaration", NodeKind.DECLARATION),
            ("ternary_expression", NodeKind.CONDITIONAL),
            ("expression_statement", NodeKind.STATEMENT),
            ("return_statement", NodeKind.STATEMENT),
            ("if_statement", NodeKind.STATEMENT),
            ("identifier", NodeKind.OTHER),
            ("call_expression", NodeKind.OTHER),
        ],
    )
    def test_classify(self, node_type: str, kind: NodeKind) -> None:
        assert classify(node_type) is kind


class TestJavaScriptParser:
    """Parsing and offset translation."""

    def test_root_spans_whole_text(self, parser: JavaScriptParser) -> None:
        source = "\n\n  f();\n"
        root = parser.parse(source)
        assert root.kind is NodeKind.PROGRAM
        assert (root.start, root.end) == (0, len(source))

    def test_top_level_children(self, parser: JavaScriptParser) -> None:
        root = parser.parse("function f(){return 1;}\nf();\n")
        children = root.children()
        assert [child.type for child in children] == [
            "function_declaration",
            "expression_statement",
        ]
        assert [(child.start, child.end) for child in children] == [(0, 23), (24, 28)]

    def test_comments_are_dropped(self, parser: JavaScriptParser) -> None:
        root = parser.parse("// note\nf();\n")
        assert [child.type for child in root.children()] == ["expression_statement"]

    def test_offsets_are_characters_not_bytes(self, parser: JavaScriptParser) -> None:
        source = "const s = 'é';\nfunction g(){}\n"
        root = parser.parse(source)
        functions = [child for child in root.children() if child.kind is NodeKind.FUNCTION]
        assert len(functions) == 1
        assert (functions[0].start, functions[0].end) == (15, 29)
        assert source[functions[0].start : functions[0].end] == "function g(){}"

    def test_nodes_are_wrapped(self, parser: JavaScriptParser) -> None:
        root = parser.parse("f();")
        assert all(isinstance(child, TreeSitterNode) for child in root.children())


class TestStructuralConversion:
    """convert_script with the structural strategy."""

    CONFIG = ConversionConfig(strategy="structural")

    def test_function_and_call(self) -> None:
        coverage = {
            "url": "file:///f.mjs",
            "functions": [
                {
                    "functionName": "",
                    "isBlockCoverage": False,
                    "ranges": [{"startOffset": 0, "endOffset": 29, "count": 1}],
                },
                {
                    "functionName": "f",
                    "isBlockCoverage": True,
                    "ranges": [{"startOffset": 0, "endOffset": 23, "count": 1}],
                },
            ],
        }

        data = convert_script(coverage, "function f(){return 1;}\nf();\n", config=self.CONFIG)

        assert data["path"] == "/f.mjs"
        assert data["s"] == {"0": 1, "1": 1}
        assert data["statementMap"]["0"]["start"] == {"line": 1, "column": 13}
        assert data["fnMap"]["0"]["name"] == "f"
        assert data["f"] == {"0": 1}

    def test_commonjs_script_and_wrapper_records(self) -> None:
        source = "function f(){return 1;}\nf();\n"
        shift = len(ConversionConfig().cjs_wrapper_prologue)
        coverage = {
            "url": "/srv/f.js",
            "functions": [
                {
                    "functionName": "",
                    "ranges": [{"startOffset": 0, "endOffset": shift + 33, "count": 1}],
                },
                {
                    "functionName": "",
                    "isBlockCoverage": True,
                    "ranges": [{"startOffset": 1, "endOffset": shift + 32, "count": 1}],
                },
                {
                    "functionName": "f",
                    "isBlockCoverage": True,
                    "ranges": [{"startOffset": shift, "endOffset": shift + 23, "count": 1}],
                },
            ],
        }

        data = convert_script(coverage, source, config=self.CONFIG)

        assert [entry["name"] for entry in data["fnMap"].values()] == ["f"]
        assert data["f"] == {"0": 1}
        assert data["s"] == {"0": 1, "1": 1}

    def test_uncalled_arrow_function(self) -> None:
        source = "const g = () => {\n  return 2;\n};\n"
        arrow_start = source.index("(")
        arrow_end = source.index("}") + 1
        coverage = {
            "url": "file:///g.mjs",
            "functions": [
                {
                    "functionName": "",
                    "ranges": [{"startOffset": 0, "endOffset": len(source), "count": 1}],
                },
                {
                    "functionName": "g",
                    "isBlockCoverage": True,
                    "ranges": [{"startOffset": arrow_start, "endOffset": arrow_end, "count": 0}],
                },
            ],
        }

        data = convert_script(coverage, source, config=self.CONFIG)

        assert data["fnMap"]["0"]["name"] == "g"
        assert data["f"] == {"0": 0}
        assert data["s"] == {"0": 0}
        assert data["statementMap"]["0"]["start"] == {"line": 2, "column": 2}

    def test_conditional_branch(self) -> None:
        source = "const x = 1 ? 'a' : 'b';\n"
        alternate = source.index("'b'")
        coverage = {
            "url": "file:///c.mjs",
            "functions": [
                {
                    "functionName": "",
                    "isBlockCoverage": True,
                    "ranges": [
                        {"startOffset": 0, "endOffset": len(source), "count": 1},
                        {"startOffset": alternate, "endOffset": alternate + 3, "count": 0},
                    ],
                }
            ],
        }

        data = convert_script(coverage, source, config=self.CONFIG)

        assert data["branchMap"]["0"]["type"] == "cond-expr"
        assert data["b"] == {"0": [1, 0]}
