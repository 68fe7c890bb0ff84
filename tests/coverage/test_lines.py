"""Tests for LineIndex."""

import pytest

from v8cov.coverage.lines import LineIndex
from v8cov.coverage.models import Location, Region


class TestLineIndexConstruction:
    """Line spans built from source text."""

    def test_one_line_per_newline_segment(self) -> None:
        index = LineIndex("a = 1;\nbb = 2;\nccc = 3;")
        assert [(line.number, line.start_offset, line.end_offset) for line in index] == [
            (1, 0, 6),
            (2, 7, 14),
            (3, 15, 23),
        ]
        assert index.eof == 23

    def test_trailing_newline_does_not_open_a_line(self) -> None:
        index = LineIndex("function f(){return 1;}\nf();\n")
        assert len(index) == 2
        assert index[1].end_offset == 28
        assert index.eof == 29

    def test_blank_lines_are_kept(self) -> None:
        index = LineIndex("a\n\nb")
        assert len(index) == 3
        assert index[1].length == 0

    def test_empty_source_has_one_empty_line(self) -> None:
        index = LineIndex("")
        assert len(index) == 1
        assert index.eof == 0

    def test_counts_start_at_zero(self) -> None:
        assert all(line.count == 0 for line in LineIndex("x\ny\nz"))

    def test_line_span(self) -> None:
        index = LineIndex("abc\ndefgh")
        span = index[1].span()
        assert span.start == Location(2, 0)
        assert span.end == Location(2, 5)


class TestLineIndexLookup:
    """Offset lookups and overlap queries."""

    @pytest.fixture
    def index(self) -> LineIndex:
        # Lines: [0, 6) [7, 14) [15, 23)
        return LineIndex("a = 1;\nbb = 2;\nccc = 3;")

    def test_overlapping_inside_one_line(self, index: LineIndex) -> None:
        assert list(index.overlapping(8, 10)) == [1]

    def test_overlapping_across_lines(self, index: LineIndex) -> None:
        assert list(index.overlapping(3, 16)) == [0, 1, 2]

    def test_overlapping_includes_touching_lines(self, index: LineIndex) -> None:
        # Range end equal to a line's start still overlaps that line.
        assert list(index.overlapping(0, 7)) == [0, 1]

    def test_overlapping_whole_file(self, index: LineIndex) -> None:
        assert list(index.overlapping(0, index.eof)) == [0, 1, 2]

    def test_overlapping_past_eof_is_empty(self, index: LineIndex) -> None:
        assert list(index.overlapping(30, 40)) == []

    def test_overlapping_inverted_range_is_empty(self, index: LineIndex) -> None:
        assert list(index.overlapping(23, 0)) == []

    @pytest.mark.parametrize(
        ("offset", "expected"),
        [(0, Location(1, 0)), (6, Location(1, 6)), (7, Location(2, 0)), (23, Location(3, 8))],
    )
    def test_locate(self, index: LineIndex, offset: int, expected: Location) -> None:
        assert index.locate(offset) == expected

    def test_region_and_resolve(self, index: LineIndex) -> None:
        region = index.region(9, 18)
        assert region == Region(1, 9, 2, 18)
        span = index.resolve(region)
        assert span.start == Location(2, 2)
        assert span.end == Location(3, 3)

    def test_resolve_clamps_past_final_newline(self) -> None:
        index = LineIndex("f();\n")
        span = index.resolve(index.region(0, index.eof))
        assert span.end == Location(1, 4)
