"""Line spans of a source text and offset -> (line, column) lookup."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Iterator
from dataclasses import dataclass

from v8cov.coverage.models import Location, Region, Span


@dataclass(slots=True)
class Line:
    """One newline-delimited segment of the source.

    ``end_offset`` excludes the terminator. ``count`` is mutated while coverage
    is applied.
    """

    number: int  # 1-based
    start_offset: int
    end_offset: int
    count: int = 0

    @property
    def length(self) -> int:
        return self.end_offset - self.start_offset

    def span(self) -> Span:
        return Span(Location(self.number, 0), Location(self.number, self.length))


class LineIndex:
    """Ordered line spans built by a single scan of the source text."""

    __slots__ = ("lines", "eof", "_starts", "_ends")

    def __init__(self, source_text: str) -> None:
        self.lines: list[Line] = []
        segments = source_text.split("\n")
        if len(segments) > 1 and not segments[-1]:
            # A trailing newline terminates the last line rather than opening one.
            segments.pop()
        position = 0
        for number, text in enumerate(segments, start=1):
            self.lines.append(Line(number, position, position + len(text)))
            position += len(text) + 1  # newline
        self.eof = len(source_text)
        self._starts = [line.start_offset for line in self.lines]
        self._ends = [line.end_offset for line in self.lines]

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self.lines)

    def __getitem__(self, index: int) -> Line:
        return self.lines[index]

    def overlapping(self, start: int, end: int) -> range:
        """Indices of lines intersecting ``[start, end]``.

        A line matches when ``start <= line.end_offset and end >= line.start_offset``,
        so a range touching a line's boundary still matches it.
        """
        first = bisect_left(self._ends, start)
        last = bisect_right(self._starts, end)
        return range(first, max(first, last))

    def line_at(self, offset: int) -> int:
        """Index of the line holding ``offset`` (clamped into the file)."""
        offset = min(max(offset, 0), self.eof)
        return bisect_right(self._starts, offset) - 1

    def locate(self, offset: int) -> Location:
        """1-based line and 0-based column of ``offset``."""
        line = self.lines[self.line_at(offset)]
        return Location(line.number, _column(line, offset))

    def region(self, start: int, end: int) -> Region:
        """Region for ``[start, end)`` with its boundary lines looked up."""
        return Region(self.line_at(start), start, self.line_at(end), end)

    def resolve(self, region: Region) -> Span:
        """Line/column coordinates of a region, relative to its boundary lines."""
        first = self.lines[region.start_line]
        last = self.lines[region.end_line]
        return Span(
            Location(first.number, _column(first, region.start_offset)),
            Location(last.number, _column(last, region.end_offset)),
        )


def _column(line: Line, offset: int) -> int:
    # Offsets past the final newline stay on the last line.
    return min(max(offset - line.start_offset, 0), line.length)
