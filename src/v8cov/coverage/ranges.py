"""Flattening of nested profiler ranges into a gap-free partition.

The profiler lists a function's ranges outer-to-inner: the first range spans
the whole function and each later range overrides the count of the part it
covers. ``IntervalPartition`` resolves those overrides once so that the count
of any leaf span can be queried with a single binary search.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence
from typing import TYPE_CHECKING

from v8cov.core.errors import CoverageError

if TYPE_CHECKING:
    from v8cov.coverage.models import OffsetRange


def find_split(splits: Sequence[int], value: int) -> int:
    """Return the largest index ``i`` such that ``splits[i] <= value``.

    ``splits`` is sorted and holds at least two items; ``value`` is
    ``>= splits[0]``. Values at or past the last split map to the last index.
    """
    return bisect_right(splits, value) - 1


class IntervalPartition:
    """Non-overlapping, gap-free decomposition of a function's ranges.

    ``counts[i]`` applies to ``[splits[i], splits[i + 1])``.
    """

    __slots__ = ("_splits", "_counts")

    def __init__(self, ranges: Sequence[OffsetRange]) -> None:
        """Build the partition from profiler ranges.

        Assumes, as the profiler guarantees, that no range is empty, that
        ``ranges[0]`` contains every other range, and that for any two ranges
        A before B either A and B are disjoint or B is inside A.

        Raises:
            CoverageError: If ``ranges`` is empty.
        """
        if not ranges:
            raise CoverageError.malformed_input("cannot partition an empty range list")

        first = ranges[0]
        splits = [first.start_offset, first.end_offset]
        counts = [first.count]

        for rng in ranges[1:]:
            # The right boundary must be materialized before the left one,
            # otherwise the left insertion shifts the index found for the right.
            right = find_split(splits, rng.end_offset)
            if splits[right] != rng.end_offset:
                splits.insert(right + 1, rng.end_offset)
                counts.insert(right, counts[right])
            left = find_split(splits, rng.start_offset)
            if splits[left] != rng.start_offset:
                left += 1
                splits.insert(left, rng.start_offset)
                counts.insert(left, rng.count)
            counts[left] = rng.count

        self._splits = splits
        self._counts = counts

    @property
    def start_offset(self) -> int:
        return self._splits[0]

    @property
    def end_offset(self) -> int:
        return self._splits[-1]

    def __len__(self) -> int:
        return len(self._counts)

    def get_ranges(self) -> list[tuple[int, int, int]]:
        """Flattened ``(start, end, count)`` triples in increasing offset order."""
        return [
            (self._splits[idx], self._splits[idx + 1], count)
            for idx, count in enumerate(self._counts)
        ]

    def is_single_interval(self, start: int, end: int) -> bool:
        """Whether ``[start, end)`` lies inside exactly one interval."""
        if not (start < end and self.start_offset <= start and end <= self.end_offset):
            return False
        return end <= self._splits[find_split(self._splits, start) + 1]

    def get_count(self, start: int, end: int) -> int:
        """Count of the interval holding ``[start, end)``.

        Raises:
            CoverageError: If the span is empty, leaves the partition, or
                straddles an interval boundary.
        """
        if not self.is_single_interval(start, end):
            raise CoverageError.query_range_violation(
                start, end, (self.start_offset, self.end_offset)
            )
        return self._counts[find_split(self._splits, start)]
