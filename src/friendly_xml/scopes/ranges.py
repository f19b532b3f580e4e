"""Scope range model and per-line depth derivation."""

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class ScopeRange:
    """Line extent of one element and its nesting depth (root is depth 0)."""

    start_line: int
    end_line: int
    depth: int

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


def line_depths(ranges: Iterable[ScopeRange], line_count: int) -> List[int]:
    """Return the scope depth of every line, indexed by 1-based line number.

    A line's depth is ``depth + 1`` of the deepest range covering it, so lines
    outside every element report 0. Index 0 is unused and always 0. Ranges
    reaching past ``line_count`` are clipped.
    """
    depths = [0] * (max(0, line_count) + 1)

    for scope in ranges:
        if scope.end_line < 1:
            continue
        start = max(1, scope.start_line)
        end = min(line_count, scope.end_line)
        for line in range(start, end + 1):
            depths[line] = max(depths[line], scope.depth + 1)

    return depths
