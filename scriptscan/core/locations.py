from __future__ import annotations
from bisect import bisect_left
from typing import List

from .models import Location


class LocationResolver:
    """Map character offsets in one source text to 1-based line/column.

    Newline offsets are collected once; each lookup is a binary search.
    An offset sitting on a newline belongs to the line that newline ends.
    Tabs count as a single column.
    """

    def __init__(self, text: str) -> None:
        self.length = len(text)
        self.newlines: List[int] = []
        pos = text.find("\n")
        while pos != -1:
            self.newlines.append(pos)
            pos = text.find("\n", pos + 1)

    @property
    def line_count(self) -> int:
        return len(self.newlines) + 1

    def resolve(self, offset: int) -> Location:
        if offset < 0 or offset > self.length:
            raise ValueError(f"offset {offset} outside text of length {self.length}")
        idx = bisect_left(self.newlines, offset)
        line_start = self.newlines[idx - 1] + 1 if idx > 0 else 0
        return Location(line=idx + 1, column=offset - line_start + 1)


def resolve(text: str, offset: int) -> Location:
    return LocationResolver(text).resolve(offset)
