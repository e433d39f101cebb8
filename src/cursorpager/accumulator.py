"""Folding page results into the cumulative value list."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Generic, TypeVar

Value = TypeVar("Value")

Concater = Callable[[list[Value], list[Value]], list[Value]]


def concat(existing: list[Value], incoming: list[Value]) -> list[Value]:
    """Append a page to the current list."""
    return [*existing, *incoming]


def distinct_concat(existing: list[Value], incoming: list[Value]) -> list[Value]:
    """Append only the values not already present, keeping first occurrences.

    Values only need ``==``, so this is quadratic; pages are small.
    """
    merged = list(existing)
    for value in incoming:
        if value not in merged:
            merged.append(value)
    return merged


class Accumulator(Generic[Value]):
    """Cumulative result list for one session."""

    def __init__(self, concater: Concater[Value] | None = None) -> None:
        self._concater: Concater[Value] = concater or concat
        self._values: list[Value] = []

    def fold(self, page: Sequence[Value]) -> list[Value]:
        """Merge ``page`` into the running list and return a copy of the result."""
        self._values = list(self._concater(list(self._values), list(page)))
        return list(self._values)
