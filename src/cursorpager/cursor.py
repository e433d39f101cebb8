"""Per-session storage for the most recently observed cursor."""

from __future__ import annotations

from typing import Generic, TypeVar

Cursor = TypeVar("Cursor")


class CursorStore(Generic[Cursor]):
    """Holds the cursor of the last completed fetch.

    ``None`` means unset: either no page has completed yet in this session,
    or the last page carried no continuation.
    """

    def __init__(self) -> None:
        self._cursor: Cursor | None = None

    @property
    def value(self) -> Cursor | None:
        return self._cursor

    @property
    def is_set(self) -> bool:
        return self._cursor is not None

    def publish(self, cursor: Cursor | None) -> None:
        self._cursor = cursor
