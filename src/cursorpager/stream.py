"""Synchronous multicast event streams."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any, Generic, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[[T], Any]

_MISSING: Any = object()


class Stream(Generic[T]):
    """A hot event source delivering each emission to every subscriber.

    Delivery is synchronous: :meth:`emit` returns after every handler has
    run. A handler that raises is logged and skipped; delivery continues
    with the next one.

    With ``distinct=True`` an emission equal to the previous one is dropped.

    Usage::

        values = Stream[list[int]](name="values", distinct=True)
        unsubscribe = values.subscribe(print)
        values.emit([1, 2])
        values.emit([1, 2])  # dropped
        unsubscribe()

        async for batch in values:
            ...
    """

    def __init__(self, *, name: str = "stream", distinct: bool = False, initial: Any = _MISSING) -> None:
        self.name = name
        self._distinct = distinct
        self._handlers: list[Handler[T]] = []
        self._latest: Any = initial
        self._has_emitted = False

    @property
    def latest(self) -> T | None:
        """Most recent emission, or the initial value if nothing was emitted yet."""
        return None if self._latest is _MISSING else self._latest

    def subscribe(self, handler: Handler[T]) -> Callable[[], None]:
        """Register ``handler``; returns a callable that removes it again."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, value: T) -> bool:
        """Deliver ``value``. Returns ``False`` if a distinct stream dropped it."""
        if self._distinct and self._has_emitted and self._latest == value:
            return False
        self._latest = value
        self._has_emitted = True
        for handler in list(self._handlers):
            try:
                handler(value)
            except Exception:
                log.exception("Error in %s subscriber", self.name)
        return True

    async def __aiter__(self) -> AsyncIterator[T]:
        queue: asyncio.Queue[T] = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()

    def __repr__(self) -> str:
        return f"<Stream {self.name!r} subscribers={len(self._handlers)}>"
