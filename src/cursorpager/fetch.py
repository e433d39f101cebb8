"""Single page fetches: delay, request, extract, report."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, Union

log = logging.getLogger(__name__)

Params = TypeVar("Params")
Envelope = TypeVar("Envelope")
Value = TypeVar("Value")
Cursor = TypeVar("Cursor")


@dataclass(frozen=True)
class FirstPage(Generic[Params]):
    """Request descriptor for the first page of a session."""

    params: Params


@dataclass(frozen=True)
class NextPage(Generic[Cursor]):
    """Request descriptor for a follow-up page."""

    cursor: Cursor


Descriptor = Union[FirstPage[Any], NextPage[Any]]


@dataclass(frozen=True)
class Page(Generic[Value, Cursor]):
    values: list[Value]
    cursor: Cursor | None


class FetchObserver(Protocol):
    def fetch_started(self, fetch: PageFetch) -> None: ...

    def fetch_resolved(self, fetch: PageFetch, page: Page[Any, Any]) -> None: ...

    def fetch_terminated(self, fetch: PageFetch) -> None: ...


class PageFetch:
    """Handle on one outstanding fetch, tagged with the session that issued it."""

    def __init__(self, descriptor: Descriptor, session_id: int) -> None:
        self.descriptor = descriptor
        self.session_id = session_id
        self._task: asyncio.Task[None] | None = None

    @property
    def kind(self) -> str:
        return "first" if isinstance(self.descriptor, FirstPage) else "next"

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the fetch to finish, whatever the outcome."""
        if self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    def __repr__(self) -> str:
        return f"<PageFetch {self.kind} session={self.session_id} done={self.done}>"


class PageFetchPipeline(Generic[Params, Envelope, Value, Cursor]):
    """Turns request descriptors into asynchronous page fetches.

    A failed request is logged and absorbed; the observer then only sees
    ``fetch_terminated``. Cancellation is never absorbed.
    """

    def __init__(
        self,
        *,
        values_from_envelope: Callable[[Envelope], Sequence[Value]],
        cursor_from_envelope: Callable[[Envelope], Cursor | None],
        request_from_params: Callable[[Params], Awaitable[Envelope]],
        request_from_cursor: Callable[[Cursor], Awaitable[Envelope]],
        observer: FetchObserver,
        api_delay: float = 0.0,
    ) -> None:
        self._values_from_envelope = values_from_envelope
        self._cursor_from_envelope = cursor_from_envelope
        self._request_from_params = request_from_params
        self._request_from_cursor = request_from_cursor
        self._observer = observer
        self.api_delay = api_delay

    def start(self, fetch: PageFetch) -> None:
        """Schedule ``fetch`` on the running loop and report it as started.

        The caller records ``fetch`` as its outstanding fetch before calling,
        so an observer reacting to ``fetch_started`` can already cancel it.
        """
        fetch._task = asyncio.create_task(
            self._run(fetch), name=f"cursorpager-fetch-{fetch.session_id}-{fetch.kind}"
        )
        self._observer.fetch_started(fetch)

    async def fetch(self, descriptor: Descriptor) -> Page[Value, Cursor]:
        """Run one request and extract its page. Request errors propagate."""
        if self.api_delay > 0:
            await asyncio.sleep(self.api_delay)
        if isinstance(descriptor, FirstPage):
            envelope = await self._request_from_params(descriptor.params)
        else:
            envelope = await self._request_from_cursor(descriptor.cursor)
        cursor = self._cursor_from_envelope(envelope)
        return Page(values=list(self._values_from_envelope(envelope)), cursor=cursor)

    async def _run(self, fetch: PageFetch) -> None:
        try:
            try:
                page = await self.fetch(fetch.descriptor)
            except Exception as exc:
                log.warning(
                    "Session %d: %s page fetch failed: %s",
                    fetch.session_id, fetch.kind, exc, exc_info=True,
                )
            else:
                self._observer.fetch_resolved(fetch, page)
        finally:
            self._observer.fetch_terminated(fetch)
