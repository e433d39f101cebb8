"""Session-scoped cursor pagination coordinator."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Generic, TypeVar

from cursorpager.accumulator import Accumulator, Concater
from cursorpager.config import PaginatorSettings
from cursorpager.cursor import CursorStore
from cursorpager.errors import PaginatorClosedError
from cursorpager.fetch import Descriptor, FirstPage, NextPage, Page, PageFetch, PageFetchPipeline
from cursorpager.stream import Stream

log = logging.getLogger(__name__)

Params = TypeVar("Params")
Envelope = TypeVar("Envelope")
Value = TypeVar("Value")
Cursor = TypeVar("Cursor")


class Session(Generic[Value, Cursor]):
    """State owned by one pagination sequence."""

    def __init__(self, session_id: int, accumulator: Accumulator[Value]) -> None:
        self.id = session_id
        self.cursor: CursorStore[Cursor] = CursorStore()
        self.accumulator = accumulator
        self.fetch: PageFetch | None = None
        self.exhausted = False

    def __repr__(self) -> str:
        return f"<Session {self.id} cursor={self.cursor.value!r} exhausted={self.exhausted}>"


class Paginator(Generic[Params, Envelope, Value, Cursor]):
    """Coordinates first-page and load-more requests for a cursor-paginated source.

    Outputs are two streams: :attr:`values` carries the cumulative value list
    after each completed page (never the same content twice in a row) and
    :attr:`is_loading` is ``True`` exactly while a fetch is outstanding.

    Each :meth:`request_first_page` starts a new session and cancels whatever
    the previous one had in flight; nothing from a superseded session is
    emitted afterwards. Failed fetches are logged and absorbed.

    Usage::

        pager = Paginator(
            values_from_envelope=lambda env: env.items,
            cursor_from_envelope=lambda env: env.cursor,
            request_from_params=api.search,
            request_from_cursor=api.search_more,
        )
        pager.values.subscribe(render)
        pager.request_first_page({"q": "cats"})
        ...
        pager.request_next_page()
    """

    def __init__(
        self,
        *,
        values_from_envelope: Callable[[Envelope], Sequence[Value]],
        cursor_from_envelope: Callable[[Envelope], Cursor | None],
        request_from_params: Callable[[Params], Awaitable[Envelope]],
        request_from_cursor: Callable[[Cursor], Awaitable[Envelope]],
        concater: Concater[Value] | None = None,
        clear_on_new_request: bool | None = None,
        api_delay: float | None = None,
        settings: PaginatorSettings | None = None,
    ) -> None:
        settings = settings or PaginatorSettings()
        self.clear_on_new_request = (
            settings.clear_on_new_request if clear_on_new_request is None else clear_on_new_request
        )
        self._concater = concater
        self._pipeline: PageFetchPipeline[Params, Envelope, Value, Cursor] = PageFetchPipeline(
            values_from_envelope=values_from_envelope,
            cursor_from_envelope=cursor_from_envelope,
            request_from_params=request_from_params,
            request_from_cursor=request_from_cursor,
            observer=self,
            api_delay=settings.api_delay if api_delay is None else api_delay,
        )

        self.values: Stream[list[Value]] = Stream(name="paginated_values", distinct=True)
        self.is_loading: Stream[bool] = Stream(name="is_loading", distinct=True, initial=False)

        self._session: Session[Value, Cursor] | None = None
        self._session_ids = itertools.count(1)
        self._unbinders: list[Callable[[], None]] = []
        self._closed = False

    # --- Read-only state ---

    @property
    def session_id(self) -> int | None:
        return self._session.id if self._session else None

    @property
    def cursor(self) -> Cursor | None:
        return self._session.cursor.value if self._session else None

    @property
    def exhausted(self) -> bool:
        return self._session.exhausted if self._session else False

    @property
    def has_next_page(self) -> bool:
        """Whether :meth:`request_next_page` would currently be able to fetch."""
        session = self._session
        return session is not None and not session.exhausted and session.cursor.is_set

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Triggers ---

    def request_first_page(self, params: Params) -> None:
        """Start a new session, superseding the current one."""
        self._ensure_open()
        previous = self._session
        if previous is not None and previous.fetch is not None:
            log.debug("Session %d superseded with a %s fetch in flight", previous.id, previous.fetch.kind)
            previous.fetch.cancel()
            previous.fetch = None

        session: Session[Value, Cursor] = Session(next(self._session_ids), Accumulator(self._concater))
        self._session = session
        log.debug("Starting session %d", session.id)

        if self.clear_on_new_request:
            self.values.emit([])
        if self._session is session:
            self._start(session, FirstPage(params))

    def request_next_page(self) -> bool:
        """Fetch the page after the stored cursor. Returns ``True`` if a fetch was issued."""
        self._ensure_open()
        session = self._session
        if session is None:
            return False
        if session.fetch is not None:
            log.debug("Session %d: load more ignored, fetch in flight", session.id)
            return False
        if session.exhausted:
            log.debug("Session %d: load more ignored, pages exhausted", session.id)
            return False
        cursor = session.cursor.value
        if cursor is None:
            log.debug("Session %d: load more ignored, no cursor", session.id)
            return False
        self._start(session, NextPage(cursor))
        return True

    def bind(self, first_page: Stream[Params], next_page: Stream[Any]) -> Callable[[], None]:
        """Drive this paginator from input streams. Returns a callable that unbinds."""
        unbinders = [
            first_page.subscribe(self.request_first_page),
            next_page.subscribe(lambda _: self.request_next_page()),
        ]
        self._unbinders.extend(unbinders)

        def unbind() -> None:
            for unsubscribe in unbinders:
                unsubscribe()
                if unsubscribe in self._unbinders:
                    self._unbinders.remove(unsubscribe)

        return unbind

    async def wait_idle(self) -> None:
        """Wait until no fetch is outstanding, following session hand-overs."""
        while self._session is not None and self._session.fetch is not None:
            session = self._session
            fetch = session.fetch
            await fetch.wait()
            if session.fetch is fetch:
                # Cancelled before it ever ran, so it never reported back.
                self.fetch_terminated(fetch)

    async def close(self) -> None:
        """Cancel outstanding work and detach from bound inputs."""
        if self._closed:
            return
        self._closed = True
        for unsubscribe in self._unbinders:
            unsubscribe()
        self._unbinders.clear()
        session, self._session = self._session, None
        if session is not None and session.fetch is not None:
            fetch, session.fetch = session.fetch, None
            fetch.cancel()
            await fetch.wait()
            self.is_loading.emit(False)

    async def __aenter__(self) -> Paginator[Params, Envelope, Value, Cursor]:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # --- Fetch lifecycle ---

    def fetch_started(self, fetch: PageFetch) -> None:
        if self._current(fetch) is not None:
            self.is_loading.emit(True)

    def fetch_resolved(self, fetch: PageFetch, page: Page[Value, Cursor]) -> None:
        session = self._current(fetch)
        if session is None or session.fetch is not fetch:
            return
        # Cleared first so subscribers of `values` may load more right away.
        session.fetch = None
        session.cursor.publish(page.cursor)
        if not page.values:
            session.exhausted = True
            log.debug("Session %d: empty page, pagination exhausted", session.id)
        try:
            merged = session.accumulator.fold(page.values)
        except Exception:
            log.exception("Session %d: failed to merge page", session.id)
            return
        self.values.emit(merged)

    def fetch_terminated(self, fetch: PageFetch) -> None:
        session = self._current(fetch)
        if session is None:
            return
        if session.fetch is fetch:
            session.fetch = None
        if session.fetch is None:
            self.is_loading.emit(False)

    def _start(self, session: Session[Value, Cursor], descriptor: Descriptor) -> None:
        fetch = PageFetch(descriptor, session.id)
        session.fetch = fetch
        self._pipeline.start(fetch)

    def _current(self, fetch: PageFetch) -> Session[Value, Cursor] | None:
        session = self._session
        if session is None or session.id != fetch.session_id:
            return None
        return session

    def _ensure_open(self) -> None:
        if self._closed:
            raise PaginatorClosedError("Paginator is closed")


def paginate(
    request_first_page_with: Stream[Params],
    request_next_page_when: Stream[Any],
    *,
    clear_on_new_request: bool,
    values_from_envelope: Callable[[Envelope], Sequence[Value]],
    cursor_from_envelope: Callable[[Envelope], Cursor | None],
    request_from_params: Callable[[Params], Awaitable[Envelope]],
    request_from_cursor: Callable[[Cursor], Awaitable[Envelope]],
    concater: Concater[Value] | None = None,
    api_delay: float | None = None,
) -> tuple[Stream[list[Value]], Stream[bool]]:
    """Wire a :class:`Paginator` to two input streams.

    Returns ``(paginated_values, is_loading)``. The paginator lives as long
    as the input streams hold its subscriptions.
    """
    pager: Paginator[Params, Envelope, Value, Cursor] = Paginator(
        values_from_envelope=values_from_envelope,
        cursor_from_envelope=cursor_from_envelope,
        request_from_params=request_from_params,
        request_from_cursor=request_from_cursor,
        concater=concater,
        clear_on_new_request=clear_on_new_request,
        api_delay=api_delay,
    )
    pager.bind(request_first_page_with, request_next_page_when)
    return pager.values, pager.is_loading
