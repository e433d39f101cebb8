"""Page sources for JSON endpoints returning ``{"items": [...], "cursor": ...}``."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from cursorpager.accumulator import Concater
from cursorpager.config import PaginatorSettings
from cursorpager.http import HTTPClient
from cursorpager.models import CursorPage
from cursorpager.paginator import Paginator

T = TypeVar("T", bound=BaseModel)


class HTTPPageSource(Generic[T]):
    """Request and extractor functions for one cursor-paginated endpoint.

    The query of the latest first-page request is replayed alongside the
    cursor on follow-up requests, so filters stay in effect across pages.
    """

    def __init__(
        self,
        http: HTTPClient,
        path: str,
        model: type[T],
        *,
        params: dict[str, Any] | None = None,
        limit: int | None = None,
        settings: PaginatorSettings | None = None,
    ) -> None:
        self._settings = settings or PaginatorSettings()
        self._http = http
        self._path = path
        self._envelope: type[CursorPage[T]] = CursorPage[model]  # type: ignore[valid-type]
        self._base_params = dict(params) if params else {}
        self._limit = limit if limit is not None else self._settings.page_size
        self._query: dict[str, Any] = dict(self._base_params)

    async def request_from_params(self, params: dict[str, Any] | None = None) -> CursorPage[T]:
        self._query = {**self._base_params, **(params or {})}
        return await self._get()

    async def request_from_cursor(self, cursor: str) -> CursorPage[T]:
        return await self._get(cursor)

    @staticmethod
    def values_from_envelope(envelope: CursorPage[T]) -> list[T]:
        return envelope.items

    @staticmethod
    def cursor_from_envelope(envelope: CursorPage[T]) -> str | None:
        return envelope.cursor or None

    async def _get(self, cursor: str | None = None) -> CursorPage[T]:
        body = await self._http.get_page(self._path, self._query, cursor=cursor, limit=self._limit)
        return self._envelope.model_validate(body)

    def paginator(
        self,
        *,
        concater: Concater[T] | None = None,
        clear_on_new_request: bool | None = None,
        api_delay: float | None = None,
    ) -> Paginator[dict[str, Any] | None, CursorPage[T], T, str]:
        """Build a :class:`Paginator` fetching through this source."""
        return Paginator(
            values_from_envelope=self.values_from_envelope,
            cursor_from_envelope=self.cursor_from_envelope,
            request_from_params=self.request_from_params,
            request_from_cursor=self.request_from_cursor,
            concater=concater,
            clear_on_new_request=clear_on_new_request,
            api_delay=api_delay,
            settings=self._settings,
        )
