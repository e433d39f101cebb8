"""Cursor pagination coordinator with an optional httpx transport."""

from cursorpager.accumulator import concat, distinct_concat
from cursorpager.config import PaginatorSettings
from cursorpager.errors import PagerHTTPError, PagerNetworkError, PaginatorClosedError
from cursorpager.http import HTTPClient
from cursorpager.models import CursorPage
from cursorpager.paginator import Paginator, paginate
from cursorpager.sources import HTTPPageSource
from cursorpager.stream import Stream

__all__ = [
    "CursorPage",
    "HTTPClient",
    "HTTPPageSource",
    "PagerHTTPError",
    "PagerNetworkError",
    "Paginator",
    "PaginatorClosedError",
    "PaginatorSettings",
    "Stream",
    "concat",
    "distinct_concat",
    "paginate",
]
