"""Fetches raw pages from cursor-paginated JSON endpoints over httpx."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from cursorpager.errors import PagerHTTPError, PagerNetworkError
from cursorpager.models import ErrorResponse
from cursorpager.rate_limit import RateLimiter

log = logging.getLogger(__name__)

_ATTEMPTS = 3
_BACKOFF = 1.0
_TRANSIENT_STATUSES = frozenset({500, 502, 503, 504})


def retry_delay(response: httpx.Response, attempt: int) -> float | None:
    """Seconds to wait before re-requesting a page, or ``None`` if the failure is final.

    A 429 waits as long as the server asks (``retry_after_ms`` in the error
    body, then the ``Retry-After`` header). Transient 5xx responses back off
    exponentially from the first attempt.
    """
    if response.status_code == 429:
        error = ErrorResponse.from_response(response)
        if error is not None and error.retry_after_ms:
            return error.retry_after_ms / 1000.0
        try:
            return float(response.headers["retry-after"])
        except (KeyError, ValueError):
            return _BACKOFF
    if response.status_code in _TRANSIENT_STATUSES:
        return _BACKOFF * 2 ** (attempt - 1)
    return None


class HTTPClient:
    """Read-only client for page endpoints.

    Usage::

        async with HTTPClient("https://api.example.com", token) as http:
            body = await http.get_page("/v1/members", {"role": "admin"}, limit=50)
            body = await http.get_page("/v1/members", {"role": "admin"}, cursor=body["cursor"], limit=50)
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._limiter = RateLimiter()
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def get_page(
        self,
        path: str,
        query: dict[str, Any],
        *,
        cursor: str | None = None,
        limit: int,
    ) -> Any:
        """GET one page and return its decoded JSON body.

        ``cursor`` is omitted on the first page. Rate-limited and transient
        failures are retried, up to three attempts per page.
        """
        params = {**query, "limit": limit}
        if cursor is not None:
            params["cursor"] = cursor

        attempt = 0
        while True:
            attempt += 1
            await self._limiter.wait(path)
            try:
                response = await self._client.get(path, params=params)
            except httpx.TransportError as exc:
                raise PagerNetworkError(path, exc) from exc
            self._limiter.observe(path, response)

            if response.is_success:
                try:
                    return response.json()
                except ValueError:
                    raise PagerHTTPError(path, response.status_code) from None

            delay = retry_delay(response, attempt)
            if delay is None or attempt >= _ATTEMPTS:
                raise PagerHTTPError.from_response(path, response)
            log.debug("%s answered %d on attempt %d, retrying in %.2fs", path, response.status_code, attempt, delay)
            await asyncio.sleep(delay)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HTTPClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
