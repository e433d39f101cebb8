"""Exception hierarchy."""

from __future__ import annotations

import httpx

from cursorpager.models import ErrorResponse


class PaginatorClosedError(RuntimeError):
    """Raised when a closed paginator is asked to fetch."""


class PagerHTTPError(Exception):
    """A page request was answered with a non-2xx status, or with a body that is not a page."""

    def __init__(self, path: str, status: int, error: ErrorResponse | None = None) -> None:
        self.path = path
        self.status = status
        self.error = error
        detail = f"{error.code}: {error.message}" if error else f"HTTP {status}"
        super().__init__(f"{path} [{status}] {detail}")

    @classmethod
    def from_response(cls, path: str, response: httpx.Response) -> PagerHTTPError:
        return cls(path, response.status_code, ErrorResponse.from_response(response))


class PagerNetworkError(Exception):
    """A page request never got a response (connection refused, timeout, etc.)."""

    def __init__(self, path: str, cause: Exception) -> None:
        self.path = path
        super().__init__(f"{path}: {cause}")
