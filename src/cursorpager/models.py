"""Response envelope models."""

from __future__ import annotations

from typing import Generic, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

T = TypeVar("T")


class PagerModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class ErrorResponse(PagerModel):
    """The ``error`` object of a failed page response."""

    code: str
    message: str = ""
    retry_after_ms: int | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> ErrorResponse | None:
        """Parse ``{"error": {...}}`` from a response, or ``None`` if absent or malformed."""
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict) or not isinstance(body.get("error"), dict):
            return None
        try:
            return cls.model_validate(body["error"])
        except ValidationError:
            return None


class CursorPage(PagerModel, Generic[T]):
    """One page of a cursor-paginated listing.

    ``cursor`` is ``None`` on the last page.
    """

    items: list[T] = []
    cursor: str | None = None
