"""Paginator settings loaded from the environment.

Environment variables use the ``CURSORPAGER_`` prefix, e.g.
``CURSORPAGER_API_DELAY=0.5`` slows every page request by half a second,
which is handy for exercising loading states by hand.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginatorSettings(BaseSettings):
    """Defaults shared by every paginator that does not override them."""

    model_config = SettingsConfigDict(
        env_prefix="CURSORPAGER_",
        frozen=True,
        extra="ignore",
    )

    api_delay: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds to wait before issuing each page request",
    )
    clear_on_new_request: bool = Field(
        default=True,
        description="Emit an empty list as soon as a new first-page request starts",
    )
    page_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Default ``limit`` sent by HTTP page sources",
    )
