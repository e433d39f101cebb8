"""Per-endpoint rate-limit windows learned from response headers.

Successive pages of one listing all hit the same endpoint, so the window
reported with page ``n`` decides whether page ``n + 1`` has to wait.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

import httpx

log = logging.getLogger(__name__)


def endpoint(path: str) -> str:
    """Key a request path by endpoint, ignoring the query string."""
    return path.split("?", 1)[0].rstrip("/") or "/"


@dataclass
class Window:
    remaining: int
    reset_at: float  # unix timestamp

    def delay(self, now: float) -> float:
        """Seconds to wait before the next request may go out."""
        if self.remaining > 0:
            return 0.0
        return max(0.0, self.reset_at - now)


class RateLimiter:
    def __init__(self) -> None:
        self._windows: dict[str, Window] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def window(self, path: str) -> Window | None:
        return self._windows.get(endpoint(path))

    def observe(self, path: str, response: httpx.Response) -> None:
        """Record the window advertised by ``X-RateLimit-Remaining``/``-Reset``."""
        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining is None:
            return
        reset = response.headers.get("x-ratelimit-reset")
        self._windows[endpoint(path)] = Window(int(remaining), float(reset) if reset else 0.0)

    async def wait(self, path: str) -> None:
        """Hold the next page request for ``path`` until its window reopens."""
        key = endpoint(path)
        window = self._windows.get(key)
        if window is None or window.delay(time.time()) == 0:
            return
        async with self._locks.setdefault(key, asyncio.Lock()):
            # Recheck: the window may have moved while queued on the lock
            window = self._windows.get(key)
            delay = window.delay(time.time()) if window else 0.0
            if delay > 0:
                log.debug("%s rate limited, holding next page for %.2fs", key, delay)
                await asyncio.sleep(delay)
