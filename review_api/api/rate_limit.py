"""In-memory, per-client rate limiting for the expensive endpoints (clone, analyze)."""

from __future__ import annotations

import time
from collections import defaultdict

from fastapi import HTTPException, Request

from review_api.services.config import get_settings

_WINDOW_SECONDS = 60.0


class RateLimiter:
    """Sliding one-minute window of request timestamps per key."""

    def __init__(self, requests_per_minute: int = 60):
        self.rpm = requests_per_minute
        self._hits: dict[str, list[float]] = defaultdict(list)

    def check(self, key: str, now: float | None = None) -> None:
        """Record a hit for *key*; raise 429 if the window is already full."""
        now = time.monotonic() if now is None else now
        recent = [t for t in self._hits[key] if now - t < _WINDOW_SECONDS]

        if len(recent) >= self.rpm:
            self._hits[key] = recent
            raise HTTPException(
                status_code=429,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(int(_WINDOW_SECONDS - (now - recent[0])) + 1)},
            )
        recent.append(now)
        self._hits[key] = recent

    def reset(self) -> None:
        self._hits.clear()


limiter = RateLimiter(requests_per_minute=get_settings().rate_limit_per_minute)


async def rate_limit(request: Request) -> None:
    """FastAPI dependency that enforces rate limiting per client IP."""
    client_ip = request.client.host if request.client else "unknown"
    limiter.check(client_ip)
