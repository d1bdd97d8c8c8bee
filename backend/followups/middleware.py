"""Per-client request rate limiting."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

import structlog
from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

# Clients idle for this long are forgotten.
CLIENT_IDLE_SECONDS = 180.0


@dataclass
class TokenBucket:
    rate: float
    burst: int
    tokens: float = field(init=False)
    updated: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        self.tokens = float(self.burst)

    def allow(self, now: float) -> bool:
        self.tokens = min(self.burst, self.tokens + (now - self.updated) * self.rate)
        self.updated = now
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Token bucket per client address; rejects with 429 once exhausted."""

    def __init__(self, app, rate: float, burst: int, enabled: bool = True) -> None:
        super().__init__(app)
        self.rate = rate
        self.burst = burst
        self.enabled = enabled
        self._clients: dict[str, TokenBucket] = {}
        self._lock = asyncio.Lock()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.enabled:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = time.monotonic()
        async with self._lock:
            self._forget_idle(now)
            bucket = self._clients.setdefault(client, TokenBucket(self.rate, self.burst))
            allowed = bucket.allow(now)

        if not allowed:
            logger.debug("rate_limit_exceeded", client=client, path=request.url.path)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "rate limit exceeded"},
            )
        return await call_next(request)

    def _forget_idle(self, now: float) -> None:
        stale = [
            client
            for client, bucket in self._clients.items()
            if now - bucket.updated > CLIENT_IDLE_SECONDS
        ]
        for client in stale:
            del self._clients[client]
