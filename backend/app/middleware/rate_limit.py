"""
OpsLedger Backend — Rate Limiting Middleware
==============================================

What:  Per-IP sliding window limiter (RATE_LIMIT_REQUESTS per
       RATE_LIMIT_WINDOW seconds).
How:   Each IP keeps a deque of request timestamps; entries older than the
       window are dropped on every request. A full window is answered with
       429, a Retry-After header and the standard error body.

Limits:
    State is in-process memory, so each uvicorn worker enforces its own
    window. Behind a proxy the client IP is the proxy's unless uvicorn runs
    with --proxy-headers.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

CLEANUP_EVERY = 1000


class SlidingWindowCounter:
    """Request timestamps per key over a moving window."""

    def __init__(self, limit: int, window: float):
        self.limit = limit
        self.window = window
        self._hits: Dict[str, Deque[float]] = {}
        self._seen = 0

    def hit(self, key: str, now: Optional[float] = None) -> Optional[int]:
        """
        Record a request for `key`.

        Returns:
            None when allowed, otherwise the seconds until a slot frees up.
        """
        now = time.time() if now is None else now
        window_start = now - self.window
        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.limit:
            return int(hits[0] + self.window - now) + 1

        hits.append(now)
        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._drop_idle(window_start)
        return None

    def _drop_idle(self, window_start: float) -> None:
        idle = [k for k, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Rate limiter dropped %d idle clients", len(idle))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: rejects over-limit clients before any other work."""

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self.counter = SlidingWindowCounter(
            limit=settings.rate_limit_requests,
            window=settings.rate_limit_window,
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        retry_after = self.counter.hit(client_ip)
        if retry_after is None:
            return await call_next(request)

        logger.warning(
            "Rate limit exceeded for IP %s (%d requests / %ds)",
            client_ip,
            self.counter.limit,
            settings.rate_limit_window,
        )
        # Exception handlers do not see errors raised from middleware, so the
        # 429 body is built here from the same exception type.
        exc = RateLimitExceededError(retry_after=retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "details": exc.context},
            headers={"Retry-After": str(retry_after)},
        )
