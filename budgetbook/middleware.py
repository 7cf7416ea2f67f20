"""HTTP middleware mounted by :func:`budgetbook.server.create_app`."""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Tuple

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from .envelope import request_caption, respond_error

logger = logging.getLogger(__name__)

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}

RATE_LIMITED_MESSAGE = "Too many requests, please try again later."


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limit of ``limit`` requests per client address.

    Requests over the limit are answered with 429 and never reach a route;
    there is no queueing.
    """

    def __init__(
        self,
        app: ASGIApp,
        limit: int = 20,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_sweep = clock()

    def _client_key(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def _evict_expired(self, now: float) -> None:
        """Drop windows that have run out, at most once per window length."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def hit(self, key: str) -> Tuple[bool, int]:
        """Count one request for ``key``; return (allowed, seconds until reset)."""
        now = self.clock()
        self._evict_expired(now)
        started, count = self._windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0
        count += 1
        self._windows[key] = (started, count)
        retry_after = max(0, int(started + self.window_seconds - now))
        return count <= self.limit, retry_after

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        key = self._client_key(request)
        allowed, retry_after = self.hit(key)
        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s %s", key, request.method, request.url.path)
            return respond_error(
                status.HTTP_429_TOO_MANY_REQUESTS,
                message=RATE_LIMITED_MESSAGE,
                headers={"Retry-After": str(retry_after)},
                caption=request_caption(request),
            )
        return await call_next(request)
