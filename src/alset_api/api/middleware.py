"""CORS, per-IP rate limiting, and security headers middleware."""

import time
from collections import deque
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from alset_api.core.config import Settings

RATE_LIMIT_WINDOW_SECONDS = 60.0

# Liveness probes must never be throttled
_RATE_LIMIT_EXEMPT_SUFFIXES = ("/health",)


def get_client_ip(request: Request, trusted_headers: list[str]) -> str:
    """Resolve the client IP, preferring the first trusted proxy header present.

    For X-Forwarded-For the leftmost address is the original client.

    Args:
        request: The incoming request.
        trusted_headers: Header names to check, in priority order.

    Returns:
        The client IP, or "unknown" when neither a header nor a peer address exists.
    """
    for header in trusted_headers:
        value = request.headers.get(header, "").strip()
        if not value:
            continue
        if header.lower() == "x-forwarded-for":
            return value.split(",")[0].strip()
        return value
    return request.client.host if request.client else "unknown"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured browser origins to call the API with credentials."""
    options: dict[str, Any] = {
        "allow_credentials": True,
        "allow_methods": ["GET", "POST", "DELETE", "OPTIONS"],
        "allow_headers": ["Authorization", "Content-Type"],
    }
    if settings.cors_origin_list:
        options["allow_origins"] = settings.cors_origin_list
    if settings.cors_origin_regex.strip():
        options["allow_origin_regex"] = settings.cors_origin_regex.strip()
    app.add_middleware(CORSMiddleware, **options)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach hardening headers; API responses carry per-user data and are never cached."""

    _HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
        "Cache-Control": "no-store",
    }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in self._HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window request limit per client IP, kept in process memory.

    Each process enforces its own limit. At most once per window the table
    is swept of clients with no hit inside the window, so it only holds
    clients seen during roughly the last two windows.
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 200,
        trusted_proxy_headers: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.trusted_proxy_headers = trusted_proxy_headers or []
        self._hits: dict[str, deque[float]] = {}
        self._next_sweep = 0.0

    def _sweep(self, now: float) -> None:
        cutoff = now - RATE_LIMIT_WINDOW_SECONDS
        stale = [ip for ip, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for ip in stale:
            del self._hits[ip]
        self._next_sweep = now + RATE_LIMIT_WINDOW_SECONDS

    def _retry_after(self, hits: deque[float], now: float) -> int:
        return max(1, int(hits[0] + RATE_LIMIT_WINDOW_SECONDS - now) + 1)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path.endswith(_RATE_LIMIT_EXEMPT_SUFFIXES):
            return await call_next(request)

        client_ip = get_client_ip(request, self.trusted_proxy_headers)
        now = time.monotonic()
        if now >= self._next_sweep:
            self._sweep(now)
        hits = self._hits.setdefault(client_ip, deque())
        while hits and hits[0] <= now - RATE_LIMIT_WINDOW_SECONDS:
            hits.popleft()

        if len(hits) >= self.requests_per_minute:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            return Response(
                content='{"detail":"Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
                headers={"Retry-After": str(self._retry_after(hits, now))},
            )

        hits.append(now)
        return await call_next(request)
