"""
Rate limiting for the Comanda backend
Uses in-memory storage with a sliding window per client
"""
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Tuple

from fastapi import Request, HTTPException, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse


class RateLimiter:
    """
    Sliding window limiter keeping one timestamp per accepted request.

    State is per process; a multi-instance deploy gets one window per instance.
    """

    def __init__(self, clock=time.time, cleanup_interval: int = 60):
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = clock()
        # Longest window requested so far; entries older than it are dead
        self._max_window = 0

    def _cleanup_old_entries(self, now: float):
        """Forget identifiers with no hit inside the longest window"""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        cutoff = now - self._max_window
        for identifier in list(self._hits.keys()):
            hits = self._hits[identifier]
            if not hits or hits[-1] <= cutoff:
                del self._hits[identifier]

        self._last_cleanup = now

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = 60
    ) -> Tuple[bool, int, int]:
        """
        Check and record a request.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        now = self._clock()
        self._max_window = max(self._max_window, window_seconds)
        self._cleanup_old_entries(now)

        hits = self._hits[identifier]

        while hits and hits[0] <= now - window_seconds:
            hits.popleft()

        if len(hits) >= max_requests:
            retry_after = int(hits[0] + window_seconds - now) + 1
            return False, 0, retry_after

        hits.append(now)
        return True, max_requests - len(hits), 0

    def reset(self):
        self._hits.clear()


# Global rate limiter instance
rate_limiter = RateLimiter()


# Requests per minute. Kitchen tablets and driver phones poll every 5s
# (12/min per screen) so staff limits stay generous.
RATE_LIMITS = {
    "authenticated": 600,
    "unauthenticated": 120,
}

EXEMPT_PATHS = {
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
}


def _client_ip(request: Request) -> str:
    """Client IP, honoring X-Forwarded-For from the proxy"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def _identify(request: Request) -> Tuple[str, bool]:
    """Return (identifier, is_authenticated)"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return f"jwt:{hash(auth_header)}", True
    return f"ip:{_client_ip(request)}", False


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies RATE_LIMITS by authentication status.

    Headers returned:
    - X-RateLimit-Limit: Maximum requests per window
    - X-RateLimit-Remaining: Remaining requests in current window
    - Retry-After: Seconds until a slot frees up (when limited)
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        identifier, authenticated = _identify(request)
        limit = RATE_LIMITS["authenticated" if authenticated else "unauthenticated"]

        allowed, remaining, retry_after = rate_limiter.is_allowed(identifier, limit, 60)

        if not allowed:
            # Return a response instead of raising so it still passes through CORS
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Rate limit exceeded. Please slow down."},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(retry_after),
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


def limit_endpoint(max_requests: int, window_seconds: int = 60):
    """
    Dependency factory for a tighter limit on one public endpoint.

    Usage:
        @router.post("/checkout", dependencies=[Depends(limit_endpoint(10))])
    """
    async def checker(request: Request):
        identifier, _ = _identify(request)
        allowed, _, retry_after = rate_limiter.is_allowed(
            f"endpoint:{request.url.path}:{identifier}",
            max_requests,
            window_seconds
        )
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded for this endpoint. Try again in {retry_after} seconds.",
                headers={"Retry-After": str(retry_after)}
            )

    return checker
