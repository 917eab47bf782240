"""Per-client request budget, counted in Redis over fixed windows."""

import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from pdm.redis_client import get_redis

_EXEMPT_PATHS = frozenset({"/health", "/ready"})
_EXEMPT_PREFIXES = ("/images/", "/lib/", "/error/")


def is_exempt(path: str) -> bool:
    """Probes, static assets and the error page are never limited."""
    return path in _EXEMPT_PATHS or path.startswith(_EXEMPT_PREFIXES)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: Any, requests_per_window: int = 300, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.limit = requests_per_window
        self.window_seconds = window_seconds

    async def _count(self, client: str) -> int | None:
        """Requests seen from ``client`` in the current window, None without Redis."""
        try:
            redis = get_redis()
        except RuntimeError:
            return None
        key = f"ratelimit:{client}:{int(time.time()) // self.window_seconds}"
        pipe = redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, self.window_seconds + 1)
        count, _ = await pipe.execute()
        return int(count)

    def _headers(self, remaining: int) -> dict[str, str]:
        return {"X-RateLimit-Remaining": str(remaining), "X-RateLimit-Limit": str(self.limit)}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if is_exempt(request.url.path):
            return await call_next(request)

        count = await self._count(request.client.host if request.client else "unknown")
        if count is None:
            return await call_next(request)

        if count > self.limit:
            return PlainTextResponse(
                "Rate limit exceeded. Try again later.",
                status_code=429,
                headers={"Retry-After": str(self.window_seconds), **self._headers(0)},
            )

        response = await call_next(request)
        response.headers.update(self._headers(max(0, self.limit - count)))
        return response
