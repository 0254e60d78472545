from collections import defaultdict
from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Iterable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


DEFAULT_EXEMPT_PATHS = frozenset({"/", "/health/live", "/favicon.ico"})


class ChartRateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limiter for requests that trigger a GitHub scrape.

    Usage and health endpoints are never counted.
    """

    def __init__(
        self,
        app,
        requests_per_window: int = 60,
        window_seconds: int = 60,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
    ) -> None:
        super().__init__(app)
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        self.exempt_paths = frozenset(exempt_paths)
        # One queue of request timestamps per client address.
        self._buckets: dict[str, deque[float]] = defaultdict(deque)
        self._lock = RLock()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method != "GET" or request.url.path in self.exempt_paths:
            return await call_next(request)

        retry_after = self._consume(self._client_ip(request), monotonic())
        if retry_after is not None:
            return PlainTextResponse(
                "Too Many Requests",
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def _consume(self, client: str, now: float) -> int | None:
        """Record a request, or return seconds to wait when over the limit."""

        with self._lock:
            bucket = self._buckets[client]
            cutoff = now - self.window_seconds
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()

            if len(bucket) >= self.max_requests:
                return max(1, int(self.window_seconds - (now - bucket[0])))

            bucket.append(now)
            return None

    @staticmethod
    def _client_ip(request: Request) -> str:
        # Reverse proxies put the original client first in X-Forwarded-For.
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip() or "unknown"

        if request.client and request.client.host:
            return request.client.host

        return "unknown"
