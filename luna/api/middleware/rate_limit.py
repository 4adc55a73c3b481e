"""
Fixed-window rate limiting keyed by client address.

Windows are clock-aligned to the first request: the count resets wholesale
once the reset time passes, it never slides.
"""

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional

from fastapi import Depends, Request, Response, status

from luna.api.errors import ApiError
from luna.config import get_settings
from luna.kernel.store import InMemoryStore, KeyValueStore
from luna.logging_config import get_logger

logger = get_logger(__name__)

RATE_LIMIT_PREFIX = "ratelimit:"


@dataclass
class RateLimitWindow:
    count: int
    reset_at_ms: int


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: int
    retry_after: int  # Seconds until reset, rounded up

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at_ms / 1000)),
        }


def _now_ms() -> int:
    return int(time.time() * 1000)


class FixedWindowRateLimiter:
    """
    Counts hits per key in a KeyValueStore.

    The read-modify-write of a window runs under a lock so concurrent
    requests from one address are never undercounted.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store or InMemoryStore()
        self._clock = clock
        self._lock = Lock()

    def hit(self, key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        """Record one request for key and decide whether it may proceed."""
        store_key = f"{RATE_LIMIT_PREFIX}{key}"
        with self._lock:
            now = self._clock()
            window: Optional[RateLimitWindow] = self.store.get(store_key)

            if window is None or now > window.reset_at_ms:
                window = RateLimitWindow(count=1, reset_at_ms=now + window_ms)
            else:
                window = RateLimitWindow(count=window.count + 1, reset_at_ms=window.reset_at_ms)

            ttl_seconds = max(window.reset_at_ms - now, 0) / 1000
            self.store.set(store_key, window, ttl=ttl_seconds + 1)

        return RateLimitDecision(
            allowed=window.count <= max_requests,
            limit=max_requests,
            remaining=max(0, max_requests - window.count),
            reset_at_ms=window.reset_at_ms,
            retry_after=math.ceil((window.reset_at_ms - now) / 1000),
        )


_limiter: Optional[FixedWindowRateLimiter] = None


def get_rate_limiter() -> FixedWindowRateLimiter:
    global _limiter
    if _limiter is None:
        _limiter = FixedWindowRateLimiter()
    return _limiter


def get_client_ip(request: Request) -> str:
    """Client address; X-Forwarded-For is only honored behind a trusted proxy."""
    if get_settings().trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimit:
    """
    Route dependency enforcing max_requests per window_ms per client address.

    Usage:
        router = APIRouter(dependencies=[Depends(RateLimit(50, 15 * 60 * 1000))])
    """

    def __init__(self, max_requests: int = 100, window_ms: int = 15 * 60 * 1000):
        self.max_requests = max_requests
        self.window_ms = window_ms

    async def __call__(
        self,
        request: Request,
        response: Response,
        limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    ) -> None:
        if not get_settings().rate_limit_enabled:
            return

        client_ip = get_client_ip(request)
        decision = limiter.hit(client_ip, self.max_requests, self.window_ms)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded",
                extra={"client_ip": client_ip, "path": request.url.path},
            )
            raise ApiError(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                error="Too many requests",
                code="RATE_LIMIT_EXCEEDED",
                headers=decision.headers(),
                extra={"retryAfter": decision.retry_after},
            )

        headers = decision.headers()
        # Error handlers copy these onto responses for requests that fail later
        request.state.rate_limit_headers = headers
        for name, value in headers.items():
            response.headers[name] = value
