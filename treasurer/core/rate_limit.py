import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, Tuple

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window counter keyed by scope and client address."""

    def __init__(self) -> None:
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str, limit: int, window: int) -> Tuple[bool, float]:
        now = time.monotonic()
        async with self._lock:
            bucket = self._hits.setdefault(key, deque())
            while bucket and now - bucket[0] > window:
                bucket.popleft()
            if len(bucket) >= limit:
                return False, max(0.0, window - (now - bucket[0]))
            bucket.append(now)
            return True, 0.0

    def reset(self) -> None:
        self._hits.clear()


login_limiter = RateLimiter()


def rate_limit_dependency(
    scope: str,
    limit: int,
    window_seconds: int,
    limiter: RateLimiter = login_limiter,
) -> Callable[[Request], Awaitable[None]]:
    async def dependency(request: Request) -> None:
        client_ip = request.client.host if request.client else "anonymous"
        allowed, retry_after = await limiter.hit(f"{scope}:{client_ip}", limit, window_seconds)
        if not allowed:
            logger.warning("Rate limit reached for %s from %s", scope, client_ip)
            headers = {"Retry-After": str(int(retry_after) or window_seconds)}
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many requests.", headers=headers)

    return dependency
