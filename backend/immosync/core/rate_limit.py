import time
from functools import lru_cache
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import get_settings

WINDOW_SECONDS = 60


class RateLimiter:
    """Fixed-window counter per client and interface, shared through Redis."""

    def __init__(self, client: Optional[redis.Redis] = None, limit: Optional[int] = None) -> None:
        settings = get_settings()
        self.client = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self.limit = settings.rate_limit_per_minute if limit is None else limit

    def key(self, request: Request) -> str:
        identifier = request.client.host if request.client else "anonymous"
        interface_id = request.path_params.get("interface_id", "-")
        return f"immosync:rate:{identifier}:{interface_id}:{int(time.time() // WINDOW_SECONDS)}"

    def hit(self, key: str) -> int:
        current = self.client.incr(key)
        if current == 1:
            self.client.expire(key, WINDOW_SECONDS)
        return current

    def __call__(self, request: Request) -> None:
        if self.hit(self.key(request)) > self.limit:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many sync requests, retry in a minute",
            )


@lru_cache
def get_rate_limiter() -> RateLimiter:
    return RateLimiter()


def rate_limit(request: Request) -> None:
    get_rate_limiter()(request)
