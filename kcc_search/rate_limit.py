"""
In-memory fixed-window rate limiter.

Best effort: state is per process and resets on restart. Expired windows
are swept once the store grows past its bound.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Mapping

from .utils import BoundedCache

DEFAULT_LIMIT = 60
DEFAULT_WINDOW_SECONDS = 60.0


@dataclass
class RateLimitWindow:
    count: int
    reset_at: float  # epoch seconds


@dataclass
class RateLimitResult:
    success: bool
    remaining: int
    reset: int  # epoch seconds, rounded up

    def headers(self, limit: int) -> dict:
        return {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


class RateLimiter:
    """
    Per-identifier request counter.

    Examples:
        >>> limiter = RateLimiter(limit=1)
        >>> limiter.check("1.2.3.4").success
        True
        >>> limiter.check("1.2.3.4").success
        False
    """

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.time,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._store: BoundedCache[RateLimitWindow] = BoundedCache(max_size=max_entries, clock=clock)

    def __len__(self) -> int:
        return len(self._store)

    def check(self, identifier: str) -> RateLimitResult:
        now = self._clock()
        window = self._store.get(identifier)

        if window is not None:
            reset = math.ceil(window.reset_at)
            if window.count >= self.limit:
                return RateLimitResult(success=False, remaining=0, reset=reset)
            window.count += 1
            return RateLimitResult(success=True, remaining=self.limit - window.count, reset=reset)

        reset_at = now + self.window_seconds
        self._store.set(identifier, RateLimitWindow(count=1, reset_at=reset_at), ttl=self.window_seconds)
        return RateLimitResult(success=True, remaining=self.limit - 1, reset=math.ceil(reset_at))

    def reset(self):
        self._store.clear()


def get_client_ip(headers: Mapping[str, str], fallback: str = "unknown") -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the fallback"""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return fallback
