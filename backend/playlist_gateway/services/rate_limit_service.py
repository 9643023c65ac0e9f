"""
In-memory token bucket rate limiting.
Buckets refill continuously at max_tokens per window.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.requests import Request

# Idle buckets are swept at most this often
CLEANUP_INTERVAL_SECONDS = 5 * 60


@dataclass
class _Bucket:
    tokens: float
    last_refill: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float  # unix seconds
    retry_after: Optional[int] = None


class TokenBucketLimiter:
    """
    Per-identifier token bucket.
    The first request for an identifier starts with a full bucket minus one.
    """

    def __init__(
        self,
        max_tokens: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_tokens < 1 or window_seconds <= 0:
            raise ValueError("max_tokens and window_seconds must be positive")
        self.max_tokens = max_tokens
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def check(self, identifier: str) -> RateLimitResult:
        """Consume one token for ``identifier`` if one is available."""
        with self._lock:
            now = self._clock()
            self._cleanup(now)
            reset_at = now + self.window_seconds

            bucket = self._buckets.get(identifier)
            if bucket is None:
                bucket = _Bucket(tokens=self.max_tokens - 1, last_refill=now)
                self._buckets[identifier] = bucket
                return RateLimitResult(
                    allowed=True, remaining=int(bucket.tokens), reset_at=reset_at
                )

            elapsed = max(0.0, now - bucket.last_refill)
            bucket.tokens = min(
                float(self.max_tokens),
                bucket.tokens + elapsed * self.max_tokens / self.window_seconds,
            )
            bucket.last_refill = now

            if bucket.tokens < 1:
                retry_after = math.ceil(
                    (1 - bucket.tokens) * self.window_seconds / self.max_tokens
                )
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after=max(1, retry_after),
                )

            bucket.tokens -= 1
            return RateLimitResult(
                allowed=True, remaining=math.floor(bucket.tokens), reset_at=reset_at
            )

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_INTERVAL_SECONDS:
            return
        self._last_cleanup = now
        cutoff = now - 2 * self.window_seconds
        stale = [k for k, b in self._buckets.items() if b.last_refill < cutoff]
        for key in stale:
            del self._buckets[key]

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)


def get_client_ip(request: Request) -> str:
    """Extract client IP from proxy headers, falling back to connection info."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def get_session_id(request: Request) -> str:
    """
    Identify the browser session: the session_id cookie, else a prefix of
    the access token cookie, else client IP plus user agent.
    """
    session_id = request.cookies.get("session_id")
    if session_id:
        return session_id
    access_token = request.cookies.get("access_token")
    if access_token:
        return access_token[:32]
    user_agent = request.headers.get("User-Agent", "")
    return f"{get_client_ip(request)}:{user_agent[:50]}"
