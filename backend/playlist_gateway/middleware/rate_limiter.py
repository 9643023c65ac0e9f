"""
Rate limiting middleware backed by in-memory token buckets.
Only the routes listed in RATE_LIMITED_ROUTES are limited: LLM generation
per session, the Spotify profile lookup per IP.
"""

from typing import Dict, Optional, Tuple

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from playlist_gateway.core.config import settings
from playlist_gateway.services.rate_limit_service import (
    TokenBucketLimiter,
    get_client_ip,
    get_session_id,
)

logger = structlog.get_logger(__name__)

WINDOW_SECONDS = 60

# Route prefix -> profile; a prefix also covers its sub-paths.
# Routes not listed here are never limited.
RATE_LIMITED_ROUTES: Dict[str, str] = {
    "/api/generate": "generate",
    "/api/spotify/user": "general",
}


def profile_for_path(path: str) -> Optional[str]:
    """Return the rate limit profile for ``path``, or None if unlimited."""
    for prefix, profile in RATE_LIMITED_ROUTES.items():
        if path == prefix or path.startswith(prefix + "/"):
            return profile
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Token bucket rate limiting for the routes in RATE_LIMITED_ROUTES.
    ``generate`` is keyed by browser session, ``general`` by client IP.
    """

    def __init__(
        self,
        app: ASGIApp,
        general_per_minute: Optional[int] = None,
        generate_per_minute: Optional[int] = None,
    ) -> None:
        super().__init__(app)
        if general_per_minute is None:
            general_per_minute = settings.RATE_LIMIT_GENERAL_PER_MINUTE
        if generate_per_minute is None:
            generate_per_minute = settings.RATE_LIMIT_GENERATE_PER_MINUTE
        self.general = TokenBucketLimiter(general_per_minute, WINDOW_SECONDS)
        self.generate = TokenBucketLimiter(generate_per_minute, WINDOW_SECONDS)

    def _select(self, request: Request) -> Optional[Tuple[str, TokenBucketLimiter, str]]:
        profile = profile_for_path(request.url.path)
        if profile == "generate":
            return profile, self.generate, get_session_id(request)
        if profile == "general":
            return profile, self.general, get_client_ip(request)
        return None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        selected = self._select(request)
        if selected is None:
            return await call_next(request)

        profile, limiter, identity = selected
        result = limiter.check(f"{profile}:{identity}")

        if not result.allowed:
            logger.warning(
                "Rate limit exceeded",
                profile=profile,
                path=request.url.path,
                limit=limiter.max_tokens,
                retry_after=result.retry_after,
            )
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error": "Too Many Requests",
                    "message": "Rate limit exceeded. Please try again later.",
                    "retryAfter": result.retry_after,
                },
            )
            response.headers["Retry-After"] = str(result.retry_after)
            response.headers["X-RateLimit-Limit"] = str(limiter.max_tokens)
            response.headers["X-RateLimit-Remaining"] = "0"
            response.headers["X-RateLimit-Reset"] = str(int(result.reset_at))
            return response

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limiter.max_tokens)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response
