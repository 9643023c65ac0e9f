"""
Security headers middleware for HTTP responses.
Applies the static header policy to every response, error responses included.
"""

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from playlist_gateway.core.headers import headers_for_path

logger = structlog.get_logger(__name__)


def internal_error_response(request: Request) -> JSONResponse:
    """Generic 500 body; never leaks exception details to the client."""
    request_id = getattr(request.state, "request_id", None) or request.headers.get(
        "X-Request-ID", "unknown"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An internal server error occurred.",
            "request_id": request_id,
        },
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Merges the configured security headers into all responses.
    Policy values replace any value a handler set for the same header.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled exception",
                exc_type=type(exc).__name__,
                exc_message=str(exc),
                path=request.url.path,
            )
            response = internal_error_response(request)

        for name, value in headers_for_path(request.url.path):
            response.headers[name] = value

        return response
