"""
Audit log middleware: one structured log line per HTTP request.
Records method, path, status code and timing under a request id.
"""

import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = structlog.get_logger(__name__)

# Paths to skip logging (health checks)
SKIP_LOG_PATHS = {"/api/v1/system/health", "/favicon.ico"}


class AuditLogMiddleware(BaseHTTPMiddleware):
    """
    Logs structured request/response metadata and echoes X-Request-ID.
    A client-supplied request id is kept; otherwise one is generated.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        if request.url.path in SKIP_LOG_PATHS:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        start_time = time.monotonic()

        with structlog.contextvars.bound_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown",
        ):
            response = await call_next(request)
            duration_ms = (time.monotonic() - start_time) * 1000

            log_fn = logger.warning if response.status_code >= 400 else logger.info
            log_fn(
                "HTTP request processed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

        response.headers["X-Request-ID"] = request_id
        return response
