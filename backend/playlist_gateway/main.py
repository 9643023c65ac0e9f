from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from playlist_gateway.api.v1.router import api_router
from playlist_gateway.core.config import settings
from playlist_gateway.core.headers import header_policies
from playlist_gateway.core.logging import configure_logging
from playlist_gateway.middleware.audit_log import AuditLogMiddleware
from playlist_gateway.middleware.rate_limiter import RateLimitMiddleware
from playlist_gateway.middleware.security_headers import (
    SecurityHeadersMiddleware,
    internal_error_response,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    policies = header_policies()
    logger.info(
        "Starting Playlist Gateway",
        version=settings.APP_VERSION,
        environment=settings.APP_ENV,
    )
    logger.info(
        "Security header policy loaded",
        policies=len(policies),
        headers=sum(len(p.rules) for p in policies),
        routes=[p.matcher.pattern for p in policies],
    )

    yield

    logger.info("Shutdown complete")


def create_application() -> FastAPI:
    application = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Front door for the prompt-to-playlist web app: "
            "applies the security header policy and API rate limits."
        ),
        version=settings.APP_VERSION,
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
        openapi_url="/api/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # Last added runs first: audit log wraps security headers, which
    # wrap everything that can produce a response.
    application.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS,
    )
    if settings.RATE_LIMIT_ENABLED:
        application.add_middleware(RateLimitMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "Retry-After",
        ],
    )
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(AuditLogMiddleware)

    application.include_router(api_router, prefix=settings.API_PREFIX)

    @application.get("/", include_in_schema=False)
    async def root() -> dict:
        return {"service": settings.APP_NAME, "version": settings.APP_VERSION}

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            exc_type=type(exc).__name__,
            exc_message=str(exc),
            path=str(request.url),
        )
        return internal_error_response(request)

    return application


app = create_application()
