from typing import AsyncGenerator, Dict

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from playlist_gateway.main import create_application

_EXPECTED_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' 'unsafe-eval'; "
    "style-src 'self' 'unsafe-inline'; "
    "img-src 'self' https://i.scdn.co https://image-cdn-ak.spotifycdn.com "
    "https://image-cdn-fa.spotifycdn.com data: blob:; "
    "font-src 'self'; "
    "connect-src 'self' https://api.spotify.com https://accounts.spotify.com "
    "https://api.anthropic.com https://api.openai.com; "
    "form-action 'self'; "
    "frame-ancestors 'none'; "
    "base-uri 'self'"
)

_EXPECTED_HEADERS = {
    "Content-Security-Policy": _EXPECTED_CSP,
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), payment=()",
}


@pytest.fixture
def expected_csp() -> str:
    return _EXPECTED_CSP


@pytest.fixture
def expected_headers() -> Dict[str, str]:
    return dict(_EXPECTED_HEADERS)


@pytest.fixture
def assert_policy_headers(expected_headers):
    """Checker asserting a response carries every policy header byte-exact."""
    def check(response) -> None:
        for name, value in expected_headers.items():
            assert response.headers.get(name) == value, name
    return check


@pytest.fixture
def app() -> FastAPI:
    return create_application()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
