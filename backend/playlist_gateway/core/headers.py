"""
Static HTTP security header policy.

The policy is built once, at import time, and never changes afterwards:
every response on every path receives the same ordered set of headers.
Literal values are validated while the table is built, so a malformed
header aborts startup instead of reaching a browser.
"""

from fnmatch import fnmatchcase
from functools import lru_cache
from typing import Dict, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

# Response headers this policy is allowed to emit.
KNOWN_SECURITY_HEADERS = frozenset(
    {
        "Content-Security-Policy",
        "X-Frame-Options",
        "X-Content-Type-Options",
        "X-XSS-Protection",
        "Referrer-Policy",
        "Strict-Transport-Security",
        "Permissions-Policy",
    }
)

ALL_PATHS = "/*"

# (directive, sources) in emission order
CSP_DIRECTIVES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("default-src", ("'self'",)),
    # Next-style inline bootstrap scripts
    ("script-src", ("'self'", "'unsafe-inline'", "'unsafe-eval'")),
    ("style-src", ("'self'", "'unsafe-inline'")),
    # Spotify CDN serves album art and user avatars
    (
        "img-src",
        (
            "'self'",
            "https://i.scdn.co",
            "https://image-cdn-ak.spotifycdn.com",
            "https://image-cdn-fa.spotifycdn.com",
            "data:",
            "blob:",
        ),
    ),
    ("font-src", ("'self'",)),
    # Spotify Web API, Spotify accounts, and the two LLM providers
    (
        "connect-src",
        (
            "'self'",
            "https://api.spotify.com",
            "https://accounts.spotify.com",
            "https://api.anthropic.com",
            "https://api.openai.com",
        ),
    ),
    ("form-action", ("'self'",)),
    # same effect as X-Frame-Options: DENY
    ("frame-ancestors", ("'none'",)),
    ("base-uri", ("'self'",)),
)


def build_content_security_policy(
    directives: Sequence[Tuple[str, Sequence[str]]],
) -> str:
    """Join directives into a CSP value: ``"; "`` between clauses, none trailing."""
    return "; ".join(
        " ".join((name, *sources)) for name, sources in directives
    )


def parse_content_security_policy(value: str) -> Dict[str, List[str]]:
    """Split a CSP value back into ``{directive: [sources...]}``, keeping order."""
    parsed: Dict[str, List[str]] = {}
    for clause in value.split(";"):
        tokens = clause.split()
        if not tokens:
            continue
        name = tokens[0].lower()
        # browsers honour only the first occurrence of a directive
        parsed.setdefault(name, tokens[1:])
    return parsed


class HeaderRule(BaseModel):
    """A single response header and its value."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str

    @field_validator("name")
    @classmethod
    def name_is_known(cls, v: str) -> str:
        if v not in KNOWN_SECURITY_HEADERS:
            raise ValueError(f"unsupported security header: {v!r}")
        return v

    @field_validator("value")
    @classmethod
    def value_is_wire_safe(cls, v: str) -> str:
        if not v or v != v.strip():
            raise ValueError("header value must be non-empty without surrounding whitespace")
        if "\r" in v or "\n" in v:
            raise ValueError("header value must not contain line breaks")
        try:
            v.encode("latin-1")
        except UnicodeEncodeError as exc:
            raise ValueError("header value must be latin-1 encodable") from exc
        return v

    def as_pair(self) -> Tuple[str, str]:
        return self.name, self.value


class RouteMatcher(BaseModel):
    """Glob pattern selecting the request paths a policy applies to."""

    model_config = ConfigDict(frozen=True)

    pattern: str

    @field_validator("pattern")
    @classmethod
    def pattern_is_absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("route pattern must start with '/'")
        return v

    def matches(self, path: str) -> bool:
        return fnmatchcase(path, self.pattern)


class PolicySet(BaseModel):
    """Ordered header rules bound to one route matcher."""

    model_config = ConfigDict(frozen=True)

    matcher: RouteMatcher
    rules: Tuple[HeaderRule, ...]

    @field_validator("rules")
    @classmethod
    def names_are_unique(cls, v: Tuple[HeaderRule, ...]) -> Tuple[HeaderRule, ...]:
        names = [rule.name.lower() for rule in v]
        if len(names) != len(set(names)):
            raise ValueError("duplicate header name in policy")
        return v


@lru_cache(maxsize=1)
def header_policies() -> Tuple[PolicySet, ...]:
    """
    Return every configured policy.

    One policy ships: it matches all paths and carries the seven
    hardening headers below, in emission order.
    """
    return (
        PolicySet(
            matcher=RouteMatcher(pattern=ALL_PATHS),
            rules=(
                HeaderRule(
                    name="Content-Security-Policy",
                    value=build_content_security_policy(CSP_DIRECTIVES),
                ),
                # clickjacking
                HeaderRule(name="X-Frame-Options", value="DENY"),
                HeaderRule(name="X-Content-Type-Options", value="nosniff"),
                # legacy browsers only
                HeaderRule(name="X-XSS-Protection", value="1; mode=block"),
                HeaderRule(
                    name="Referrer-Policy", value="strict-origin-when-cross-origin"
                ),
                # one year
                HeaderRule(
                    name="Strict-Transport-Security",
                    value="max-age=31536000; includeSubDomains",
                ),
                HeaderRule(
                    name="Permissions-Policy",
                    value="camera=(), microphone=(), geolocation=(), payment=()",
                ),
            ),
        ),
    )


def headers_for_path(path: str) -> List[Tuple[str, str]]:
    """
    Ordered (name, value) pairs for every policy matching ``path``.
    A later policy overrides an earlier one for the same header name.
    """
    merged: Dict[str, Tuple[str, str]] = {}
    for policy in header_policies():
        if policy.matcher.matches(path):
            for rule in policy.rules:
                merged[rule.name.lower()] = rule.as_pair()
    return list(merged.values())


# Build and validate at import time.
header_policies()
