import pytest
from pydantic import ValidationError

from playlist_gateway.core.headers import (
    ALL_PATHS,
    CSP_DIRECTIVES,
    HeaderRule,
    PolicySet,
    RouteMatcher,
    build_content_security_policy,
    header_policies,
    headers_for_path,
    parse_content_security_policy,
)


class TestHeaderPolicy:
    def test_single_policy_matches_all_paths(self):
        policies = header_policies()
        assert len(policies) == 1
        assert policies[0].matcher.pattern == ALL_PATHS
        assert len(policies[0].rules) == 7

    def test_rules_are_byte_exact_and_ordered(self, expected_headers):
        rules = header_policies()[0].rules
        assert [r.as_pair() for r in rules] == list(expected_headers.items())

    def test_policy_is_cached_and_stable(self):
        assert header_policies() is header_policies()
        assert headers_for_path("/") == headers_for_path("/")

    def test_policy_is_immutable(self):
        rule = header_policies()[0].rules[0]
        with pytest.raises(ValidationError):
            rule.value = "default-src *"

    @pytest.mark.parametrize(
        "path", ["/", "/api/playlists", "/api/v1/system/health", "/a/b/c.png"]
    )
    def test_headers_for_any_path(self, path, expected_headers):
        assert dict(headers_for_path(path)) == expected_headers


class TestContentSecurityPolicy:
    def test_build_joins_without_trailing_semicolon(self, expected_csp):
        value = build_content_security_policy(CSP_DIRECTIVES)
        assert value == expected_csp
        assert not value.endswith(";")

    def test_nine_directives_in_order(self, expected_csp):
        clauses = expected_csp.split("; ")
        assert [c.split()[0] for c in clauses] == [
            "default-src",
            "script-src",
            "style-src",
            "img-src",
            "font-src",
            "connect-src",
            "form-action",
            "frame-ancestors",
            "base-uri",
        ]

    def test_img_src_allows_only_spotify_cdn_and_inline_schemes(self, expected_csp):
        directives = parse_content_security_policy(expected_csp)
        external = [s for s in directives["img-src"] if s != "'self'"]
        assert external == [
            "https://i.scdn.co",
            "https://image-cdn-ak.spotifycdn.com",
            "https://image-cdn-fa.spotifycdn.com",
            "data:",
            "blob:",
        ]

    def test_connect_src_allows_spotify_and_llm_apis(self, expected_csp):
        directives = parse_content_security_policy(expected_csp)
        assert directives["connect-src"] == [
            "'self'",
            "https://api.spotify.com",
            "https://accounts.spotify.com",
            "https://api.anthropic.com",
            "https://api.openai.com",
        ]
        assert directives["frame-ancestors"] == ["'none'"]

    def test_parse_keeps_first_duplicate_and_skips_empty_clauses(self):
        parsed = parse_content_security_policy(
            "default-src 'self';; Default-Src *; img-src data:;"
        )
        assert parsed == {"default-src": ["'self'"], "img-src": ["data:"]}


class TestPolicyValidation:
    def test_unknown_header_name_rejected(self):
        with pytest.raises(ValidationError):
            HeaderRule(name="X-Powered-By", value="gateway")

    @pytest.mark.parametrize(
        "value", ["", " DENY", "DENY\r\nSet-Cookie: a=b", "dény☃"]
    )
    def test_malformed_value_rejected(self, value):
        with pytest.raises(ValidationError):
            HeaderRule(name="X-Frame-Options", value=value)

    def test_duplicate_rule_rejected(self):
        rule = HeaderRule(name="X-Frame-Options", value="DENY")
        with pytest.raises(ValidationError):
            PolicySet(matcher=RouteMatcher(pattern=ALL_PATHS), rules=(rule, rule))

    def test_relative_route_pattern_rejected(self):
        with pytest.raises(ValidationError):
            RouteMatcher(pattern="api/*")

    def test_route_matcher_glob(self):
        matcher = RouteMatcher(pattern="/api/*")
        assert matcher.matches("/api/playlists")
        assert not matcher.matches("/")
