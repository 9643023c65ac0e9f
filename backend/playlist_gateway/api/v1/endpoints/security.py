"""
Read-only view of the security header policy served by this process.
"""

from fastapi import APIRouter

from playlist_gateway.core.headers import (
    header_policies,
    parse_content_security_policy,
)
from playlist_gateway.schemas.schemas import (
    HeaderPolicyListResponse,
    HeaderPolicyResponse,
    HeaderRuleResponse,
)

router = APIRouter()


@router.get(
    "/headers",
    summary="Security headers attached to responses, per route pattern",
    response_model=HeaderPolicyListResponse,
)
async def list_header_policies() -> HeaderPolicyListResponse:
    policies = []
    for policy in header_policies():
        csp = next(
            (r.value for r in policy.rules if r.name == "Content-Security-Policy"),
            None,
        )
        policies.append(
            HeaderPolicyResponse(
                route=policy.matcher.pattern,
                headers=[
                    HeaderRuleResponse(name=r.name, value=r.value)
                    for r in policy.rules
                ],
                content_security_policy=(
                    parse_content_security_policy(csp) if csp else {}
                ),
            )
        )
    return HeaderPolicyListResponse(policies=policies)
