"""
Pydantic response schemas for the Playlist Gateway API.
"""

from typing import Dict, List

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness probe payload."""
    status: str
    version: str


class HeaderRuleResponse(BaseModel):
    name: str
    value: str


class HeaderPolicyResponse(BaseModel):
    """One route pattern and the headers it attaches."""
    route: str
    headers: List[HeaderRuleResponse]
    content_security_policy: Dict[str, List[str]] = {}


class HeaderPolicyListResponse(BaseModel):
    policies: List[HeaderPolicyResponse]
