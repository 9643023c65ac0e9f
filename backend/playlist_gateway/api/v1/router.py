"""
Master API router that aggregates all versioned endpoint routers.
"""

from fastapi import APIRouter

from playlist_gateway.api.v1.endpoints import security, system

api_router = APIRouter()

api_router.include_router(system.router, prefix="/system", tags=["System"])
api_router.include_router(security.router, prefix="/security", tags=["Security"])
