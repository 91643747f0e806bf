"""Main API router for v1."""
from fastapi import APIRouter

from agora.api.v1.endpoints import locations, polls

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(polls.router, prefix="/polls", tags=["Polls"])
api_router.include_router(locations.router, prefix="/locations", tags=["Locations"])
