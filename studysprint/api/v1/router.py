"""
API v1 router aggregation.
"""

from fastapi import APIRouter

from .endpoints import dashboard, health, navigation, problems, sprints

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(health.router, prefix="", tags=["Health"])
api_router.include_router(problems.router, prefix="", tags=["Problems"])
api_router.include_router(sprints.router, prefix="", tags=["Sprints"])
api_router.include_router(dashboard.router, prefix="", tags=["Dashboard"])
api_router.include_router(navigation.router, prefix="", tags=["Navigation"])
