"""
Health check endpoint.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from redis import Redis
from redis.exceptions import RedisError

from studysprint.api.dependencies import get_redis, get_registry
from studysprint.common.schemas import APIResponse, HealthData
from studysprint.modules.sprint_registry import SprintSessionRegistry

router = APIRouter()


def redis_status(redis_client: Optional[Redis]) -> str:
    if redis_client is None:
        return "disabled"
    try:
        redis_client.ping()
    except RedisError:
        return "unreachable"
    return "ok"


@router.get(
    "/health",
    response_model=APIResponse,
    tags=["Health"]
)
async def health_check(
    request: Request,
    redis_client: Optional[Redis] = Depends(get_redis),
    registry: SprintSessionRegistry = Depends(get_registry)
):
    """
    Report service health.

    The problem cache is optional, so only an unreachable Redis
    marks the service unhealthy.
    """
    cache = redis_status(redis_client)

    return APIResponse(
        success=True,
        data=HealthData(
            status="unhealthy" if cache == "unreachable" else "healthy",
            cache=cache,
            catalog_loaded=request.app.state.catalog is not None,
            active_sessions=len(registry)
        ).model_dump()
    )
