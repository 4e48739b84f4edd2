"""
Progress dashboard endpoint.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from studysprint.api.dependencies import get_optional_user, get_repository
from studysprint.common.schemas import APIResponse, DashboardData
from studysprint.modules.auth import AuthenticatedUser
from studysprint.modules.dashboard import build_dashboard
from studysprint.modules.repository import PersistenceError, Repository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/dashboard",
    response_model=APIResponse,
    tags=["Dashboard"]
)
async def get_dashboard(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    repository: Repository = Depends(get_repository)
):
    """
    Get the caller's statistics and recent activity.

    Anonymous callers get an empty dashboard.

    Returns:
        APIResponse: Dashboard data
    """
    if user is None:
        return APIResponse(
            success=True,
            data=DashboardData(success_rate=0, total_time="0m").model_dump()
        )

    try:
        dashboard = await build_dashboard(repository, user.id)
    except PersistenceError as e:
        logger.error(f"Failed to fetch dashboard for {user.id}: {e}")
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )

    return APIResponse(success=True, data=dashboard.model_dump())
