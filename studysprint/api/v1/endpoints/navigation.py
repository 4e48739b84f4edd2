"""
Navigation entries for the client shell.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from studysprint.api.dependencies import get_optional_user
from studysprint.common.schemas import (
    APIResponse,
    NavAuthGated,
    NavigationData,
    NavLink,
)
from studysprint.modules.auth import AuthenticatedUser

router = APIRouter()

# (name, target, requires sign-in)
NAVIGATION = [
    ("Problems", "/problems", False),
    ("Sprint", "/sprint", True),
    ("Dashboard", "/dashboard", False),
]


def build_navigation(authenticated: bool) -> NavigationData:
    items = [
        NavAuthGated(name=name, action="signin")
        if requires_auth and not authenticated
        else NavLink(name=name, target=target)
        for name, target, requires_auth in NAVIGATION
    ]
    return NavigationData(authenticated=authenticated, items=items)


@router.get(
    "/navigation",
    response_model=APIResponse,
    tags=["Navigation"]
)
async def get_navigation(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user)
):
    """Navigation items, with sign-in gates for anonymous callers."""
    return APIResponse(
        success=True,
        data=build_navigation(user is not None).model_dump()
    )
