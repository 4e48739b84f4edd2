"""
FastAPI dependency injection functions.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis import Redis

from studysprint.common.config import Settings
from studysprint.modules.auth import AuthError, AuthenticatedUser, SupabaseAuthClient
from studysprint.modules.catalog import ProblemCatalog
from studysprint.modules.problem_service import build_catalog
from studysprint.modules.repository import Repository
from studysprint.modules.sprint_controller import SprintSessionController
from studysprint.modules.sprint_registry import SprintSessionRegistry

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """
    Get application settings from request state.

    Args:
        request: FastAPI request object

    Returns:
        Settings: Application settings instance
    """
    return request.app.state.settings


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


def get_redis(request: Request) -> Optional[Redis]:
    """
    Get Redis client from request state.

    Args:
        request: FastAPI request object

    Returns:
        Redis: Redis client instance, or None when caching is off
    """
    return request.app.state.redis_client


def get_auth_client(request: Request) -> SupabaseAuthClient:
    return request.app.state.auth_client


def get_registry(request: Request) -> SprintSessionRegistry:
    return request.app.state.registry


async def get_catalog(
    request: Request,
    repository: Repository = Depends(get_repository),
    redis_client: Optional[Redis] = Depends(get_redis),
    settings: Settings = Depends(get_settings)
) -> ProblemCatalog:
    """
    Return the in-memory catalog, loading it on first use.

    Raises:
        PersistenceError: If the problem list cannot be fetched
    """
    state = request.app.state
    if state.catalog is None:
        async with state.catalog_lock:
            if state.catalog is None:
                state.catalog = await build_catalog(
                    repository,
                    redis_client,
                    cache_ttl=settings.catalog_cache_ttl_seconds,
                    batch_size=settings.problem_batch_size,
                    page_size=settings.catalog_page_size
                )
    return state.catalog


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_client: SupabaseAuthClient = Depends(get_auth_client)
) -> AuthenticatedUser:
    """
    Resolve the bearer token to a signed-in user.

    Raises:
        HTTPException: If the token is missing or invalid
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return await auth_client.get_user(credentials.credentials)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_client: SupabaseAuthClient = Depends(get_auth_client)
) -> Optional[AuthenticatedUser]:
    """Like get_current_user, but anonymous callers get None."""
    if credentials is None:
        return None
    try:
        return await auth_client.get_user(credentials.credentials)
    except AuthError:
        return None


def get_sprint_session(
    user: AuthenticatedUser = Depends(get_current_user),
    registry: SprintSessionRegistry = Depends(get_registry)
) -> SprintSessionController:
    return registry.get(user.id)
