"""
Sprint session endpoints.

Every response carries the session snapshot, including the notices
published since the previous call.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException

from studysprint.api.dependencies import (
    get_current_user,
    get_repository,
    get_sprint_session,
)
from studysprint.common.schemas import (
    APIResponse,
    SprintStartRequest,
    SubmitRequest,
)
from studysprint.modules import problem_service
from studysprint.modules.auth import AuthenticatedUser
from studysprint.modules.repository import (
    PersistenceError,
    Repository,
    ValidationError,
)
from studysprint.modules.sprint_controller import (
    InvalidTransitionError,
    SprintSessionController,
    TransitionInProgressError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sprints")


@contextmanager
def transition_errors() -> Iterator[None]:
    """Map controller errors onto HTTP status codes."""
    try:
        yield
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (InvalidTransitionError, TransitionInProgressError) as e:
        raise HTTPException(status_code=409, detail=str(e))


def snapshot_response(
    controller: SprintSessionController,
    success: bool = True,
    error: Optional[str] = None
) -> APIResponse:
    return APIResponse(
        success=success,
        data=controller.snapshot().model_dump(),
        error=error
    )


@router.get(
    "/current",
    response_model=APIResponse,
    tags=["Sprints"]
)
async def get_current_sprint(
    controller: SprintSessionController = Depends(get_sprint_session)
):
    """
    Get the caller's sprint session state.

    Returns:
        APIResponse: Sprint snapshot
    """
    return snapshot_response(controller)


@router.post(
    "/start",
    response_model=APIResponse,
    tags=["Sprints"]
)
async def start_sprint(
    request: SprintStartRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    repository: Repository = Depends(get_repository),
    controller: SprintSessionController = Depends(get_sprint_session)
):
    """
    Start a sprint on a problem.

    Args:
        request: Sprint start request

    Returns:
        APIResponse: Sprint snapshot
    """
    try:
        problem = await problem_service.get_problem(
            repository,
            request.problem_id
        )
    except PersistenceError as e:
        logger.error(f"Failed to fetch problem {request.problem_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )

    with transition_errors():
        started = await controller.start(user.id, problem)

    return snapshot_response(
        controller,
        success=started,
        error=None if started else "Failed to start sprint"
    )


@router.post(
    "/pause",
    response_model=APIResponse,
    tags=["Sprints"]
)
async def pause_sprint(
    controller: SprintSessionController = Depends(get_sprint_session)
):
    """Pause the running countdown."""
    with transition_errors():
        await controller.pause()
    return snapshot_response(controller)


@router.post(
    "/resume",
    response_model=APIResponse,
    tags=["Sprints"]
)
async def resume_sprint(
    controller: SprintSessionController = Depends(get_sprint_session)
):
    """Resume a paused countdown."""
    with transition_errors():
        await controller.resume()
    return snapshot_response(controller)


@router.post(
    "/stop",
    response_model=APIResponse,
    tags=["Sprints"]
)
async def stop_sprint(
    controller: SprintSessionController = Depends(get_sprint_session)
):
    """Abandon the sprint and reset the countdown."""
    with transition_errors():
        await controller.stop()
    return snapshot_response(controller)


@router.post(
    "/submit",
    response_model=APIResponse,
    tags=["Sprints"]
)
async def submit_solution(
    request: SubmitRequest,
    controller: SprintSessionController = Depends(get_sprint_session)
):
    """
    Submit a solution for the current sprint.

    Args:
        request: Submission request

    Returns:
        APIResponse: Sprint snapshot
    """
    with transition_errors():
        submitted = await controller.submit(request.code, request.language)

    return snapshot_response(
        controller,
        success=submitted,
        error=None if submitted else "Failed to submit solution"
    )
