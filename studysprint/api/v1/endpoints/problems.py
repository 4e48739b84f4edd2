"""
Problem catalog endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from studysprint.api.dependencies import get_catalog, get_repository
from studysprint.common.schemas import (
    APIResponse,
    CatalogFiltersData,
    CatalogPageData,
    ProblemSummary,
)
from studysprint.modules import problem_service
from studysprint.modules.catalog import (
    ALL,
    COMMON_TAGS,
    DIFFICULTIES,
    CatalogFilter,
    ProblemCatalog,
)
from studysprint.modules.repository import (
    PersistenceError,
    Repository,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _summaries(problems) -> list[ProblemSummary]:
    return [
        ProblemSummary.model_validate(problem.model_dump())
        for problem in problems
    ]


@router.get(
    "/problems",
    response_model=APIResponse,
    tags=["Problems"]
)
async def list_problems(
    search: str = "",
    difficulty: str = ALL,
    tag: str = ALL,
    page: int = Query(default=1, ge=1),
    catalog: ProblemCatalog = Depends(get_catalog)
):
    """
    Get one page of the filtered problem catalog.

    Returns:
        APIResponse: Catalog page data
    """
    catalog_filter = CatalogFilter(search=search, difficulty=difficulty, tag=tag)
    items, page_count, filtered_count = catalog.page(catalog_filter, page)

    return APIResponse(
        success=True,
        data=CatalogPageData(
            items=_summaries(items),
            page=page,
            page_size=catalog.page_size,
            page_count=page_count,
            filtered_count=filtered_count,
            total_count=len(catalog),
            search=search,
            difficulty=difficulty,
            tag=tag
        ).model_dump()
    )


@router.get(
    "/problems/filters",
    response_model=APIResponse,
    tags=["Problems"]
)
async def get_filters():
    """Filter vocabularies for the catalog."""
    return APIResponse(
        success=True,
        data=CatalogFiltersData(
            difficulties=DIFFICULTIES,
            tags=COMMON_TAGS
        ).model_dump()
    )


@router.get(
    "/problems/quick-start",
    response_model=APIResponse,
    tags=["Problems"]
)
async def get_quick_start(catalog: ProblemCatalog = Depends(get_catalog)):
    """Easy and medium problems suggested for a quick sprint."""
    return APIResponse(
        success=True,
        data={"items": [s.model_dump() for s in _summaries(catalog.quick_start())]}
    )


@router.get(
    "/problems/{problem_id}",
    response_model=APIResponse,
    tags=["Problems"]
)
async def get_problem_by_id(
    problem_id: int,
    repository: Repository = Depends(get_repository)
):
    """
    Get a specific problem by ID.

    Args:
        problem_id: Problem identifier

    Returns:
        APIResponse: Problem detail data
    """
    try:
        problem = await problem_service.get_problem(repository, problem_id)
    except PersistenceError as e:
        logger.error(f"Failed to fetch problem {problem_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )

    return APIResponse(
        success=True,
        data=problem_service.to_detail(problem).model_dump()
    )
