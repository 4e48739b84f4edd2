"""
Problem loading and lookup.

The hosted REST API caps the rows returned per request, so the full
problem list is fetched as a sequence of ranges and kept in memory
as a ProblemCatalog. The fetched rows are cached in Redis so other
workers and restarts skip the fetch while the cache is fresh.
"""

import json
import logging
import math
from typing import Any, Iterator, Optional

from redis import Redis
from redis.exceptions import RedisError

from studysprint.common.schemas import ProblemData, ProblemDetailData

from .catalog import PAGE_SIZE, ProblemCatalog
from .repository import ProblemNotFoundError, Repository

logger = logging.getLogger(__name__)

BATCH_SIZE = 1000
CACHE_KEY = "studysprint:problems"

DEFAULT_STARTER_CODE = '''def solution():
    """
    Write your solution here
    """
    # Your code here
    pass

# Test your solution
if __name__ == "__main__":
    result = solution()
    print(result)'''


def iter_batches(total: int, batch_size: int = BATCH_SIZE) -> Iterator[tuple[int, int]]:
    """
    Yield (offset, limit) pairs covering ``total`` rows.

    Each call returns a fresh generator, so a failed load can simply
    start over.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    for index in range(math.ceil(total / batch_size)):
        yield index * batch_size, batch_size


async def load_problems(
    repository: Repository,
    batch_size: int = BATCH_SIZE
) -> list[dict[str, Any]]:
    """Fetch every problem row ordered by question_no."""
    total = await repository.count_problems()
    logger.info(f"Total problems in database: {total}")

    rows: list[dict[str, Any]] = []
    for offset, limit in iter_batches(total, batch_size):
        batch = await repository.fetch_problems(offset, limit)
        logger.debug(f"Fetched {len(batch)} problems from offset {offset}")
        rows.extend(batch)

    logger.info(f"Loaded {len(rows)} problems")
    return rows


def _read_cache(redis_client: Redis) -> Optional[list[dict[str, Any]]]:
    try:
        cached = redis_client.get(CACHE_KEY)
    except RedisError as e:
        logger.warning(f"Failed to read problem cache, fetching instead: {e}")
        return None
    return json.loads(cached) if cached else None


def _write_cache(redis_client: Redis, rows: list[dict[str, Any]], ttl: int) -> None:
    try:
        redis_client.set(CACHE_KEY, json.dumps(rows, default=str), ex=ttl)
    except RedisError as e:
        logger.warning(f"Failed to cache problems: {e}")


async def build_catalog(
    repository: Repository,
    redis_client: Optional[Redis] = None,
    cache_ttl: int = 300,
    batch_size: int = BATCH_SIZE,
    page_size: int = PAGE_SIZE
) -> ProblemCatalog:
    """Build the in-memory catalog from Redis or, failing that, the backend."""
    rows = _read_cache(redis_client) if redis_client is not None else None

    if rows is None:
        rows = await load_problems(repository, batch_size)
        if redis_client is not None:
            _write_cache(redis_client, rows, cache_ttl)
    else:
        logger.info(f"Loaded {len(rows)} problems from cache")

    problems = []
    for row in rows:
        try:
            problems.append(ProblemData.from_row(row))
        except ValueError as e:
            logger.error(f"Skipping malformed problem {row.get('id')}: {e}")

    return ProblemCatalog(problems, page_size=page_size)


async def get_problem(repository: Repository, problem_id: int) -> ProblemData:
    """
    Fetch a single problem.

    Raises:
        ProblemNotFoundError: If no problem has this id
    """
    row = await repository.get_problem(problem_id)
    if not row:
        raise ProblemNotFoundError(f"Problem {problem_id} not found")
    return ProblemData.from_row(row)


def to_detail(problem: ProblemData) -> ProblemDetailData:
    """Problem detail with a default starter stub when none is stored."""
    data = problem.model_dump()
    data["starter_code"] = problem.starter_code or DEFAULT_STARTER_CODE
    return ProblemDetailData.model_validate(data)
