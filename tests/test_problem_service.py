import json
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from studysprint.modules import problem_service
from studysprint.modules.problem_service import (
    CACHE_KEY,
    DEFAULT_STARTER_CODE,
    build_catalog,
    iter_batches,
    load_problems,
    to_detail,
)
from studysprint.modules.repository import PersistenceError, ProblemNotFoundError
from tests.fakes import FakeRepository, make_problem, make_problem_row


def test_iter_batches_covers_total():
    assert list(iter_batches(2500, 1000)) == [(0, 1000), (1000, 1000), (2000, 1000)]
    assert list(iter_batches(1000, 1000)) == [(0, 1000)]
    assert list(iter_batches(0, 1000)) == []


def test_iter_batches_rejects_bad_size():
    with pytest.raises(ValueError):
        list(iter_batches(10, 0))


@pytest.mark.asyncio
async def test_load_problems_fetches_in_batches():
    # Setup
    repository = FakeRepository([make_problem_row(i) for i in range(25, 0, -1)])

    # Execute
    rows = await load_problems(repository, batch_size=10)

    # Verify
    assert [row["id"] for row in rows] == list(range(1, 26))
    assert repository.calls == ["count_problems"] + ["fetch_problems"] * 3


@pytest.mark.asyncio
async def test_load_failure_propagates():
    repository = FakeRepository(
        [make_problem_row(1)],
        fail_on=("fetch_problems",)
    )

    with pytest.raises(PersistenceError):
        await load_problems(repository)


@pytest.mark.asyncio
async def test_build_catalog_fills_cache_on_miss():
    # Setup
    repository = FakeRepository([make_problem_row(2), make_problem_row(1)])
    redis_client = MagicMock()
    redis_client.get.return_value = None

    # Execute
    catalog = await build_catalog(repository, redis_client, cache_ttl=60)

    # Verify
    assert [p.id for p in catalog.problems] == [1, 2]
    key, payload = redis_client.set.call_args.args
    assert key == CACHE_KEY
    assert len(json.loads(payload)) == 2
    assert redis_client.set.call_args.kwargs == {"ex": 60}


@pytest.mark.asyncio
async def test_build_catalog_uses_cache_hit():
    # Setup
    repository = FakeRepository()
    redis_client = MagicMock()
    redis_client.get.return_value = json.dumps([make_problem_row(7, tags=["Array"])])

    # Execute
    catalog = await build_catalog(repository, redis_client)

    # Verify
    assert [p.id for p in catalog.problems] == [7]
    assert catalog.problems[0].tags == ["Array"]
    assert repository.calls == []
    redis_client.set.assert_not_called()


@pytest.mark.asyncio
async def test_build_catalog_survives_redis_outage():
    repository = FakeRepository([make_problem_row(1)])
    redis_client = MagicMock()
    redis_client.get.side_effect = RedisConnectionError("down")
    redis_client.set.side_effect = RedisConnectionError("down")

    catalog = await build_catalog(repository, redis_client)

    assert len(catalog) == 1


@pytest.mark.asyncio
async def test_build_catalog_skips_malformed_rows():
    rows = [make_problem_row(1), {"id": 2, "title": "No ordinal"}]
    repository = FakeRepository()
    repository.problems = {1: rows[0]}
    redis_client = MagicMock()
    redis_client.get.return_value = json.dumps(rows)

    catalog = await build_catalog(repository, redis_client)

    assert [p.id for p in catalog.problems] == [1]


@pytest.mark.asyncio
async def test_get_problem_not_found():
    repository = FakeRepository()

    with pytest.raises(ProblemNotFoundError, match="Problem 42 not found"):
        await problem_service.get_problem(repository, 42)


@pytest.mark.asyncio
async def test_get_problem_treats_null_lists_as_empty():
    repository = FakeRepository([make_problem_row(3)])

    problem = await problem_service.get_problem(repository, 3)

    assert problem.tags == []
    assert problem.hints == []
    assert problem.test_cases == []


def test_detail_falls_back_to_default_starter_code():
    assert to_detail(make_problem(1)).starter_code == DEFAULT_STARTER_CODE

    stored = make_problem(1, starter_code="class Solution:\n    pass\n")
    assert to_detail(stored).starter_code == "class Solution:\n    pass\n"
