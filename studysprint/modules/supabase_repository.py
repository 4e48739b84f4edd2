"""
Supabase PostgREST implementation of the row API.
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from .repository import PersistenceError, Repository

logger = logging.getLogger(__name__)

ACTIVITY_SELECT = "*,problem:problem_id(title,difficulty)"


def build_headers(secret_key: str) -> dict[str, str]:
    """Headers accepted by both the REST and the auth endpoints."""
    return {
        "apikey": secret_key,
        "Authorization": f"Bearer {secret_key}",
        "Content-Type": "application/json"
    }


def parse_content_range(content_range: str) -> int:
    """
    Extract the total from a ``Content-Range`` header.

    PostgREST answers ``0-24/3573`` or ``*/0``; an unknown total
    (``0-24/*``) or a missing header counts as zero.
    """
    if not content_range or "/" not in content_range:
        return 0
    total = content_range.split("/")[1]
    return int(total) if total.isdigit() else 0


def _encode(fields: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value.isoformat() if isinstance(value, datetime) else value
        for key, value in fields.items()
    }


class SupabaseRepository(Repository):
    """Row API backed by the Supabase REST interface."""

    def __init__(
        self,
        rest_url: str,
        secret_key: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ):
        self.rest_url = rest_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.headers = build_headers(secret_key)

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json: Optional[dict[str, Any]] = None,
        prefer: Optional[str] = None
    ) -> httpx.Response:
        headers = dict(self.headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = await self.client.request(
                method,
                f"{self.rest_url}/{table}",
                headers=headers,
                params=params,
                json=json
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"{method} /{table} failed: {e}")
            raise PersistenceError(f"{method} {table} failed: {e}") from e

        return response

    def _decode(self, response: httpx.Response) -> Any:
        request = response.request
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"{request.method} {request.url.path} returned a non-JSON body: {e}"
            )
            raise PersistenceError(
                f"{request.method} {request.url.path} returned an unreadable body"
            ) from e

    async def count_problems(self) -> int:
        response = await self._request(
            "HEAD",
            "problems",
            params={"select": "*"},
            prefer="count=exact"
        )
        return parse_content_range(response.headers.get("Content-Range", ""))

    async def fetch_problems(
        self,
        offset: int,
        limit: int
    ) -> list[dict[str, Any]]:
        response = await self._request(
            "GET",
            "problems",
            params={
                "select": "*",
                "order": "question_no.asc",
                "offset": str(offset),
                "limit": str(limit)
            },
            prefer="count=none"
        )
        return self._decode(response)

    async def get_problem(self, problem_id: int) -> Optional[dict[str, Any]]:
        response = await self._request(
            "GET",
            "problems",
            params={"select": "*", "id": f"eq.{problem_id}"}
        )
        problems = self._decode(response)

        if not problems:
            return None

        return problems[0]

    async def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        response = await self._request(
            "POST",
            table,
            json=_encode(row),
            prefer="return=representation"
        )
        rows = self._decode(response)
        if not isinstance(rows, list) or not rows:
            raise PersistenceError(f"Insert into {table} returned no row")
        return rows[0]

    async def create_sprint(
        self,
        user_id: str,
        problem_id: int,
        duration_minutes: int
    ) -> dict[str, Any]:
        sprint = await self._insert("sprints", {
            "user_id": user_id,
            "problem_id": problem_id,
            "duration_minutes": duration_minutes
        })
        logger.info(f"Created sprint {sprint['id']} for problem {problem_id}")
        return sprint

    async def update_sprint(
        self,
        sprint_id: int,
        fields: dict[str, Any]
    ) -> None:
        await self._request(
            "PATCH",
            "sprints",
            params={"id": f"eq.{sprint_id}"},
            json=_encode(fields),
            prefer="return=minimal"
        )
        logger.info(f"Updated sprint {sprint_id}: {sorted(fields)}")

    async def create_submission(
        self,
        user_id: str,
        problem_id: int,
        code: str,
        language: str,
        status: str
    ) -> dict[str, Any]:
        submission = await self._insert("submissions", {
            "user_id": user_id,
            "problem_id": problem_id,
            "code": code,
            "language": language,
            "status": status
        })
        logger.info(
            f"Created submission {submission['id']} for problem "
            f"{problem_id}: {status}"
        )
        return submission

    async def get_user_stats(self, user_id: str) -> Optional[dict[str, Any]]:
        response = await self._request(
            "GET",
            "user_stats",
            params={"select": "*", "user_id": f"eq.{user_id}"}
        )
        rows = self._decode(response)
        return rows[0] if rows else None

    async def _recent(
        self,
        table: str,
        user_id: str,
        order_column: str,
        limit: int
    ) -> list[dict[str, Any]]:
        response = await self._request(
            "GET",
            table,
            params={
                "select": ACTIVITY_SELECT,
                "user_id": f"eq.{user_id}",
                "order": f"{order_column}.desc",
                "limit": str(limit)
            }
        )
        return self._decode(response)

    async def recent_submissions(
        self,
        user_id: str,
        limit: int = 10
    ) -> list[dict[str, Any]]:
        return await self._recent("submissions", user_id, "submitted_at", limit)

    async def recent_sprints(
        self,
        user_id: str,
        limit: int = 10
    ) -> list[dict[str, Any]]:
        return await self._recent("sprints", user_id, "started_at", limit)

    async def aclose(self) -> None:
        await self.client.aclose()
