"""
Row-level persistence interface.

Both backends (Supabase REST and direct database) implement the
same set of operations and return plain row dictionaries, so the
sprint controller and the catalog loader never see transport
details.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class PersistenceError(Exception):
    """Raised when a backend call fails."""

    pass


class ProblemNotFoundError(Exception):
    """Raised when a problem is not found."""

    pass


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


class Repository(ABC):
    """Abstract row API for problems, sprints, submissions and stats."""

    @abstractmethod
    async def count_problems(self) -> int:
        pass

    @abstractmethod
    async def fetch_problems(
        self,
        offset: int,
        limit: int
    ) -> list[dict[str, Any]]:
        """Fetch problems ordered by question_no ascending."""

    @abstractmethod
    async def get_problem(self, problem_id: int) -> Optional[dict[str, Any]]:
        pass

    @abstractmethod
    async def create_sprint(
        self,
        user_id: str,
        problem_id: int,
        duration_minutes: int
    ) -> dict[str, Any]:
        pass

    @abstractmethod
    async def update_sprint(
        self,
        sprint_id: int,
        fields: dict[str, Any]
    ) -> None:
        pass

    @abstractmethod
    async def create_submission(
        self,
        user_id: str,
        problem_id: int,
        code: str,
        language: str,
        status: str
    ) -> dict[str, Any]:
        pass

    @abstractmethod
    async def get_user_stats(self, user_id: str) -> Optional[dict[str, Any]]:
        pass

    @abstractmethod
    async def recent_submissions(
        self,
        user_id: str,
        limit: int = 10
    ) -> list[dict[str, Any]]:
        """Newest first, each row carrying a ``problem`` {title, difficulty}."""

    @abstractmethod
    async def recent_sprints(
        self,
        user_id: str,
        limit: int = 10
    ) -> list[dict[str, Any]]:
        """Newest first, each row carrying a ``problem`` {title, difficulty}."""

    async def aclose(self) -> None:
        """Release transport resources."""
