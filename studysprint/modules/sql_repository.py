"""
SQLAlchemy implementation of the row API.

Talks to the same PostgreSQL database directly instead of going
through PostgREST. Sessions are synchronous, so every call runs in
a worker thread.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import func, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, sessionmaker

from studysprint.common.db import session_scope
from studysprint.common.models import Problem, Sprint, Submission, UserStats

from .repository import PersistenceError, Repository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def row_to_dict(instance: Any) -> dict[str, Any]:
    """Column values of an ORM instance, keyed by attribute name."""
    return {
        column.key: getattr(instance, column.key)
        for column in inspect(instance).mapper.column_attrs
    }


def _activity_row(instance: Any) -> dict[str, Any]:
    row = row_to_dict(instance)
    problem = instance.problem
    row["problem"] = (
        {"title": problem.title, "difficulty": problem.difficulty}
        if problem is not None else None
    )
    return row


class SqlRepository(Repository):
    """Row API backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    async def _run(self, operation: Callable[[Session], T]) -> T:
        def call() -> T:
            with session_scope(self.session_factory) as session:
                return operation(session)

        try:
            return await asyncio.to_thread(call)
        except SQLAlchemyError as e:
            logger.error(f"Database operation failed: {e}")
            raise PersistenceError(str(e)) from e

    async def count_problems(self) -> int:
        return await self._run(
            lambda db: db.query(func.count(Problem.id)).scalar() or 0
        )

    async def fetch_problems(
        self,
        offset: int,
        limit: int
    ) -> list[dict[str, Any]]:
        def operation(db: Session) -> list[dict[str, Any]]:
            problems = (
                db.query(Problem)
                .order_by(Problem.question_no.asc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [row_to_dict(problem) for problem in problems]

        return await self._run(operation)

    async def get_problem(self, problem_id: int) -> Optional[dict[str, Any]]:
        def operation(db: Session) -> Optional[dict[str, Any]]:
            problem = db.query(Problem).filter(
                Problem.id == problem_id
            ).first()
            return row_to_dict(problem) if problem else None

        return await self._run(operation)

    async def create_sprint(
        self,
        user_id: str,
        problem_id: int,
        duration_minutes: int
    ) -> dict[str, Any]:
        def operation(db: Session) -> dict[str, Any]:
            sprint = Sprint(
                user_id=user_id,
                problem_id=problem_id,
                duration_minutes=duration_minutes,
                completed=False
            )
            db.add(sprint)
            db.commit()
            db.refresh(sprint)
            return row_to_dict(sprint)

        sprint = await self._run(operation)
        logger.info(f"Created sprint {sprint['id']} for problem {problem_id}")
        return sprint

    async def update_sprint(
        self,
        sprint_id: int,
        fields: dict[str, Any]
    ) -> None:
        def operation(db: Session) -> None:
            sprint = db.get(Sprint, sprint_id)
            if sprint is None:
                raise PersistenceError(f"Sprint {sprint_id} not found")
            for key, value in fields.items():
                setattr(sprint, key, value)
            db.commit()

        await self._run(operation)
        logger.info(f"Updated sprint {sprint_id}: {sorted(fields)}")

    async def create_submission(
        self,
        user_id: str,
        problem_id: int,
        code: str,
        language: str,
        status: str
    ) -> dict[str, Any]:
        def operation(db: Session) -> dict[str, Any]:
            submission = Submission(
                user_id=user_id,
                problem_id=problem_id,
                code=code,
                language=language,
                status=status
            )
            db.add(submission)
            db.commit()
            db.refresh(submission)
            return row_to_dict(submission)

        submission = await self._run(operation)
        logger.info(
            f"Created submission {submission['id']} for problem "
            f"{problem_id}: {status}"
        )
        return submission

    async def get_user_stats(self, user_id: str) -> Optional[dict[str, Any]]:
        def operation(db: Session) -> Optional[dict[str, Any]]:
            stats = db.get(UserStats, user_id)
            return row_to_dict(stats) if stats else None

        return await self._run(operation)

    async def recent_submissions(
        self,
        user_id: str,
        limit: int = 10
    ) -> list[dict[str, Any]]:
        def operation(db: Session) -> list[dict[str, Any]]:
            submissions = (
                db.query(Submission)
                .options(joinedload(Submission.problem))
                .filter(Submission.user_id == user_id)
                .order_by(Submission.submitted_at.desc(), Submission.id.desc())
                .limit(limit)
                .all()
            )
            return [_activity_row(submission) for submission in submissions]

        return await self._run(operation)

    async def recent_sprints(
        self,
        user_id: str,
        limit: int = 10
    ) -> list[dict[str, Any]]:
        def operation(db: Session) -> list[dict[str, Any]]:
            sprints = (
                db.query(Sprint)
                .options(joinedload(Sprint.problem))
                .filter(Sprint.user_id == user_id)
                .order_by(Sprint.started_at.desc(), Sprint.id.desc())
                .limit(limit)
                .all()
            )
            return [_activity_row(sprint) for sprint in sprints]

        return await self._run(operation)
