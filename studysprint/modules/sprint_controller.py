"""
Sprint session controller.

Owns the lifecycle of one user's timed practice attempt:

    idle -> running <-> paused -> terminated (expired | submitted)
    running/paused --stop--> idle

The controller drives the countdown timer and issues the sprint and
submission row calls. Persistence failures are logged and published
as notices; they never leave the controller in an intermediate
state and are never retried.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Optional

from studysprint.common.schemas import ProblemData, SprintSnapshot

from .grading import AcceptAllGrader, Grader, GradingRequest
from .notices import NoticeChannel
from .repository import PersistenceError, Repository, ValidationError
from .timer import CountdownTimer

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 25


class SprintState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    TERMINATED = "terminated"


class SprintOutcome(str, Enum):
    STOPPED = "stopped"
    EXPIRED = "expired"
    SUBMITTED = "submitted"


class InvalidTransitionError(Exception):
    """Raised when an action is not allowed in the current state."""

    pass


class TransitionInProgressError(Exception):
    """Raised when an action arrives while another is still in flight."""

    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SprintSessionController:
    """State machine for one sprint session."""

    def __init__(
        self,
        repository: Repository,
        grader: Optional[Grader] = None,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        tick_interval: float = 1.0,
        notices: Optional[NoticeChannel] = None
    ):
        self.repository = repository
        self.grader = grader or AcceptAllGrader()
        self.duration_minutes = duration_minutes
        self.notices = notices or NoticeChannel()
        self.timer = CountdownTimer(
            duration_minutes * 60,
            on_expire=self.expire,
            tick_interval=tick_interval
        )

        self.state = SprintState.IDLE
        self.outcome: Optional[SprintOutcome] = None
        self.user_id: Optional[str] = None
        self.problem: Optional[ProblemData] = None
        self.sprint_id: Optional[int] = None
        self.submission_id: Optional[int] = None
        self.finished_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def _transition(self) -> AsyncIterator[None]:
        if self._lock.locked():
            raise TransitionInProgressError(
                "Another sprint action is still in progress"
            )
        async with self._lock:
            yield

    def _require(self, *states: SprintState) -> None:
        if self.state not in states:
            raise InvalidTransitionError(
                f"Cannot do that while the sprint is {self.state.value}"
            )

    async def start(
        self,
        user_id: Optional[str],
        problem: Optional[ProblemData]
    ) -> bool:
        """
        Create a sprint row and start the countdown.

        Returns False when the row could not be created; the
        controller then stays where it was.
        """
        async with self._transition():
            self._require(SprintState.IDLE, SprintState.TERMINATED)
            if not user_id:
                raise ValidationError("Sign in to start a sprint")
            if problem is None:
                raise ValidationError("Choose a problem to start a sprint")

            try:
                sprint = await self.repository.create_sprint(
                    user_id,
                    problem.id,
                    self.duration_minutes
                )
            except PersistenceError as e:
                logger.error(f"Failed to start sprint for {user_id}: {e}")
                self.notices.error("Failed to start sprint")
                return False

            self.user_id = user_id
            self.problem = problem
            self.sprint_id = sprint["id"]
            self.submission_id = None
            self.finished_at = None
            self.outcome = None
            self.state = SprintState.RUNNING
            self.timer.reset()
            self.timer.enable()

            logger.info(
                f"Sprint {self.sprint_id} started by {user_id} "
                f"on problem {problem.id}"
            )
            self.notices.success("Sprint started! Focus mode activated")
            return True

    async def pause(self) -> None:
        async with self._transition():
            if self.state == SprintState.PAUSED:
                return
            self._require(SprintState.RUNNING)

            self.timer.disable()
            self.state = SprintState.PAUSED
            self.notices.info("Sprint paused")

    async def resume(self) -> None:
        async with self._transition():
            self._require(SprintState.PAUSED)

            self.state = SprintState.RUNNING
            self.timer.enable()
            self.notices.info("Sprint resumed")

    async def stop(self) -> None:
        """Abandon the sprint and return to idle."""
        async with self._transition():
            self._require(SprintState.RUNNING, SprintState.PAUSED)

            self.timer.disable()
            sprint_id = self.sprint_id
            try:
                await self.repository.update_sprint(
                    sprint_id,
                    {"finished_at": utcnow(), "completed": False}
                )
            except PersistenceError as e:
                logger.error(f"Failed to stop sprint {sprint_id}: {e}")
                self.notices.error("Failed to save stopped sprint")
            finally:
                self.timer.reset()
                self.sprint_id = None
                self.finished_at = None
                self.state = SprintState.IDLE
                self.outcome = SprintOutcome.STOPPED

            logger.info(f"Sprint {sprint_id} stopped")
            self.notices.info("Sprint stopped")

    async def expire(self) -> None:
        """
        Timer expiry callback.

        Waits for any in-flight action, then closes the sprint row as
        not completed. The sprint reference and the zeroed clock are
        kept so the user can still submit.
        """
        async with self._lock:
            if self.state != SprintState.RUNNING or self.sprint_id is None:
                return

            self.timer.disable()
            self.state = SprintState.TERMINATED
            self.outcome = SprintOutcome.EXPIRED
            self.finished_at = utcnow()

            try:
                await self.repository.update_sprint(
                    self.sprint_id,
                    {"finished_at": self.finished_at, "completed": False}
                )
            except PersistenceError as e:
                logger.error(
                    f"Failed to record expiry of sprint {self.sprint_id}: {e}"
                )
                self.notices.error("Failed to save sprint")

            logger.info(f"Sprint {self.sprint_id} expired")
            self.notices.warning(
                "Time's up! Don't worry, you can keep working on the solution."
            )

    async def submit(self, code: str, language: str = "python") -> bool:
        """
        Record a submission and complete the active sprint.

        Returns False when the submission row could not be created;
        state is then unchanged and the user may retry.
        """
        async with self._transition():
            self._require(
                SprintState.RUNNING,
                SprintState.PAUSED,
                SprintState.TERMINATED
            )
            if self.outcome == SprintOutcome.SUBMITTED:
                raise InvalidTransitionError("Solution already submitted")
            if not code or not code.strip():
                raise ValidationError(
                    "Please write some code before submitting"
                )

            verdict = await self.grader.grade(GradingRequest(
                code=code,
                language=language,
                test_cases=list(self.problem.test_cases) if self.problem else []
            ))

            try:
                submission = await self.repository.create_submission(
                    self.user_id,
                    self.problem.id,
                    code,
                    language,
                    verdict
                )
            except PersistenceError as e:
                logger.error(f"Failed to submit solution for {self.user_id}: {e}")
                self.notices.error("Failed to submit solution")
                return False

            self.submission_id = submission["id"]
            self.timer.disable()

            if self.sprint_id is not None:
                self.finished_at = utcnow()
                fields = {
                    "finished_at": self.finished_at,
                    "completed": True,
                    "submission_id": self.submission_id
                }
                try:
                    await self.repository.update_sprint(self.sprint_id, fields)
                except PersistenceError as e:
                    logger.error(
                        f"Failed to complete sprint {self.sprint_id}: {e}"
                    )
                    self.notices.error("Solution saved, but the sprint was not updated")

            self.state = SprintState.TERMINATED
            self.outcome = SprintOutcome.SUBMITTED

            logger.info(
                f"Submission {self.submission_id} recorded for sprint "
                f"{self.sprint_id}: {verdict}"
            )
            self.notices.success("Solution submitted successfully!")
            return True

    @property
    def is_active(self) -> bool:
        """True while a sprint is live or an action is in flight."""
        return (
            self.state in (SprintState.RUNNING, SprintState.PAUSED)
            or self._lock.locked()
        )

    def snapshot(self, drain: bool = True) -> SprintSnapshot:
        return SprintSnapshot(
            state=self.state.value,
            outcome=self.outcome.value if self.outcome else None,
            sprint_id=self.sprint_id,
            problem_id=self.problem.id if self.problem else None,
            submission_id=self.submission_id,
            remaining_seconds=self.timer.remaining_seconds,
            duration_seconds=self.timer.duration_seconds,
            display=self.timer.display,
            progress=self.timer.progress,
            urgency=self.timer.urgency,
            timer_running=self.timer.enabled,
            notices=self.notices.drain() if drain else self.notices.pending()
        )

    def close(self) -> None:
        """Cancel the countdown on teardown."""
        self.timer.close()
