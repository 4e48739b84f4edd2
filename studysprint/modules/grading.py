"""
Pluggable grading of submitted solutions.

Only the accept-all grader exists today: submissions are recorded
as accepted without running the code. A real judge plugs in by
implementing Grader and registering it in GraderFactory.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

ACCEPTED = "accepted"
SUBMISSION_STATUSES = (
    "pending",
    ACCEPTED,
    "wrong_answer",
    "runtime_error",
    "time_limit_exceeded",
)


@dataclass
class GradingRequest:
    code: str
    language: str
    test_cases: list[Any] = field(default_factory=list)


class Grader(ABC):
    """Strategy that turns a submission into a verdict."""

    @abstractmethod
    async def grade(self, request: GradingRequest) -> str:
        """Return one of SUBMISSION_STATUSES."""


class AcceptAllGrader(Grader):
    """Accepts every submission without executing it."""

    async def grade(self, request: GradingRequest) -> str:
        return ACCEPTED


class GraderFactory:
    """Factory to select the configured grader."""

    _graders: dict[str, type[Grader]] = {
        "accept_all": AcceptAllGrader,
    }

    @classmethod
    def create(cls, name: str) -> Grader:
        try:
            return cls._graders[name]()
        except KeyError:
            raise ValueError(f"Unknown grader: {name}") from None
