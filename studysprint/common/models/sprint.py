"""
Sprint model for timed practice attempts.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base

if TYPE_CHECKING:
    from .problem import Problem
    from .submission import Submission


class Sprint(Base):
    """
    One timed practice attempt bound to a single problem and user.

    Created on start and updated once at termination (stop, expiry
    or submission). Never deleted by the application.
    """

    __tablename__ = "sprints"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True
    )
    problem_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("problems.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    duration_minutes: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=25
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    finished_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False
    )
    submission_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("submissions.id", ondelete="SET NULL"),
        nullable=True
    )

    # Relationships
    problem: Mapped["Problem"] = relationship(
        "Problem",
        back_populates="sprints"
    )
    submission: Mapped[Optional["Submission"]] = relationship(
        "Submission",
        uselist=False
    )

    def __repr__(self) -> str:
        return (
            f"<Sprint(id={self.id}, problem_id={self.problem_id}, "
            f"completed={self.completed})>"
        )
