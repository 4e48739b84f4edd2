"""
Submission model for storing user solutions.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base

if TYPE_CHECKING:
    from .problem import Problem


class Submission(Base):
    """
    Persisted snapshot of submitted solution text and its verdict.

    Created once per submit action, immutable afterwards.
    """

    __tablename__ = "submissions"

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
    code: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="python"
    )
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default="pending"
    )

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # Relationships
    problem: Mapped["Problem"] = relationship(
        "Problem",
        back_populates="submissions"
    )

    def __repr__(self) -> str:
        return (
            f"<Submission(id={self.id}, "
            f"status={self.status})>"
        )
