"""
Per-user aggregate statistics, maintained by database triggers.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .base import Base


class UserStats(Base):
    """Read-only progress aggregate for one user."""

    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total_submissions: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )
    accepted_submissions: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )
    current_streak: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )
    max_streak: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )
    easy_solved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    medium_solved: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )
    hard_solved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_runtime_minutes: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )

    last_active: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<UserStats(user_id={self.user_id})>"
