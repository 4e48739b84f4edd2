"""
Problem model for the coding-practice catalog.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base

if TYPE_CHECKING:
    from .sprint import Sprint
    from .submission import Submission


class Problem(Base):
    """
    Catalog entry describing one practice exercise.

    Rows are populated by external ingestion and are read-only
    for the application.
    """

    __tablename__ = "problems"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )
    question_no: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    acceptance_rate: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True
    )
    is_premium: Mapped[Optional[bool]] = mapped_column(
        Boolean,
        nullable=True
    )
    question_link: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True
    )
    title_slug: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True
    )
    tags: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    company_tags: Mapped[Optional[list[str]]] = mapped_column(
        JSON,
        nullable=True
    )
    hints: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    test_cases: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(
        JSON,
        nullable=True
    )
    starter_code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    likes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dislikes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # Relationships
    sprints: Mapped[list["Sprint"]] = relationship(
        "Sprint",
        back_populates="problem"
    )
    submissions: Mapped[list["Submission"]] = relationship(
        "Submission",
        back_populates="problem"
    )

    def __repr__(self) -> str:
        return (
            f"<Problem(id={self.id}, question_no={self.question_no}, "
            f"difficulty={self.difficulty})>"
        )
