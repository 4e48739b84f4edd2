"""
Database models package.

Exports all SQLAlchemy models for use across the application.
"""

from .base import Base
from .problem import Problem
from .sprint import Sprint
from .submission import Submission
from .user_stats import UserStats

__all__ = [
    "Base",
    "Problem",
    "Sprint",
    "Submission",
    "UserStats",
]
