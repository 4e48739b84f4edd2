"""
Dashboard figures derived from backend-maintained stats.
"""

import logging
from typing import Optional

from studysprint.common.schemas import (
    DashboardData,
    DifficultyProgress,
    RecentSprintData,
    RecentSubmissionData,
    UserStatsData,
)

from .repository import Repository

logger = logging.getLogger(__name__)

# Display denominators for the per-difficulty progress bars
DIFFICULTY_TOTALS = {"Easy": 1000, "Medium": 1000, "Hard": 500}
RECENT_LIMIT = 10


def success_rate(stats: Optional[UserStatsData]) -> int:
    if not stats or stats.total_submissions == 0:
        return 0
    return round(stats.accepted_submissions / stats.total_submissions * 100)


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"


def difficulty_progress(stats: Optional[UserStatsData]) -> list[DifficultyProgress]:
    if not stats:
        return []
    solved = {
        "Easy": stats.easy_solved,
        "Medium": stats.medium_solved,
        "Hard": stats.hard_solved,
    }
    return [
        DifficultyProgress(name=name, solved=solved[name], total=total)
        for name, total in DIFFICULTY_TOTALS.items()
    ]


async def build_dashboard(repository: Repository, user_id: str) -> DashboardData:
    """Read stats and recent activity for one user."""
    stats_row = await repository.get_user_stats(user_id)
    stats = UserStatsData.model_validate(stats_row) if stats_row else None

    submissions = await repository.recent_submissions(user_id, RECENT_LIMIT)
    sprints = await repository.recent_sprints(user_id, RECENT_LIMIT)
    logger.debug(
        f"Dashboard for {user_id}: {len(submissions)} submissions, "
        f"{len(sprints)} sprints"
    )

    return DashboardData(
        stats=stats,
        success_rate=success_rate(stats),
        total_time=format_minutes(stats.total_runtime_minutes if stats else 0),
        progress=difficulty_progress(stats),
        recent_submissions=[
            RecentSubmissionData.model_validate(row) for row in submissions
        ],
        recent_sprints=[
            RecentSprintData.model_validate(row) for row in sprints
        ],
    )
