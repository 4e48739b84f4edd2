"""
Registry of sprint session controllers, one per user.

Sessions with no live sprint are dropped once their user has not
touched them for ``session_ttl_seconds``.
"""

import logging
import time
from typing import Callable, Optional

from .grading import Grader
from .repository import Repository
from .sprint_controller import DEFAULT_DURATION_MINUTES, SprintSessionController

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 3600.0


class SprintSessionRegistry:
    """Creates and tracks the controller of each signed-in user."""

    def __init__(
        self,
        repository: Repository,
        grader: Optional[Grader] = None,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        tick_interval: float = 1.0,
        session_ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.repository = repository
        self.grader = grader
        self.duration_minutes = duration_minutes
        self.tick_interval = tick_interval
        self.session_ttl_seconds = session_ttl_seconds
        self.clock = clock
        self._sessions: dict[str, SprintSessionController] = {}
        self._last_seen: dict[str, float] = {}

    def get(self, user_id: str) -> SprintSessionController:
        now = self.clock()
        self.evict_inactive(now)

        controller = self._sessions.get(user_id)
        if controller is None:
            controller = SprintSessionController(
                self.repository,
                grader=self.grader,
                duration_minutes=self.duration_minutes,
                tick_interval=self.tick_interval
            )
            self._sessions[user_id] = controller
            logger.debug(f"Created sprint session for {user_id}")
        self._last_seen[user_id] = now
        return controller

    def evict_inactive(self, now: Optional[float] = None) -> int:
        """
        Close sessions idle past the TTL.

        Running and paused sprints are never evicted, and neither is a
        session with an action still in flight.
        """
        now = self.clock() if now is None else now
        stale = [
            user_id
            for user_id, seen in self._last_seen.items()
            if now - seen > self.session_ttl_seconds
            and not self._sessions[user_id].is_active
        ]
        for user_id in stale:
            self._sessions.pop(user_id).close()
            del self._last_seen[user_id]
        if stale:
            logger.info(f"Evicted {len(stale)} inactive sprint sessions")
        return len(stale)

    def __len__(self) -> int:
        return len(self._sessions)

    def close_all(self) -> None:
        for controller in self._sessions.values():
            controller.close()
        self._sessions.clear()
        self._last_seen.clear()
        logger.info("Closed all sprint sessions")
