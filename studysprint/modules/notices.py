"""
Per-session publish/subscribe channel for transient user notices.

Each sprint session owns one channel. Subscribers get every notice
as it is published; notices also queue up until the client drains
them with the next snapshot.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable

from studysprint.common.schemas import NoticeData

logger = logging.getLogger(__name__)

Subscriber = Callable[[NoticeData], None]


class NoticeChannel:
    """Bounded notice queue with synchronous subscribers."""

    def __init__(self, maxlen: int = 20):
        self._pending: deque[NoticeData] = deque(maxlen=maxlen)
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber and return its unsubscribe function."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, level: str, message: str) -> NoticeData:
        notice = NoticeData(
            level=level,
            message=message,
            created_at=datetime.now(timezone.utc)
        )
        self._pending.append(notice)
        for subscriber in list(self._subscribers):
            try:
                subscriber(notice)
            except Exception as e:
                logger.warning(f"Notice subscriber failed: {e}")
        return notice

    def info(self, message: str) -> NoticeData:
        return self.publish("info", message)

    def success(self, message: str) -> NoticeData:
        return self.publish("success", message)

    def warning(self, message: str) -> NoticeData:
        return self.publish("warning", message)

    def error(self, message: str) -> NoticeData:
        return self.publish("error", message)

    def pending(self) -> list[NoticeData]:
        return list(self._pending)

    def drain(self) -> list[NoticeData]:
        """Return queued notices and clear the queue."""
        notices = list(self._pending)
        self._pending.clear()
        return notices
