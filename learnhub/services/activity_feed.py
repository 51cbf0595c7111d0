"""Most-recent-first activity log with a hard size cap.

The feed is display data: entries are prepended as actions happen and
the oldest are evicted once `limit` is reached, so a long session holds
at most `limit` entries.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from itertools import islice
from typing import Any

from learnhub.core.metrics import ACTIVITY_FEED_SIZE
from learnhub.models.enrollment import ActivityType, UserActivity
from learnhub.models.ids import CourseId, LessonId, UserId


class ActivityFeed:
    def __init__(self, limit: int = 100) -> None:
        if limit < 1:
            raise ValueError("activity feed limit must be >= 1")
        self.limit = limit
        # appendleft + maxlen drops from the right, i.e. the oldest entry
        self._entries: deque[UserActivity] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._entries)

    def record(
        self,
        *,
        user_id: UserId,
        type: ActivityType,
        timestamp: int,
        course_id: CourseId | None = None,
        lesson_id: LessonId | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UserActivity:
        entry = UserActivity.new(
            user_id=user_id,
            type=type,
            timestamp=timestamp,
            course_id=course_id,
            lesson_id=lesson_id,
            metadata=metadata,
        )
        self._entries.appendleft(entry)
        ACTIVITY_FEED_SIZE.set(len(self._entries))
        return entry

    def recent(self, user_id: UserId | None = None, limit: int | None = None) -> list[UserActivity]:
        entries = [e for e in self._entries if user_id is None or e.user_id == user_id]
        return entries if limit is None else entries[:limit]

    def entries(self) -> list[UserActivity]:
        return list(self._entries)

    def replace(self, entries: Iterable[UserActivity]) -> None:
        """Adopt `entries` (most recent first), truncated to the cap."""
        self._entries = deque(islice(entries, self.limit), maxlen=self.limit)
        ACTIVITY_FEED_SIZE.set(len(self._entries))

    def clear(self) -> None:
        self._entries.clear()
        ACTIVITY_FEED_SIZE.set(0)
