"""Remote learning backend boundary.

The stores never talk to the network themselves; every operation that
would round-trip to a server goes through a LearningBackend.  Today the
only implementation is SimulatedBackend, which waits a fixed latency and
succeeds.  A real HTTP client slots in behind the same protocol.

Calls are plain coroutines, so cancelling the awaiting task (client
disconnect, shutdown) aborts the call before the store applies anything.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

from learnhub.models.ids import CourseId, UserId

logger = logging.getLogger(__name__)


@runtime_checkable
class LearningBackend(Protocol):
    async def enroll(self, user_id: UserId, course_id: CourseId) -> None: ...
    async def load_dashboard(self, user_id: UserId) -> None: ...
    async def load_recommendations(self, user_id: UserId) -> None: ...
    async def sync_enrollments(self, user_id: UserId) -> None: ...
    async def sync_progress(self) -> None: ...


class SimulatedBackend:
    """Stand-in for the remote API: fixed artificial delay, always succeeds."""

    def __init__(self, latency_ms: int = 0) -> None:
        if latency_ms < 0:
            raise ValueError("latency_ms must be non-negative")
        self._latency = latency_ms / 1000

    async def _round_trip(self, op: str, **fields: str) -> None:
        logger.debug("simulated remote call op=%s %s", op, fields)
        if self._latency:
            await asyncio.sleep(self._latency)

    async def enroll(self, user_id: UserId, course_id: CourseId) -> None:
        await self._round_trip("enroll", user=user_id, course=course_id)

    async def load_dashboard(self, user_id: UserId) -> None:
        await self._round_trip("load_dashboard", user=user_id)

    async def load_recommendations(self, user_id: UserId) -> None:
        await self._round_trip("load_recommendations", user=user_id)

    async def sync_enrollments(self, user_id: UserId) -> None:
        await self._round_trip("sync_enrollments", user=user_id)

    async def sync_progress(self) -> None:
        await self._round_trip("sync_progress")
