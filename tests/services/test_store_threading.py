"""Stores shared across threadpool workers (sync FastAPI routes)."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable

from learnhub.models.ids import CourseId, LessonId, UserId
from learnhub.models.snapshot import EnrollmentSnapshot, ProgressSnapshot
from learnhub.services.enrollment_store import EnrollmentStore
from learnhub.services.persistence import InMemorySnapshotSlot, PersistenceAdapter
from learnhub.services.progress_store import ProgressStore

THREADS = 8
CALLS = 150
C1 = CourseId("c1")


def _hammer(worker: Callable[[int, int], None]) -> list[BaseException]:
    errors: list[BaseException] = []
    barrier = threading.Barrier(THREADS)

    def run(t: int) -> None:
        barrier.wait()
        try:
            for i in range(CALLS):
                worker(t, i)
        except Exception as e:  # collected and asserted on below
            errors.append(e)

    threads = [threading.Thread(target=run, args=(t,)) for t in range(THREADS)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    return errors


def test_concurrent_lesson_starts_are_all_flushed(progress_store: ProgressStore) -> None:
    slot = InMemorySnapshotSlot()
    PersistenceAdapter(slot).attach("progress-store", progress_store, ProgressSnapshot)

    def worker(t: int, i: int) -> None:
        progress_store.start_lesson(UserId(f"u{t}"), C1, LessonId(f"l{i}"))

    errors = _hammer(worker)

    assert errors == []
    stored = ProgressSnapshot.model_validate(json.loads(slot.read("progress-store") or "{}"))
    assert len(stored.lesson_progress) == THREADS * CALLS
    assert progress_store.revision == THREADS * CALLS


def test_concurrent_favorites_and_reads(enrollment_store: EnrollmentStore) -> None:
    slot = InMemorySnapshotSlot()
    PersistenceAdapter(slot).attach("enrollment-store", enrollment_store, EnrollmentSnapshot)

    def worker(t: int, i: int) -> None:
        user = UserId(f"u{t}")
        if t % 2:
            enrollment_store.get_user_favorites(user)
            enrollment_store.get_recent_activity(user, 5)
        else:
            enrollment_store.add_to_favorites(user, CourseId(f"c{i}"))
            enrollment_store.rate_course(user, CourseId(f"c{i}"), 1 + i % 5)

    errors = _hammer(worker)

    assert errors == []
    stored = EnrollmentSnapshot.model_validate(json.loads(slot.read("enrollment-store") or "{}"))
    writers = THREADS // 2
    assert len(stored.favorites) == writers * CALLS
    assert len(stored.ratings) == writers * CALLS
