"""Wires the stores, catalog and services into one object per app."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from learnhub.core.config import Settings
from learnhub.models.snapshot import EnrollmentSnapshot, ProgressSnapshot
from learnhub.repos.course_repo import InMemoryCourseRepo, seed_sample_courses
from learnhub.services.backend import LearningBackend, SimulatedBackend
from learnhub.services.course_service import CourseAdminService
from learnhub.services.enrollment_store import EnrollmentStore
from learnhub.services.learning_service import LearningService
from learnhub.services.persistence import InMemorySnapshotSlot, PersistenceAdapter, SnapshotSlot
from learnhub.services.progress_store import ProgressStore
from learnhub.services.recommendations import CatalogRecommendationSource

logger = logging.getLogger(__name__)

ENROLLMENT_SNAPSHOT_KEY = "enrollment-store"
PROGRESS_SNAPSHOT_KEY = "progress-store"


@dataclass(slots=True)
class Platform:
    catalog: InMemoryCourseRepo
    enrollments: EnrollmentStore
    progress: ProgressStore
    learning: LearningService
    courses: CourseAdminService
    persistence: PersistenceAdapter
    slot: SnapshotSlot

    def close(self) -> None:
        self.persistence.detach_all()


def build_platform(
    settings: Settings,
    slot: SnapshotSlot | None = None,
    *,
    backend: LearningBackend | None = None,
    seed: bool = True,
) -> Platform:
    backend = backend or SimulatedBackend(settings.simulated_latency_ms)
    slot = slot or InMemorySnapshotSlot()

    catalog = InMemoryCourseRepo()
    if seed:
        seed_sample_courses(catalog)

    def popularity(course_id):
        return sum(1 for e in enrollments.get_course_enrollments(course_id) if e.is_active)

    enrollments = EnrollmentStore(
        backend,
        recommendations=CatalogRecommendationSource(catalog.list_all, popularity),
        activity_limit=settings.activity_limit,
    )
    progress = ProgressStore(backend)
    for course in catalog.list_all():
        progress.register_outline(course.outline())

    persistence = PersistenceAdapter(slot)
    persistence.attach(ENROLLMENT_SNAPSHOT_KEY, enrollments, EnrollmentSnapshot)
    persistence.attach(PROGRESS_SNAPSHOT_KEY, progress, ProgressSnapshot)

    platform = Platform(
        catalog=catalog,
        enrollments=enrollments,
        progress=progress,
        learning=LearningService(catalog, enrollments, progress),
        courses=CourseAdminService(
            catalog,
            enrollments,
            on_outline_change=progress.register_outline,
            on_outline_removed=progress.unregister_outline,
        ),
        persistence=persistence,
        slot=slot,
    )
    logger.info(
        "Platform ready courses=%d enrollments=%d",
        len(catalog.list_all()),
        len(enrollments.snapshot().enrollments),
    )
    return platform
