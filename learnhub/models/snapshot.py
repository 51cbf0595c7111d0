"""Versioned persistence schemas for the store snapshot slices.

Only the whitelisted fields of each store appear here.  Loading flags,
errors, recommendations and dashboard stats are deliberately absent, so
they come back as defaults after a reload.

Bump SNAPSHOT_VERSION when a record shape changes and teach
migrate_snapshot() how to lift the previous version.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from learnhub.models.enrollment import CourseFavorite, CourseRating, Enrollment, UserActivity
from learnhub.models.progress import CourseProgress, LessonProgress

SNAPSHOT_VERSION = 1


class SnapshotVersionError(ValueError):
    pass


class EnrollmentSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: int = SNAPSHOT_VERSION
    enrollments: list[Enrollment] = Field(default_factory=list)
    favorites: list[CourseFavorite] = Field(default_factory=list)
    ratings: list[CourseRating] = Field(default_factory=list)
    recent_activity: list[UserActivity] = Field(default_factory=list)


class ProgressSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: int = SNAPSHOT_VERSION
    course_progress: list[CourseProgress] = Field(default_factory=list)
    lesson_progress: list[LessonProgress] = Field(default_factory=list)
    last_sync_time: int | None = None


def migrate_snapshot(raw: dict[str, Any]) -> dict[str, Any]:
    """Lift a decoded snapshot to SNAPSHOT_VERSION.

    Blobs written before versioning carry no "version" key and are
    treated as version 1.  Versions newer than this build are refused.
    """
    version = raw.get("version", 1)
    if not isinstance(version, int) or version < 1:
        raise SnapshotVersionError(f"invalid snapshot version {version!r}")
    if version > SNAPSHOT_VERSION:
        raise SnapshotVersionError(
            f"snapshot version {version} is newer than supported {SNAPSHOT_VERSION}"
        )
    # No shape changes yet: v1 is current.
    return {**raw, "version": SNAPSHOT_VERSION}
