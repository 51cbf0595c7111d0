from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from learnhub.models.ids import CourseId, LessonId, ModuleId, UserId

ProgressStatus = Literal["not-started", "in-progress", "completed"]


def percentage(completed: int, total: int) -> int:
    """Completion percentage, rounded half-up to the nearest integer."""
    if total <= 0:
        return 0
    # Half-up: round() would give 12 for 12.5
    return int(completed * 100 / total + 0.5)


@dataclass(frozen=True, slots=True)
class LessonProgress:
    """One record per (user, lesson).

    completed_at is set iff status == "completed"; time_spent (seconds)
    only ever grows.
    """

    user_id: UserId
    lesson_id: LessonId
    course_id: CourseId
    module_id: ModuleId | None = None
    status: ProgressStatus = "not-started"
    started_at: int | None = None
    completed_at: int | None = None
    time_spent: int = 0
    score: float | None = None  # quiz lessons only
    attempts: int | None = None


@dataclass(frozen=True, slots=True)
class ModuleProgress:
    module_id: ModuleId
    total_lessons: int
    completed_lessons: int = 0
    progress_percentage: int = 0
    time_spent: int = 0
    last_accessed_at: int | None = None


@dataclass(frozen=True, slots=True)
class CourseProgress:
    """Per (user, course) rollup, maintained by ProgressStore.

    progress_percentage is always derived from the two counters; nothing
    writes it independently.
    """

    user_id: UserId
    course_id: CourseId
    total_lessons: int
    enrolled_at: int
    status: ProgressStatus = "not-started"
    completed_lessons: int = 0
    progress_percentage: int = 0
    time_spent: int = 0
    last_accessed_at: int | None = None
    completed_at: int | None = None
    modules: tuple[ModuleProgress, ...] = ()
    current_lesson_id: LessonId | None = None


@dataclass(frozen=True, slots=True)
class ModuleOutline:
    module_id: ModuleId
    lesson_ids: tuple[LessonId, ...]


@dataclass(frozen=True, slots=True)
class CourseOutline:
    """Lesson layout of a course, as published by the catalog."""

    course_id: CourseId
    modules: tuple[ModuleOutline, ...] = ()

    @property
    def total_lessons(self) -> int:
        return sum(len(m.lesson_ids) for m in self.modules)

    def module_for(self, lesson_id: LessonId) -> ModuleId | None:
        for module in self.modules:
            if lesson_id in module.lesson_ids:
                return module.module_id
        return None

    def lesson_ids(self) -> frozenset[LessonId]:
        return frozenset(lid for m in self.modules for lid in m.lesson_ids)


@dataclass(frozen=True, slots=True)
class OverallProgress:
    total_courses: int
    completed_courses: int
    total_time_spent: int
