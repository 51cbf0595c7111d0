"""Lesson progress tracking and course rollups.

Lesson records are keyed per (user, lesson); course rollups per
(user, course).  A course rollup ("shell") must exist before lesson
completions roll up into it: LearningService.enroll() creates it from
the catalog outline.  Completions for a course without a shell are still
recorded at lesson level; the rollup is skipped.

Ids are not checked against the catalog.  A lesson the outline does not
know is recorded but never counted towards the course total.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from learnhub.core.clock import Clock, utc_now_ts
from learnhub.models.ids import CourseId, LessonId, ModuleId, UserId
from learnhub.models.progress import (
    CourseOutline,
    CourseProgress,
    LessonProgress,
    ModuleProgress,
    OverallProgress,
    ProgressStatus,
    percentage,
)
from learnhub.models.snapshot import ProgressSnapshot
from learnhub.services.backend import LearningBackend
from learnhub.services.state import ObservableStore, synchronized

logger = logging.getLogger(__name__)


class ProgressStore(ObservableStore):
    store_name = "progress"

    def __init__(self, backend: LearningBackend, *, clock: Clock = utc_now_ts) -> None:
        super().__init__()
        self._backend = backend
        self._clock = clock
        self._lessons: dict[UserId, dict[LessonId, LessonProgress]] = {}
        self._courses: dict[UserId, dict[CourseId, CourseProgress]] = {}
        self._outlines: dict[CourseId, CourseOutline] = {}
        self.last_sync_time: int | None = None

    # ------------------------------------------------------------------
    # Outlines
    # ------------------------------------------------------------------

    @synchronized
    def register_outline(self, outline: CourseOutline) -> None:
        """Tell the store which lessons make up a course.

        Outlines are catalog data, not user state, and are not persisted.
        Replacing the outline of a course refreshes every existing shell
        for it, so totals and module rollups follow the new lesson set.
        """
        previous = self._outlines.get(outline.course_id)
        self._outlines[outline.course_id] = outline
        if previous is None or previous == outline:
            return

        refreshed = 0
        for user_id, courses in self._courses.items():
            course = courses.get(outline.course_id)
            if course is None:
                continue
            courses[outline.course_id] = replace(
                course,
                total_lessons=outline.total_lessons,
                modules=self._module_shells(outline, course.modules),
            )
            self._recompute_course(user_id, outline.course_id, touch=False)
            refreshed += 1

        if refreshed:
            logger.info(
                "outline changed course=%s total_lessons=%d shells_refreshed=%d",
                outline.course_id,
                outline.total_lessons,
                refreshed,
            )
            self._commit("register_outline")

    @synchronized
    def unregister_outline(self, course_id: CourseId) -> None:
        """Forget a course's outline (the course left the catalog)."""
        self._outlines.pop(course_id, None)

    def outline_for(self, course_id: CourseId) -> CourseOutline | None:
        return self._outlines.get(course_id)

    @staticmethod
    def _module_shells(
        outline: CourseOutline, current: tuple[ModuleProgress, ...] = ()
    ) -> tuple[ModuleProgress, ...]:
        # Keep last_accessed_at for modules that survive an outline change
        seen = {m.module_id: m for m in current}
        return tuple(
            replace(seen[m.module_id], total_lessons=len(m.lesson_ids))
            if m.module_id in seen
            else ModuleProgress(module_id=m.module_id, total_lessons=len(m.lesson_ids))
            for m in outline.modules
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    @synchronized
    def initialize_course(
        self,
        user_id: UserId,
        course_id: CourseId,
        outline: CourseOutline | None = None,
        *,
        total_lessons: int | None = None,
    ) -> CourseProgress:
        """Create (or refresh) the course shell lesson completions roll up into."""
        if outline is not None:
            self.register_outline(outline)
        outline = self._outlines.get(course_id)
        courses = self._courses.setdefault(user_id, {})
        existing = courses.get(course_id)

        if total_lessons is None:
            if outline is not None:
                total_lessons = outline.total_lessons
            else:
                total_lessons = existing.total_lessons if existing else 0
        if total_lessons < 0:
            raise ValueError("total_lessons must be non-negative")

        if outline is not None:
            modules = self._module_shells(outline, existing.modules if existing else ())
        else:
            modules = existing.modules if existing else ()

        if existing is None:
            courses[course_id] = CourseProgress(
                user_id=user_id,
                course_id=course_id,
                total_lessons=total_lessons,
                enrolled_at=self._clock(),
                modules=modules,
            )
            logger.info(
                "course progress initialized user=%s course=%s total_lessons=%d",
                user_id,
                course_id,
                total_lessons,
            )
        else:
            courses[course_id] = replace(existing, total_lessons=total_lessons, modules=modules)

        self._recompute_course(user_id, course_id, touch=False)
        self._commit("initialize_course")
        return self._courses[user_id][course_id]

    @synchronized
    def start_lesson(
        self,
        user_id: UserId,
        course_id: CourseId,
        lesson_id: LessonId,
        module_id: ModuleId | None = None,
    ) -> LessonProgress:
        """Open a lesson: in-progress unless it is already completed."""
        now = self._clock()
        lessons = self._lessons.setdefault(user_id, {})
        existing = lessons.get(lesson_id)

        if existing is None:
            record = LessonProgress(
                user_id=user_id,
                lesson_id=lesson_id,
                course_id=course_id,
                module_id=self._resolve_module(course_id, lesson_id, module_id, None),
                status="in-progress",
                started_at=now,
            )
        elif existing.status == "completed":
            record = existing
        else:
            record = replace(
                existing,
                status="in-progress",
                started_at=existing.started_at or now,
                module_id=self._resolve_module(course_id, lesson_id, module_id, existing),
            )
        lessons[lesson_id] = record

        course = self._courses.get(user_id, {}).get(course_id)
        if course is not None:
            status: ProgressStatus = "in-progress" if course.status == "not-started" else course.status
            self._courses[user_id][course_id] = replace(
                course,
                status=status,
                current_lesson_id=lesson_id,
                last_accessed_at=now,
            )

        self._commit("start_lesson")
        return record

    @synchronized
    def mark_lesson_complete(
        self,
        user_id: UserId,
        course_id: CourseId,
        lesson_id: LessonId,
        module_id: ModuleId | None = None,
    ) -> LessonProgress:
        """Mark a lesson completed; calling it again only refreshes completed_at."""
        now = self._clock()
        lessons = self._lessons.setdefault(user_id, {})
        existing = lessons.get(lesson_id)

        record = LessonProgress(
            user_id=user_id,
            lesson_id=lesson_id,
            course_id=course_id,
            module_id=self._resolve_module(course_id, lesson_id, module_id, existing),
            status="completed",
            started_at=existing.started_at if existing and existing.started_at else now,
            completed_at=now,
            time_spent=existing.time_spent if existing else 0,
            score=existing.score if existing else None,
            attempts=existing.attempts if existing else None,
        )
        lessons[lesson_id] = record

        course = self._recompute_course(user_id, course_id)
        self._commit("mark_lesson_complete")
        logger.info(
            "lesson completed user=%s course=%s lesson=%s percent=%s",
            user_id,
            course_id,
            lesson_id,
            course.progress_percentage if course else "-",
        )
        return record

    @synchronized
    def update_time_spent(
        self, user_id: UserId, lesson_id: LessonId, delta: int
    ) -> LessonProgress | None:
        """Add `delta` seconds to a lesson's time.  No-op without a record."""
        if delta < 0:
            raise ValueError(f"time delta must be non-negative (got {delta})")

        existing = self._lessons.get(user_id, {}).get(lesson_id)
        if existing is None:
            logger.debug(
                "time update dropped, lesson not started user=%s lesson=%s",
                user_id,
                lesson_id,
            )
            return None

        record = replace(existing, time_spent=existing.time_spent + delta)
        self._lessons[user_id][lesson_id] = record
        self._recompute_course(user_id, existing.course_id)
        self._commit("update_time_spent")
        return record

    @synchronized
    def clear_progress(self) -> None:
        self._lessons.clear()
        self._courses.clear()
        self.last_sync_time = None
        self.ops.clear()
        self._commit("clear_progress")

    async def sync_progress(self) -> None:
        async with self.ops.track("sync_progress"):
            await self._backend.sync_progress()
            with self._lock:
                self.last_sync_time = self._clock()
                self._commit("sync_progress")

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def _resolve_module(
        self,
        course_id: CourseId,
        lesson_id: LessonId,
        explicit: ModuleId | None,
        existing: LessonProgress | None,
    ) -> ModuleId | None:
        if explicit is not None:
            return explicit
        if existing is not None and existing.module_id is not None:
            return existing.module_id
        outline = self._outlines.get(course_id)
        return outline.module_for(lesson_id) if outline else None

    def _recompute_course(
        self, user_id: UserId, course_id: CourseId, *, touch: bool = True
    ) -> CourseProgress | None:
        course = self._courses.get(user_id, {}).get(course_id)
        if course is None:
            return None

        records = [r for r in self._lessons.get(user_id, {}).values() if r.course_id == course_id]
        outline = self._outlines.get(course_id)
        if outline is not None:
            known = outline.lesson_ids()
            counted = [r for r in records if r.lesson_id in known]
        else:
            counted = records

        total = course.total_lessons
        completed = min(sum(1 for r in counted if r.status == "completed"), total)
        is_complete = total > 0 and completed == total

        if is_complete:
            status: ProgressStatus = "completed"
            completed_at = course.completed_at or self._clock()
        elif completed > 0 or any(r.status == "in-progress" for r in records):
            status = "in-progress"
            completed_at = None
        else:
            status = course.status if course.status != "completed" else "in-progress"
            completed_at = None

        now = self._clock()
        modules = tuple(
            self._rollup_module(m, counted, now if touch else m.last_accessed_at)
            for m in course.modules
        )

        updated = replace(
            course,
            completed_lessons=completed,
            progress_percentage=percentage(completed, total),
            status=status,
            completed_at=completed_at,
            time_spent=sum(r.time_spent for r in records),
            last_accessed_at=now if touch else course.last_accessed_at,
            modules=modules,
        )
        self._courses[user_id][course_id] = updated
        return updated

    @staticmethod
    def _rollup_module(
        module: ModuleProgress, records: list[LessonProgress], last_accessed_at: int | None
    ) -> ModuleProgress:
        mine = [r for r in records if r.module_id == module.module_id]
        completed = min(sum(1 for r in mine if r.status == "completed"), module.total_lessons)
        return replace(
            module,
            completed_lessons=completed,
            progress_percentage=percentage(completed, module.total_lessons),
            time_spent=sum(r.time_spent for r in mine),
            last_accessed_at=last_accessed_at,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_lesson_progress(self, user_id: UserId, lesson_id: LessonId) -> LessonProgress | None:
        return self._lessons.get(user_id, {}).get(lesson_id)

    def get_course_progress(self, user_id: UserId, course_id: CourseId) -> CourseProgress | None:
        return self._courses.get(user_id, {}).get(course_id)

    @synchronized
    def get_user_course_progress(self, user_id: UserId) -> list[CourseProgress]:
        return list(self._courses.get(user_id, {}).values())

    @synchronized
    def get_course_lessons(self, user_id: UserId, course_id: CourseId) -> list[LessonProgress]:
        return [r for r in self._lessons.get(user_id, {}).values() if r.course_id == course_id]

    def get_overall_progress(self, user_id: UserId) -> OverallProgress:
        courses = self.get_user_course_progress(user_id)
        return OverallProgress(
            total_courses=len(courses),
            completed_courses=sum(1 for c in courses if c.status == "completed"),
            total_time_spent=sum(c.time_spent for c in courses),
        )

    # ------------------------------------------------------------------
    # Persistence slice
    # ------------------------------------------------------------------

    @synchronized
    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            course_progress=[c for per_user in self._courses.values() for c in per_user.values()],
            lesson_progress=[r for per_user in self._lessons.values() for r in per_user.values()],
            last_sync_time=self.last_sync_time,
        )

    @synchronized
    def restore(self, snapshot: ProgressSnapshot) -> None:
        """Adopt a snapshot as the authoritative state.  Does not notify listeners."""
        self._lessons = {}
        for record in snapshot.lesson_progress:
            self._lessons.setdefault(record.user_id, {})[record.lesson_id] = record
        self._courses = {}
        for course in snapshot.course_progress:
            self._courses.setdefault(course.user_id, {})[course.course_id] = course
        self.last_sync_time = snapshot.last_sync_time
        self.ops.clear()
