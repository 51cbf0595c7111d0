"""Coordinates the catalog, the enrollment ledger and progress tracking.

The stores stay independent of each other; anything that has to touch
more than one of them goes through here.
"""

from __future__ import annotations

import logging

from learnhub.models.course import Course
from learnhub.models.enrollment import Enrollment, EnrollmentSource, UserDashboardStats
from learnhub.models.ids import CourseId, LessonId, ModuleId, UserId
from learnhub.models.progress import LessonProgress
from learnhub.repos.course_repo import CourseRepo
from learnhub.services.course_service import CourseNotFoundError
from learnhub.services.enrollment_store import EnrollmentStore
from learnhub.services.progress_store import ProgressStore

logger = logging.getLogger(__name__)


class LearningService:
    def __init__(
        self,
        catalog: CourseRepo,
        enrollments: EnrollmentStore,
        progress: ProgressStore,
    ) -> None:
        self._catalog = catalog
        self.enrollments = enrollments
        self.progress = progress

    def resolve_course(self, ref: str) -> Course:
        course = self._catalog.get_by_id(CourseId(ref)) or self._catalog.get_by_slug(ref)
        if course is None:
            raise CourseNotFoundError(ref)
        return course

    async def enroll(
        self,
        user_id: UserId,
        course_ref: str,
        *,
        source: EnrollmentSource = "direct",
    ) -> Enrollment:
        course = self.resolve_course(course_ref)
        enrollment = await self.enrollments.enroll_in_course(user_id, course.id, source=source)
        self.progress.initialize_course(user_id, course.id, course.outline())
        return enrollment

    def complete_lesson(
        self,
        user_id: UserId,
        course_id: CourseId,
        lesson_id: LessonId,
        module_id: ModuleId | None = None,
    ) -> LessonProgress:
        record = self.progress.mark_lesson_complete(user_id, course_id, lesson_id, module_id)
        self.enrollments.record_activity(
            user_id, "lesson_completed", course_id=course_id, lesson_id=lesson_id
        )

        course = self.progress.get_course_progress(user_id, course_id)
        if course is None:
            return record

        enrollment = self.enrollments.update_enrollment_progress(
            user_id, course_id, course.progress_percentage
        )
        if enrollment is not None and course.status == "completed" and enrollment.status == "enrolled":
            self.enrollments.update_enrollment_status(enrollment.id, "completed")
            logger.info("Course completed user=%s course=%s", user_id, course_id)
        return record

    async def load_user_dashboard(self, user_id: UserId) -> UserDashboardStats:
        overall = self.progress.get_overall_progress(user_id)

        subjects: list[str] = []
        for e in self.enrollments.get_user_enrollments(user_id):
            course = self._catalog.get_by_id(e.course_id)
            if course is None:
                continue
            for tag in course.tags:
                if tag not in subjects:
                    subjects.append(tag)

        return await self.enrollments.load_user_dashboard(
            user_id,
            total_time_spent=overall.total_time_spent,
            favorite_subjects=tuple(subjects),
        )
