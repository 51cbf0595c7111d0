"""Admin course console: validated CRUD over the catalog plus course stats.

Input is validated with pydantic (CourseForm / CourseUpdate) before it
reaches the repo.  Stats and analytics are computed from the enrollment
ledger and ratings, not estimated.
"""

from __future__ import annotations

import datetime
import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, replace

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from learnhub.core.clock import Clock, utc_now_ts
from learnhub.models.course import Course, CourseModule, Difficulty, Lesson, LessonType
from learnhub.models.ids import CourseId, LessonId, ModuleId
from learnhub.models.progress import CourseOutline
from learnhub.repos.course_repo import CourseRepo
from learnhub.services.enrollment_store import EnrollmentStore

logger = logging.getLogger(__name__)

_SLUG_PATTERN = r"^[a-z0-9-]+$"


class CourseNotFoundError(LookupError):
    pass


class CourseValidationError(ValueError):
    pass


class CourseSlugConflictError(Exception):
    pass


class CourseHasActiveEnrollmentsError(Exception):
    pass


class CoursePublishError(Exception):
    pass


class LessonForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, pattern=_SLUG_PATTERN)
    type: LessonType = "text"
    duration_minutes: int = Field(default=0, ge=0)


class ModuleForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, pattern=_SLUG_PATTERN)
    lessons: list[LessonForm] = Field(default_factory=list)


class CourseForm(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=10)
    slug: str = Field(min_length=1, pattern=_SLUG_PATTERN)
    difficulty: Difficulty
    duration: int = Field(ge=1, description="hours")
    tags: list[str] = Field(min_length=1)
    author: str = Field(min_length=1)
    published: bool = False
    category: str = Field(min_length=1)
    prerequisites: list[str] = Field(default_factory=list)
    learning_objectives: list[str] = Field(min_length=1)
    modules: list[ModuleForm] = Field(default_factory=list)


class CourseUpdate(BaseModel):
    """Partial update: only the fields present are applied."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=10)
    slug: str | None = Field(default=None, min_length=1, pattern=_SLUG_PATTERN)
    difficulty: Difficulty | None = None
    duration: int | None = Field(default=None, ge=1)
    tags: list[str] | None = Field(default=None, min_length=1)
    author: str | None = Field(default=None, min_length=1)
    published: bool | None = None
    category: str | None = Field(default=None, min_length=1)
    prerequisites: list[str] | None = None
    learning_objectives: list[str] | None = Field(default=None, min_length=1)
    modules: list[ModuleForm] | None = None


def validate_course_data(data: object) -> CourseForm:
    """Parse untrusted input into a CourseForm or raise CourseValidationError."""
    if isinstance(data, CourseForm):
        return data
    try:
        return CourseForm.model_validate(data)
    except ValidationError as e:
        raise CourseValidationError(f"Invalid course data: {e}") from e


@dataclass(frozen=True, slots=True)
class CourseStats:
    total_enrollments: int
    active_enrollments: int
    completion_rate: float  # 0-1
    average_rating: float
    total_ratings: int
    total_reviews: int


@dataclass(frozen=True, slots=True)
class MonthlyCount:
    month: str  # YYYY-MM
    count: int


@dataclass(frozen=True, slots=True)
class CourseAnalytics:
    total_students: int
    completed_students: int
    in_progress_students: int
    dropped_students: int
    completion_rate: float  # percent
    dropout_rate: float  # percent
    average_rating: float
    average_time_to_complete: float | None  # hours
    monthly_enrollments: tuple[MonthlyCount, ...]


def _build_modules(course_id: CourseId, modules: list[ModuleForm]) -> tuple[CourseModule, ...]:
    return tuple(
        CourseModule(
            id=ModuleId(f"{course_id}-{m.slug}"),
            slug=m.slug,
            title=m.title,
            position=mi,
            lessons=tuple(
                Lesson(
                    id=LessonId(f"{course_id}-{m.slug}-{lesson.slug}"),
                    slug=lesson.slug,
                    title=lesson.title,
                    position=li,
                    type=lesson.type,
                    duration_minutes=lesson.duration_minutes,
                )
                for li, lesson in enumerate(m.lessons, start=1)
            ),
        )
        for mi, m in enumerate(modules, start=1)
    )


def _months_back(now: int, count: int) -> list[str]:
    d = datetime.datetime.fromtimestamp(now, datetime.UTC).date().replace(day=1)
    months = []
    for _ in range(count):
        months.append(d.strftime("%Y-%m"))
        d = (d - datetime.timedelta(days=1)).replace(day=1)
    return list(reversed(months))


class CourseAdminService:
    def __init__(
        self,
        repo: CourseRepo,
        enrollments: EnrollmentStore,
        *,
        on_outline_change: Callable[[CourseOutline], None] | None = None,
        on_outline_removed: Callable[[CourseId], None] | None = None,
        clock: Clock = utc_now_ts,
    ) -> None:
        self._repo = repo
        self._enrollments = enrollments
        self._on_outline_change = on_outline_change
        self._on_outline_removed = on_outline_removed
        self._clock = clock

    def list_courses(self, *, published_only: bool = False) -> list[Course]:
        courses = self._repo.list_all()
        if published_only:
            courses = [c for c in courses if c.published]
        return sorted(courses, key=lambda c: c.created_at)

    def get_course(self, course_id: CourseId) -> Course:
        course = self._repo.get_by_id(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    def find_course(self, ref: str) -> Course | None:
        """Look a course up by id, falling back to slug."""
        return self._repo.get_by_id(CourseId(ref)) or self._repo.get_by_slug(ref)

    def is_slug_unique(self, slug: str, exclude_id: CourseId | None = None) -> bool:
        existing = self._repo.get_by_slug(slug)
        return existing is None or existing.id == exclude_id

    def create_course(self, data: object) -> Course:
        form = validate_course_data(data)
        if not self.is_slug_unique(form.slug):
            logger.warning("Rejected duplicate course slug=%s", form.slug)
            raise CourseSlugConflictError(form.slug)

        now = self._clock()
        course_id = Course.new_id()
        course = Course(
            id=course_id,
            slug=form.slug,
            title=form.title,
            description=form.description,
            difficulty=form.difficulty,
            duration_hours=form.duration,
            author=form.author,
            category=form.category,
            created_at=now,
            updated_at=now,
            tags=tuple(form.tags),
            prerequisites=tuple(form.prerequisites),
            learning_objectives=tuple(form.learning_objectives),
            published=form.published,
            modules=_build_modules(course_id, form.modules),
        )
        self._repo.add(course)
        self._publish_outline(course)
        logger.info("Created course id=%s slug=%s", course.id, course.slug)
        return course

    def update_course(self, course_id: CourseId, data: CourseUpdate | dict) -> Course:
        if not isinstance(data, CourseUpdate):
            try:
                data = CourseUpdate.model_validate(data)
            except ValidationError as e:
                raise CourseValidationError(f"Invalid course data: {e}") from e

        course = self.get_course(course_id)
        if data.slug is not None and not self.is_slug_unique(data.slug, exclude_id=course_id):
            logger.warning("Rejected duplicate course slug=%s on update", data.slug)
            raise CourseSlugConflictError(data.slug)

        changes: dict[str, object] = {}
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        for name in ("title", "description", "slug", "difficulty", "author", "category", "published"):
            if name in fields:
                changes[name] = fields[name]
        if "duration" in fields:
            changes["duration_hours"] = fields["duration"]
        for name in ("tags", "prerequisites", "learning_objectives"):
            if name in fields:
                changes[name] = tuple(fields[name])
        if data.modules is not None:
            changes["modules"] = _build_modules(course.id, data.modules)

        updated = replace(course, updated_at=self._clock(), **changes)  # type: ignore[arg-type]
        self._repo.replace(updated)
        if "modules" in changes:
            self._publish_outline(updated)
        logger.info("Updated course id=%s fields=%s", course_id, sorted(changes))
        return updated

    def delete_course(self, course_id: CourseId) -> None:
        course = self.get_course(course_id)
        active = [
            e
            for e in self._enrollments.get_course_enrollments(course.id)
            if e.status in ("pending", "enrolled")
        ]
        if active:
            logger.warning(
                "Refused to delete course id=%s with %d active enrollments", course_id, len(active)
            )
            raise CourseHasActiveEnrollmentsError(course_id)
        self._repo.remove(course.id)
        if self._on_outline_removed is not None:
            self._on_outline_removed(course.id)
        logger.info("Deleted course id=%s", course_id)

    def set_published(self, course_id: CourseId, published: bool) -> Course:
        course = self.get_course(course_id)
        if published and not course.modules:
            raise CoursePublishError("Course must have at least one module to publish")
        updated = replace(course, published=published, updated_at=self._clock())
        self._repo.replace(updated)
        logger.info("Course id=%s published=%s", course_id, published)
        return updated

    def course_stats(self, course_id: CourseId) -> CourseStats:
        course = self.get_course(course_id)
        enrollments = self._enrollments.get_course_enrollments(course.id)
        summary = self._enrollments.summarize_ratings(course.id)
        total = len(enrollments)
        completed = sum(1 for e in enrollments if e.status == "completed")
        return CourseStats(
            total_enrollments=total,
            active_enrollments=sum(1 for e in enrollments if e.status == "enrolled"),
            completion_rate=round(completed / total, 4) if total else 0.0,
            average_rating=summary.average,
            total_ratings=summary.count,
            total_reviews=sum(1 for r in self._enrollments.get_course_ratings(course.id) if r.review),
        )

    def course_analytics(self, course_id: CourseId, *, months: int = 6) -> CourseAnalytics:
        course = self.get_course(course_id)
        enrollments = self._enrollments.get_course_enrollments(course.id)
        students = {e.user_id for e in enrollments}
        completed = [e for e in enrollments if e.status == "completed"]
        dropped = [e for e in enrollments if e.status == "dropped"]
        total = len(enrollments)

        durations = [
            (e.completed_at - e.enrolled_at) / 3600 for e in completed if e.completed_at is not None
        ]

        by_month = Counter(
            datetime.datetime.fromtimestamp(e.enrolled_at, datetime.UTC).strftime("%Y-%m")
            for e in enrollments
        )
        window = _months_back(self._clock(), months)

        return CourseAnalytics(
            total_students=len(students),
            completed_students=len({e.user_id for e in completed}),
            in_progress_students=len({e.user_id for e in enrollments if e.status == "enrolled"}),
            dropped_students=len({e.user_id for e in dropped}),
            completion_rate=round(len(completed) / total * 100, 2) if total else 0.0,
            dropout_rate=round(len(dropped) / total * 100, 2) if total else 0.0,
            average_rating=self._enrollments.summarize_ratings(course.id).average,
            average_time_to_complete=round(sum(durations) / len(durations), 2) if durations else None,
            monthly_enrollments=tuple(MonthlyCount(month=m, count=by_month.get(m, 0)) for m in window),
        )

    def _publish_outline(self, course: Course) -> None:
        if self._on_outline_change is not None:
            self._on_outline_change(course.outline())
