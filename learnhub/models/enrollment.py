from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import uuid4

from learnhub.models.ids import CourseId, EnrollmentId, LessonId, RatingId, UserId

EnrollmentStatus = Literal["pending", "enrolled", "completed", "dropped"]
EnrollmentSource = Literal["direct", "recommendation", "requirement"]
ActivityType = Literal[
    "lesson_completed",
    "course_enrolled",
    "course_completed",
    "rating_given",
    "certificate_earned",
]
RecommendationReason = Literal[
    "similar_content",
    "skill_progression",
    "popular_choice",
    "instructor_match",
    "completion_pattern",
]

# pending -> enrolled -> {completed, dropped}; completed and dropped are terminal
ENROLLMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"enrolled", "dropped"}),
    "enrolled": frozenset({"completed", "dropped"}),
    "completed": frozenset(),
    "dropped": frozenset(),
}


@dataclass(frozen=True, slots=True)
class Enrollment:
    id: EnrollmentId
    user_id: UserId
    course_id: CourseId
    enrolled_at: int
    status: EnrollmentStatus = "enrolled"
    completed_at: int | None = None
    dropped_at: int | None = None
    progress: int = 0  # 0-100
    last_accessed_at: int | None = None
    certificate_issued: bool = False
    enrollment_source: EnrollmentSource = "direct"

    @property
    def is_active(self) -> bool:
        return self.status != "dropped"

    @staticmethod
    def new(
        *,
        user_id: UserId,
        course_id: CourseId,
        enrolled_at: int,
        source: EnrollmentSource = "direct",
    ) -> Enrollment:
        return Enrollment(
            id=EnrollmentId(str(uuid4())),
            user_id=user_id,
            course_id=course_id,
            enrolled_at=enrolled_at,
            enrollment_source=source,
        )


@dataclass(frozen=True, slots=True)
class CourseFavorite:
    user_id: UserId
    course_id: CourseId
    favorited_at: int
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class CourseRating:
    id: RatingId
    user_id: UserId
    course_id: CourseId
    rating: int  # 1-5 stars
    rated_at: int
    review: str | None = None
    helpful: int = 0
    is_verified_purchase: bool = False


@dataclass(frozen=True, slots=True)
class UserActivity:
    id: str
    user_id: UserId
    type: ActivityType
    timestamp: int
    course_id: CourseId | None = None
    lesson_id: LessonId | None = None
    metadata: dict[str, Any] | None = None

    @staticmethod
    def new(
        *,
        user_id: UserId,
        type: ActivityType,
        timestamp: int,
        course_id: CourseId | None = None,
        lesson_id: LessonId | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UserActivity:
        return UserActivity(
            id=f"activity-{uuid4()}",
            user_id=user_id,
            type=type,
            timestamp=timestamp,
            course_id=course_id,
            lesson_id=lesson_id,
            metadata=metadata,
        )


@dataclass(frozen=True, slots=True)
class CourseRecommendation:
    """Ephemeral suggestion; never persisted."""

    course_id: CourseId
    score: float  # 0-1 confidence
    reason: RecommendationReason
    explanation: str

    def __post_init__(self) -> None:
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"recommendation score must be in [0, 1] (got {self.score})")


@dataclass(frozen=True, slots=True)
class RatingSummary:
    course_id: CourseId
    count: int
    average: float
    histogram: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UserDashboardStats:
    user_id: UserId
    total_courses_enrolled: int
    courses_completed: int
    courses_in_progress: int
    total_time_spent: int
    certificates_earned: int
    current_streak: int  # days
    longest_streak: int  # days
    favorite_subjects: tuple[str, ...] = ()
    recent_activity: tuple[UserActivity, ...] = ()
