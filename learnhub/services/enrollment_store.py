"""Enrollment ledger, favorites, ratings and the activity feed.

Enrollment lifecycle:

    pending --> enrolled --> completed
       |            |
       +------------+--> dropped

completed and dropped are terminal.  A user holds at most one active
(non-dropped) enrollment per course; enrolling again after dropping
opens a new record.

Favorites and ratings are keyed by (user, course) through nested dicts.
Writing either a second time replaces the first (last write wins).

Ownership: operations addressing a record by id take an optional
acting_user.  When given, it must own the record.  Callers acting with
admin rights pass None.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta
from typing import Any
from uuid import uuid4

from learnhub.core.clock import Clock, utc_day, utc_now_ts
from learnhub.models.enrollment import (
    ENROLLMENT_TRANSITIONS,
    ActivityType,
    CourseFavorite,
    CourseRating,
    CourseRecommendation,
    Enrollment,
    EnrollmentSource,
    EnrollmentStatus,
    RatingSummary,
    UserActivity,
    UserDashboardStats,
)
from learnhub.models.ids import CourseId, EnrollmentId, LessonId, RatingId, UserId
from learnhub.models.snapshot import EnrollmentSnapshot
from learnhub.services.activity_feed import ActivityFeed
from learnhub.services.backend import LearningBackend
from learnhub.services.recommendations import RecommendationSource, StaticRecommendationSource
from learnhub.services.state import ObservableStore, synchronized

logger = logging.getLogger(__name__)

DASHBOARD_ACTIVITY_COUNT = 10


class AlreadyEnrolledError(Exception):
    pass


class EnrollmentNotFoundError(LookupError):
    pass


class InvalidTransitionError(Exception):
    pass


class RatingNotFoundError(LookupError):
    pass


class RatingValidationError(ValueError):
    pass


class OwnershipError(PermissionError):
    pass


class EnrollmentStore(ObservableStore):
    store_name = "enrollment"

    def __init__(
        self,
        backend: LearningBackend,
        *,
        recommendations: RecommendationSource | None = None,
        activity_limit: int = 100,
        clock: Clock = utc_now_ts,
    ) -> None:
        super().__init__()
        self._backend = backend
        self._source = recommendations or StaticRecommendationSource()
        self._clock = clock
        self._enrollments: dict[EnrollmentId, Enrollment] = {}
        self._favorites: dict[UserId, dict[CourseId, CourseFavorite]] = {}
        self._ratings: dict[UserId, dict[CourseId, CourseRating]] = {}
        self.activity = ActivityFeed(activity_limit)
        self.recommendations: list[CourseRecommendation] = []
        self.user_stats: UserDashboardStats | None = None

    # ------------------------------------------------------------------
    # Enrollments
    # ------------------------------------------------------------------

    async def enroll_in_course(
        self,
        user_id: UserId,
        course_id: CourseId,
        *,
        source: EnrollmentSource = "direct",
    ) -> Enrollment:
        if self.is_enrolled(user_id, course_id):
            logger.warning("Duplicate enrollment rejected user=%s course=%s", user_id, course_id)
            raise AlreadyEnrolledError(f"{user_id} is already enrolled in {course_id}")

        async with self.ops.track("enroll"):
            await self._backend.enroll(user_id, course_id)

            with self._lock:
                # Re-check: a concurrent enroll may have resolved while we awaited
                if self.is_enrolled(user_id, course_id):
                    raise AlreadyEnrolledError(f"{user_id} is already enrolled in {course_id}")

                now = self._clock()
                enrollment = Enrollment.new(
                    user_id=user_id, course_id=course_id, enrolled_at=now, source=source
                )
                self._enrollments[enrollment.id] = enrollment
                self.activity.record(
                    user_id=user_id, type="course_enrolled", course_id=course_id, timestamp=now
                )
                self._commit("enroll_in_course")

        logger.info(
            "Enrolled user=%s course=%s enrollment=%s source=%s",
            user_id,
            course_id,
            enrollment.id,
            source,
        )
        return enrollment

    @synchronized
    def update_enrollment_status(
        self,
        enrollment_id: EnrollmentId,
        status: EnrollmentStatus,
        *,
        acting_user: UserId | None = None,
    ) -> Enrollment:
        enrollment = self._enrollments.get(enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError(enrollment_id)
        self._check_owner(enrollment.user_id, acting_user, "enrollment", enrollment_id)

        if status not in ENROLLMENT_TRANSITIONS.get(enrollment.status, frozenset()):
            logger.warning(
                "Rejected enrollment transition enrollment=%s %s -> %s",
                enrollment_id,
                enrollment.status,
                status,
            )
            raise InvalidTransitionError(f"cannot move enrollment from {enrollment.status} to {status}")

        now = self._clock()
        if status == "completed":
            updated = replace(
                enrollment,
                status=status,
                completed_at=now,
                progress=100,
                certificate_issued=True,
            )
        elif status == "dropped":
            updated = replace(enrollment, status=status, dropped_at=now)
        else:
            updated = replace(enrollment, status=status)
        self._enrollments[enrollment_id] = updated

        if status == "completed":
            self.activity.record(
                user_id=enrollment.user_id,
                type="course_completed",
                course_id=enrollment.course_id,
                timestamp=now,
            )
        self._commit("update_enrollment_status")
        logger.info(
            "Enrollment status changed enrollment=%s %s -> %s",
            enrollment_id,
            enrollment.status,
            status,
        )
        return updated

    @synchronized
    def update_enrollment_progress(
        self, user_id: UserId, course_id: CourseId, progress: int
    ) -> Enrollment | None:
        """Mirror a course completion percentage onto the active enrollment."""
        enrollment = self.get_active_enrollment(user_id, course_id)
        if enrollment is None:
            return None
        updated = replace(
            enrollment,
            progress=max(0, min(100, progress)),
            last_accessed_at=self._clock(),
        )
        self._enrollments[enrollment.id] = updated
        self._commit("update_enrollment_progress")
        return updated

    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        return self._enrollments.get(enrollment_id)

    @synchronized
    def get_user_enrollments(self, user_id: UserId) -> list[Enrollment]:
        return [e for e in self._enrollments.values() if e.user_id == user_id]

    @synchronized
    def get_course_enrollments(self, course_id: CourseId) -> list[Enrollment]:
        return [e for e in self._enrollments.values() if e.course_id == course_id]

    @synchronized
    def get_active_enrollment(self, user_id: UserId, course_id: CourseId) -> Enrollment | None:
        for e in self._enrollments.values():
            if e.user_id == user_id and e.course_id == course_id and e.is_active:
                return e
        return None

    def is_enrolled(self, user_id: UserId, course_id: CourseId) -> bool:
        return self.get_active_enrollment(user_id, course_id) is not None

    @synchronized
    def get_enrollment_status(self, user_id: UserId, course_id: CourseId) -> EnrollmentStatus | None:
        """Status of the most recent enrollment for the pair, or None."""
        matches = [
            e for e in self._enrollments.values() if e.user_id == user_id and e.course_id == course_id
        ]
        if not matches:
            return None
        # dict preserves insertion order, so the last match is the newest record
        return matches[-1].status

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    @synchronized
    def add_to_favorites(
        self, user_id: UserId, course_id: CourseId, notes: str | None = None
    ) -> CourseFavorite:
        favorite = CourseFavorite(
            user_id=user_id, course_id=course_id, favorited_at=self._clock(), notes=notes
        )
        self._favorites.setdefault(user_id, {})[course_id] = favorite
        self._commit("add_to_favorites")
        return favorite

    @synchronized
    def remove_from_favorites(self, user_id: UserId, course_id: CourseId) -> None:
        per_user = self._favorites.get(user_id)
        if not per_user or course_id not in per_user:
            return
        del per_user[course_id]
        if not per_user:
            del self._favorites[user_id]
        self._commit("remove_from_favorites")

    def is_favorited(self, user_id: UserId, course_id: CourseId) -> bool:
        return course_id in self._favorites.get(user_id, {})

    @synchronized
    def get_user_favorites(self, user_id: UserId) -> list[CourseFavorite]:
        return list(self._favorites.get(user_id, {}).values())

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_rating(rating: int) -> None:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise RatingValidationError(f"rating must be an integer from 1 to 5 (got {rating!r})")

    @synchronized
    def rate_course(
        self,
        user_id: UserId,
        course_id: CourseId,
        rating: int,
        review: str | None = None,
    ) -> CourseRating:
        self._validate_rating(rating)
        now = self._clock()
        per_user = self._ratings.setdefault(user_id, {})
        previous = per_user.get(course_id)

        # Active covers completed: only a dropped enrollment loses the badge
        verified = self.is_enrolled(user_id, course_id)
        record = CourseRating(
            id=previous.id if previous else RatingId(str(uuid4())),
            user_id=user_id,
            course_id=course_id,
            rating=rating,
            review=review,
            rated_at=now,
            helpful=previous.helpful if previous else 0,
            is_verified_purchase=verified,
        )
        per_user[course_id] = record
        self.activity.record(
            user_id=user_id,
            type="rating_given",
            course_id=course_id,
            timestamp=now,
            metadata={"rating": rating, "review": review},
        )
        self._commit("rate_course")
        logger.info("Course rated user=%s course=%s rating=%d", user_id, course_id, rating)
        return record

    @synchronized
    def get_rating(self, rating_id: RatingId) -> CourseRating | None:
        for per_user in self._ratings.values():
            for record in per_user.values():
                if record.id == rating_id:
                    return record
        return None

    @synchronized
    def update_rating(
        self,
        rating_id: RatingId,
        rating: int,
        review: str | None = None,
        *,
        acting_user: UserId | None = None,
    ) -> CourseRating:
        self._validate_rating(rating)
        existing = self.get_rating(rating_id)
        if existing is None:
            raise RatingNotFoundError(rating_id)
        self._check_owner(existing.user_id, acting_user, "rating", rating_id)

        updated = replace(existing, rating=rating, review=review, rated_at=self._clock())
        self._ratings[existing.user_id][existing.course_id] = updated
        self._commit("update_rating")
        return updated

    @synchronized
    def delete_rating(self, rating_id: RatingId, *, acting_user: UserId | None = None) -> None:
        existing = self.get_rating(rating_id)
        if existing is None:
            raise RatingNotFoundError(rating_id)
        self._check_owner(existing.user_id, acting_user, "rating", rating_id)

        per_user = self._ratings[existing.user_id]
        del per_user[existing.course_id]
        if not per_user:
            del self._ratings[existing.user_id]
        self._commit("delete_rating")
        logger.info("Rating deleted rating=%s user=%s", rating_id, existing.user_id)

    @synchronized
    def get_user_ratings(self, user_id: UserId) -> list[CourseRating]:
        return list(self._ratings.get(user_id, {}).values())

    def get_course_rating(self, user_id: UserId, course_id: CourseId) -> CourseRating | None:
        return self._ratings.get(user_id, {}).get(course_id)

    @synchronized
    def get_course_ratings(self, course_id: CourseId) -> list[CourseRating]:
        return [
            per_user[course_id] for per_user in self._ratings.values() if course_id in per_user
        ]

    @synchronized
    def summarize_ratings(self, course_id: CourseId) -> RatingSummary:
        ratings = self.get_course_ratings(course_id)
        histogram = {star: 0 for star in range(1, 6)}
        for r in ratings:
            histogram[r.rating] += 1
        average = round(sum(r.rating for r in ratings) / len(ratings), 2) if ratings else 0.0
        return RatingSummary(
            course_id=course_id, count=len(ratings), average=average, histogram=histogram
        )

    # ------------------------------------------------------------------
    # Dashboard, recommendations, sync
    # ------------------------------------------------------------------

    @synchronized
    def get_recent_activity(self, user_id: UserId, limit: int | None = None) -> list[UserActivity]:
        return self.activity.recent(user_id, limit)

    @synchronized
    def record_activity(
        self,
        user_id: UserId,
        type: ActivityType,
        *,
        course_id: CourseId | None = None,
        lesson_id: LessonId | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UserActivity:
        entry = self.activity.record(
            user_id=user_id,
            type=type,
            timestamp=self._clock(),
            course_id=course_id,
            lesson_id=lesson_id,
            metadata=metadata,
        )
        self._commit("record_activity")
        return entry

    async def load_user_dashboard(
        self,
        user_id: UserId,
        *,
        total_time_spent: int = 0,
        favorite_subjects: tuple[str, ...] = (),
    ) -> UserDashboardStats:
        async with self.ops.track("load_dashboard"):
            await self._backend.load_dashboard(user_id)

            with self._lock:
                enrollments = self.get_user_enrollments(user_id)
                current, longest = self._streaks(user_id)
                stats = UserDashboardStats(
                    user_id=user_id,
                    total_courses_enrolled=len(enrollments),
                    courses_completed=sum(1 for e in enrollments if e.status == "completed"),
                    courses_in_progress=sum(1 for e in enrollments if e.status == "enrolled"),
                    total_time_spent=total_time_spent,
                    certificates_earned=sum(1 for e in enrollments if e.certificate_issued),
                    current_streak=current,
                    longest_streak=longest,
                    favorite_subjects=favorite_subjects,
                    recent_activity=tuple(self.activity.recent(user_id, DASHBOARD_ACTIVITY_COUNT)),
                )
                self.user_stats = stats
        return stats

    def _streaks(self, user_id: UserId) -> tuple[int, int]:
        """(current, longest) runs of consecutive UTC days with activity."""
        days = sorted({utc_day(a.timestamp) for a in self.activity.recent(user_id)})
        if not days:
            return 0, 0

        longest = run = 1
        for prev, day in zip(days, days[1:]):
            run = run + 1 if day - prev == timedelta(days=1) else 1
            longest = max(longest, run)

        today = utc_day(self._clock())
        if today - days[-1] > timedelta(days=1):
            return 0, longest
        current = 1
        for prev, day in zip(reversed(days[:-1]), reversed(days)):
            if day - prev != timedelta(days=1):
                break
            current += 1
        return current, longest

    async def load_recommendations(self, user_id: UserId) -> list[CourseRecommendation]:
        async with self.ops.track("load_recommendations"):
            await self._backend.load_recommendations(user_id)
            self.recommendations = self._source.recommend(user_id, self.get_user_enrollments(user_id))
        logger.info("Loaded %d recommendations user=%s", len(self.recommendations), user_id)
        return self.recommendations

    async def sync_enrollments(self, user_id: UserId) -> None:
        async with self.ops.track("sync_enrollments"):
            await self._backend.sync_enrollments(user_id)

    @synchronized
    def clear_enrollments(self) -> None:
        self._enrollments.clear()
        self._favorites.clear()
        self._ratings.clear()
        self.activity.clear()
        self.recommendations = []
        self.user_stats = None
        self.ops.clear()
        self._commit("clear_enrollments")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_owner(owner: UserId, acting_user: UserId | None, kind: str, record_id: str) -> None:
        if acting_user is not None and acting_user != owner:
            logger.warning(
                "Ownership check failed %s=%s owner=%s acting_user=%s",
                kind,
                record_id,
                owner,
                acting_user,
            )
            raise OwnershipError(f"{kind} {record_id} does not belong to {acting_user}")

    # ------------------------------------------------------------------
    # Persistence slice
    # ------------------------------------------------------------------

    @synchronized
    def snapshot(self) -> EnrollmentSnapshot:
        return EnrollmentSnapshot(
            enrollments=list(self._enrollments.values()),
            favorites=[f for per_user in self._favorites.values() for f in per_user.values()],
            ratings=[r for per_user in self._ratings.values() for r in per_user.values()],
            recent_activity=self.activity.entries(),
        )

    @synchronized
    def restore(self, snapshot: EnrollmentSnapshot) -> None:
        """Adopt a snapshot as the authoritative state.  Does not notify listeners."""
        self._enrollments = {e.id: e for e in snapshot.enrollments}
        self._favorites = {}
        for f in snapshot.favorites:
            self._favorites.setdefault(f.user_id, {})[f.course_id] = f
        self._ratings = {}
        for r in snapshot.ratings:
            self._ratings.setdefault(r.user_id, {})[r.course_id] = r
        self.activity.replace(snapshot.recent_activity)
        self.recommendations = []
        self.user_stats = None
        self.ops.clear()
