"""Course recommendation sources.

EnrollmentStore.load_recommendations() asks a RecommendationSource for a
fresh list and replaces whatever it held before.  The catalog source
ranks published courses the user is not enrolled in:

  skill_progression  the user has taken a course whose title or tags
                     match one of the candidate's prerequisites
  similar_content    tag overlap with the user's courses (Jaccard)
  popular_choice     fallback, ranked by active enrollment count
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol

from learnhub.models.course import Course
from learnhub.models.enrollment import CourseRecommendation, Enrollment
from learnhub.models.ids import CourseId, UserId


class RecommendationSource(Protocol):
    def recommend(
        self, user_id: UserId, enrollments: list[Enrollment]
    ) -> list[CourseRecommendation]: ...


class StaticRecommendationSource:
    """Fixed list, for tests and demos."""

    def __init__(self, recommendations: Iterable[CourseRecommendation] = ()) -> None:
        self._recommendations = list(recommendations)

    def recommend(
        self, user_id: UserId, enrollments: list[Enrollment]
    ) -> list[CourseRecommendation]:
        return list(self._recommendations)


class CatalogRecommendationSource:
    def __init__(
        self,
        list_courses: Callable[[], list[Course]],
        popularity: Callable[[CourseId], int] | None = None,
        *,
        limit: int = 5,
    ) -> None:
        self._list_courses = list_courses
        self._popularity = popularity or (lambda _course_id: 0)
        self._limit = limit

    def recommend(
        self, user_id: UserId, enrollments: list[Enrollment]
    ) -> list[CourseRecommendation]:
        courses = {c.id: c for c in self._list_courses()}
        taken_ids = {e.course_id for e in enrollments if e.is_active}
        taken = [courses[cid] for cid in taken_ids if cid in courses]

        taken_tags = {t.lower() for c in taken for t in c.tags}
        taken_names = {c.title.lower() for c in taken} | taken_tags

        candidates = [c for c in courses.values() if c.published and c.id not in taken_ids]
        if not candidates:
            return []
        max_popularity = max(self._popularity(c.id) for c in candidates) or 1

        scored: list[CourseRecommendation] = []
        for course in candidates:
            prereqs = {p.lower() for p in course.prerequisites}
            tags = {t.lower() for t in course.tags}
            met = prereqs & taken_names

            if met:
                scored.append(
                    CourseRecommendation(
                        course_id=course.id,
                        score=round(0.6 + 0.4 * len(met) / len(prereqs), 3),
                        reason="skill_progression",
                        explanation=f"Builds on {', '.join(sorted(met))}",
                    )
                )
            elif tags & taken_tags:
                overlap = len(tags & taken_tags) / len(tags | taken_tags)
                scored.append(
                    CourseRecommendation(
                        course_id=course.id,
                        score=round(0.3 + 0.5 * overlap, 3),
                        reason="similar_content",
                        explanation=f"Shares topics: {', '.join(sorted(tags & taken_tags))}",
                    )
                )
            else:
                share = self._popularity(course.id) / max_popularity
                scored.append(
                    CourseRecommendation(
                        course_id=course.id,
                        score=round(0.3 * share, 3),
                        reason="popular_choice",
                        explanation="Popular with other learners",
                    )
                )

        scored.sort(key=lambda r: (-r.score, r.course_id))
        return scored[: self._limit]
