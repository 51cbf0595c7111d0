"""Tests for catalog-based recommendation scoring."""

from __future__ import annotations

from dataclasses import replace

from learnhub.models.course import Course
from learnhub.models.enrollment import Enrollment
from learnhub.models.ids import CourseId, EnrollmentId, UserId
from learnhub.repos.course_repo import InMemoryCourseRepo, seed_sample_courses
from learnhub.services.recommendations import CatalogRecommendationSource

U1 = UserId("u1")


def _repo() -> InMemoryCourseRepo:
    repo = InMemoryCourseRepo()
    seed_sample_courses(repo)
    return repo


def _enrolled(course_id: str, status: str = "enrolled") -> Enrollment:
    return Enrollment(
        id=EnrollmentId("e-" + course_id),
        user_id=U1,
        course_id=CourseId(course_id),
        enrolled_at=0,
        status=status,  # type: ignore[arg-type]
    )


def _course(slug: str, tags: tuple[str, ...], prerequisites: tuple[str, ...] = ()) -> Course:
    return Course(
        id=CourseId(slug),
        slug=slug,
        title=slug.replace("-", " ").title(),
        description="A course used in recommendation tests",
        difficulty="beginner",
        duration_hours=2,
        author="Test Author",
        category="Testing",
        created_at=0,
        updated_at=0,
        tags=tags,
        prerequisites=prerequisites,
        learning_objectives=("Learn",),
        published=True,
    )


def test_new_user_gets_popular_choices() -> None:
    counts = {"advanced-typescript": 4, "intro-to-react": 1}
    source = CatalogRecommendationSource(_repo().list_all, lambda cid: counts.get(cid, 0))

    recs = source.recommend(U1, [])

    assert [r.course_id for r in recs] == ["advanced-typescript", "intro-to-react"]
    assert all(r.reason == "popular_choice" for r in recs)
    assert recs[0].score == 0.3


def test_enrolled_courses_are_excluded() -> None:
    recs = CatalogRecommendationSource(_repo().list_all).recommend(U1, [_enrolled("intro-to-react")])
    assert "intro-to-react" not in [r.course_id for r in recs]


def test_met_prerequisite_yields_skill_progression() -> None:
    # The React course is tagged JavaScript, a TypeScript prerequisite
    [rec] = CatalogRecommendationSource(_repo().list_all).recommend(
        U1, [_enrolled("intro-to-react")]
    )

    assert rec.course_id == "advanced-typescript"
    assert rec.reason == "skill_progression"
    assert rec.score == 0.8
    assert rec.explanation == "Builds on javascript"


def test_shared_tags_yield_similar_content() -> None:
    repo = InMemoryCourseRepo()
    repo.add(_course("python-basics", ("Python", "Programming")))
    repo.add(_course("python-data", ("Python", "Data")))

    [rec] = CatalogRecommendationSource(repo.list_all).recommend(U1, [_enrolled("python-basics")])

    assert rec.course_id == "python-data"
    assert rec.reason == "similar_content"
    # Jaccard overlap {python} / {python, programming, data} = 1/3
    assert rec.score == round(0.3 + 0.5 / 3, 3)


def test_unpublished_courses_are_not_recommended() -> None:
    repo = InMemoryCourseRepo()
    repo.add(replace(_course("draft", ("Python",)), published=False))

    assert CatalogRecommendationSource(repo.list_all).recommend(U1, []) == []


def test_dropped_courses_can_be_recommended_again() -> None:
    recs = CatalogRecommendationSource(_repo().list_all).recommend(
        U1, [_enrolled("intro-to-react", "dropped")]
    )
    assert "intro-to-react" in [r.course_id for r in recs]


def test_limit_caps_the_list() -> None:
    repo = InMemoryCourseRepo()
    for n in range(8):
        repo.add(_course(f"course-{n}", ("Tag",)))

    assert len(CatalogRecommendationSource(repo.list_all, limit=5).recommend(U1, [])) == 5
