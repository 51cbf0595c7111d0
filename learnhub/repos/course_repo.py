from __future__ import annotations

from typing import Protocol

from learnhub.core.clock import utc_now_ts
from learnhub.models.course import Course, CourseModule, Lesson
from learnhub.models.ids import CourseId, LessonId, ModuleId


class CourseRepo(Protocol):
    def get_by_id(self, course_id: CourseId) -> Course | None: ...
    def get_by_slug(self, slug: str) -> Course | None: ...
    def add(self, course: Course) -> None: ...
    def replace(self, course: Course) -> None: ...
    def remove(self, course_id: CourseId) -> None: ...
    def list_all(self) -> list[Course]: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[CourseId, Course] = {}
        self._by_slug: dict[str, Course] = {}

    def get_by_id(self, course_id: CourseId) -> Course | None:
        return self._by_id.get(course_id)

    def get_by_slug(self, slug: str) -> Course | None:
        return self._by_slug.get(slug)

    def add(self, course: Course) -> None:
        if course.slug in self._by_slug:
            raise ValueError("slug already exists")
        if course.id in self._by_id:
            raise ValueError("course id already exists")
        self._by_id[course.id] = course
        self._by_slug[course.slug] = course

    def replace(self, course: Course) -> None:
        current = self._by_id.get(course.id)
        if current is None:
            raise KeyError("course not found")
        owner = self._by_slug.get(course.slug)
        if owner is not None and owner.id != course.id:
            raise ValueError("slug already exists")
        del self._by_slug[current.slug]
        self._by_id[course.id] = course
        self._by_slug[course.slug] = course

    def remove(self, course_id: CourseId) -> None:
        course = self._by_id.pop(course_id, None)
        if course is None:
            raise KeyError("course not found")
        del self._by_slug[course.slug]

    def list_all(self) -> list[Course]:
        return list(self._by_id.values())


def _lessons(prefix: str, titles: list[str]) -> tuple[Lesson, ...]:
    return tuple(
        Lesson(
            id=LessonId(f"{prefix}-l{i}"),
            slug=f"{prefix}-l{i}",
            title=title,
            position=i,
            duration_minutes=15,
        )
        for i, title in enumerate(titles, start=1)
    )


def seed_sample_courses(repo: CourseRepo) -> None:
    """Seed two published sample courses for development/testing."""
    if repo.list_all():
        return
    now = utc_now_ts()
    repo.add(
        Course(
            id=CourseId("intro-to-react"),
            slug="intro-to-react",
            title="Introduction to React",
            description="Learn the fundamentals of React development",
            difficulty="beginner",
            duration_hours=8,
            author="John Doe",
            category="Web Development",
            created_at=now,
            updated_at=now,
            tags=("React", "JavaScript", "Frontend"),
            prerequisites=("HTML", "CSS", "JavaScript"),
            learning_objectives=(
                "Understand React components",
                "Learn state management",
                "Build interactive UIs",
            ),
            published=True,
            modules=(
                CourseModule(
                    id=ModuleId("react-m1"),
                    slug="components",
                    title="Components",
                    position=1,
                    lessons=_lessons("react-m1", ["JSX", "Props"]),
                ),
                CourseModule(
                    id=ModuleId("react-m2"),
                    slug="state",
                    title="State",
                    position=2,
                    lessons=_lessons("react-m2", ["useState", "Lifting state"]),
                ),
            ),
        )
    )
    repo.add(
        Course(
            id=CourseId("advanced-typescript"),
            slug="advanced-typescript",
            title="Advanced TypeScript",
            description="Master advanced TypeScript concepts and patterns",
            difficulty="advanced",
            duration_hours=12,
            author="Jane Smith",
            category="Programming Languages",
            created_at=now,
            updated_at=now,
            tags=("TypeScript", "JavaScript", "Programming"),
            prerequisites=("JavaScript", "Basic TypeScript"),
            learning_objectives=(
                "Master advanced types",
                "Understand generics",
                "Learn design patterns",
            ),
            published=True,
            modules=(
                CourseModule(
                    id=ModuleId("ts-m1"),
                    slug="types",
                    title="Advanced types",
                    position=1,
                    lessons=_lessons("ts-m1", ["Conditional types", "Mapped types", "Generics"]),
                ),
            ),
        )
    )
