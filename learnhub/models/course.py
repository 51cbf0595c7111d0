from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import uuid4

from learnhub.models.ids import CourseId, LessonId, ModuleId
from learnhub.models.progress import CourseOutline, ModuleOutline

Difficulty = Literal["beginner", "intermediate", "advanced"]
LessonType = Literal["text", "video", "quiz", "exercise"]


@dataclass(frozen=True, slots=True)
class Lesson:
    id: LessonId
    slug: str
    title: str
    position: int
    type: LessonType = "text"
    duration_minutes: int = 0


@dataclass(frozen=True, slots=True)
class CourseModule:
    id: ModuleId
    slug: str
    title: str
    position: int
    lessons: tuple[Lesson, ...] = ()


@dataclass(frozen=True, slots=True)
class Course:
    id: CourseId
    slug: str
    title: str
    description: str
    difficulty: Difficulty
    duration_hours: int
    author: str
    category: str
    created_at: int
    updated_at: int
    tags: tuple[str, ...] = ()
    prerequisites: tuple[str, ...] = ()
    learning_objectives: tuple[str, ...] = ()
    published: bool = False
    modules: tuple[CourseModule, ...] = ()

    @staticmethod
    def new_id() -> CourseId:
        return CourseId(f"course_{uuid4().hex[:12]}")

    @property
    def total_lessons(self) -> int:
        return sum(len(m.lessons) for m in self.modules)

    def outline(self) -> CourseOutline:
        ordered = sorted(self.modules, key=lambda m: m.position)
        return CourseOutline(
            course_id=self.id,
            modules=tuple(
                ModuleOutline(
                    module_id=m.id,
                    lesson_ids=tuple(
                        lesson.id for lesson in sorted(m.lessons, key=lambda x: x.position)
                    ),
                )
                for m in ordered
            ),
        )
