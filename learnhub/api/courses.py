"""Public catalog and enrollment endpoints.

Enrolling goes through LearningService so the progress shell is created
in the same request:
  Client -> POST /v1/courses/{slug}/enroll
  -> enrollment ledger (enrolled) + course_enrolled activity
  -> course progress shell from the catalog outline
  -> 201 Enrolled
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from learnhub.api.dependencies import CurrentUser, PlatformDep
from learnhub.api.enrollments import EnrollmentOut
from learnhub.models.course import Course
from learnhub.models.enrollment import EnrollmentSource, EnrollmentStatus
from learnhub.services.course_service import CourseNotFoundError
from learnhub.services.enrollment_store import AlreadyEnrolledError
from learnhub.services.platform import Platform

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/courses", tags=["courses"])


class LessonOut(BaseModel):
    id: str
    slug: str
    title: str
    position: int
    type: str
    duration_minutes: int


class ModuleOut(BaseModel):
    id: str
    slug: str
    title: str
    position: int
    lessons: list[LessonOut]


class CourseOut(BaseModel):
    id: str
    slug: str
    title: str
    description: str
    difficulty: str
    duration_hours: int
    author: str
    category: str
    tags: list[str]
    total_lessons: int
    rating_average: float
    rating_count: int


class CourseDetailOut(CourseOut):
    prerequisites: list[str]
    learning_objectives: list[str]
    modules: list[ModuleOut]
    is_enrolled: bool
    is_favorited: bool


class EnrollIn(BaseModel):
    source: EnrollmentSource = "direct"


class EnrollmentStatusOut(BaseModel):
    course_id: str
    status: EnrollmentStatus | None
    enrollment: EnrollmentOut | None = None


def _course_out(course: Course, platform: Platform) -> dict:
    summary = platform.enrollments.summarize_ratings(course.id)
    return {
        "id": course.id,
        "slug": course.slug,
        "title": course.title,
        "description": course.description,
        "difficulty": course.difficulty,
        "duration_hours": course.duration_hours,
        "author": course.author,
        "category": course.category,
        "tags": list(course.tags),
        "total_lessons": course.total_lessons,
        "rating_average": summary.average,
        "rating_count": summary.count,
    }


def _published(platform: Platform, slug: str) -> Course:
    course = platform.catalog.get_by_slug(slug)
    if course is None or not course.published:
        raise HTTPException(status_code=404, detail="course not found")
    return course


@router.get("", response_model=list[CourseOut])
def list_courses(_principal: CurrentUser, platform: PlatformDep) -> list[CourseOut]:
    return [
        CourseOut(**_course_out(c, platform))
        for c in platform.courses.list_courses(published_only=True)
    ]


@router.get("/{slug}", response_model=CourseDetailOut)
def get_course(slug: str, principal: CurrentUser, platform: PlatformDep) -> CourseDetailOut:
    course = _published(platform, slug)
    modules = [
        ModuleOut(
            id=m.id,
            slug=m.slug,
            title=m.title,
            position=m.position,
            lessons=[
                LessonOut(
                    id=lesson.id,
                    slug=lesson.slug,
                    title=lesson.title,
                    position=lesson.position,
                    type=lesson.type,
                    duration_minutes=lesson.duration_minutes,
                )
                for lesson in sorted(m.lessons, key=lambda x: x.position)
            ],
        )
        for m in sorted(course.modules, key=lambda m: m.position)
    ]
    return CourseDetailOut(
        **_course_out(course, platform),
        prerequisites=list(course.prerequisites),
        learning_objectives=list(course.learning_objectives),
        modules=modules,
        is_enrolled=platform.enrollments.is_enrolled(principal.user_id, course.id),
        is_favorited=platform.enrollments.is_favorited(principal.user_id, course.id),
    )


@router.post(
    "/{slug}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    slug: str,
    principal: CurrentUser,
    platform: PlatformDep,
    body: EnrollIn | None = None,
) -> EnrollmentOut:
    course = _published(platform, slug)
    source = body.source if body else "direct"
    try:
        enrollment = await platform.learning.enroll(principal.user_id, course.id, source=source)
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="course not found") from None
    except AlreadyEnrolledError:
        raise HTTPException(status_code=409, detail="already enrolled") from None
    return EnrollmentOut.model_validate(enrollment)


@router.get("/{slug}/enrollment", response_model=EnrollmentStatusOut)
def get_enrollment_status(
    slug: str, principal: CurrentUser, platform: PlatformDep
) -> EnrollmentStatusOut:
    course = _published(platform, slug)
    active = platform.enrollments.get_active_enrollment(principal.user_id, course.id)
    return EnrollmentStatusOut(
        course_id=course.id,
        status=platform.enrollments.get_enrollment_status(principal.user_id, course.id),
        enrollment=EnrollmentOut.model_validate(active) if active else None,
    )
