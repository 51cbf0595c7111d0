"""Admin course console.

Every route requires the `admin` role.  Course ids (not slugs) address
courses here, so a slug can be changed without breaking the admin URL.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from learnhub.api.courses import ModuleOut
from learnhub.api.dependencies import PlatformDep, require_role
from learnhub.models.course import Course
from learnhub.models.ids import CourseId
from learnhub.models.principal import Principal
from learnhub.services.course_service import (
    CourseForm,
    CourseHasActiveEnrollmentsError,
    CourseNotFoundError,
    CoursePublishError,
    CourseSlugConflictError,
    CourseUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/courses", tags=["admin"])

AdminUser = Annotated[Principal, Depends(require_role("admin"))]


class AdminCourseOut(BaseModel):
    id: str
    slug: str
    title: str
    description: str
    difficulty: str
    duration_hours: int
    author: str
    category: str
    tags: list[str]
    prerequisites: list[str]
    learning_objectives: list[str]
    published: bool
    created_at: int
    updated_at: int
    total_lessons: int
    modules: list[ModuleOut]


class CourseStatsOut(BaseModel):
    total_enrollments: int
    active_enrollments: int
    completion_rate: float
    average_rating: float
    total_ratings: int
    total_reviews: int


class MonthlyCountOut(BaseModel):
    month: str
    count: int


class CourseAnalyticsOut(BaseModel):
    total_students: int
    completed_students: int
    in_progress_students: int
    dropped_students: int
    completion_rate: float
    dropout_rate: float
    average_rating: float
    average_time_to_complete: float | None
    monthly_enrollments: list[MonthlyCountOut]


def _out(course: Course) -> AdminCourseOut:
    return AdminCourseOut(
        id=course.id,
        slug=course.slug,
        title=course.title,
        description=course.description,
        difficulty=course.difficulty,
        duration_hours=course.duration_hours,
        author=course.author,
        category=course.category,
        tags=list(course.tags),
        prerequisites=list(course.prerequisites),
        learning_objectives=list(course.learning_objectives),
        published=course.published,
        created_at=course.created_at,
        updated_at=course.updated_at,
        total_lessons=course.total_lessons,
        modules=[
            ModuleOut(
                id=m.id,
                slug=m.slug,
                title=m.title,
                position=m.position,
                lessons=[
                    {
                        "id": lesson.id,
                        "slug": lesson.slug,
                        "title": lesson.title,
                        "position": lesson.position,
                        "type": lesson.type,
                        "duration_minutes": lesson.duration_minutes,
                    }
                    for lesson in m.lessons
                ],
            )
            for m in course.modules
        ],
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="course not found")


@router.get("", response_model=list[AdminCourseOut])
def admin_list_courses(principal: AdminUser, platform: PlatformDep) -> list[AdminCourseOut]:
    logger.info("Admin course list requested by user=%s", principal.user_id)
    return [_out(c) for c in platform.courses.list_courses()]


@router.get("/{course_id}", response_model=AdminCourseOut)
def admin_get_course(course_id: str, _principal: AdminUser, platform: PlatformDep) -> AdminCourseOut:
    try:
        return _out(platform.courses.get_course(CourseId(course_id)))
    except CourseNotFoundError:
        raise _not_found() from None


@router.post("", response_model=AdminCourseOut, status_code=status.HTTP_201_CREATED)
def admin_create_course(
    body: CourseForm, principal: AdminUser, platform: PlatformDep
) -> AdminCourseOut:
    try:
        course = platform.courses.create_course(body)
    except CourseSlugConflictError:
        raise HTTPException(status_code=409, detail="slug already in use") from None
    logger.info("Course created id=%s by user=%s", course.id, principal.user_id)
    return _out(course)


@router.patch("/{course_id}", response_model=AdminCourseOut)
def admin_update_course(
    course_id: str, body: CourseUpdate, principal: AdminUser, platform: PlatformDep
) -> AdminCourseOut:
    try:
        course = platform.courses.update_course(CourseId(course_id), body)
    except CourseNotFoundError:
        raise _not_found() from None
    except CourseSlugConflictError:
        raise HTTPException(status_code=409, detail="slug already in use") from None
    logger.info("Course updated id=%s by user=%s", course_id, principal.user_id)
    return _out(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_course(course_id: str, principal: AdminUser, platform: PlatformDep) -> Response:
    try:
        platform.courses.delete_course(CourseId(course_id))
    except CourseNotFoundError:
        raise _not_found() from None
    except CourseHasActiveEnrollmentsError:
        raise HTTPException(
            status_code=409, detail="course has active enrollments"
        ) from None
    logger.info("Course deleted id=%s by user=%s", course_id, principal.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{course_id}/publish", response_model=AdminCourseOut)
def admin_publish_course(course_id: str, _principal: AdminUser, platform: PlatformDep) -> AdminCourseOut:
    try:
        return _out(platform.courses.set_published(CourseId(course_id), True))
    except CourseNotFoundError:
        raise _not_found() from None
    except CoursePublishError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None


@router.post("/{course_id}/unpublish", response_model=AdminCourseOut)
def admin_unpublish_course(
    course_id: str, _principal: AdminUser, platform: PlatformDep
) -> AdminCourseOut:
    try:
        return _out(platform.courses.set_published(CourseId(course_id), False))
    except CourseNotFoundError:
        raise _not_found() from None


@router.get("/{course_id}/stats", response_model=CourseStatsOut)
def admin_course_stats(course_id: str, _principal: AdminUser, platform: PlatformDep) -> CourseStatsOut:
    try:
        stats = platform.courses.course_stats(CourseId(course_id))
    except CourseNotFoundError:
        raise _not_found() from None
    return CourseStatsOut(
        total_enrollments=stats.total_enrollments,
        active_enrollments=stats.active_enrollments,
        completion_rate=stats.completion_rate,
        average_rating=stats.average_rating,
        total_ratings=stats.total_ratings,
        total_reviews=stats.total_reviews,
    )


@router.get("/{course_id}/analytics", response_model=CourseAnalyticsOut)
def admin_course_analytics(
    course_id: str, _principal: AdminUser, platform: PlatformDep
) -> CourseAnalyticsOut:
    try:
        analytics = platform.courses.course_analytics(CourseId(course_id))
    except CourseNotFoundError:
        raise _not_found() from None
    return CourseAnalyticsOut(
        total_students=analytics.total_students,
        completed_students=analytics.completed_students,
        in_progress_students=analytics.in_progress_students,
        dropped_students=analytics.dropped_students,
        completion_rate=analytics.completion_rate,
        dropout_rate=analytics.dropout_rate,
        average_rating=analytics.average_rating,
        average_time_to_complete=analytics.average_time_to_complete,
        monthly_enrollments=[
            MonthlyCountOut(month=m.month, count=m.count) for m in analytics.monthly_enrollments
        ],
    )
