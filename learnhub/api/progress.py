"""Lesson progress endpoints.

Lesson records are addressed by lesson id; the body names the course so
the completion can roll up into the course progress:
  Client -> POST /v1/progress/lessons/{lessonId}/complete {course_id}
  -> lesson record completed
  -> course + module rollups recomputed, enrollment progress mirrored
  -> enrollment completed when the course reaches 100%
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from learnhub.api.dependencies import CurrentUser, PlatformDep
from learnhub.models.ids import CourseId, LessonId, ModuleId
from learnhub.models.progress import ProgressStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class LessonActionIn(BaseModel):
    course_id: str = Field(min_length=1)
    module_id: str | None = None


class TimeSpentIn(BaseModel):
    seconds: int = Field(ge=0)


class LessonProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    lesson_id: str
    course_id: str
    module_id: str | None = None
    status: ProgressStatus
    started_at: int | None = None
    completed_at: int | None = None
    time_spent: int
    score: float | None = None
    attempts: int | None = None


class ModuleProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    module_id: str
    total_lessons: int
    completed_lessons: int
    progress_percentage: int
    time_spent: int
    last_accessed_at: int | None = None


class CourseProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    course_id: str
    total_lessons: int
    enrolled_at: int
    status: ProgressStatus
    completed_lessons: int
    progress_percentage: int
    time_spent: int
    last_accessed_at: int | None = None
    completed_at: int | None = None
    modules: list[ModuleProgressOut]
    current_lesson_id: str | None = None


class CourseProgressDetailOut(CourseProgressOut):
    lessons: list[LessonProgressOut]


class OverviewOut(BaseModel):
    total_courses: int
    completed_courses: int
    total_time_spent: int
    courses: list[CourseProgressOut]


class SyncOut(BaseModel):
    last_sync_time: int | None


def _module(body: LessonActionIn) -> ModuleId | None:
    return ModuleId(body.module_id) if body.module_id else None


@router.post("/lessons/{lesson_id}/start", response_model=LessonProgressOut)
def start_lesson(
    lesson_id: str, body: LessonActionIn, principal: CurrentUser, platform: PlatformDep
) -> LessonProgressOut:
    record = platform.progress.start_lesson(
        principal.user_id, CourseId(body.course_id), LessonId(lesson_id), _module(body)
    )
    return LessonProgressOut.model_validate(record)


@router.post("/lessons/{lesson_id}/complete", response_model=LessonProgressOut)
def complete_lesson(
    lesson_id: str, body: LessonActionIn, principal: CurrentUser, platform: PlatformDep
) -> LessonProgressOut:
    record = platform.learning.complete_lesson(
        principal.user_id, CourseId(body.course_id), LessonId(lesson_id), _module(body)
    )
    return LessonProgressOut.model_validate(record)


@router.post("/lessons/{lesson_id}/time", response_model=LessonProgressOut)
def add_time_spent(
    lesson_id: str, body: TimeSpentIn, principal: CurrentUser, platform: PlatformDep
) -> LessonProgressOut:
    record = platform.progress.update_time_spent(principal.user_id, LessonId(lesson_id), body.seconds)
    if record is None:
        raise HTTPException(status_code=404, detail="lesson not started")
    return LessonProgressOut.model_validate(record)


@router.get("/lessons/{lesson_id}", response_model=LessonProgressOut)
def get_lesson_progress(
    lesson_id: str, principal: CurrentUser, platform: PlatformDep
) -> LessonProgressOut:
    record = platform.progress.get_lesson_progress(principal.user_id, LessonId(lesson_id))
    if record is None:
        raise HTTPException(status_code=404, detail="no progress for lesson")
    return LessonProgressOut.model_validate(record)


@router.get("/courses/{course_id}", response_model=CourseProgressDetailOut)
def get_course_progress(
    course_id: str, principal: CurrentUser, platform: PlatformDep
) -> CourseProgressDetailOut:
    course = platform.progress.get_course_progress(principal.user_id, CourseId(course_id))
    if course is None:
        raise HTTPException(status_code=404, detail="no progress for course")
    out = CourseProgressOut.model_validate(course)
    lessons = platform.progress.get_course_lessons(principal.user_id, CourseId(course_id))
    return CourseProgressDetailOut(
        **out.model_dump(),
        lessons=[LessonProgressOut.model_validate(r) for r in lessons],
    )


@router.get("/overview", response_model=OverviewOut)
def get_overview(principal: CurrentUser, platform: PlatformDep) -> OverviewOut:
    overall = platform.progress.get_overall_progress(principal.user_id)
    return OverviewOut(
        total_courses=overall.total_courses,
        completed_courses=overall.completed_courses,
        total_time_spent=overall.total_time_spent,
        courses=[
            CourseProgressOut.model_validate(c)
            for c in platform.progress.get_user_course_progress(principal.user_id)
        ],
    )


@router.post("/sync", response_model=SyncOut, status_code=status.HTTP_202_ACCEPTED)
async def sync_progress(principal: CurrentUser, platform: PlatformDep) -> SyncOut:
    logger.info("Progress sync requested by user=%s", principal.user_id)
    await platform.progress.sync_progress()
    return SyncOut(last_sync_time=platform.progress.last_sync_time)
