"""Learner dashboard, activity feed and recommendations."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict

from learnhub.api.dependencies import CurrentUser, PlatformDep
from learnhub.models.enrollment import ActivityType, RecommendationReason

router = APIRouter(prefix="/v1", tags=["dashboard"])


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: ActivityType
    timestamp: int
    course_id: str | None = None
    lesson_id: str | None = None
    metadata: dict[str, Any] | None = None


class DashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    total_courses_enrolled: int
    courses_completed: int
    courses_in_progress: int
    total_time_spent: int
    certificates_earned: int
    current_streak: int
    longest_streak: int
    favorite_subjects: list[str]
    recent_activity: list[ActivityOut]


class RecommendationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: str
    score: float
    reason: RecommendationReason
    explanation: str


@router.get("/dashboard", response_model=DashboardOut)
async def get_dashboard(principal: CurrentUser, platform: PlatformDep) -> DashboardOut:
    stats = await platform.learning.load_user_dashboard(principal.user_id)
    return DashboardOut.model_validate(stats)


@router.get("/activity", response_model=list[ActivityOut])
def get_activity(
    principal: CurrentUser,
    platform: PlatformDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> list[ActivityOut]:
    entries = platform.enrollments.get_recent_activity(principal.user_id, limit)
    return [ActivityOut.model_validate(a) for a in entries]


@router.get("/recommendations", response_model=list[RecommendationOut])
async def get_recommendations(principal: CurrentUser, platform: PlatformDep) -> list[RecommendationOut]:
    recommendations = await platform.enrollments.load_recommendations(principal.user_id)
    return [RecommendationOut.model_validate(r) for r in recommendations]
