from __future__ import annotations

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, ConfigDict, Field

from learnhub.api.dependencies import CurrentUser, PlatformDep
from learnhub.models.ids import CourseId

router = APIRouter(prefix="/v1/favorites", tags=["favorites"])


class FavoriteIn(BaseModel):
    notes: str | None = Field(default=None, max_length=1000)


class FavoriteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    course_id: str
    favorited_at: int
    notes: str | None = None


class FavoriteStatusOut(BaseModel):
    course_id: str
    favorited: bool


@router.get("", response_model=list[FavoriteOut])
def list_favorites(principal: CurrentUser, platform: PlatformDep) -> list[FavoriteOut]:
    return [
        FavoriteOut.model_validate(f)
        for f in platform.enrollments.get_user_favorites(principal.user_id)
    ]


@router.get("/{course_id}", response_model=FavoriteStatusOut)
def get_favorite(course_id: str, principal: CurrentUser, platform: PlatformDep) -> FavoriteStatusOut:
    return FavoriteStatusOut(
        course_id=course_id,
        favorited=platform.enrollments.is_favorited(principal.user_id, CourseId(course_id)),
    )


@router.put("/{course_id}", response_model=FavoriteOut)
def add_favorite(
    course_id: str,
    principal: CurrentUser,
    platform: PlatformDep,
    body: FavoriteIn | None = None,
) -> FavoriteOut:
    favorite = platform.enrollments.add_to_favorites(
        principal.user_id, CourseId(course_id), body.notes if body else None
    )
    return FavoriteOut.model_validate(favorite)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(course_id: str, principal: CurrentUser, platform: PlatformDep) -> Response:
    platform.enrollments.remove_from_favorites(principal.user_id, CourseId(course_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
