"""Course ratings.

PUT /v1/ratings/{course_id} is an upsert keyed by (user, course): rating
the same course again replaces the earlier rating and keeps its id.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, Field

from learnhub.api.dependencies import CurrentUser, PlatformDep
from learnhub.models.ids import CourseId, RatingId, UserId
from learnhub.models.principal import Principal
from learnhub.services.enrollment_store import (
    OwnershipError,
    RatingNotFoundError,
    RatingValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/ratings", tags=["ratings"])


class RatingIn(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: str | None = Field(default=None, max_length=5000)


class RatingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    course_id: str
    rating: int
    rated_at: int
    review: str | None = None
    helpful: int
    is_verified_purchase: bool


class CourseRatingsOut(BaseModel):
    course_id: str
    count: int
    average: float
    histogram: dict[int, int]
    ratings: list[RatingOut]


def _acting_user(principal: Principal) -> UserId | None:
    return None if principal.is_admin() else principal.user_id


@router.put("/{course_id}", response_model=RatingOut)
def rate_course(
    course_id: str, body: RatingIn, principal: CurrentUser, platform: PlatformDep
) -> RatingOut:
    try:
        record = platform.enrollments.rate_course(
            principal.user_id, CourseId(course_id), body.rating, body.review
        )
    except RatingValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    return RatingOut.model_validate(record)


@router.get("/course/{course_id}", response_model=CourseRatingsOut)
def get_course_ratings(
    course_id: str, _principal: CurrentUser, platform: PlatformDep
) -> CourseRatingsOut:
    summary = platform.enrollments.summarize_ratings(CourseId(course_id))
    ratings = sorted(
        platform.enrollments.get_course_ratings(CourseId(course_id)),
        key=lambda r: r.rated_at,
        reverse=True,
    )
    return CourseRatingsOut(
        course_id=course_id,
        count=summary.count,
        average=summary.average,
        histogram=summary.histogram,
        ratings=[RatingOut.model_validate(r) for r in ratings],
    )


@router.get("/me", response_model=list[RatingOut])
def list_my_ratings(principal: CurrentUser, platform: PlatformDep) -> list[RatingOut]:
    return [
        RatingOut.model_validate(r) for r in platform.enrollments.get_user_ratings(principal.user_id)
    ]


@router.patch("/{rating_id}", response_model=RatingOut)
def update_rating(
    rating_id: str, body: RatingIn, principal: CurrentUser, platform: PlatformDep
) -> RatingOut:
    try:
        record = platform.enrollments.update_rating(
            RatingId(rating_id), body.rating, body.review, acting_user=_acting_user(principal)
        )
    except RatingNotFoundError:
        raise HTTPException(status_code=404, detail="rating not found") from None
    except OwnershipError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your rating") from None
    except RatingValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    return RatingOut.model_validate(record)


@router.delete("/{rating_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rating(rating_id: str, principal: CurrentUser, platform: PlatformDep) -> Response:
    try:
        platform.enrollments.delete_rating(RatingId(rating_id), acting_user=_acting_user(principal))
    except RatingNotFoundError:
        raise HTTPException(status_code=404, detail="rating not found") from None
    except OwnershipError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your rating") from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
