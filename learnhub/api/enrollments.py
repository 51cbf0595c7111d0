"""Enrollment ledger endpoints for the calling user."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict

from learnhub.api.dependencies import CurrentUser, PlatformDep
from learnhub.models.enrollment import EnrollmentSource, EnrollmentStatus
from learnhub.models.ids import EnrollmentId
from learnhub.services.enrollment_store import (
    EnrollmentNotFoundError,
    InvalidTransitionError,
    OwnershipError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    course_id: str
    status: EnrollmentStatus
    enrolled_at: int
    completed_at: int | None = None
    dropped_at: int | None = None
    progress: int
    last_accessed_at: int | None = None
    certificate_issued: bool
    enrollment_source: EnrollmentSource


class EnrollmentStatusIn(BaseModel):
    status: EnrollmentStatus


@router.get("", response_model=list[EnrollmentOut])
def list_my_enrollments(principal: CurrentUser, platform: PlatformDep) -> list[EnrollmentOut]:
    return [
        EnrollmentOut.model_validate(e)
        for e in platform.enrollments.get_user_enrollments(principal.user_id)
    ]


@router.patch("/{enrollment_id}", response_model=EnrollmentOut)
def update_enrollment_status(
    enrollment_id: str,
    body: EnrollmentStatusIn,
    principal: CurrentUser,
    platform: PlatformDep,
) -> EnrollmentOut:
    acting_user = None if principal.is_admin() else principal.user_id
    try:
        enrollment = platform.enrollments.update_enrollment_status(
            EnrollmentId(enrollment_id), body.status, acting_user=acting_user
        )
    except EnrollmentNotFoundError:
        raise HTTPException(status_code=404, detail="enrollment not found") from None
    except OwnershipError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Not your enrollment"
        ) from None
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return EnrollmentOut.model_validate(enrollment)
