"""
Check-in Endpoints.

Used by the front-desk kiosk: list therapists to pick from, then record
the patient's arrival. A check-in succeeds even if the therapist could
not be notified.
"""

import logging

from fastapi import APIRouter, Depends, status

from therapist_checkin.api.dependencies import get_service
from therapist_checkin.api.middleware import require_api_token, require_rate_limit
from therapist_checkin.api.schemas import (
    AppointmentOut,
    CheckInCreateBody,
    CheckInResponse,
    ErrorResponse,
    TherapistOut,
)
from therapist_checkin.core.service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/check-in",
    tags=["Check-in"],
    dependencies=[Depends(require_api_token), Depends(require_rate_limit)],
)


@router.get(
    "",
    response_model=list[TherapistOut],
    summary="List therapists for check-in",
)
async def list_therapists_for_check_in(
    service: SchedulingService = Depends(get_service),
) -> list[TherapistOut]:
    therapists = await service.list_therapists()
    return [TherapistOut.from_domain(t) for t in therapists]


@router.post(
    "",
    response_model=CheckInResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Check in a patient",
    responses={
        400: {"model": ErrorResponse, "description": "Therapist ID missing"},
        404: {"model": ErrorResponse, "description": "Therapist not found"},
    },
)
async def create_check_in(
    body: CheckInCreateBody,
    service: SchedulingService = Depends(get_service),
) -> CheckInResponse:
    check_in = await service.create_check_in(body.to_domain())
    return CheckInResponse(
        message="Check-in completed successfully",
        check_in=AppointmentOut.from_domain(check_in),
    )
