"""
Therapist Directory Endpoints.

CRUD over therapist records plus the per-day appointment listing.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from therapist_checkin.api.dependencies import get_service
from therapist_checkin.api.middleware import require_api_token, require_rate_limit
from therapist_checkin.api.schemas import (
    AppointmentOut,
    ErrorResponse,
    MessageResponse,
    TherapistCreateBody,
    TherapistOut,
    TherapistUpdateBody,
)
from therapist_checkin.core.errors import NotFoundError
from therapist_checkin.core.service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/therapists",
    tags=["Therapists"],
    dependencies=[Depends(require_api_token), Depends(require_rate_limit)],
)


@router.get(
    "",
    response_model=list[TherapistOut],
    summary="List therapists",
)
async def list_therapists(
    service: SchedulingService = Depends(get_service),
) -> list[TherapistOut]:
    therapists = await service.list_therapists()
    return [TherapistOut.from_domain(t) for t in therapists]


@router.get(
    "/{therapist_id}",
    response_model=TherapistOut,
    summary="Get a therapist",
    responses={404: {"model": ErrorResponse, "description": "Therapist not found"}},
)
async def get_therapist(
    therapist_id: str,
    service: SchedulingService = Depends(get_service),
) -> TherapistOut:
    therapist = await service.get_therapist(therapist_id)
    if therapist is None:
        raise NotFoundError("Therapist not found")
    return TherapistOut.from_domain(therapist)


@router.post(
    "",
    response_model=TherapistOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register a therapist",
    description="Name, email and phone are required. The phone is stored as +1XXXXXXXXXX.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing field or invalid phone"},
        409: {"model": ErrorResponse, "description": "Name already exists"},
    },
)
async def create_therapist(
    body: TherapistCreateBody,
    service: SchedulingService = Depends(get_service),
) -> TherapistOut:
    therapist = await service.create_therapist(body.to_domain())
    return TherapistOut.from_domain(therapist)


@router.put(
    "/{therapist_id}",
    response_model=TherapistOut,
    summary="Update a therapist",
    description="Only supplied fields are changed. Renames are not checked for duplicates.",
    responses={404: {"model": ErrorResponse, "description": "Therapist not found"}},
)
async def update_therapist(
    therapist_id: str,
    body: TherapistUpdateBody,
    service: SchedulingService = Depends(get_service),
) -> TherapistOut:
    await service.update_therapist(therapist_id, body.to_domain())

    therapist = await service.get_therapist(therapist_id)
    if therapist is None:
        raise NotFoundError("Therapist not found")
    return TherapistOut.from_domain(therapist)


@router.delete(
    "/{therapist_id}",
    response_model=MessageResponse,
    summary="Delete a therapist",
    description="Succeeds whether or not the therapist exists.",
)
async def delete_therapist(
    therapist_id: str,
    service: SchedulingService = Depends(get_service),
) -> MessageResponse:
    await service.delete_therapist(therapist_id)
    return MessageResponse(message="Therapist deleted successfully")


@router.get(
    "/{therapist_id}/appointments",
    response_model=list[AppointmentOut],
    response_model_exclude_none=True,
    summary="List a therapist's appointments on a date",
)
async def list_appointments_for_date(
    therapist_id: str,
    date: str = Query(..., description="Calendar date", examples=["2024-06-01"]),
    service: SchedulingService = Depends(get_service),
) -> list[AppointmentOut]:
    appointments = await service.get_appointments_by_therapist_and_date(therapist_id, date)
    return [AppointmentOut.from_domain(a) for a in appointments]
