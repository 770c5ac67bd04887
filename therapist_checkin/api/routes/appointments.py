"""
Appointment Endpoints.

Books time slots with a therapist. A booking whose confirmation fails
is still stored; the caller gets a 502 and may resend out of band.
"""

import logging

from fastapi import APIRouter, Depends, status

from therapist_checkin.api.dependencies import get_service
from therapist_checkin.api.middleware import require_api_token, require_rate_limit
from therapist_checkin.api.schemas import (
    AppointmentCreateBody,
    AppointmentOut,
    ErrorResponse,
)
from therapist_checkin.core.errors import NotFoundError
from therapist_checkin.core.service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/appointments",
    tags=["Appointments"],
    dependencies=[Depends(require_api_token), Depends(require_rate_limit)],
)


@router.post(
    "",
    response_model=AppointmentOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
    responses={
        400: {"model": ErrorResponse, "description": "Missing field"},
        404: {"model": ErrorResponse, "description": "Therapist not found"},
        409: {"model": ErrorResponse, "description": "Time slot unavailable"},
        502: {"model": ErrorResponse, "description": "Confirmation could not be sent"},
    },
)
async def create_appointment(
    body: AppointmentCreateBody,
    service: SchedulingService = Depends(get_service),
) -> AppointmentOut:
    appointment = await service.create_appointment(body.to_domain())
    return AppointmentOut.from_domain(appointment)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentOut,
    response_model_exclude_none=True,
    summary="Get an appointment or check-in",
    responses={404: {"model": ErrorResponse, "description": "Appointment not found"}},
)
async def get_appointment(
    appointment_id: str,
    service: SchedulingService = Depends(get_service),
) -> AppointmentOut:
    appointment = await service.get_appointment(appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return AppointmentOut.from_domain(appointment)
