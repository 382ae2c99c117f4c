"""Appointments API: list, calendar, availability, slots, create, edit, status actions."""
from __future__ import annotations

import datetime as _dt
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from salonbook.api.dependencies import get_appointment_service, get_company_id
from salonbook.api.schemas.appointments import (
    ActionResponse,
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    AvailabilityResponse,
    CalendarEventResponse,
    SlotsResponse,
)
from salonbook.core.exceptions import ValidationError
from salonbook.scheduling.types import AppointmentFilter, AppointmentStatus
from salonbook.services.appointment_service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])


# ── Helpers ───────────────────────────────────────────────────────────────────

def _as_utc(value: Optional[_dt.datetime]) -> Optional[_dt.datetime]:
    """Naive query datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=_dt.timezone.utc)
    return value.astimezone(_dt.timezone.utc)


def _parse_status(value: Optional[str]) -> Optional[AppointmentStatus]:
    if not value:
        return None
    try:
        return AppointmentStatus(value.strip().upper())
    except ValueError as exc:
        raise ValidationError.for_field("status", f"Status inválido: {value}") from exc


# ── Endpoints ─────────────────────────────────────────────────────────────────

@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    start_date: Optional[_dt.datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[_dt.datetime] = Query(default=None, alias="endDate"),
    professional_id: Optional[int] = Query(default=None, alias="professionalId"),
    customer_id: Optional[int] = Query(default=None, alias="customerId"),
    status: Optional[str] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=500, ge=1, le=1000),
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    items = await svc.list_appointments(
        AppointmentFilter(
            company_id=company_id,
            start=_as_utc(start_date),
            end=_as_utc(end_date),
            professional_id=professional_id,
            customer_id=customer_id,
            status=_parse_status(status),
            skip=skip,
            limit=limit,
        )
    )
    return [AppointmentResponse.from_domain(a) for a in items]


# NOTE: the fixed paths below must be registered BEFORE /{appointment_id}.
@router.get("/calendar", response_model=List[CalendarEventResponse])
async def calendar_events(
    start_date: Optional[_dt.datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[_dt.datetime] = Query(default=None, alias="endDate"),
    professional_id: Optional[int] = Query(default=None, alias="professionalId"),
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    events = await svc.calendar_events(
        company_id=company_id,
        start=_as_utc(start_date),
        end=_as_utc(end_date),
        professional_id=professional_id,
    )
    return [
        CalendarEventResponse(
            id=e.id,
            title=e.title,
            start=e.start,
            end=e.end,
            status=e.status,
            status_label=e.status_label,
            background_color=e.background_color,
            border_color=e.border_color,
            professional_id=e.professional_id,
            customer_id=e.customer_id,
        )
        for e in events
    ]


@router.get("/availability/{professional_id}", response_model=AvailabilityResponse)
async def check_availability(
    professional_id: int,
    start_time: _dt.datetime = Query(..., alias="startTime"),
    end_time: _dt.datetime = Query(..., alias="endTime"),
    exclude_id: Optional[int] = Query(default=None, alias="excludeId"),
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    result = await svc.check_availability(
        professional_id, _as_utc(start_time), _as_utc(end_time), exclude_id, company_id=company_id
    )
    return AvailabilityResponse(available=result.available, conflicting_ids=list(result.conflicting_ids))


@router.get("/slots", response_model=SlotsResponse)
async def list_slots(
    professional_id: int = Query(..., alias="professionalId"),
    date: _dt.date = Query(...),
    duration: Optional[int] = Query(default=None),
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    slots = await svc.list_slots(professional_id, date, duration, company_id=company_id)
    return SlotsResponse(
        professional_id=professional_id,
        date=date,
        duration=duration or svc.config.fallback_duration_minutes,
        slots=slots,
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    appointment = await svc.get_appointment(appointment_id, company_id=company_id)
    return AppointmentResponse.from_domain(appointment)


@router.get("/{appointment_id}/actions", response_model=List[ActionResponse])
async def list_actions(
    appointment_id: int,
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    actions = await svc.list_actions(appointment_id, company_id=company_id)
    return [ActionResponse(action=action.value, label=label) for action, label in actions]


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    body: AppointmentCreate,
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    appointment = await svc.create_appointment(body.to_request(), company_id=company_id)
    return AppointmentResponse.from_domain(appointment)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    body: AppointmentUpdate,
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    appointment = await svc.update_appointment(
        appointment_id, body.to_request(), company_id=company_id
    )
    return AppointmentResponse.from_domain(appointment)


@router.patch("/{appointment_id}/{action}", response_model=AppointmentResponse)
async def apply_action(
    appointment_id: int,
    action: str,
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    """confirm | start | complete | cancel | no-show"""
    appointment = await svc.apply_action(appointment_id, action, company_id=company_id)
    return AppointmentResponse.from_domain(appointment)
