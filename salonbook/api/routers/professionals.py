"""Professionals API: services a professional offers, with custom prices applied."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from salonbook.api.dependencies import get_appointment_service, get_company_id
from salonbook.api.schemas.appointments import ProfessionalServiceResponse
from salonbook.services.appointment_service import AppointmentService

router = APIRouter(prefix="/professionals", tags=["professionals"])


@router.get("/{professional_id}/services", response_model=List[ProfessionalServiceResponse])
async def list_professional_services(
    professional_id: int,
    company_id: int = Depends(get_company_id),
    svc: AppointmentService = Depends(get_appointment_service),
):
    services = await svc.list_professional_services(professional_id, company_id=company_id)
    return [ProfessionalServiceResponse.from_domain(s) for s in services]
