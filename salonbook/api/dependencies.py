"""FastAPI dependency providers."""
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.config.scheduling import SchedulingConfig
from salonbook.core.exceptions import ValidationError
from salonbook.services.appointment_service import AppointmentService


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a transactional AsyncSession from the app-level session factory.

    Commits once on success. Any exception, including a cancelled request,
    rolls the whole unit of work back.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise


def get_scheduling_config(request: Request) -> SchedulingConfig:
    return getattr(request.app.state, "scheduling_config", None) or SchedulingConfig()


def get_company_id(x_company_id: Optional[str] = Header(default=None)) -> int:
    """Tenant id from the X-Company-Id header."""
    try:
        company_id = int((x_company_id or "").strip())
    except ValueError:
        company_id = 0
    if company_id < 1:
        raise ValidationError.for_field("X-Company-Id", "Empresa é obrigatória")
    return company_id


def get_appointment_service(
    session: AsyncSession = Depends(get_session),
    config: SchedulingConfig = Depends(get_scheduling_config),
) -> AppointmentService:
    return AppointmentService(session, config)
