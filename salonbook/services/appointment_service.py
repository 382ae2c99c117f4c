"""AppointmentService: one unit of work over the booking core and its repositories."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.config.scheduling import SchedulingConfig
from salonbook.core.exceptions import NotFoundError, ValidationError
from salonbook.infra.database.repositories import (
    AppointmentRepository,
    ProductRepository,
    ServiceCatalogRepository,
)
from salonbook.scheduling.availability import AvailabilityChecker
from salonbook.scheduling.orchestrator import NOT_FOUND_MESSAGE, BookingOrchestrator
from salonbook.scheduling.slots import available_slots, combine_local
from salonbook.scheduling.status import action_label, available_actions, status_color, status_label
from salonbook.scheduling.types import (
    Appointment,
    AppointmentFilter,
    AvailabilityResult,
    BookingRequest,
    CatalogService,
    StatusAction,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarEvent:
    id: int
    title: str
    start: _dt.datetime
    end: _dt.datetime
    status: str
    status_label: str
    background_color: str
    border_color: str
    professional_id: int
    customer_id: int


def calendar_title(appointment: Appointment) -> str:
    """"Customer - Service A, Service B", as shown on the calendar."""
    customer = appointment.customer_name or f"Cliente #{appointment.customer_id}"
    names = [line.name or f"Serviço #{line.service_id}" for line in appointment.services]
    return f"{customer} - {', '.join(names)}" if names else customer


def to_calendar_event(appointment: Appointment) -> CalendarEvent:
    background, border = status_color(appointment.status)
    return CalendarEvent(
        id=appointment.id,
        title=calendar_title(appointment),
        start=appointment.start_time,
        end=appointment.end_time,
        status=appointment.status.value,
        status_label=status_label(appointment.status),
        background_color=background,
        border_color=border,
        professional_id=appointment.professional_id,
        customer_id=appointment.customer_id,
    )


class AppointmentService:
    def __init__(
        self,
        session: AsyncSession,
        config: Optional[SchedulingConfig] = None,
        *,
        clock: Optional[Callable[[], _dt.datetime]] = None,
    ) -> None:
        self._config = config or SchedulingConfig()
        self._products = ProductRepository(session)
        self._services = ServiceCatalogRepository(session)
        self._repo = AppointmentRepository(session, products=self._products)
        kwargs = {"clock": clock} if clock is not None else {}
        self._orchestrator = BookingOrchestrator(
            self._repo, self._services, self._products, self._config, **kwargs
        )
        self._clock = clock
        self._availability = AvailabilityChecker(self._repo)

    @property
    def config(self) -> SchedulingConfig:
        return self._config

    # ── Commands ──────────────────────────────────────────────────────────────

    async def create_appointment(self, request: BookingRequest, *, company_id: int) -> Appointment:
        return await self._orchestrator.create(request, company_id=company_id)

    async def update_appointment(
        self, appointment_id: int, request: BookingRequest, *, company_id: int
    ) -> Appointment:
        return await self._orchestrator.update(appointment_id, request, company_id=company_id)

    async def apply_action(
        self, appointment_id: int, action: Union[StatusAction, str], *, company_id: int
    ) -> Appointment:
        return await self._orchestrator.apply_action(appointment_id, action, company_id=company_id)

    # ── Queries ───────────────────────────────────────────────────────────────

    async def get_appointment(self, appointment_id: int, *, company_id: int) -> Appointment:
        appointment = await self._repo.get(appointment_id, company_id=company_id)
        if appointment is None:
            raise NotFoundError(NOT_FOUND_MESSAGE, details={"appointment_id": appointment_id})
        return appointment

    async def list_appointments(self, filter: AppointmentFilter) -> List[Appointment]:
        return await self._repo.list(filter)

    async def list_actions(
        self, appointment_id: int, *, company_id: int
    ) -> List[Tuple[StatusAction, str]]:
        appointment = await self.get_appointment(appointment_id, company_id=company_id)
        return [(action, action_label(action)) for action in available_actions(appointment.status)]

    async def check_availability(
        self,
        professional_id: int,
        start: _dt.datetime,
        end: _dt.datetime,
        exclude_id: Optional[int] = None,
        *,
        company_id: int,
    ) -> AvailabilityResult:
        return await self._availability.check(
            professional_id, start, end, exclude_id, company_id=company_id
        )

    async def list_slots(
        self,
        professional_id: int,
        day: _dt.date,
        duration_minutes: Optional[int] = None,
        *,
        company_id: int,
    ) -> List[str]:
        """Free start times on ``day`` for a booking of ``duration_minutes``."""
        if duration_minutes is not None and duration_minutes < 1:
            raise ValidationError.for_field("duration", "Duração deve ser maior que 0")
        day_start = combine_local(day, "00:00", self._config)
        day_end = combine_local(day + _dt.timedelta(days=1), "00:00", self._config)
        busy = await self._repo.busy_intervals(
            professional_id, day_start, day_end, company_id=company_id
        )
        return available_slots(
            day,
            busy,
            duration_minutes or self._config.fallback_duration_minutes,
            now=self._clock() if self._clock is not None else None,
            config=self._config,
        )

    async def list_professional_services(
        self, professional_id: int, *, company_id: int
    ) -> List[CatalogService]:
        return await self._services.list_by_professional(professional_id, company_id=company_id)

    async def calendar_events(
        self,
        *,
        company_id: int,
        start: Optional[_dt.datetime] = None,
        end: Optional[_dt.datetime] = None,
        professional_id: Optional[int] = None,
    ) -> List[CalendarEvent]:
        appointments = await self._repo.list(
            AppointmentFilter(
                company_id=company_id, start=start, end=end, professional_id=professional_id
            )
        )
        logger.debug("AppointmentService: %d calendar events", len(appointments))
        return [to_calendar_event(a) for a in appointments]
