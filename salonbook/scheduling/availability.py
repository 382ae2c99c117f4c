"""Availability checker: half-open interval overlap against a professional's bookings."""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Iterable, Optional, Tuple

from salonbook.core.exceptions import ConflictError, ValidationError
from salonbook.scheduling.ports import AppointmentStore
from salonbook.scheduling.types import Appointment, AvailabilityResult, AvailabilityWindow

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Horário não disponível. Há conflito com outros agendamentos."


def intervals_overlap(
    start_a: _dt.datetime,
    end_a: _dt.datetime,
    start_b: _dt.datetime,
    end_b: _dt.datetime,
) -> bool:
    """[start_a, end_a) and [start_b, end_b) share an instant. Touching ends do not."""
    return start_a < end_b and start_b < end_a


def overlapping(
    window: AvailabilityWindow,
    bookings: Iterable[Tuple[int, _dt.datetime, _dt.datetime]],
) -> Tuple[int, ...]:
    """Ids of (id, start, end) bookings that collide with ``window``."""
    return tuple(
        booking_id
        for booking_id, start, end in bookings
        if intervals_overlap(window.start, window.end, start, end)
    )


def needs_recheck(
    existing: Optional[Appointment],
    professional_id: int,
    start: _dt.datetime,
) -> bool:
    """Creates always check; edits only when the start or the professional moved."""
    if existing is None:
        return True
    return existing.start_time != start or existing.professional_id != professional_id


class AvailabilityChecker:
    def __init__(self, store: AppointmentStore) -> None:
        self._store = store

    async def check(
        self,
        professional_id: int,
        start: _dt.datetime,
        end: _dt.datetime,
        exclude_appointment_id: Optional[int] = None,
        *,
        company_id: int,
    ) -> AvailabilityResult:
        try:
            window = AvailabilityWindow(professional_id, start, end)
        except ValueError as exc:
            raise ValidationError.for_field("end_time", "O término deve ser após o início") from exc
        return await self._store.check_overlap(
            window.professional_id,
            window.start,
            window.end,
            exclude_id=exclude_appointment_id,
            company_id=company_id,
        )

    async def ensure_available(
        self,
        professional_id: int,
        start: _dt.datetime,
        end: _dt.datetime,
        exclude_appointment_id: Optional[int] = None,
        *,
        company_id: int,
    ) -> None:
        result = await self.check(
            professional_id, start, end, exclude_appointment_id, company_id=company_id
        )
        if not result.available:
            logger.warning(
                "Availability: professional %s busy for %s–%s",
                professional_id, start.isoformat(), end.isoformat(),
                extra={"professional_id": professional_id, "company_id": company_id},
            )
            raise ConflictError(
                UNAVAILABLE_MESSAGE,
                details={"conflicting_ids": list(result.conflicting_ids)} if result.conflicting_ids else None,
            )
