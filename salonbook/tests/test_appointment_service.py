"""Tests for AppointmentService and the ORM → domain mapping.

Repositories are replaced with AsyncMocks; rows are SimpleNamespace fakes.
"""
from __future__ import annotations

import asyncio
import datetime as _dt
import unittest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from salonbook.config.scheduling import SchedulingConfig
from salonbook.core.exceptions import NotFoundError, ValidationError
from salonbook.infra.database.repositories.appointment import to_domain
from salonbook.scheduling.types import (
    Appointment,
    AppointmentStatus,
    AvailabilityResult,
    PricedServiceLine,
    StatusAction,
    UsageType,
)
from salonbook.services.appointment_service import AppointmentService, calendar_title

UTC = _dt.timezone.utc
MONDAY = _dt.date(2024, 6, 10)


def _run(coro):
    return asyncio.run(coro)


def _appointment(**kwargs) -> Appointment:
    defaults = {
        "id": 5,
        "company_id": 1,
        "customer_id": 3,
        "professional_id": 7,
        "start_time": _dt.datetime(2024, 6, 10, 17, 0, tzinfo=UTC),
        "end_time": _dt.datetime(2024, 6, 10, 17, 30, tzinfo=UTC),
        "status": AppointmentStatus.CONFIRMED,
        "total_amount": Decimal("80.00"),
        "discount_percent": Decimal("0"),
        "services": [
            PricedServiceLine(1, 1, Decimal("50.00"), 30, "Corte"),
            PricedServiceLine(2, 1, Decimal("30.00"), 30, "Barba"),
        ],
        "customer_name": "Ana",
    }
    defaults.update(kwargs)
    return Appointment(**defaults)


def _service(**kwargs) -> AppointmentService:
    now = kwargs.pop("now", _dt.datetime(2024, 6, 1, tzinfo=UTC))
    return AppointmentService(MagicMock(), SchedulingConfig(), clock=lambda: now)


class TestQueries(unittest.TestCase):
    def test_get_missing_raises(self):
        svc = _service()
        svc._repo.get = AsyncMock(return_value=None)
        with self.assertRaises(NotFoundError):
            _run(svc.get_appointment(9, company_id=1))
        svc._repo.get.assert_awaited_once_with(9, company_id=1)

    def test_list_actions_with_labels(self):
        svc = _service()
        svc._repo.get = AsyncMock(return_value=_appointment())
        actions = _run(svc.list_actions(5, company_id=1))
        self.assertEqual(
            actions,
            [
                (StatusAction.START, "Iniciar"),
                (StatusAction.CANCEL, "Cancelar"),
                (StatusAction.NO_SHOW, "Não Compareceu"),
            ],
        )

    def test_calendar_events(self):
        svc = _service()
        svc._repo.list = AsyncMock(return_value=[_appointment()])
        events = _run(svc.calendar_events(company_id=1))
        self.assertEqual(events[0].title, "Ana - Corte, Barba")
        self.assertEqual((events[0].background_color, events[0].border_color), ("#10B981", "#059669"))
        self.assertEqual(events[0].status_label, "Confirmado")
        flt = svc._repo.list.await_args.args[0]
        self.assertEqual(flt.company_id, 1)

    def test_availability_is_scoped_to_company(self):
        svc = _service()
        svc._repo.check_overlap = AsyncMock(return_value=AvailabilityResult(True))
        start = _dt.datetime(2024, 6, 10, 17, 0, tzinfo=UTC)
        end = _dt.datetime(2024, 6, 10, 17, 30, tzinfo=UTC)
        result = _run(svc.check_availability(7, start, end, 5, company_id=2))
        self.assertTrue(result.available)
        svc._repo.check_overlap.assert_awaited_once_with(7, start, end, exclude_id=5, company_id=2)

    def test_calendar_title_without_names(self):
        appt = _appointment(customer_name=None, services=[PricedServiceLine(9, 1, Decimal("1"), 30)])
        self.assertEqual(calendar_title(appt), "Cliente #3 - Serviço #9")


class TestSlots(unittest.TestCase):
    def test_busy_window_removed_for_local_day(self):
        svc = _service()
        svc._repo.busy_intervals = AsyncMock(
            return_value=[(_dt.datetime(2024, 6, 10, 17, 0, tzinfo=UTC), _dt.datetime(2024, 6, 10, 18, 0, tzinfo=UTC))]
        )
        slots = _run(svc.list_slots(7, MONDAY, 30, company_id=1))
        self.assertNotIn("14:00", slots)
        self.assertNotIn("14:30", slots)
        self.assertIn("15:00", slots)
        _, day_start, day_end = svc._repo.busy_intervals.await_args.args
        self.assertEqual(svc._repo.busy_intervals.await_args.kwargs, {"company_id": 1})
        self.assertEqual(day_start, _dt.datetime(2024, 6, 10, 3, 0, tzinfo=UTC))
        self.assertEqual(day_end - day_start, _dt.timedelta(days=1))

    def test_default_duration_is_an_hour(self):
        svc = _service()
        svc._repo.busy_intervals = AsyncMock(
            return_value=[(_dt.datetime(2024, 6, 10, 17, 0, tzinfo=UTC), _dt.datetime(2024, 6, 10, 17, 30, tzinfo=UTC))]
        )
        slots = _run(svc.list_slots(7, MONDAY, company_id=1))
        self.assertNotIn("13:30", slots)
        self.assertIn("13:00", slots)

    def test_rejects_non_positive_duration(self):
        svc = _service()
        with self.assertRaises(ValidationError):
            _run(svc.list_slots(7, MONDAY, 0, company_id=1))


class TestToDomain(unittest.TestCase):
    def test_maps_row_with_lines(self):
        row = SimpleNamespace(
            id=5,
            company_id=1,
            customer_id=3,
            professional_id=7,
            start_time=_dt.datetime(2024, 6, 10, 17, 0, tzinfo=UTC),
            end_time=_dt.datetime(2024, 6, 10, 17, 30, tzinfo=UTC),
            status="IN_PROGRESS",
            total_amount=Decimal("65.00"),
            discount=Decimal("0"),
            notes=None,
            customer=SimpleNamespace(name="Ana"),
            professional=SimpleNamespace(name="Bruno"),
            services=[
                SimpleNamespace(service_id=1, quantity=1, price=Decimal("50.00"), duration=30,
                                service=SimpleNamespace(name="Corte")),
            ],
            products=[
                SimpleNamespace(product_id=10, quantity=1, unit_price=Decimal("15.00"), usage_type="SOLD",
                                product=SimpleNamespace(name="Pomada")),
                SimpleNamespace(product_id=11, quantity=2, unit_price=Decimal("4.00"), usage_type="USED",
                                product=None),
            ],
            created_at=None,
            updated_at=None,
        )
        appt = to_domain(row)
        self.assertIs(appt.status, AppointmentStatus.IN_PROGRESS)
        self.assertEqual(appt.services[0].name, "Corte")
        self.assertIs(appt.products[1].usage_type, UsageType.USED)
        self.assertIsNone(appt.products[1].name)
        self.assertEqual(appt.customer_name, "Ana")
        self.assertEqual(appt.professional_name, "Bruno")
        self.assertEqual(appt.duration_minutes, 30)


if __name__ == "__main__":
    unittest.main()
