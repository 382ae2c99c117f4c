"""Appointment repository: the PostgreSQL AppointmentStore.

Writes for one professional are serialised with a transaction-scoped
advisory lock, and the overlap scan is repeated under that lock, so two
concurrent bookings for the same window cannot both commit. Stock moves
happen in the same transaction as the appointment row.
"""
from __future__ import annotations

import datetime as _dt
import logging
from collections import Counter
from typing import Iterable, List, Mapping, Optional

from sqlalchemy import func, select, text, update
from sqlalchemy.orm import selectinload

from salonbook.core.exceptions import ConflictError, NotFoundError, StockError
from salonbook.infra.database.models.appointment import (
    Appointment,
    AppointmentProduct,
    AppointmentService,
)
from salonbook.infra.database.repositories.base import BaseRepository
from salonbook.infra.database.repositories.product import ProductRepository
from salonbook.scheduling import types as domain
from salonbook.scheduling.availability import UNAVAILABLE_MESSAGE
from salonbook.scheduling.ports import AppointmentStore
from salonbook.scheduling.status import ensure_editable
from salonbook.scheduling.stock import insufficient_message

logger = logging.getLogger(__name__)

# First key of the two-int advisory lock; the second is the professional id.
_PROFESSIONAL_LOCK_NAMESPACE = 4201

_LOAD_OPTIONS = (
    selectinload(Appointment.customer),
    selectinload(Appointment.professional),
    selectinload(Appointment.services).selectinload(AppointmentService.service),
    selectinload(Appointment.products).selectinload(AppointmentProduct.product),
)


def to_domain(row: Appointment) -> domain.Appointment:
    return domain.Appointment(
        id=row.id,
        company_id=row.company_id,
        customer_id=row.customer_id,
        professional_id=row.professional_id,
        start_time=row.start_time,
        end_time=row.end_time,
        status=domain.AppointmentStatus(row.status),
        total_amount=row.total_amount,
        discount_percent=row.discount,
        services=[
            domain.PricedServiceLine(
                service_id=line.service_id,
                quantity=line.quantity,
                unit_price=line.price,
                duration=line.duration,
                name=line.service.name if line.service is not None else None,
            )
            for line in row.services
        ],
        products=[
            domain.PricedProductLine(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                usage_type=domain.UsageType(line.usage_type),
                name=line.product.name if line.product is not None else None,
            )
            for line in row.products
        ],
        notes=row.notes,
        customer_name=row.customer.name if row.customer is not None else None,
        professional_name=row.professional.name if row.professional is not None else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _quantities(lines: Iterable) -> Counter:
    counts: Counter = Counter()
    for line in lines:
        counts[line.product_id] += line.quantity
    return counts


class AppointmentRepository(BaseRepository[Appointment], AppointmentStore):
    model = Appointment

    def __init__(self, session, products: Optional[ProductRepository] = None) -> None:
        super().__init__(session)
        self._products = products or ProductRepository(session)

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def list(self, filter: domain.AppointmentFilter) -> List[domain.Appointment]:
        stmt = (
            select(Appointment)
            .options(*_LOAD_OPTIONS)
            .where(Appointment.company_id == filter.company_id)
            .order_by(Appointment.start_time)
        )
        if filter.start is not None:
            stmt = stmt.where(Appointment.start_time >= filter.start)
        if filter.end is not None:
            stmt = stmt.where(Appointment.start_time <= filter.end)
        if filter.professional_id is not None:
            stmt = stmt.where(Appointment.professional_id == filter.professional_id)
        if filter.customer_id is not None:
            stmt = stmt.where(Appointment.customer_id == filter.customer_id)
        if filter.status is not None:
            stmt = stmt.where(Appointment.status == filter.status.value)
        stmt = stmt.offset(filter.skip).limit(filter.limit)
        result = await self.session.execute(stmt)
        return [to_domain(row) for row in result.scalars().all()]

    async def get(self, appointment_id: int, *, company_id: int) -> Optional[domain.Appointment]:
        row = await self._fetch(appointment_id, company_id=company_id)
        return to_domain(row) if row is not None else None

    async def check_overlap(
        self,
        professional_id: int,
        start: _dt.datetime,
        end: _dt.datetime,
        exclude_id: Optional[int] = None,
        *,
        company_id: int,
    ) -> domain.AvailabilityResult:
        stmt = (
            select(Appointment.id)
            .where(Appointment.company_id == company_id)
            .where(Appointment.professional_id == professional_id)
            .where(Appointment.status != domain.AppointmentStatus.CANCELLED.value)
            .where(Appointment.start_time < end)
            .where(Appointment.end_time > start)
            .order_by(Appointment.start_time)
        )
        if exclude_id is not None:
            stmt = stmt.where(Appointment.id != exclude_id)
        result = await self.session.execute(stmt)
        conflicting = tuple(result.scalars().all())
        return domain.AvailabilityResult(available=not conflicting, conflicting_ids=conflicting)

    async def busy_intervals(
        self, professional_id: int, start: _dt.datetime, end: _dt.datetime, *, company_id: int
    ) -> List[tuple[_dt.datetime, _dt.datetime]]:
        """Non-cancelled (start, end) pairs for the professional touching [start, end)."""
        stmt = (
            select(Appointment.start_time, Appointment.end_time)
            .where(Appointment.company_id == company_id)
            .where(Appointment.professional_id == professional_id)
            .where(Appointment.status != domain.AppointmentStatus.CANCELLED.value)
            .where(Appointment.start_time < end)
            .where(Appointment.end_time > start)
            .order_by(Appointment.start_time)
        )
        result = await self.session.execute(stmt)
        return [(row.start_time, row.end_time) for row in result.all()]

    # ── Writes ────────────────────────────────────────────────────────────────

    async def create(self, payload: domain.AppointmentPayload) -> domain.Appointment:
        await self._lock_professionals(payload.professional_id)
        await self._ensure_free(
            payload.professional_id, payload.start_time, payload.end_time, company_id=payload.company_id
        )
        await self._move_stock(_quantities(payload.products), company_id=payload.company_id)

        row = await self.insert(
            {
                "company_id": payload.company_id,
                "customer_id": payload.customer_id,
                "professional_id": payload.professional_id,
                "start_time": payload.start_time,
                "end_time": payload.end_time,
                "status": payload.status.value,
                "total_amount": payload.total_amount,
                "discount": payload.discount_percent,
                "notes": payload.notes,
                "services": self._service_rows(payload),
                "products": self._product_rows(payload),
            }
        )
        logger.debug("AppointmentRepository: inserted appointment %s", row.id)
        return await self._reload(row.id)

    async def update(
        self, appointment_id: int, payload: domain.AppointmentPayload
    ) -> domain.Appointment:
        row = await self._fetch(appointment_id, company_id=payload.company_id, for_update=True)
        if row is None:
            raise NotFoundError("Agendamento não encontrado", details={"appointment_id": appointment_id})
        # Row lock held: a concurrent status change waits, so the stored status is current.
        ensure_editable(domain.AppointmentStatus(row.status))

        await self._lock_professionals(row.professional_id, payload.professional_id)
        await self._ensure_free(
            payload.professional_id,
            payload.start_time,
            payload.end_time,
            exclude_id=row.id,
            company_id=payload.company_id,
        )
        deltas = _quantities(payload.products)
        deltas.subtract(_quantities(row.products))
        await self._move_stock(deltas, company_id=payload.company_id)

        row.customer_id = payload.customer_id
        row.professional_id = payload.professional_id
        row.start_time = payload.start_time
        row.end_time = payload.end_time
        row.total_amount = payload.total_amount
        row.discount = payload.discount_percent
        row.notes = payload.notes
        row.services = self._service_rows(payload)
        row.products = self._product_rows(payload)
        await self.session.flush()
        logger.debug("AppointmentRepository: updated appointment %s", row.id)
        return await self._reload(row.id)

    async def set_status(
        self,
        appointment_id: int,
        from_status: domain.AppointmentStatus,
        to_status: domain.AppointmentStatus,
    ) -> Optional[domain.Appointment]:
        stmt = (
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .where(Appointment.status == from_status.value)
            .values(status=to_status.value, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return None
        return await self._reload(appointment_id)

    # ── Helpers ───────────────────────────────────────────────────────────────

    async def _fetch(
        self,
        appointment_id: int,
        *,
        company_id: Optional[int] = None,
        for_update: bool = False,
    ) -> Optional[Appointment]:
        stmt = (
            select(Appointment)
            .options(*_LOAD_OPTIONS)
            .where(Appointment.id == appointment_id)
            .execution_options(populate_existing=True)
        )
        if company_id is not None:
            stmt = stmt.where(Appointment.company_id == company_id)
        if for_update:
            stmt = stmt.with_for_update(of=Appointment)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _reload(self, appointment_id: int) -> domain.Appointment:
        row = await self._fetch(appointment_id)
        if row is None:
            raise NotFoundError("Agendamento não encontrado", details={"appointment_id": appointment_id})
        return to_domain(row)

    async def _lock_professionals(self, *professional_ids: int) -> None:
        # Ascending order so two writers moving between the same pair cannot deadlock.
        for professional_id in sorted(set(professional_ids)):
            await self.session.execute(
                text("SELECT pg_advisory_xact_lock(:namespace, :key)"),
                {"namespace": _PROFESSIONAL_LOCK_NAMESPACE, "key": professional_id},
            )

    async def _ensure_free(
        self,
        professional_id: int,
        start: _dt.datetime,
        end: _dt.datetime,
        exclude_id: Optional[int] = None,
        *,
        company_id: int,
    ) -> None:
        result = await self.check_overlap(
            professional_id, start, end, exclude_id, company_id=company_id
        )
        if not result.available:
            logger.warning(
                "AppointmentRepository: overlap detected under lock for professional %s",
                professional_id,
                extra={"professional_id": professional_id},
            )
            raise ConflictError(
                UNAVAILABLE_MESSAGE, details={"conflicting_ids": list(result.conflicting_ids)}
            )

    async def _move_stock(self, deltas: Mapping[int, int], *, company_id: int) -> None:
        """Positive deltas take stock, negative ones give it back."""
        for product_id in sorted(deltas):
            delta = deltas[product_id]
            if delta > 0:
                if not await self._products.decrement(product_id, delta, company_id=company_id):
                    product = await self._products.get(product_id, company_id=company_id)
                    name = product.name if product is not None else f"#{product_id}"
                    raise StockError(
                        insufficient_message(name), product_id=product_id, product_name=name
                    )
            elif delta < 0:
                await self._products.increment(product_id, -delta, company_id=company_id)

    @staticmethod
    def _service_rows(payload: domain.AppointmentPayload) -> List[AppointmentService]:
        return [
            AppointmentService(
                service_id=line.service_id,
                quantity=line.quantity,
                price=line.unit_price,
                duration=line.duration,
            )
            for line in payload.services
        ]

    @staticmethod
    def _product_rows(payload: domain.AppointmentPayload) -> List[AppointmentProduct]:
        return [
            AppointmentProduct(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                usage_type=line.usage_type.value,
            )
            for line in payload.products
        ]
