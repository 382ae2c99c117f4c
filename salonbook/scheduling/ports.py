"""Collaborator contracts consumed by the scheduling core.

The core owns no storage. Implementations live in
``salonbook.infra.database.repositories``; tests use in-memory fakes.
"""
from __future__ import annotations

import datetime as _dt
from abc import ABC, abstractmethod
from typing import List, Optional

from salonbook.scheduling.types import (
    Appointment,
    AppointmentFilter,
    AppointmentPayload,
    AppointmentStatus,
    AvailabilityResult,
    CatalogProduct,
    CatalogService,
)


class AppointmentStore(ABC):
    """Owns the appointment collection.

    Implementations must guarantee that no two non-cancelled appointments
    for the same professional persist with overlapping intervals, even under
    concurrent ``create``/``update`` calls.
    """

    @abstractmethod
    async def list(self, filter: AppointmentFilter) -> List[Appointment]:
        ...

    @abstractmethod
    async def get(self, appointment_id: int, *, company_id: int) -> Optional[Appointment]:
        ...

    @abstractmethod
    async def create(self, payload: AppointmentPayload) -> Appointment:
        ...

    @abstractmethod
    async def update(self, appointment_id: int, payload: AppointmentPayload) -> Appointment:
        ...

    @abstractmethod
    async def check_overlap(
        self,
        professional_id: int,
        start: _dt.datetime,
        end: _dt.datetime,
        exclude_id: Optional[int] = None,
        *,
        company_id: int,
    ) -> AvailabilityResult:
        """Non-cancelled bookings of the company's professional that collide with [start, end)."""

    @abstractmethod
    async def set_status(
        self,
        appointment_id: int,
        from_status: AppointmentStatus,
        to_status: AppointmentStatus,
    ) -> Optional[Appointment]:
        """Atomically move ``from_status`` → ``to_status``.

        Returns None when the stored status is no longer ``from_status``.
        """


class ServiceCatalog(ABC):
    @abstractmethod
    async def list_by_professional(
        self, professional_id: int, *, company_id: int
    ) -> List[CatalogService]:
        """Services the professional offers, custom price applied."""


class ProductCatalog(ABC):
    @abstractmethod
    async def list(self, company_id: int) -> List[CatalogProduct]:
        ...

    @abstractmethod
    async def get(self, product_id: int, *, company_id: int) -> Optional[CatalogProduct]:
        ...

    @abstractmethod
    async def check_stock(self, product_id: int, quantity: int, *, company_id: int) -> bool:
        ...
