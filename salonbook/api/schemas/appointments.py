"""Pydantic schemas for the Appointments API."""
from __future__ import annotations

import datetime as _dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from salonbook.scheduling.types import (
    Appointment,
    BookingRequest,
    CatalogService,
    ProductLineItem,
    ServiceLineItem,
    UsageType,
)


# ── Requests ──────────────────────────────────────────────────────────────────
# Range and quantity rules are enforced by the booking core so that every
# violation comes back as the same field-level 400 payload.

class ServiceLineIn(BaseModel):
    service_id: int
    quantity: int = 1


class ProductLineIn(BaseModel):
    product_id: int
    quantity: int = 1
    unit_price: Optional[Decimal] = None
    usage_type: UsageType = UsageType.SOLD


class AppointmentCreate(BaseModel):
    """Booking form submission. ``start_time`` is business-local "HH:MM" on ``date``."""

    customer_id: int
    professional_id: int
    date: _dt.date
    start_time: str = Field(..., max_length=8)
    services: List[ServiceLineIn] = Field(default_factory=list)
    products: List[ProductLineIn] = Field(default_factory=list)
    discount: Decimal = Decimal("0")
    notes: Optional[str] = None

    def to_request(self) -> BookingRequest:
        return BookingRequest(
            customer_id=self.customer_id,
            professional_id=self.professional_id,
            day=self.date,
            start_time=self.start_time,
            services=[ServiceLineItem(s.service_id, s.quantity) for s in self.services],
            products=[
                ProductLineItem(p.product_id, p.quantity, p.unit_price, p.usage_type)
                for p in self.products
            ],
            discount_percent=self.discount,
            notes=self.notes,
        )


class AppointmentUpdate(AppointmentCreate):
    """Edits resubmit the whole form."""


# ── Responses ─────────────────────────────────────────────────────────────────

class ServiceLineOut(BaseModel):
    service_id: int
    name: Optional[str] = None
    quantity: int
    price: Decimal
    duration: int


class ProductLineOut(BaseModel):
    product_id: int
    name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    usage_type: UsageType


class AppointmentResponse(BaseModel):
    id: int
    customer_id: int
    customer_name: Optional[str] = None
    professional_id: int
    professional_name: Optional[str] = None
    start_time: _dt.datetime
    end_time: _dt.datetime
    status: str
    total_amount: Decimal
    discount: Decimal
    notes: Optional[str] = None
    services: List[ServiceLineOut] = Field(default_factory=list)
    products: List[ProductLineOut] = Field(default_factory=list)
    created_at: Optional[_dt.datetime] = None
    updated_at: Optional[_dt.datetime] = None

    @classmethod
    def from_domain(cls, a: Appointment) -> "AppointmentResponse":
        return cls(
            id=a.id,
            customer_id=a.customer_id,
            customer_name=a.customer_name,
            professional_id=a.professional_id,
            professional_name=a.professional_name,
            start_time=a.start_time,
            end_time=a.end_time,
            status=a.status.value,
            total_amount=a.total_amount,
            discount=a.discount_percent,
            notes=a.notes,
            services=[
                ServiceLineOut(
                    service_id=s.service_id,
                    name=s.name,
                    quantity=s.quantity,
                    price=s.unit_price,
                    duration=s.duration,
                )
                for s in a.services
            ],
            products=[
                ProductLineOut(
                    product_id=p.product_id,
                    name=p.name,
                    quantity=p.quantity,
                    unit_price=p.unit_price,
                    usage_type=p.usage_type,
                )
                for p in a.products
            ],
            created_at=a.created_at,
            updated_at=a.updated_at,
        )


class AvailabilityResponse(BaseModel):
    available: bool
    conflicting_ids: List[int] = Field(default_factory=list)


class SlotsResponse(BaseModel):
    professional_id: int
    date: _dt.date
    duration: int
    slots: List[str]


class ActionResponse(BaseModel):
    action: str
    label: str


class CalendarEventResponse(BaseModel):
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


class ProfessionalServiceResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    duration: Optional[int] = None

    @classmethod
    def from_domain(cls, s: CatalogService) -> "ProfessionalServiceResponse":
        return cls(id=s.id, name=s.name, price=s.price, duration=s.duration)
