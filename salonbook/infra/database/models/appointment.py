"""Appointment ORM models: the booking and its priced service/product lines."""
from __future__ import annotations

import datetime as _dt
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salonbook.infra.database.models.base import Base, TimestampMixin
from salonbook.infra.database.models.catalog import Product, Service
from salonbook.infra.database.models.company import Customer
from salonbook.infra.database.models.professional import Professional


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_appointments_end_after_start"),
        CheckConstraint(
            "discount >= 0 AND discount <= 100", name="ck_appointments_discount_range"
        ),
        Index("ix_appointments_professional_window", "professional_id", "start_time", "end_time"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    professional_id: Mapped[int] = mapped_column(
        ForeignKey("professionals.id", ondelete="RESTRICT"), nullable=False
    )

    # Stored in UTC
    start_time: Mapped[_dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[_dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # SCHEDULED | CONFIRMED | IN_PROGRESS | COMPLETED | CANCELLED | NO_SHOW
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="SCHEDULED", index=True)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    customer: Mapped[Customer] = relationship()
    professional: Mapped[Professional] = relationship()
    services: Mapped[List["AppointmentService"]] = relationship(
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentService.id",
    )
    products: Mapped[List["AppointmentProduct"]] = relationship(
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentProduct.id",
    )


class AppointmentService(Base):
    """Service line with the price and duration captured at booking time."""

    __tablename__ = "appointment_services"

    id: Mapped[int] = mapped_column(primary_key=True)
    appointment_id: Mapped[int] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id: Mapped[int] = mapped_column(
        ForeignKey("services.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)

    appointment: Mapped[Appointment] = relationship(back_populates="services")
    service: Mapped[Service] = relationship()


class AppointmentProduct(Base):
    __tablename__ = "appointment_products"

    id: Mapped[int] = mapped_column(primary_key=True)
    appointment_id: Mapped[int] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # USED (consumed in the service) | SOLD (billed to the customer)
    usage_type: Mapped[str] = mapped_column(String(8), nullable=False, default="SOLD")

    appointment: Mapped[Appointment] = relationship(back_populates="products")
    product: Mapped[Product] = relationship()
