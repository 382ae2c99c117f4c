"""
salonbook.infra.database.models – SQLAlchemy 2.0 ORM models.

Exports Base, mixins, and all model classes.
"""
from salonbook.infra.database.models.appointment import (
    Appointment,
    AppointmentProduct,
    AppointmentService,
)
from salonbook.infra.database.models.base import Base, TimestampMixin
from salonbook.infra.database.models.catalog import Product, Service
from salonbook.infra.database.models.company import Company, Customer
from salonbook.infra.database.models.professional import Professional, ProfessionalService

__all__ = [
    "Base",
    "TimestampMixin",
    "Company",
    "Customer",
    "Professional",
    "ProfessionalService",
    "Service",
    "Product",
    "Appointment",
    "AppointmentService",
    "AppointmentProduct",
]
