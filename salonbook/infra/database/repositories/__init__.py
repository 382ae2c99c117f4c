"""Repositories for the salonbook database."""
from salonbook.infra.database.repositories.appointment import AppointmentRepository
from salonbook.infra.database.repositories.base import BaseRepository
from salonbook.infra.database.repositories.product import ProductRepository
from salonbook.infra.database.repositories.service_catalog import ServiceCatalogRepository

__all__ = [
    "BaseRepository",
    "AppointmentRepository",
    "ProductRepository",
    "ServiceCatalogRepository",
]
