"""Scheduling core: pricing, slots, availability, stock and the status machine."""
from salonbook.scheduling.availability import AvailabilityChecker, intervals_overlap
from salonbook.scheduling.orchestrator import BookingOrchestrator, validate_request
from salonbook.scheduling.ports import AppointmentStore, ProductCatalog, ServiceCatalog
from salonbook.scheduling.pricing import compute_totals, money
from salonbook.scheduling.slots import available_slots, generate_slots, validate_window
from salonbook.scheduling.status import available_actions, next_status
from salonbook.scheduling.stock import StockValidator
from salonbook.scheduling.types import (
    Appointment,
    AppointmentFilter,
    AppointmentPayload,
    AppointmentStatus,
    BookingRequest,
    CatalogProduct,
    CatalogService,
    PricedProductLine,
    PricedServiceLine,
    ProductLineItem,
    ServiceLineItem,
    StatusAction,
    Totals,
    UsageType,
)

__all__ = [
    "Appointment",
    "AppointmentFilter",
    "AppointmentPayload",
    "AppointmentStatus",
    "AppointmentStore",
    "AvailabilityChecker",
    "BookingOrchestrator",
    "BookingRequest",
    "CatalogProduct",
    "CatalogService",
    "PricedProductLine",
    "PricedServiceLine",
    "ProductCatalog",
    "ProductLineItem",
    "ServiceCatalog",
    "ServiceLineItem",
    "StatusAction",
    "StockValidator",
    "Totals",
    "UsageType",
    "available_actions",
    "available_slots",
    "compute_totals",
    "generate_slots",
    "intervals_overlap",
    "money",
    "next_status",
    "validate_request",
    "validate_window",
]
