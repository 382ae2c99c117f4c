"""Core data structures for the scheduling layer."""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple


class AppointmentStatus(str, Enum):
    """Lifecycle of a booking. SCHEDULED is initial; the last three are terminal."""
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class StatusAction(str, Enum):
    """User actions that move an appointment between statuses."""
    CONFIRM = "confirm"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    NO_SHOW = "no-show"


class UsageType(str, Enum):
    """SOLD products are billed to the customer; USED ones are consumed in the service."""
    USED = "USED"
    SOLD = "SOLD"


# ── Line items (as submitted) ─────────────────────────────────────────────────

@dataclass(frozen=True)
class ServiceLineItem:
    service_id: int
    quantity: int = 1


@dataclass(frozen=True)
class ProductLineItem:
    product_id: int
    quantity: int = 1
    unit_price: Optional[Decimal] = None
    """None until resolved from the product catalog."""
    usage_type: UsageType = UsageType.SOLD


# ── Catalog entries (read-only to the core) ───────────────────────────────────

@dataclass(frozen=True)
class CatalogService:
    id: int
    name: str
    price: Decimal
    duration: Optional[int] = None
    """Minutes; None means the catalog entry omits it."""


@dataclass(frozen=True)
class CatalogProduct:
    id: int
    name: str
    price: Decimal
    stock: int
    unit: str = "UN"


# ── Line items (as persisted, with price/duration snapshots) ─────────────────

@dataclass(frozen=True)
class PricedServiceLine:
    service_id: int
    quantity: int
    unit_price: Decimal
    duration: int
    name: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_duration(self) -> int:
        return self.duration * self.quantity


@dataclass(frozen=True)
class PricedProductLine:
    product_id: int
    quantity: int
    unit_price: Decimal
    usage_type: UsageType = UsageType.SOLD
    name: Optional[str] = None

    @property
    def billable_total(self) -> Decimal:
        if self.usage_type is UsageType.SOLD:
            return self.unit_price * self.quantity
        return Decimal("0")


# ── Computation results ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    total_duration: int
    """Minutes; zero when no service resolved."""


@dataclass(frozen=True)
class WindowCheck:
    valid: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class AvailabilityWindow:
    professional_id: int
    start: _dt.datetime
    end: _dt.datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError("AvailabilityWindow end must be after start")


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflicting_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class StockCheckResult:
    ok: bool
    first_insufficient: Optional[int] = None
    product_name: Optional[str] = None
    requested: int = 0


# ── Requests and records ──────────────────────────────────────────────────────

@dataclass
class BookingRequest:
    """Raw selections submitted by the booking form.

    ``start_time`` is a business-local "HH:MM" string on ``day``.
    """
    customer_id: int
    professional_id: int
    day: _dt.date
    start_time: str
    services: List[ServiceLineItem] = field(default_factory=list)
    products: List[ProductLineItem] = field(default_factory=list)
    discount_percent: Decimal = Decimal("0")
    notes: Optional[str] = None


@dataclass
class AppointmentPayload:
    """Everything the store needs to insert or patch one appointment."""
    company_id: int
    customer_id: int
    professional_id: int
    start_time: _dt.datetime
    end_time: _dt.datetime
    status: AppointmentStatus
    total_amount: Decimal
    discount_percent: Decimal
    services: List[PricedServiceLine]
    products: List[PricedProductLine] = field(default_factory=list)
    notes: Optional[str] = None


@dataclass
class Appointment:
    id: int
    company_id: int
    customer_id: int
    professional_id: int
    start_time: _dt.datetime
    end_time: _dt.datetime
    status: AppointmentStatus
    total_amount: Decimal
    discount_percent: Decimal
    services: List[PricedServiceLine] = field(default_factory=list)
    products: List[PricedProductLine] = field(default_factory=list)
    notes: Optional[str] = None
    customer_name: Optional[str] = None
    professional_name: Optional[str] = None
    created_at: Optional[_dt.datetime] = None
    updated_at: Optional[_dt.datetime] = None

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


@dataclass(frozen=True)
class AppointmentFilter:
    company_id: int
    start: Optional[_dt.datetime] = None
    end: Optional[_dt.datetime] = None
    professional_id: Optional[int] = None
    customer_id: Optional[int] = None
    status: Optional[AppointmentStatus] = None
    skip: int = 0
    limit: int = 500
