"""Pricing and duration calculator.

Pure functions over line items and catalog lookups. Cheap enough to run on
every edit of the booking form; UI layers may debounce calls for rendering,
nothing here needs scheduling.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Sequence, Union

from salonbook.scheduling.types import (
    CatalogService,
    PricedProductLine,
    PricedServiceLine,
    ProductLineItem,
    ServiceLineItem,
    Totals,
    UsageType,
)

DEFAULT_SERVICE_DURATION = 30
_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")

ServiceCatalogLike = Union[Mapping[int, CatalogService], Iterable[CatalogService]]


def money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Quantize to cents, half-up."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def index_catalog(catalog: ServiceCatalogLike) -> Mapping[int, CatalogService]:
    if isinstance(catalog, Mapping):
        return catalog
    return {entry.id: entry for entry in catalog}


def service_duration(entry: CatalogService, default: int = DEFAULT_SERVICE_DURATION) -> int:
    return entry.duration if entry.duration else default


def apply_discount(subtotal: Decimal, discount_percent: Decimal) -> tuple[Decimal, Decimal]:
    """Return (discount_amount, total_amount), total floored at zero."""
    discount_amount = money(subtotal * Decimal(discount_percent) / _HUNDRED)
    total = subtotal - discount_amount
    return discount_amount, money(max(Decimal("0"), total))


def compute_totals(
    service_lines: Sequence[ServiceLineItem],
    product_lines: Sequence[ProductLineItem],
    discount_percent: Decimal,
    service_catalog: ServiceCatalogLike,
    *,
    default_duration: int = DEFAULT_SERVICE_DURATION,
) -> Totals:
    """Derive subtotal, discount, total and duration from the submitted lines.

    Service lines whose id does not resolve in ``service_catalog`` contribute
    nothing. USED products never reach the subtotal.
    """
    catalog = index_catalog(service_catalog)
    amount = Decimal("0")
    duration = 0

    for line in service_lines:
        if line.service_id <= 0 or line.quantity <= 0:
            continue
        entry = catalog.get(line.service_id)
        if entry is None:
            continue
        amount += Decimal(entry.price) * line.quantity
        duration += service_duration(entry, default_duration) * line.quantity

    for item in product_lines:
        if item.quantity <= 0 or item.usage_type is not UsageType.SOLD:
            continue
        amount += Decimal(item.unit_price or 0) * item.quantity

    subtotal = money(amount)
    discount_amount, total_amount = apply_discount(subtotal, discount_percent)
    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        total_amount=total_amount,
        total_duration=duration,
    )


def price_service_lines(
    service_lines: Sequence[ServiceLineItem],
    service_catalog: ServiceCatalogLike,
    *,
    default_duration: int = DEFAULT_SERVICE_DURATION,
) -> list[PricedServiceLine]:
    """Snapshot catalog price and duration onto each resolvable line."""
    catalog = index_catalog(service_catalog)
    priced: list[PricedServiceLine] = []
    for line in service_lines:
        entry = catalog.get(line.service_id)
        if entry is None or line.quantity <= 0:
            continue
        priced.append(
            PricedServiceLine(
                service_id=entry.id,
                quantity=line.quantity,
                unit_price=money(entry.price),
                duration=service_duration(entry, default_duration),
                name=entry.name,
            )
        )
    return priced


def recompute_total(
    services: Iterable[PricedServiceLine],
    products: Iterable[PricedProductLine],
    discount_percent: Decimal,
) -> Decimal:
    """Total derived from stored snapshots; must equal the stored total_amount."""
    subtotal = sum((line.line_total for line in services), Decimal("0"))
    subtotal += sum((line.billable_total for line in products), Decimal("0"))
    return apply_discount(money(subtotal), discount_percent)[1]


def recompute_duration(
    services: Iterable[PricedServiceLine],
    fallback: Optional[int] = None,
) -> int:
    total = sum(line.line_duration for line in services)
    if total == 0 and fallback is not None:
        return fallback
    return total
