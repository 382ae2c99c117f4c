"""BookingOrchestrator: turn a booking request into a validated, priced, persisted appointment.

Steps for both create and update:

1. Structural validation (fields, quantities, discount range).
2. Stock validation for product lines, first shortfall aborts.
3. Window policy + start/end computation from the priced services.
4. Availability re-check, only on create or when start/professional moved.
5. Totals and payload assembly.
6. One store call (create or update).

Steps 1-5 never write. Anything a collaborator raises that is not a
``ProjectError`` surfaces as ``CollaboratorError``; nothing is retried here.
"""
from __future__ import annotations

import datetime as _dt
import logging
from decimal import Decimal, InvalidOperation
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from salonbook.config.scheduling import SchedulingConfig
from salonbook.core.exceptions import (
    CollaboratorError,
    InvalidTransitionError,
    NotFoundError,
    ProjectError,
    ValidationError,
)
from salonbook.scheduling.availability import AvailabilityChecker, needs_recheck
from salonbook.scheduling.ports import AppointmentStore, ProductCatalog, ServiceCatalog
from salonbook.scheduling.pricing import compute_totals, money, price_service_lines
from salonbook.scheduling.slots import combine_local, compute_end_time, ensure_window, parse_time
from salonbook.scheduling.status import (
    INVALID_TRANSITION_MESSAGE,
    ensure_editable,
    next_status,
    parse_action,
)
from salonbook.scheduling.stock import StockValidator
from salonbook.scheduling.types import (
    Appointment,
    AppointmentPayload,
    AppointmentStatus,
    BookingRequest,
    CatalogService,
    PricedProductLine,
    ProductLineItem,
    StatusAction,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

NOT_FOUND_MESSAGE = "Agendamento não encontrado"
COLLABORATOR_FAILURE_MESSAGE = "Falha ao comunicar com o serviço externo"


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def _non_negative(value) -> bool:
    price = Decimal(value)
    return price.is_finite() and price >= 0


def validate_request(request: BookingRequest, config: Optional[SchedulingConfig] = None) -> None:
    """Field-level checks that need no collaborator. Raises ValidationError listing every bad field."""
    config = config or SchedulingConfig()
    errors: Dict[str, str] = {}

    if not request.customer_id or request.customer_id < 1:
        errors["customer_id"] = "Cliente é obrigatório"
    if not request.professional_id or request.professional_id < 1:
        errors["professional_id"] = "Profissional é obrigatório"
    if request.day is None:
        errors["day"] = "Data é obrigatória"
    if not request.start_time:
        errors["start_time"] = "Horário de início é obrigatório"
    elif parse_time(request.start_time) is None:
        errors["start_time"] = "Horário inválido"

    if not request.services:
        errors["services"] = "Pelo menos um serviço é obrigatório"
    for i, line in enumerate(request.services):
        if not line.service_id or line.service_id < 1:
            errors[f"services[{i}].service_id"] = "Serviço é obrigatório"
        if line.quantity is None or line.quantity < 1:
            errors[f"services[{i}].quantity"] = "Quantidade deve ser maior que 0"

    for i, item in enumerate(request.products):
        if not item.product_id or item.product_id < 1:
            errors[f"products[{i}].product_id"] = "Produto é obrigatório"
        if item.quantity is None or item.quantity < 1:
            errors[f"products[{i}].quantity"] = "Quantidade deve ser maior que 0"
        if item.unit_price is not None and not _non_negative(item.unit_price):
            errors[f"products[{i}].unit_price"] = "Preço não pode ser negativo"

    try:
        discount = Decimal(request.discount_percent if request.discount_percent is not None else 0)
    except (InvalidOperation, TypeError, ValueError):
        discount = Decimal("-1")
    if not discount.is_finite() or discount < 0 or discount > 100:
        errors["discount_percent"] = "Desconto deve estar entre 0 e 100"

    if request.notes and len(request.notes) > config.max_notes_length:
        errors["notes"] = f"Observações devem ter no máximo {config.max_notes_length} caracteres"

    if errors:
        first = next(iter(errors.values()))
        raise ValidationError(first, details={"fields": errors})


class BookingOrchestrator:
    def __init__(
        self,
        appointments: AppointmentStore,
        services: ServiceCatalog,
        products: ProductCatalog,
        config: Optional[SchedulingConfig] = None,
        *,
        clock: Callable[[], _dt.datetime] = _utcnow,
    ) -> None:
        self._appointments = appointments
        self._services = services
        self._products = products
        self._config = config or SchedulingConfig()
        self._clock = clock
        self._availability = AvailabilityChecker(appointments)
        self._stock = StockValidator(products)

    @property
    def config(self) -> SchedulingConfig:
        return self._config

    # ── Create / update ───────────────────────────────────────────────────────

    async def create(self, request: BookingRequest, *, company_id: int) -> Appointment:
        return await self.create_or_update(request, company_id=company_id)

    async def update(
        self, appointment_id: int, request: BookingRequest, *, company_id: int
    ) -> Appointment:
        return await self.create_or_update(
            request, company_id=company_id, appointment_id=appointment_id
        )

    async def create_or_update(
        self,
        request: BookingRequest,
        *,
        company_id: int,
        appointment_id: Optional[int] = None,
    ) -> Appointment:
        if not company_id or company_id < 1:
            raise ValidationError.for_field("company_id", "Empresa é obrigatória")

        existing: Optional[Appointment] = None
        if appointment_id is not None:
            existing = await self._load(appointment_id, company_id)
            ensure_editable(existing.status)

        validate_request(request, self._config)
        catalog = await self._call(
            self._services.list_by_professional(request.professional_id, company_id=company_id)
        )
        self._ensure_services_offered(request, catalog)

        product_lines = await self._resolve_products(request.products, company_id)
        if product_lines:
            await self._call(
                self._stock.ensure_stock(
                    product_lines, self._reserved(existing), company_id=company_id
                )
            )

        start = combine_local(request.day, request.start_time, self._config)
        if existing is None or existing.start_time != start:
            ensure_window(request.day, request.start_time, now=self._clock(), config=self._config)

        discount = Decimal(request.discount_percent or 0)
        totals = compute_totals(
            request.services,
            product_lines,
            discount,
            catalog,
            default_duration=self._config.default_service_minutes,
        )
        end = compute_end_time(start, totals.total_duration or self._config.fallback_duration_minutes)

        if needs_recheck(existing, request.professional_id, start):
            await self._call(
                self._availability.ensure_available(
                    request.professional_id,
                    start,
                    end,
                    exclude_appointment_id=existing.id if existing else None,
                    company_id=company_id,
                )
            )

        payload = AppointmentPayload(
            company_id=company_id,
            customer_id=request.customer_id,
            professional_id=request.professional_id,
            start_time=start,
            end_time=end,
            status=existing.status if existing else AppointmentStatus.SCHEDULED,
            total_amount=totals.total_amount,
            discount_percent=discount,
            services=price_service_lines(
                request.services,
                catalog,
                default_duration=self._config.default_service_minutes,
            ),
            products=[
                PricedProductLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=money(item.unit_price or 0),
                    usage_type=item.usage_type,
                )
                for item in product_lines
            ],
            notes=(request.notes or "").strip() or None,
        )

        if existing is None:
            saved = await self._call(self._appointments.create(payload))
            logger.info(
                "BookingOrchestrator: created appointment %s for professional %s at %s",
                saved.id, payload.professional_id, start.isoformat(),
                extra={"company_id": company_id, "appointment_id": saved.id},
            )
        else:
            saved = await self._call(self._appointments.update(existing.id, payload))
            logger.info(
                "BookingOrchestrator: updated appointment %s",
                saved.id,
                extra={"company_id": company_id, "appointment_id": saved.id},
            )
        return saved

    # ── Status transitions ────────────────────────────────────────────────────

    async def apply_action(
        self,
        appointment_id: int,
        action: Union[StatusAction, str],
        *,
        company_id: int,
    ) -> Appointment:
        if not isinstance(action, StatusAction):
            action = parse_action(action)
        existing = await self._load(appointment_id, company_id)
        target = next_status(existing.status, action)

        updated = await self._call(
            self._appointments.set_status(existing.id, existing.status, target)
        )
        if updated is None:
            # Another writer moved the status between our read and the update.
            raise InvalidTransitionError(
                INVALID_TRANSITION_MESSAGE,
                details={"status": existing.status.value, "action": action.value},
            )
        logger.info(
            "BookingOrchestrator: appointment %s %s -> %s",
            existing.id, existing.status.value, target.value,
            extra={"company_id": company_id, "appointment_id": existing.id, "action": action.value},
        )
        return updated

    # ── Helpers ───────────────────────────────────────────────────────────────

    async def _load(self, appointment_id: int, company_id: int) -> Appointment:
        appointment = await self._call(
            self._appointments.get(appointment_id, company_id=company_id)
        )
        if appointment is None:
            raise NotFoundError(NOT_FOUND_MESSAGE, details={"appointment_id": appointment_id})
        return appointment

    @staticmethod
    def _ensure_services_offered(
        request: BookingRequest, catalog: Sequence[CatalogService]
    ) -> None:
        offered = {entry.id for entry in catalog}
        missing = {
            f"services[{i}].service_id": "Serviço não oferecido por este profissional"
            for i, line in enumerate(request.services)
            if line.service_id not in offered
        }
        if missing:
            raise ValidationError(next(iter(missing.values())), details={"fields": missing})

    async def _resolve_products(
        self, items: Sequence[ProductLineItem], company_id: int
    ) -> List[ProductLineItem]:
        """Fill missing unit prices from the product catalog; unknown products are rejected."""
        resolved: List[ProductLineItem] = []
        for i, item in enumerate(items):
            if item.unit_price is not None:
                resolved.append(item)
                continue
            product = await self._call(self._products.get(item.product_id, company_id=company_id))
            if product is None:
                raise ValidationError.for_field(
                    f"products[{i}].product_id", "Produto não encontrado"
                )
            resolved.append(
                ProductLineItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=product.price,
                    usage_type=item.usage_type,
                )
            )
        return resolved

    @staticmethod
    def _reserved(existing: Optional[Appointment]) -> Dict[int, int]:
        reserved: Dict[int, int] = {}
        if existing is None:
            return reserved
        for line in existing.products:
            reserved[line.product_id] = reserved.get(line.product_id, 0) + line.quantity
        return reserved

    @staticmethod
    async def _call(awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except ProjectError:
            raise
        except Exception as exc:
            logger.error("BookingOrchestrator: collaborator call failed: %s", exc)
            raise CollaboratorError(
                str(exc) or COLLABORATOR_FAILURE_MESSAGE,
                details={"collaborator_error": type(exc).__name__},
                cause=exc,
            ) from exc
