"""Service catalog repository: services a professional offers, with custom prices."""
from __future__ import annotations

from typing import List

from sqlalchemy import select

from salonbook.infra.database.models.catalog import Service
from salonbook.infra.database.models.professional import ProfessionalService
from salonbook.infra.database.repositories.base import BaseRepository
from salonbook.scheduling.ports import ServiceCatalog
from salonbook.scheduling.types import CatalogService


class ServiceCatalogRepository(BaseRepository[Service], ServiceCatalog):
    model = Service

    async def list_by_professional(
        self, professional_id: int, *, company_id: int
    ) -> List[CatalogService]:
        stmt = (
            select(Service, ProfessionalService.custom_price)
            .join(ProfessionalService, ProfessionalService.service_id == Service.id)
            .where(ProfessionalService.professional_id == professional_id)
            .where(Service.company_id == company_id)
            .where(Service.active.is_(True))
            .order_by(Service.name)
        )
        result = await self.session.execute(stmt)
        return [
            CatalogService(
                id=service.id,
                name=service.name,
                price=custom_price if custom_price is not None else service.price,
                duration=service.duration,
            )
            for service, custom_price in result.all()
        ]
