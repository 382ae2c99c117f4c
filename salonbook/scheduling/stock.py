"""Stock validator: pre-commit check that every product line can be served."""
from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Sequence

from salonbook.core.exceptions import StockError
from salonbook.scheduling.ports import ProductCatalog
from salonbook.scheduling.types import ProductLineItem, StockCheckResult

logger = logging.getLogger(__name__)


def insufficient_message(product_name: str) -> str:
    return f"Estoque insuficiente para o produto {product_name}"


class StockValidator:
    """Checks lines in submission order and stops at the first shortfall.

    SOLD and USED lines both consume physical stock. Lines for the same product
    are summed as they are walked, so a split request is checked against its
    running total. ``reserved`` holds the quantities the appointment being
    edited already took, so only the extra quantity of an edit is checked.
    """

    def __init__(self, catalog: ProductCatalog) -> None:
        self._catalog = catalog

    async def validate(
        self,
        product_lines: Sequence[ProductLineItem],
        reserved: Optional[Mapping[int, int]] = None,
        *,
        company_id: int,
    ) -> StockCheckResult:
        reserved = reserved or {}
        requested: Dict[int, int] = {}
        for line in product_lines:
            if line.quantity <= 0:
                continue
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
            needed = requested[line.product_id] - reserved.get(line.product_id, 0)
            if needed <= 0:
                continue
            if not await self._catalog.check_stock(line.product_id, needed, company_id=company_id):
                product = await self._catalog.get(line.product_id, company_id=company_id)
                name = product.name if product is not None else f"#{line.product_id}"
                return StockCheckResult(
                    ok=False,
                    first_insufficient=line.product_id,
                    product_name=name,
                    requested=requested[line.product_id],
                )
        return StockCheckResult(ok=True)

    async def ensure_stock(
        self,
        product_lines: Sequence[ProductLineItem],
        reserved: Optional[Mapping[int, int]] = None,
        *,
        company_id: int,
    ) -> None:
        result = await self.validate(product_lines, reserved, company_id=company_id)
        if not result.ok:
            logger.warning(
                "Stock: insufficient stock for product %s (requested %d)",
                result.first_insufficient, result.requested,
                extra={"company_id": company_id},
            )
            raise StockError(
                insufficient_message(result.product_name or ""),
                product_id=result.first_insufficient,
                product_name=result.product_name,
            )
