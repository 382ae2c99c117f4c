"""Generic async repository for SQLAlchemy 2.0, scoped to one company."""
from __future__ import annotations

from typing import Any, ClassVar, Generic, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    model: ClassVar[type]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, id: int, *, company_id: Optional[int] = None) -> Optional[ModelT]:
        instance = await self.session.get(self.model, id)
        if instance is None:
            return None
        if company_id is not None and getattr(instance, "company_id", company_id) != company_id:
            return None
        return instance  # type: ignore[return-value]

    async def insert(self, data: dict[str, Any]) -> ModelT:
        instance = self.model(**data)
        self.session.add(instance)
        await self.session.flush()
        return instance  # type: ignore[return-value]
