"""
salonbook.infra.database – PostgreSQL async engine, session, models and repositories.

Public API
──────────
  build_engine, build_session_factory, get_db, init_db, close_engine
  AppointmentRepository, ProductRepository, ServiceCatalogRepository
"""
from salonbook.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    get_db,
    init_db,
)
from salonbook.infra.database.models import Base
from salonbook.infra.database.repositories import (
    AppointmentRepository,
    BaseRepository,
    ProductRepository,
    ServiceCatalogRepository,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "ensure_database_exists",
    "get_db",
    "init_db",
    "close_engine",
    "Base",
    "BaseRepository",
    "AppointmentRepository",
    "ProductRepository",
    "ServiceCatalogRepository",
]
