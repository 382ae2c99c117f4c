"""
Project exception system.

Usage:
    from salonbook.core.exceptions import StockError, ValidationError

    raise ValidationError.for_field("customer_id", "Cliente é obrigatório")
    raise StockError("Estoque insuficiente para o produto Gel", product_id=4)
"""
from salonbook.core.exceptions.base import ProjectError
from salonbook.core.exceptions.errors import (
    CollaboratorError,
    ConfigurationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    StockError,
    ValidationError,
)

__all__ = [
    "ProjectError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StockError",
    "InvalidTransitionError",
    "CollaboratorError",
]
