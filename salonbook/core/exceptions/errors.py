"""
Booking error types, one per HTTP outcome the API distinguishes.
"""
from __future__ import annotations

from typing import Any, Optional

from salonbook.core.exceptions.base import ProjectError


class ConfigurationError(ProjectError):
    """Invalid or missing configuration."""

    default_code = "CONFIGURATION_ERROR"
    default_http_status = 500


class ValidationError(ProjectError):
    """Request or input validation failed. ``details`` maps field -> message."""

    default_code = "VALIDATION_ERROR"
    default_http_status = 400

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details={"fields": {field: message}})

    @property
    def fields(self) -> dict[str, str]:
        return dict(self.details.get("fields", {}))


class NotFoundError(ProjectError):
    """Requested resource not found."""

    default_code = "NOT_FOUND"
    default_http_status = 404


class ConflictError(ProjectError):
    """Proposed time window overlaps an existing booking."""

    default_code = "CONFLICT"
    default_http_status = 409


class StockError(ProjectError):
    """Insufficient on-hand stock for a product line."""

    default_code = "INSUFFICIENT_STOCK"
    default_http_status = 409

    def __init__(
        self,
        message: str,
        *,
        product_id: Optional[int] = None,
        product_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        details = dict(kwargs.pop("details", None) or {})
        if product_id is not None:
            details.setdefault("product_id", product_id)
        if product_name is not None:
            details.setdefault("product_name", product_name)
        super().__init__(message, details=details, **kwargs)
        self.product_id = product_id
        self.product_name = product_name


class InvalidTransitionError(ProjectError):
    """Status action not legal from the appointment's current status."""

    default_code = "INVALID_TRANSITION"
    default_http_status = 409


class CollaboratorError(ProjectError):
    """External collaborator (store, catalog, network) failed."""

    default_code = "COLLABORATOR_ERROR"
    default_http_status = 502
