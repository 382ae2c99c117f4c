"""
Base exception for booking errors.

Every error carries a user-facing message (Portuguese, shown as-is by the
booking form), a machine-readable code and the HTTP status the API answers
with. Subclasses in ``errors.py`` only set the two defaults.
"""
from __future__ import annotations

import traceback
from typing import Any, Optional


class ProjectError(Exception):
    """
    Attributes:
        message: Text shown to the user.
        code: Machine-readable slug, e.g. ``INSUFFICIENT_STOCK``.
        http_status: Status the API responds with.
        details: Extra context such as offending fields or conflicting ids.
        cause: Underlying exception, logged but never returned to clients.
    """

    default_code: str = "ERROR"
    default_http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.http_status = http_status or self.default_http_status
        self.details: dict[str, Any] = details or {}
        self.cause = cause

    def __str__(self) -> str:
        return self.message

    def response_body(self) -> dict[str, Any]:
        """JSON body for API clients: message, code and details only."""
        return {"message": self.message, "code": self.code, "details": self.details}

    def to_dict(self, *, include_cause: bool = False) -> dict[str, Any]:
        """Serialize for logs. The cause traceback is opt-in."""
        out: dict[str, Any] = {
            "message": self.message,
            "code": self.code,
            "http_status": self.http_status,
        }
        if self.details:
            out["details"] = self.details
        if include_cause and self.cause is not None:
            out["cause"] = str(self.cause)
            out["cause_traceback"] = traceback.format_exception(
                type(self.cause), self.cause, self.cause.__traceback__
            )
        return out
