"""
salonbook.config.scheduling – business hours and booking policy.

Env vars: SCHEDULE_OPEN_HOUR, SCHEDULE_CLOSE_HOUR, SCHEDULE_SLOT_MINUTES,
SCHEDULE_CLOSED_WEEKDAYS, SCHEDULE_DEFAULT_SERVICE_MINUTES,
SCHEDULE_FALLBACK_DURATION_MINUTES, SCHEDULE_TIMEZONE, SCHEDULE_MAX_NOTES_LENGTH.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_WEEKDAY_NAMES_PT = (
    "segundas",
    "terças",
    "quartas",
    "quintas",
    "sextas",
    "sábados",
    "domingos",
)


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Booking window policy shared by the slot generator and window validator.

    Weekdays use Python numbering (Monday=0 … Sunday=6).
    """

    open_hour: int = 8
    close_hour: int = 20
    slot_minutes: int = 30
    closed_weekdays: FrozenSet[int] = field(default_factory=lambda: frozenset({6}))
    default_service_minutes: int = 30
    """Duration used for a catalog service that has none."""

    fallback_duration_minutes: int = 60
    """Appointment length when its services add up to zero minutes."""

    timezone: str = "America/Sao_Paulo"
    """Business-local timezone; stored timestamps are UTC."""

    max_notes_length: int = 1000

    def __post_init__(self) -> None:
        if not (0 <= self.open_hour < self.close_hour <= 24):
            raise ValueError(
                f"open_hour/close_hour must satisfy 0 <= open < close <= 24, "
                f"got {self.open_hour}/{self.close_hour}"
            )
        if self.slot_minutes < 1 or (60 % self.slot_minutes and self.slot_minutes % 60):
            raise ValueError(f"slot_minutes must divide or be a multiple of 60, got {self.slot_minutes}")
        if any(d < 0 or d > 6 for d in self.closed_weekdays):
            raise ValueError("closed_weekdays must be in 0..6")
        if self.default_service_minutes < 1 or self.fallback_duration_minutes < 1:
            raise ValueError("durations must be >= 1 minute")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone {self.timezone!r}") from exc

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def hours_label(self) -> str:
        return f"{self.open_hour}h às {self.close_hour}h"

    @staticmethod
    def weekday_label(weekday: int) -> str:
        return _WEEKDAY_NAMES_PT[weekday]

    @classmethod
    def from_env(cls, **overrides: object) -> SchedulingConfig:
        def _int(attr: str, var: str, default: int) -> int:
            v = overrides.get(attr)
            return int(v) if v is not None else int(os.environ.get(var, default))

        closed = overrides.get("closed_weekdays")
        if closed is None:
            raw = os.environ.get("SCHEDULE_CLOSED_WEEKDAYS", "6")
            closed = frozenset(int(p) for p in raw.split(",") if p.strip())
        return cls(
            open_hour=_int("open_hour", "SCHEDULE_OPEN_HOUR", 8),
            close_hour=_int("close_hour", "SCHEDULE_CLOSE_HOUR", 20),
            slot_minutes=_int("slot_minutes", "SCHEDULE_SLOT_MINUTES", 30),
            closed_weekdays=frozenset(closed),  # type: ignore[arg-type]
            default_service_minutes=_int("default_service_minutes", "SCHEDULE_DEFAULT_SERVICE_MINUTES", 30),
            fallback_duration_minutes=_int("fallback_duration_minutes", "SCHEDULE_FALLBACK_DURATION_MINUTES", 60),
            timezone=str(overrides.get("timezone") or os.environ.get("SCHEDULE_TIMEZONE", "America/Sao_Paulo")),
            max_notes_length=_int("max_notes_length", "SCHEDULE_MAX_NOTES_LENGTH", 1000),
        )


def load_scheduling_config(**overrides: object) -> SchedulingConfig:
    return SchedulingConfig.from_env(**overrides)
