"""Time-slot generation and booking window policy.

Business hours are evaluated in the configured local timezone; every
datetime that leaves this module is timezone-aware UTC.
"""
from __future__ import annotations

import datetime as _dt
from typing import Iterable, List, Optional, Tuple, Union

from salonbook.config.scheduling import SchedulingConfig
from salonbook.core.exceptions import ValidationError
from salonbook.scheduling.availability import intervals_overlap
from salonbook.scheduling.types import WindowCheck

TimeLike = Union[str, _dt.time]

_DEFAULT_CONFIG = SchedulingConfig()


def parse_time(value: TimeLike) -> Optional[_dt.time]:
    """Parse "HH:MM" (or "HH:MM:SS"); None when unparseable."""
    if isinstance(value, _dt.time):
        return value
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return _dt.datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    return None


def generate_slots(
    interval_minutes: int = 30,
    open_hour: int = 8,
    close_hour: int = 20,
    *,
    include_close: bool = False,
) -> List[str]:
    """Candidate start times from open_hour:00, one every ``interval_minutes``.

    Starts at or after close_hour:00 are left out unless ``include_close``
    is set, in which case close_hour:00 itself is emitted as the last slot.
    """
    if interval_minutes < 1:
        raise ValueError("interval_minutes must be >= 1")
    slots: List[str] = []
    minute = open_hour * 60
    close = close_hour * 60
    while minute < close:
        slots.append(f"{minute // 60:02d}:{minute % 60:02d}")
        minute += interval_minutes
    if include_close and close_hour < 24:
        slots.append(f"{close_hour:02d}:00")
    return slots


def compute_end_time(start: _dt.datetime, duration_minutes: int) -> _dt.datetime:
    """start + duration, rolling over hours and days."""
    if duration_minutes < 0:
        raise ValueError("duration_minutes must be >= 0")
    return start + _dt.timedelta(minutes=duration_minutes)


def combine_local(
    day: _dt.date,
    time: TimeLike,
    config: Optional[SchedulingConfig] = None,
) -> _dt.datetime:
    """Business-local day + time → aware UTC datetime."""
    config = config or _DEFAULT_CONFIG
    parsed = parse_time(time)
    if parsed is None:
        raise ValidationError.for_field("start_time", "Horário inválido")
    local = _dt.datetime.combine(day, parsed.replace(second=0, microsecond=0), tzinfo=config.tz)
    return local.astimezone(_dt.timezone.utc)


def to_local(moment: _dt.datetime, config: Optional[SchedulingConfig] = None) -> _dt.datetime:
    config = config or _DEFAULT_CONFIG
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=_dt.timezone.utc)
    return moment.astimezone(config.tz)


def validate_window(
    day: _dt.date,
    time: TimeLike,
    *,
    now: Optional[_dt.datetime] = None,
    config: Optional[SchedulingConfig] = None,
) -> WindowCheck:
    """Check a proposed start against the booking policy.

    Rejects, in order: instants before ``now``, closed weekdays, and hours
    outside [open_hour, close_hour). Pure given ``now``.
    """
    config = config or _DEFAULT_CONFIG
    parsed = parse_time(time)
    if parsed is None:
        return WindowCheck(False, "Horário inválido")

    local = _dt.datetime.combine(day, parsed.replace(second=0, microsecond=0), tzinfo=config.tz)
    current = to_local(now, config) if now is not None else _dt.datetime.now(config.tz)

    if local < current:
        return WindowCheck(False, "Não é possível agendar para horários passados")

    weekday = local.weekday()
    if weekday in config.closed_weekdays:
        return WindowCheck(
            False,
            f"Agendamentos não são permitidos aos {config.weekday_label(weekday)}",
        )

    if local.hour < config.open_hour or local.hour >= config.close_hour:
        return WindowCheck(False, f"Horário fora do funcionamento ({config.hours_label})")

    return WindowCheck(True)


def ensure_window(
    day: _dt.date,
    time: TimeLike,
    *,
    now: Optional[_dt.datetime] = None,
    config: Optional[SchedulingConfig] = None,
) -> None:
    check = validate_window(day, time, now=now, config=config)
    if not check.valid:
        raise ValidationError.for_field("start_time", check.reason or "Horário inválido")


def available_slots(
    day: _dt.date,
    busy: Iterable[Tuple[_dt.datetime, _dt.datetime]],
    duration_minutes: int,
    *,
    now: Optional[_dt.datetime] = None,
    config: Optional[SchedulingConfig] = None,
) -> List[str]:
    """Slots on ``day`` that pass the window policy and overlap no busy interval."""
    config = config or _DEFAULT_CONFIG
    busy_ranges = list(busy)
    duration = duration_minutes or config.fallback_duration_minutes
    free: List[str] = []
    for slot in generate_slots(config.slot_minutes, config.open_hour, config.close_hour):
        if not validate_window(day, slot, now=now, config=config).valid:
            continue
        start = combine_local(day, slot, config)
        end = compute_end_time(start, duration)
        if any(intervals_overlap(start, end, b_start, b_end) for b_start, b_end in busy_ranges):
            continue
        free.append(slot)
    return free
