"""Appointment status machine.

Every per-status decision is an exhaustive ``match``; adding a member to
``AppointmentStatus`` without handling it trips ``assert_never`` under a
type checker.
"""
from __future__ import annotations

from typing import Tuple, assert_never

from salonbook.core.exceptions import InvalidTransitionError, ValidationError
from salonbook.scheduling.types import AppointmentStatus, StatusAction

INVALID_TRANSITION_MESSAGE = "Ação inválida para o status atual"


def available_actions(status: AppointmentStatus) -> Tuple[StatusAction, ...]:
    match status:
        case AppointmentStatus.SCHEDULED:
            return (StatusAction.CONFIRM, StatusAction.CANCEL)
        case AppointmentStatus.CONFIRMED:
            return (StatusAction.START, StatusAction.CANCEL, StatusAction.NO_SHOW)
        case AppointmentStatus.IN_PROGRESS:
            return (StatusAction.COMPLETE, StatusAction.CANCEL)
        case AppointmentStatus.COMPLETED | AppointmentStatus.CANCELLED | AppointmentStatus.NO_SHOW:
            return ()
        case _:
            assert_never(status)


def next_status(status: AppointmentStatus, action: StatusAction) -> AppointmentStatus:
    """Target status for ``action``; raises InvalidTransitionError when illegal."""
    match (status, action):
        case (AppointmentStatus.SCHEDULED, StatusAction.CONFIRM):
            return AppointmentStatus.CONFIRMED
        case (AppointmentStatus.CONFIRMED, StatusAction.START):
            return AppointmentStatus.IN_PROGRESS
        case (AppointmentStatus.CONFIRMED, StatusAction.NO_SHOW):
            return AppointmentStatus.NO_SHOW
        case (AppointmentStatus.IN_PROGRESS, StatusAction.COMPLETE):
            return AppointmentStatus.COMPLETED
        case (
            AppointmentStatus.SCHEDULED
            | AppointmentStatus.CONFIRMED
            | AppointmentStatus.IN_PROGRESS,
            StatusAction.CANCEL,
        ):
            return AppointmentStatus.CANCELLED
        case _:
            raise InvalidTransitionError(
                INVALID_TRANSITION_MESSAGE,
                details={"status": status.value, "action": action.value},
            )


def is_terminal(status: AppointmentStatus) -> bool:
    match status:
        case AppointmentStatus.COMPLETED | AppointmentStatus.CANCELLED | AppointmentStatus.NO_SHOW:
            return True
        case AppointmentStatus.SCHEDULED | AppointmentStatus.CONFIRMED | AppointmentStatus.IN_PROGRESS:
            return False
        case _:
            assert_never(status)


def can_edit(status: AppointmentStatus) -> bool:
    """Line items, time, professional and discount are editable only before the service starts."""
    match status:
        case AppointmentStatus.SCHEDULED | AppointmentStatus.CONFIRMED:
            return True
        case (
            AppointmentStatus.IN_PROGRESS
            | AppointmentStatus.COMPLETED
            | AppointmentStatus.CANCELLED
            | AppointmentStatus.NO_SHOW
        ):
            return False
        case _:
            assert_never(status)


def ensure_editable(status: AppointmentStatus) -> None:
    if not can_edit(status):
        raise InvalidTransitionError(
            f"Agendamento com status {status_label(status)} não pode ser editado",
            details={"status": status.value},
        )


def parse_action(value: str) -> StatusAction:
    try:
        return StatusAction(value.strip().lower().replace("_", "-"))
    except ValueError as exc:
        raise ValidationError.for_field("action", f"Ação desconhecida: {value}") from exc


def status_label(status: AppointmentStatus) -> str:
    match status:
        case AppointmentStatus.SCHEDULED:
            return "Agendado"
        case AppointmentStatus.CONFIRMED:
            return "Confirmado"
        case AppointmentStatus.IN_PROGRESS:
            return "Em Andamento"
        case AppointmentStatus.COMPLETED:
            return "Concluído"
        case AppointmentStatus.CANCELLED:
            return "Cancelado"
        case AppointmentStatus.NO_SHOW:
            return "Não Compareceu"
        case _:
            assert_never(status)


def status_color(status: AppointmentStatus) -> Tuple[str, str]:
    """Calendar event (background, border) colours."""
    match status:
        case AppointmentStatus.SCHEDULED:
            return ("#3B82F6", "#2563EB")
        case AppointmentStatus.CONFIRMED:
            return ("#10B981", "#059669")
        case AppointmentStatus.IN_PROGRESS:
            return ("#F59E0B", "#D97706")
        case AppointmentStatus.COMPLETED:
            return ("#06B6D4", "#0891B2")
        case AppointmentStatus.CANCELLED:
            return ("#EF4444", "#DC2626")
        case AppointmentStatus.NO_SHOW:
            return ("#6B7280", "#4B5563")
        case _:
            assert_never(status)


def action_label(action: StatusAction) -> str:
    match action:
        case StatusAction.CONFIRM:
            return "Confirmar"
        case StatusAction.START:
            return "Iniciar"
        case StatusAction.COMPLETE:
            return "Finalizar"
        case StatusAction.CANCEL:
            return "Cancelar"
        case StatusAction.NO_SHOW:
            return "Não Compareceu"
        case _:
            assert_never(action)
