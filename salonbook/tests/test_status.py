"""Unit tests for the appointment status machine."""
from __future__ import annotations

import itertools
import unittest

from salonbook.core.exceptions import InvalidTransitionError, ValidationError
from salonbook.scheduling.status import (
    action_label,
    available_actions,
    can_edit,
    ensure_editable,
    is_terminal,
    next_status,
    parse_action,
    status_color,
    status_label,
)
from salonbook.scheduling.types import AppointmentStatus as S, StatusAction as A

LEGAL = {
    (S.SCHEDULED, A.CONFIRM): S.CONFIRMED,
    (S.SCHEDULED, A.CANCEL): S.CANCELLED,
    (S.CONFIRMED, A.START): S.IN_PROGRESS,
    (S.CONFIRMED, A.CANCEL): S.CANCELLED,
    (S.CONFIRMED, A.NO_SHOW): S.NO_SHOW,
    (S.IN_PROGRESS, A.COMPLETE): S.COMPLETED,
    (S.IN_PROGRESS, A.CANCEL): S.CANCELLED,
}
TERMINAL = (S.COMPLETED, S.CANCELLED, S.NO_SHOW)


class TestTransitions(unittest.TestCase):
    def test_full_table(self):
        for status, action in itertools.product(S, A):
            with self.subTest(status=status, action=action):
                if (status, action) in LEGAL:
                    self.assertEqual(next_status(status, action), LEGAL[(status, action)])
                else:
                    with self.assertRaises(InvalidTransitionError):
                        next_status(status, action)

    def test_available_actions_match_table(self):
        for status in S:
            expected = {action for (s, action) in LEGAL if s is status}
            self.assertEqual(set(available_actions(status)), expected)

    def test_terminal_states_have_no_way_out(self):
        for status in TERMINAL:
            self.assertTrue(is_terminal(status))
            self.assertEqual(available_actions(status), ())
            for action in A:
                with self.assertRaises(InvalidTransitionError) as ctx:
                    next_status(status, action)
                self.assertEqual(ctx.exception.details["status"], status.value)

    def test_error_payload(self):
        with self.assertRaises(InvalidTransitionError) as ctx:
            next_status(S.COMPLETED, A.CONFIRM)
        self.assertEqual(ctx.exception.message, "Ação inválida para o status atual")
        self.assertEqual(ctx.exception.details, {"status": "COMPLETED", "action": "confirm"})
        self.assertEqual(ctx.exception.http_status, 409)


class TestEditing(unittest.TestCase):
    def test_can_edit_before_service_starts(self):
        self.assertTrue(can_edit(S.SCHEDULED))
        self.assertTrue(can_edit(S.CONFIRMED))
        for status in (S.IN_PROGRESS, *TERMINAL):
            self.assertFalse(can_edit(status))

    def test_ensure_editable(self):
        ensure_editable(S.CONFIRMED)
        with self.assertRaises(InvalidTransitionError) as ctx:
            ensure_editable(S.IN_PROGRESS)
        self.assertEqual(ctx.exception.message, "Agendamento com status Em Andamento não pode ser editado")


class TestLabels(unittest.TestCase):
    def test_parse_action(self):
        self.assertIs(parse_action("confirm"), A.CONFIRM)
        self.assertIs(parse_action(" No_Show "), A.NO_SHOW)
        with self.assertRaises(ValidationError):
            parse_action("reopen")

    def test_labels_cover_every_member(self):
        for status in S:
            self.assertTrue(status_label(status))
            background, border = status_color(status)
            self.assertTrue(background.startswith("#") and border.startswith("#"))
        for action in A:
            self.assertTrue(action_label(action))
        self.assertEqual(action_label(A.COMPLETE), "Finalizar")
        self.assertEqual(status_label(S.NO_SHOW), "Não Compareceu")


if __name__ == "__main__":
    unittest.main()
