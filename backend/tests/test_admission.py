# backend/tests/test_admission.py
from __future__ import annotations

import unittest

from command_ops.errors import BusinessLogicError
from command_ops.services.admission import admit, admit_status_change


class TestAdmission(unittest.TestCase):
    def test_under_cap(self) -> None:
        d = admit(2)
        self.assertFalse(d.is_emergency_deploy)
        self.assertEqual(3, d.active_count)
        self.assertEqual(3, d.ceiling)

    def test_cap_needs_emergency(self) -> None:
        with self.assertRaises(BusinessLogicError) as ctx:
            admit(3)
        self.assertIn("emergency deploy", ctx.exception.user_message)

    def test_emergency_allows_fourth(self) -> None:
        d = admit(3, emergency=True)
        self.assertTrue(d.is_emergency_deploy)
        self.assertEqual(4, d.active_count)
        self.assertEqual(4, d.ceiling)

    def test_hard_ceiling(self) -> None:
        with self.assertRaises(BusinessLogicError) as ctx:
            admit(4, emergency=True)
        self.assertIn("Cannot have more than 4", ctx.exception.user_message)

    def test_status_change_has_no_override(self) -> None:
        self.assertEqual(1, admit_status_change(0).active_count)
        with self.assertRaises(BusinessLogicError) as ctx:
            admit_status_change(3)
        self.assertIn("activate quest action", ctx.exception.user_message)
