# backend/tests/test_validation.py
from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from command_ops.errors import ValidationError
from command_ops.schemas.common import sanitize_input, validate_payload
from command_ops.schemas.mission import MissionCreate, MissionArchiveIn
from command_ops.schemas.quest import QuestActivateIn, QuestCompleteIn, QuestCreate
from command_ops.schemas.archive import QuestArchiveFilters


class TestSanitize(unittest.TestCase):
    def test_strips_scripts_and_tags(self) -> None:
        raw = "  <b>Launch</b> <script>alert('x')</script>plan  "
        self.assertEqual("Launch plan", sanitize_input(raw))

    def test_sanitized_before_length_check(self) -> None:
        m = validate_payload(MissionCreate, {"title": "<i>" + "a" * 500 + "</i>"})
        self.assertEqual(500, len(m.title))

    def test_tag_only_title_is_empty(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            validate_payload(MissionCreate, {"title": "<p></p>"})
        self.assertTrue(ctx.exception.user_message.startswith("title"))
        self.assertTrue(ctx.exception.details)

    def test_blank_optional_text_becomes_none(self) -> None:
        m = validate_payload(MissionCreate, {"title": "x", "objective": "   "})
        self.assertIsNone(m.objective)


class TestLimits(unittest.TestCase):
    def test_after_action_report_limit(self) -> None:
        validate_payload(MissionArchiveIn, {"after_action_report": "r" * 10_000})
        with self.assertRaises(ValidationError):
            validate_payload(MissionArchiveIn, {"after_action_report": "r" * 10_001})

    def test_satisfaction_range(self) -> None:
        self.assertEqual(5, validate_payload(QuestCompleteIn, {"debrief_satisfaction": 5}).debrief_satisfaction)
        for bad in (0, 6):
            with self.assertRaises(ValidationError):
                validate_payload(QuestCompleteIn, {"debrief_satisfaction": bad})

    def test_times_non_negative(self) -> None:
        with self.assertRaises(ValidationError):
            validate_payload(QuestCompleteIn, {"actual_time": -1})
        with self.assertRaises(ValidationError):
            validate_payload(QuestActivateIn, {"estimated_time": -5})

    def test_tactical_step_limit(self) -> None:
        with self.assertRaises(ValidationError):
            validate_payload(QuestActivateIn, {"first_tactical_step": "s" * 1001})

    def test_archive_page_size(self) -> None:
        self.assertEqual(25, validate_payload(QuestArchiveFilters, {}).page_size)
        with self.assertRaises(ValidationError):
            validate_payload(QuestArchiveFilters, {"page_size": 101})
        with self.assertRaises(ValidationError):
            validate_payload(QuestArchiveFilters, {"satisfaction": [7]})

    def test_aware_deadline_stored_naive(self) -> None:
        aware = datetime(2026, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        q = validate_payload(QuestCreate, {"title": "t", "deadline": aware})
        self.assertIsNone(q.deadline.tzinfo)
        self.assertEqual(aware, q.deadline.astimezone(timezone.utc))
