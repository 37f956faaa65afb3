# backend/tests/test_priority.py
from __future__ import annotations

import unittest
from datetime import datetime, timedelta
from types import SimpleNamespace

from command_ops.models.quest import QuestStatus
from command_ops.services.priority import (
    is_urgent,
    priority_label,
    quest_priority,
    sort_by_priority,
)

NOW = datetime(2026, 3, 10, 15, 0)


def _quest(**kw):
    base = dict(
        is_critical=False,
        deadline=None,
        status=QuestStatus.PLANNING,
        created_at=NOW - timedelta(days=5),
        completed_at=None,
        title="q",
    )
    base.update(kw)
    return SimpleNamespace(**base)


class TestPriority(unittest.TestCase):
    def test_tiers(self) -> None:
        today_late = NOW.replace(hour=23, minute=59)
        self.assertEqual(1, quest_priority(_quest(is_critical=True, deadline=today_late), NOW))
        self.assertEqual(2, quest_priority(_quest(is_critical=True), NOW))
        self.assertEqual(3, quest_priority(_quest(deadline=NOW - timedelta(days=2)), NOW))
        self.assertEqual(4, quest_priority(_quest(deadline=NOW + timedelta(days=1)), NOW))

    def test_priority_always_in_range(self) -> None:
        deadlines = [None, NOW - timedelta(days=30), NOW, NOW + timedelta(hours=10), NOW + timedelta(days=30)]
        for critical in (True, False):
            for d in deadlines:
                p = quest_priority(_quest(is_critical=critical, deadline=d), NOW)
                self.assertIn(p, (1, 2, 3, 4))
                self.assertEqual(critical, p <= 2)

    def test_no_deadline_never_urgent(self) -> None:
        self.assertFalse(is_urgent(_quest(), NOW))

    def test_later_today_is_urgent(self) -> None:
        self.assertTrue(is_urgent(_quest(deadline=NOW + timedelta(hours=8)), NOW))
        self.assertFalse(is_urgent(_quest(deadline=NOW + timedelta(hours=10)), NOW))

    def test_labels(self) -> None:
        self.assertEqual("Critical & Urgent", priority_label(1))
        self.assertEqual("Standard & Not Urgent", priority_label(4))


class TestSortByPriority(unittest.TestCase):
    def test_orders_by_tier_then_created_at(self) -> None:
        a = _quest(title="a", created_at=NOW - timedelta(days=1))
        b = _quest(title="b", is_critical=True, created_at=NOW - timedelta(days=1))
        c = _quest(title="c", created_at=NOW - timedelta(days=3))
        d = _quest(title="d", is_critical=True, deadline=NOW - timedelta(days=1))

        ordered = sort_by_priority([a, b, c, d], NOW)

        self.assertEqual(["d", "b", "c", "a"], [q.title for q in ordered])
        tiers = [quest_priority(q, NOW) for q in ordered]
        self.assertEqual(sorted(tiers), tiers)

    def test_completed_newest_first_missing_timestamp_last(self) -> None:
        old = _quest(title="old", status=QuestStatus.COMPLETED, completed_at=NOW - timedelta(days=4))
        new = _quest(title="new", status=QuestStatus.COMPLETED, completed_at=NOW - timedelta(hours=1))
        none = _quest(title="none", status=QuestStatus.COMPLETED)

        ordered = sort_by_priority([none, old, new], NOW)

        self.assertEqual(["new", "old", "none"], [q.title for q in ordered])

    def test_mixed_puts_open_work_first(self) -> None:
        done = _quest(title="done", status=QuestStatus.COMPLETED, completed_at=NOW)
        open_ = _quest(title="open", status=QuestStatus.ACTIVE)

        self.assertEqual(["open", "done"], [q.title for q in sort_by_priority([done, open_], NOW)])

    def test_input_untouched(self) -> None:
        items = [_quest(title="x"), _quest(title="y", is_critical=True)]
        sort_by_priority(items, NOW)
        self.assertEqual(["x", "y"], [q.title for q in items])
        self.assertEqual([], sort_by_priority([], NOW))
