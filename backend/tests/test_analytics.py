# backend/tests/test_analytics.py
from __future__ import annotations

import unittest
from datetime import datetime, timedelta
from types import SimpleNamespace

from command_ops.models.quest import QuestStatus
from command_ops.services.analytics import AnalyticsCache, compute_analytics

NOW = datetime(2026, 3, 10, 12, 0)


def _quest(status=QuestStatus.COMPLETED, **kw):
    base = dict(status=status, completed_at=None, deadline=None, estimated_time=None, actual_time=None)
    base.update(kw)
    return SimpleNamespace(**base)


class FakeClock:
    def __init__(self) -> None:
        self.t = 1000.0

    def __call__(self) -> float:
        return self.t


class TestComputeAnalytics(unittest.TestCase):
    def test_estimate_accuracy(self) -> None:
        snap = compute_analytics([_quest(estimated_time=60, actual_time=90, completed_at=NOW)], NOW)
        self.assertEqual(67, snap["estimate_accuracy"])

    def test_estimate_accuracy_ignores_missing_or_zero(self) -> None:
        quests = [
            _quest(estimated_time=0, actual_time=30, completed_at=NOW),
            _quest(estimated_time=45, actual_time=None, completed_at=NOW),
            _quest(QuestStatus.ACTIVE, estimated_time=10, actual_time=10),
        ]
        self.assertEqual(0, compute_analytics(quests, NOW)["estimate_accuracy"])

    def test_success_rate(self) -> None:
        day = timedelta(days=1)
        quests = [
            _quest(completed_at=NOW - day, deadline=NOW),
            _quest(completed_at=NOW - 2 * day, deadline=NOW - day),
            _quest(completed_at=NOW - day, deadline=NOW - 2 * day),
            _quest(completed_at=NOW - day),  # no deadline: momentum only
        ]
        snap = compute_analytics(quests, NOW)
        self.assertEqual(67, snap["success_rate"])
        self.assertEqual(4, snap["weekly_momentum"])

    def test_momentum_window(self) -> None:
        quests = [
            _quest(completed_at=NOW - timedelta(days=8)),
            _quest(completed_at=NOW - timedelta(days=6)),
            _quest(QuestStatus.ARCHIVED, completed_at=NOW),
        ]
        snap = compute_analytics(quests, NOW)
        self.assertEqual(1, snap["weekly_momentum"])
        self.assertEqual(0, snap["success_rate"])

    def test_operational_load_caps_at_one(self) -> None:
        two = [_quest(QuestStatus.ACTIVE) for _ in range(2)]
        self.assertAlmostEqual(2 / 3, compute_analytics(two, NOW)["operational_load"])
        four = [_quest(QuestStatus.ACTIVE) for _ in range(4)]
        self.assertEqual(1.0, compute_analytics(four, NOW)["operational_load"])

    def test_empty(self) -> None:
        snap = compute_analytics([], NOW)
        self.assertEqual(
            {"active_count": 0, "operational_load": 0.0, "weekly_momentum": 0, "success_rate": 0, "estimate_accuracy": 0},
            snap,
        )


class TestAnalyticsCache(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.cache = AnalyticsCache(ttl=60, clock=self.clock)
        self.snapshot = compute_analytics([_quest(QuestStatus.ACTIVE)], NOW)

    def test_get_or_compute_reuses_until_expiry(self) -> None:
        calls = []

        def compute():
            calls.append(1)
            return dict(self.snapshot)

        self.cache.get_or_compute("u", compute)
        self.cache.get_or_compute("u", compute)
        self.assertEqual(1, len(calls))

        self.clock.t += 61
        self.cache.get_or_compute("u", compute)
        self.assertEqual(2, len(calls))

    def test_transition_deltas(self) -> None:
        self.cache.put("u", self.snapshot)

        self.cache.record_transition("u", QuestStatus.PLANNING, QuestStatus.ACTIVE)
        snap = self.cache.get("u")
        self.assertEqual(2, snap["active_count"])
        self.assertAlmostEqual(2 / 3, snap["operational_load"])

        self.cache.record_transition("u", QuestStatus.ACTIVE, QuestStatus.COMPLETED)
        snap = self.cache.get("u")
        self.assertEqual(1, snap["active_count"])
        self.assertEqual(1, snap["weekly_momentum"])

    def test_deltas_do_not_extend_lifetime(self) -> None:
        self.cache.put("u", self.snapshot)
        self.clock.t += 59
        self.cache.record_transition("u", QuestStatus.PLANNING, QuestStatus.ACTIVE)
        self.clock.t += 2
        self.assertIsNone(self.cache.get("u"))

    def test_archive_invalidates(self) -> None:
        self.cache.put("u", self.snapshot)
        self.cache.record_transition("u", QuestStatus.COMPLETED, QuestStatus.ARCHIVED)
        self.assertIsNone(self.cache.get("u"))

    def test_transition_without_snapshot_is_noop(self) -> None:
        self.cache.record_transition("nobody", QuestStatus.PLANNING, QuestStatus.ACTIVE)
        self.assertIsNone(self.cache.get("nobody"))
