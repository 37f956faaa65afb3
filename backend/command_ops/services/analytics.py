# backend/command_ops/services/analytics.py
"""
Analytics snapshot per user.

    operational_load   min(active / 3, 1)
    weekly_momentum    COMPLETED quests finished in the last 7 days
    success_rate       % of those (with a deadline) finished on or before it
    estimate_accuracy  mean of min(est, act) / max(est, act), as a %

``AnalyticsCache`` keeps one snapshot per user for ``ANALYTICS_CACHE_TTL``
seconds. Status changes nudge the cached numbers in place; deletes and
archives drop the entry so the next read recomputes from the database.
"""
from __future__ import annotations

import logging
import os
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, Optional, Tuple

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from command_ops.models.quest import Quest, QuestStatus
from command_ops.services.admission import ACTIVE_QUEST_LIMIT

log = logging.getLogger(__name__)

ANALYTICS_CACHE_TTL = float(os.getenv("ANALYTICS_CACHE_TTL", "60"))
MOMENTUM_WINDOW = timedelta(days=7)


def _load(active_count: int) -> float:
    return min(active_count / ACTIVE_QUEST_LIMIT, 1.0)


def compute_analytics(quests: Iterable, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    since = now - MOMENTUM_WINDOW

    active = 0
    weekly = 0
    with_deadline = 0
    on_time = 0
    ratios = []

    for q in quests:
        if q.status == QuestStatus.ACTIVE:
            active += 1
            continue
        if q.status != QuestStatus.COMPLETED:
            continue

        if q.completed_at is not None and q.completed_at >= since:
            weekly += 1
            if q.deadline is not None:
                with_deadline += 1
                if q.completed_at <= q.deadline:
                    on_time += 1

        est, act = q.estimated_time, q.actual_time
        if est and act and est > 0 and act > 0:
            ratios.append(min(est, act) / max(est, act))

    return {
        "active_count": active,
        "operational_load": _load(active),
        "weekly_momentum": weekly,
        "success_rate": round(100 * on_time / with_deadline) if with_deadline else 0,
        "estimate_accuracy": round(100 * sum(ratios) / len(ratios)) if ratios else 0,
    }


def load_analytics(db: Session, user_id: str, now: Optional[datetime] = None) -> dict:
    rows = db.scalars(
        select(Quest).where(
            Quest.user_id == user_id,
            Quest.status.in_((QuestStatus.ACTIVE, QuestStatus.COMPLETED)),
        )
    ).all()
    return compute_analytics(rows, now)


class AnalyticsCache:
    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = ANALYTICS_CACHE_TTL if ttl is None else ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, dict]] = {}

    def get(self, user_id: str) -> Optional[dict]:
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            expires, snapshot = entry
            if self._clock() >= expires:
                del self._entries[user_id]
                return None
            return dict(snapshot)

    def put(self, user_id: str, snapshot: dict) -> None:
        with self._lock:
            self._entries[user_id] = (self._clock() + self.ttl, dict(snapshot))

    def get_or_compute(self, user_id: str, compute: Callable[[], dict]) -> dict:
        snapshot = self.get(user_id)
        if snapshot is None:
            snapshot = compute()
            self.put(user_id, snapshot)
        return snapshot

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def record_transition(self, user_id: str, before: QuestStatus, after: QuestStatus) -> None:
        """Apply a status change to the cached snapshot; expiry is left as is."""
        before, after = QuestStatus(before), QuestStatus(after)
        if after == QuestStatus.ARCHIVED:
            # may remove a completion from the window; recompute instead of guessing
            self.invalidate(user_id)
            return

        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return
            expires, snapshot = entry

            active = snapshot["active_count"]
            if before != QuestStatus.ACTIVE and after == QuestStatus.ACTIVE:
                active += 1
            elif before == QuestStatus.ACTIVE and after != QuestStatus.ACTIVE:
                active = max(active - 1, 0)
            snapshot["active_count"] = active
            snapshot["operational_load"] = _load(active)

            if after == QuestStatus.COMPLETED:
                snapshot["weekly_momentum"] += 1

    def close(self) -> None:
        with self._lock:
            self._entries.clear()
        log.debug("analytics cache cleared")


def get_analytics_cache(request: Request) -> AnalyticsCache:
    return request.app.state.analytics_cache
