# backend/command_ops/services/priority.py
"""
Quest priority tiers.

    1  Critical & Urgent
    2  Critical & Not Urgent
    3  Standard & Urgent
    4  Standard & Not Urgent

Critical is the user's flag. Urgent means the deadline falls today or earlier
on the server clock at the time of evaluation, so the same quest can move up a
tier overnight. Nothing here is persisted.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from command_ops.models.quest import QuestStatus

PRIORITY_LABELS = {
    1: "Critical & Urgent",
    2: "Critical & Not Urgent",
    3: "Standard & Urgent",
    4: "Standard & Not Urgent",
}


def is_urgent(quest, now: Optional[datetime] = None) -> bool:
    if quest.deadline is None:
        return False
    now = now or datetime.now()
    # today or already past; anything earlier than now is also on/before today
    return quest.deadline.date() <= now.date()


def quest_priority(quest, now: Optional[datetime] = None) -> int:
    critical = quest.is_critical is True
    urgent = is_urgent(quest, now)

    if critical and urgent:
        return 1
    if critical:
        return 2
    if urgent:
        return 3
    return 4


def priority_label(priority: int) -> str:
    return PRIORITY_LABELS[priority]


def _sort_key(quest, now: datetime) -> Tuple:
    if quest.status == QuestStatus.COMPLETED:
        # after every open quest; newest completion first, missing timestamps last
        if quest.completed_at is None:
            return (1, 1, 0.0)
        return (1, 0, -quest.completed_at.timestamp())
    return (0, quest_priority(quest, now), quest.created_at.timestamp())


def sort_by_priority(quests: Iterable, now: Optional[datetime] = None) -> List:
    """Return a new list; the input is left untouched."""
    now = now or datetime.now()
    return sorted(quests or [], key=lambda q: _sort_key(q, now))
