# backend/command_ops/services/transitions.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, FrozenSet, Optional

from command_ops.errors import BusinessLogicError
from command_ops.models.quest import QuestStatus

P, A, C, X = QuestStatus.PLANNING, QuestStatus.ACTIVE, QuestStatus.COMPLETED, QuestStatus.ARCHIVED

ALLOWED_TRANSITIONS: Dict[QuestStatus, FrozenSet[QuestStatus]] = {
    P: frozenset({A, C, X}),
    A: frozenset({P, C, X}),
    C: frozenset({X}),
    X: frozenset(),  # terminal
}


def can_transition(current: QuestStatus, target: QuestStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[QuestStatus(current)]


def ensure_transition(current: QuestStatus, target: QuestStatus) -> None:
    current, target = QuestStatus(current), QuestStatus(target)
    if not can_transition(current, target):
        raise BusinessLogicError(
            f"Cannot change quest status from {current.value} to {target.value}",
            {"from": current.value, "to": target.value},
        )


def transition_values(quest, target: QuestStatus, now: Optional[datetime] = None) -> dict:
    """
    Column values for moving ``quest`` to ``target``, timestamps included.
    Raises BusinessLogicError for pairs outside the table. Admission control
    for PLANNING -> ACTIVE is the caller's job.
    """
    ensure_transition(quest.status, target)
    target = QuestStatus(target)
    now = now or datetime.now()

    values = {"status": target, "updated_at": now}
    if target == A and quest.started_at is None:
        values["started_at"] = now
    elif target == C:
        values["completed_at"] = now
        if quest.status == P or quest.started_at is None:
            values["started_at"] = now
    return values
