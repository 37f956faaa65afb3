# backend/command_ops/services/admission.py
"""
Active-quest cap.

A user normally runs at most three ACTIVE quests. An explicit emergency deploy
admits exactly one more; nothing admits a fifth.
"""
from __future__ import annotations

from dataclasses import dataclass

from command_ops.errors import BusinessLogicError

ACTIVE_QUEST_LIMIT = 3
EMERGENCY_QUEST_LIMIT = 4


@dataclass(frozen=True)
class AdmissionDecision:
    is_emergency_deploy: bool
    active_count: int  # after this activation
    emergency_allowed: bool = False

    @property
    def ceiling(self) -> int:
        """Upper bound the pre-activation count must stay below."""
        return EMERGENCY_QUEST_LIMIT if self.emergency_allowed else ACTIVE_QUEST_LIMIT


def admit(current_active: int, emergency: bool = False) -> AdmissionDecision:
    """Decide an activation given the ACTIVE count measured before it."""
    if current_active >= ACTIVE_QUEST_LIMIT and not emergency:
        raise BusinessLogicError(
            f"Maximum of {ACTIVE_QUEST_LIMIT} active quests allowed. Use emergency deploy to override.",
            {"active_count": current_active},
        )
    if current_active >= EMERGENCY_QUEST_LIMIT:
        raise BusinessLogicError(
            f"Emergency deploy limit exceeded. Cannot have more than {EMERGENCY_QUEST_LIMIT} active quests.",
            {"active_count": current_active},
        )
    return AdmissionDecision(
        is_emergency_deploy=current_active >= ACTIVE_QUEST_LIMIT,
        active_count=current_active + 1,
        emergency_allowed=emergency,
    )


def admit_status_change(current_active: int) -> AdmissionDecision:
    """The plain status-set path never carries the emergency flag."""
    if current_active >= ACTIVE_QUEST_LIMIT:
        raise BusinessLogicError(
            f"Maximum of {ACTIVE_QUEST_LIMIT} active quests allowed. "
            "Use the activate quest action with emergency deploy.",
            {"active_count": current_active},
        )
    return admit(current_active, emergency=False)
