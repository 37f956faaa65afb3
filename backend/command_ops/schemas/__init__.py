# backend/command_ops/schemas/__init__.py

# Missions
from .mission import (
    MissionCreate,
    MissionUpdate,
    MissionArchiveIn,
    MissionOut,
)

# Quests
from .quest import (
    QuestCreate,
    QuestUpdate,
    QuestActivateIn,
    QuestCompleteIn,
    QuestStatusIn,
    QuestOut,
)

from .common import validate_payload, sanitize_input

__all__ = [
    "MissionCreate", "MissionUpdate", "MissionArchiveIn", "MissionOut",
    "QuestCreate", "QuestUpdate", "QuestActivateIn", "QuestCompleteIn", "QuestStatusIn", "QuestOut",
    "validate_payload", "sanitize_input",
]
