# backend/command_ops/models/__init__.py
from command_ops.db import Base

# import all model modules so tables get registered on Base.metadata
from .user import User, AuthSession
from .mission import Mission, MissionStatus
from .quest import Quest, QuestStatus, DONE_STATUSES
from .feedback import Feedback


__all__ = [
    "Base",
    "User",
    "AuthSession",
    "Mission",
    "MissionStatus",
    "Quest",
    "QuestStatus",
    "DONE_STATUSES",
    "Feedback",
]
