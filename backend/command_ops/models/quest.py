# backend/command_ops/models/quest.py
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Integer, Boolean, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from command_ops.db import Base


class QuestStatus(str, enum.Enum):
    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


# Statuses that no longer count as pending work
DONE_STATUSES = (QuestStatus.COMPLETED, QuestStatus.ARCHIVED)


class Quest(Base):
    __tablename__ = "quests"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    mission_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("missions.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_critical: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[QuestStatus] = mapped_column(
        Enum(QuestStatus, name="quest_status"), default=QuestStatus.PLANNING, nullable=False
    )
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    estimated_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    actual_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    first_tactical_step: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    debrief_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    debrief_satisfaction: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    mission = relationship("Mission", back_populates="quests")

    __table_args__ = (
        Index("ix_quests_user_mission", "user_id", "mission_id"),
        Index("ix_quests_user_status", "user_id", "status"),
        Index("ix_quests_completed_at", "completed_at"),
        Index("ix_quests_satisfaction", "debrief_satisfaction"),
    )
