# backend/command_ops/models/mission.py
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from command_ops.db import Base


class MissionStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class Mission(Base):
    __tablename__ = "missions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    objective: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[MissionStatus] = mapped_column(
        Enum(MissionStatus, name="mission_status"), default=MissionStatus.ACTIVE, nullable=False
    )
    # set iff status == ARCHIVED
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    after_action_report: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    # passive: quests are orphaned or deleted explicitly, never by the ORM
    quests = relationship("Quest", back_populates="mission", passive_deletes="all")

    __table_args__ = (
        Index("ix_missions_user_status", "user_id", "status"),
        Index("ix_missions_archived_at", "archived_at"),
    )
