# backend/command_ops/schemas/quest.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from command_ops.models.quest import QuestStatus
from command_ops.schemas.common import clean_text, clean_optional_text, naive_local


class QuestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    mission_id: Optional[int] = None
    is_critical: bool = False
    deadline: Optional[datetime] = None
    estimated_time: Optional[int] = Field(None, ge=0, description="minutes")

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, v):
        return clean_text(v)

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, v):
        return clean_optional_text(v)

    @field_validator("deadline")
    @classmethod
    def _local_deadline(cls, v):
        return naive_local(v)


class QuestUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    mission_id: Optional[int] = None
    is_critical: Optional[bool] = None
    deadline: Optional[datetime] = None
    estimated_time: Optional[int] = Field(None, ge=0)

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, v):
        return clean_text(v)

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, v):
        return clean_optional_text(v)

    @field_validator("deadline")
    @classmethod
    def _local_deadline(cls, v):
        return naive_local(v)


class QuestActivateIn(BaseModel):
    first_tactical_step: Optional[str] = Field(None, max_length=1000)
    estimated_time: Optional[int] = Field(None, ge=0)
    emergency: bool = False

    @field_validator("first_tactical_step", mode="before")
    @classmethod
    def _clean_step(cls, v):
        return clean_optional_text(v)


class QuestCompleteIn(BaseModel):
    actual_time: Optional[int] = Field(None, ge=0)
    debrief_notes: Optional[str] = Field(None, max_length=5000)
    debrief_satisfaction: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("debrief_notes", mode="before")
    @classmethod
    def _clean_notes(cls, v):
        return clean_optional_text(v)


class QuestStatusIn(BaseModel):
    status: QuestStatus


class QuestOut(BaseModel):
    id: int
    mission_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    is_critical: bool
    status: QuestStatus
    deadline: Optional[datetime] = None
    estimated_time: Optional[int] = None
    actual_time: Optional[int] = None
    first_tactical_step: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    debrief_notes: Optional[str] = None
    debrief_satisfaction: Optional[int] = None
    updated_at: datetime
    # derived at read time, never stored
    priority: Optional[int] = None
    priority_label: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class QuestActivateOut(BaseModel):
    quest: QuestOut
    is_emergency_deploy: bool
    active_count: int


class QuestStatsOut(BaseModel):
    active_count: int
    completed_count: int
    planning_count: int
    archived_count: int
    total_count: int
