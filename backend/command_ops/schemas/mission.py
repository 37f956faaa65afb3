# backend/command_ops/schemas/mission.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from command_ops.models.mission import MissionStatus
from command_ops.schemas.common import clean_text, clean_optional_text


class MissionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    objective: Optional[str] = Field(None, max_length=5000)

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, v):
        return clean_text(v)

    @field_validator("objective", mode="before")
    @classmethod
    def _clean_objective(cls, v):
        return clean_optional_text(v)


class MissionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    objective: Optional[str] = Field(None, max_length=5000)

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, v):
        return clean_text(v)

    @field_validator("objective", mode="before")
    @classmethod
    def _clean_objective(cls, v):
        return clean_optional_text(v)


class MissionArchiveIn(BaseModel):
    after_action_report: Optional[str] = Field(None, max_length=10000)

    @field_validator("after_action_report", mode="before")
    @classmethod
    def _clean_report(cls, v):
        return clean_optional_text(v)


class MissionOut(BaseModel):
    id: int
    title: str
    objective: Optional[str] = None
    status: MissionStatus
    archived_at: Optional[datetime] = None
    after_action_report: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    total_quest_count: int = 0
    completed_quest_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class MissionOption(BaseModel):
    id: int
    title: str


class MissionProgressOut(BaseModel):
    mission_id: int
    total: int
    completed: int
    active: int
    planning: int
    critical: int
    critical_completed: int
    percentage: int


class MissionStatsOut(BaseModel):
    active_missions: int
    archived_missions: int
    total_missions: int
