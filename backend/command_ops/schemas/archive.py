# backend/command_ops/schemas/archive.py
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from command_ops.models.quest import QuestStatus
from command_ops.schemas.common import clean_optional_text, naive_local

SortOrder = Literal["asc", "desc"]
QuestSortBy = Literal["title", "completed_at", "actual_time", "debrief_satisfaction"]
MissionSortBy = Literal["title", "objective", "archived_at", "quest_count", "avg_satisfaction"]
CompletionStatus = Literal["on_time", "overdue"]

# mission filter token selecting quests that have no mission
STANDALONE = "standalone"


class QuestArchiveFilters(BaseModel):
    page: int = Field(1, ge=1, le=10000)
    page_size: int = Field(25, ge=1, le=100)
    search: Optional[str] = Field(None, max_length=500)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    mission_ids: List[str] = Field(default_factory=list, max_length=100)
    satisfaction: List[int] = Field(default_factory=list, max_length=5)
    critical_only: bool = False
    sort_by: QuestSortBy = "completed_at"
    sort_order: SortOrder = "desc"

    @field_validator("search", mode="before")
    @classmethod
    def _clean_search(cls, v):
        return clean_optional_text(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def _local(cls, v):
        return naive_local(v)

    @field_validator("satisfaction")
    @classmethod
    def _rating_range(cls, v):
        for x in v:
            if x < 1 or x > 5:
                raise ValueError("satisfaction values must be between 1 and 5")
        return v


class MissionArchiveFilters(BaseModel):
    page: int = Field(1, ge=1, le=10000)
    page_size: int = Field(25, ge=1, le=100)
    search: Optional[str] = Field(None, max_length=500)
    archived_start_date: Optional[datetime] = None
    archived_end_date: Optional[datetime] = None
    sort_by: MissionSortBy = "archived_at"
    sort_order: SortOrder = "desc"

    @field_validator("search", mode="before")
    @classmethod
    def _clean_search(cls, v):
        return clean_optional_text(v)

    @field_validator("archived_start_date", "archived_end_date")
    @classmethod
    def _local(cls, v):
        return naive_local(v)


class PaginationState(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int


class ArchiveQuest(BaseModel):
    id: int
    mission_id: Optional[int] = None
    mission_title: Optional[str] = None
    title: str
    description: Optional[str] = None
    is_critical: bool
    status: QuestStatus
    deadline: Optional[datetime] = None
    estimated_time: Optional[int] = None
    actual_time: Optional[int] = None
    completed_at: Optional[datetime] = None
    debrief_notes: Optional[str] = None
    debrief_satisfaction: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    completion_status: CompletionStatus


class ArchiveMission(BaseModel):
    id: int
    title: str
    objective: Optional[str] = None
    archived_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    quest_count: int
    avg_satisfaction: Optional[float] = None


class ArchiveMissionDetails(ArchiveMission):
    after_action_report: Optional[str] = None
    total_time: int


class QuestArchivePage(BaseModel):
    data: List[ArchiveQuest]
    pagination: PaginationState


class MissionArchivePage(BaseModel):
    data: List[ArchiveMission]
    pagination: PaginationState
