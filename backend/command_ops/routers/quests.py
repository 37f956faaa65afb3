# backend/command_ops/routers/quests.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from command_ops.db import get_db
from command_ops.models.quest import QuestStatus
from command_ops.rate_limit import rate_limited
from command_ops.schemas.quest import (
    QuestActivateIn,
    QuestActivateOut,
    QuestCompleteIn,
    QuestCreate,
    QuestOut,
    QuestStatsOut,
    QuestStatusIn,
    QuestUpdate,
)
from command_ops.services import quests as svc
from command_ops.services.analytics import AnalyticsCache, get_analytics_cache

router = APIRouter(prefix="/quests", tags=["quests"])


@router.get("", response_model=List[QuestOut])
def list_quests(
    status: Optional[QuestStatus] = Query(None),
    mission_id: Optional[int] = Query(None),
    user_id: str = Depends(rate_limited("quest_read")),
    db: Session = Depends(get_db),
):
    """
    No status: the kanban board (everything but ARCHIVED) in priority order.
    PLANNING / ACTIVE come back in priority order, COMPLETED newest completion
    first, ARCHIVED most recently touched first.
    """
    return svc.list_quests(db, user_id, status=status, mission_id=mission_id)


@router.get("/stats", response_model=QuestStatsOut)
def quest_stats(user_id: str = Depends(rate_limited("quest_read")), db: Session = Depends(get_db)):
    return svc.quest_stats(db, user_id)


@router.get("/active-count")
def active_count(user_id: str = Depends(rate_limited("quest_read")), db: Session = Depends(get_db)):
    return {"active_count": svc.count_active(db, user_id)}


@router.get("/{quest_id}", response_model=QuestOut)
def get_quest(quest_id: int, user_id: str = Depends(rate_limited("quest_read")), db: Session = Depends(get_db)):
    return svc.quest_out(svc.get_quest(db, user_id, quest_id))


@router.post("", response_model=QuestOut, status_code=201)
def create_quest(
    payload: QuestCreate,
    user_id: str = Depends(rate_limited("quest_create")),
    db: Session = Depends(get_db),
):
    return svc.quest_out(svc.create_quest(db, user_id, payload))


@router.patch("/{quest_id}", response_model=QuestOut)
def update_quest(
    quest_id: int,
    payload: QuestUpdate,
    user_id: str = Depends(rate_limited("quest_update")),
    db: Session = Depends(get_db),
):
    return svc.quest_out(svc.update_quest(db, user_id, quest_id, payload))


@router.delete("/{quest_id}", status_code=204)
def delete_quest(
    quest_id: int,
    user_id: str = Depends(rate_limited("quest_delete")),
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
):
    svc.delete_quest(db, user_id, quest_id, cache=cache)


@router.post("/{quest_id}/activate", response_model=QuestActivateOut)
def activate_quest(
    quest_id: int,
    payload: Optional[QuestActivateIn] = None,
    user_id: str = Depends(rate_limited("quest_update")),
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
):
    return svc.activate_quest(db, user_id, quest_id, payload or QuestActivateIn(), cache=cache)


@router.post("/{quest_id}/complete", response_model=QuestOut)
def complete_quest(
    quest_id: int,
    payload: Optional[QuestCompleteIn] = None,
    user_id: str = Depends(rate_limited("quest_complete")),
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
):
    quest = svc.complete_quest(db, user_id, quest_id, payload or QuestCompleteIn(), cache=cache)
    return svc.quest_out(quest)


@router.put("/{quest_id}/status", response_model=QuestOut)
def set_quest_status(
    quest_id: int,
    payload: QuestStatusIn,
    user_id: str = Depends(rate_limited("quest_update")),
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
):
    return svc.quest_out(svc.set_quest_status(db, user_id, quest_id, payload.status, cache=cache))
