# backend/command_ops/routers/missions.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from command_ops.db import get_db
from command_ops.models.mission import MissionStatus
from command_ops.rate_limit import rate_limited
from command_ops.schemas.mission import (
    MissionArchiveIn,
    MissionCreate,
    MissionOption,
    MissionOut,
    MissionProgressOut,
    MissionStatsOut,
    MissionUpdate,
)
from command_ops.services import missions as svc
from command_ops.services.analytics import AnalyticsCache, get_analytics_cache

router = APIRouter(prefix="/missions", tags=["missions"])


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------
@router.get("", response_model=List[MissionOut])
def list_missions(
    status: Optional[MissionStatus] = Query(None),
    user_id: str = Depends(rate_limited("mission_read")),
    db: Session = Depends(get_db),
):
    """Missions with quest counts. ARCHIVED lists newest first, otherwise oldest first."""
    return svc.list_missions(db, user_id, status)


@router.get("/stats", response_model=MissionStatsOut)
def mission_stats(user_id: str = Depends(rate_limited("mission_read")), db: Session = Depends(get_db)):
    return svc.mission_stats(db, user_id)


@router.get("/filter-options", response_model=List[MissionOption])
def filter_options(user_id: str = Depends(rate_limited("mission_read")), db: Session = Depends(get_db)):
    return svc.filter_options(db, user_id)


@router.get("/search", response_model=List[MissionOption])
def search_missions(
    q: str = Query("", max_length=500),
    user_id: str = Depends(rate_limited("search")),
    db: Session = Depends(get_db),
):
    return svc.search_missions(db, user_id, q)


@router.get("/{mission_id}", response_model=MissionOut)
def get_mission(mission_id: int, user_id: str = Depends(rate_limited("mission_read")), db: Session = Depends(get_db)):
    return svc.get_mission_with_counts(db, user_id, mission_id)


@router.get("/{mission_id}/progress", response_model=MissionProgressOut)
def mission_progress(mission_id: int, user_id: str = Depends(rate_limited("mission_read")), db: Session = Depends(get_db)):
    return svc.mission_progress(db, user_id, mission_id)


# ----------------------------------------------------------------------
# Writes
# ----------------------------------------------------------------------
@router.post("", response_model=MissionOut, status_code=201)
def create_mission(
    payload: MissionCreate,
    user_id: str = Depends(rate_limited("mission_create")),
    db: Session = Depends(get_db),
):
    return svc.create_mission(db, user_id, payload)


@router.patch("/{mission_id}", response_model=MissionOut)
def update_mission(
    mission_id: int,
    payload: MissionUpdate,
    user_id: str = Depends(rate_limited("mission_update")),
    db: Session = Depends(get_db),
):
    """Only title and objective are editable here; status changes go through archive."""
    return svc.update_mission(db, user_id, mission_id, payload)


@router.post("/{mission_id}/archive", response_model=MissionOut)
def archive_mission(
    mission_id: int,
    payload: Optional[MissionArchiveIn] = None,
    user_id: str = Depends(rate_limited("mission_archive")),
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
):
    return svc.archive_mission(db, user_id, mission_id, payload or MissionArchiveIn(), cache=cache)


@router.delete("/{mission_id}", status_code=204)
def delete_mission(
    mission_id: int,
    delete_quests: bool = Query(False),
    user_id: str = Depends(rate_limited("mission_delete")),
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
):
    svc.delete_mission(db, user_id, mission_id, delete_quests=delete_quests, cache=cache)


@router.post("/{mission_id}/quests/archive")
def archive_mission_quests(
    mission_id: int,
    user_id: str = Depends(rate_limited("bulk_operation")),
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
):
    n = svc.archive_mission_quests(db, user_id, mission_id, cache=cache)
    return {"mission_id": mission_id, "archived": n}
