# backend/command_ops/routers/archive.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from command_ops.db import get_db
from command_ops.rate_limit import rate_limited
from command_ops.schemas.archive import (
    ArchiveMissionDetails,
    MissionArchiveFilters,
    MissionArchivePage,
    QuestArchiveFilters,
    QuestArchivePage,
)
from command_ops.schemas.common import validate_payload
from command_ops.schemas.mission import MissionOption
from command_ops.services import archive as svc

router = APIRouter(prefix="/archive", tags=["archive"])


@router.get("/quests", response_model=QuestArchivePage)
def archived_quests(
    page: int = Query(1),
    page_size: int = Query(25),
    search: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    mission_ids: List[str] = Query([]),
    satisfaction: List[int] = Query([]),
    critical_only: bool = Query(False),
    sort_by: str = Query("completed_at"),
    sort_order: str = Query("desc"),
    user_id: str = Depends(rate_limited("archive_read")),
    db: Session = Depends(get_db),
):
    filters = validate_payload(QuestArchiveFilters, {
        "page": page,
        "page_size": page_size,
        "search": search,
        "start_date": start_date,
        "end_date": end_date,
        "mission_ids": mission_ids,
        "satisfaction": satisfaction,
        "critical_only": critical_only,
        "sort_by": sort_by,
        "sort_order": sort_order,
    })
    return svc.archived_quests(db, user_id, filters)


@router.get("/missions", response_model=MissionArchivePage)
def archived_missions(
    page: int = Query(1),
    page_size: int = Query(25),
    search: Optional[str] = Query(None),
    archived_start_date: Optional[datetime] = Query(None),
    archived_end_date: Optional[datetime] = Query(None),
    sort_by: str = Query("archived_at"),
    sort_order: str = Query("desc"),
    user_id: str = Depends(rate_limited("archive_read")),
    db: Session = Depends(get_db),
):
    filters = validate_payload(MissionArchiveFilters, {
        "page": page,
        "page_size": page_size,
        "search": search,
        "archived_start_date": archived_start_date,
        "archived_end_date": archived_end_date,
        "sort_by": sort_by,
        "sort_order": sort_order,
    })
    return svc.archived_missions(db, user_id, filters)


@router.get("/missions/with-quests", response_model=List[MissionOption])
def missions_with_archived_quests(
    search: Optional[str] = Query(None, max_length=500),
    user_id: str = Depends(rate_limited("archive_read")),
    db: Session = Depends(get_db),
):
    """Missions that own at least one finished quest, for the archive filter dropdown."""
    return svc.missions_with_archived_quests(db, user_id, (search or "").strip() or None)


@router.get("/missions/{mission_id}", response_model=ArchiveMissionDetails)
def archived_mission_details(
    mission_id: int,
    user_id: str = Depends(rate_limited("archive_read")),
    db: Session = Depends(get_db),
):
    return svc.archived_mission_details(db, user_id, mission_id)
