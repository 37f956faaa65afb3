# backend/command_ops/services/archive.py
from __future__ import annotations

import math
from typing import List, Optional

from sqlalchemy import select, func, or_, and_, asc, desc
from sqlalchemy.orm import Session

from command_ops.errors import NotFoundError
from command_ops.models.mission import Mission, MissionStatus
from command_ops.models.quest import Quest, DONE_STATUSES
from command_ops.schemas.archive import (
    STANDALONE,
    ArchiveMission,
    ArchiveMissionDetails,
    ArchiveQuest,
    MissionArchiveFilters,
    MissionArchivePage,
    PaginationState,
    QuestArchiveFilters,
    QuestArchivePage,
)
from command_ops.schemas.mission import MissionOption


def _direction(order: str):
    return asc if order == "asc" else desc


def _pagination(page: int, page_size: int, total: int) -> PaginationState:
    return PaginationState(
        page=page,
        page_size=page_size,
        total_count=total,
        total_pages=math.ceil(total / page_size) if total else 0,
    )


def completion_status(quest) -> str:
    """Quests without a deadline can't be late."""
    if quest.deadline is None or quest.completed_at is None:
        return "on_time"
    return "on_time" if quest.completed_at <= quest.deadline else "overdue"


def _mission_filter(mission_ids: List[str]):
    want_standalone = STANDALONE in mission_ids
    ids = []
    for raw in mission_ids:
        if raw == STANDALONE:
            continue
        try:
            ids.append(int(raw))
        except ValueError:
            continue  # unknown ids can't match anything
    conds = []
    if want_standalone:
        conds.append(Quest.mission_id.is_(None))
    if ids:
        conds.append(Quest.mission_id.in_(ids))
    if not conds:
        return Quest.id.is_(None)  # nothing valid asked for: empty result
    return or_(*conds)


# ----------------------------------------------------------------------
# Quests
# ----------------------------------------------------------------------
def archived_quests(db: Session, user_id: str, filters: QuestArchiveFilters) -> QuestArchivePage:
    conds = [Quest.user_id == user_id, Quest.status.in_(DONE_STATUSES)]

    if filters.search:
        term = f"%{filters.search}%"
        conds.append(or_(
            Quest.title.ilike(term),
            Quest.description.ilike(term),
            Quest.debrief_notes.ilike(term),
        ))
    if filters.start_date:
        conds.append(Quest.completed_at >= filters.start_date)
    if filters.end_date:
        conds.append(Quest.completed_at <= filters.end_date)
    if filters.mission_ids:
        conds.append(_mission_filter(filters.mission_ids))
    if filters.satisfaction:
        conds.append(Quest.debrief_satisfaction.in_(filters.satisfaction))
    if filters.critical_only:
        conds.append(Quest.is_critical.is_(True))

    total = db.scalar(select(func.count(Quest.id)).where(*conds)) or 0

    column = getattr(Quest, filters.sort_by)
    rows = db.execute(
        select(Quest, Mission.title)
        .outerjoin(Mission, Quest.mission_id == Mission.id)
        .where(*conds)
        .order_by(_direction(filters.sort_order)(column), Quest.id)
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    ).all()

    data = [
        ArchiveQuest(
            id=q.id,
            mission_id=q.mission_id,
            mission_title=mission_title,
            title=q.title,
            description=q.description,
            is_critical=q.is_critical,
            status=q.status,
            deadline=q.deadline,
            estimated_time=q.estimated_time,
            actual_time=q.actual_time,
            completed_at=q.completed_at,
            debrief_notes=q.debrief_notes,
            debrief_satisfaction=q.debrief_satisfaction,
            created_at=q.created_at,
            updated_at=q.updated_at,
            completion_status=completion_status(q),
        )
        for q, mission_title in rows
    ]
    return QuestArchivePage(data=data, pagination=_pagination(filters.page, filters.page_size, total))


# ----------------------------------------------------------------------
# Missions
# ----------------------------------------------------------------------
def _archived_missions_stmt(user_id: str):
    quest_count = func.count(Quest.id)
    avg_satisfaction = func.avg(Quest.debrief_satisfaction)
    total_time = func.coalesce(func.sum(Quest.actual_time), 0)
    stmt = (
        select(
            Mission,
            quest_count.label("quest_count"),
            avg_satisfaction.label("avg_satisfaction"),
            total_time.label("total_time"),
        )
        .outerjoin(Quest, and_(Quest.mission_id == Mission.id, Quest.status.in_(DONE_STATUSES)))
        .where(Mission.user_id == user_id, Mission.status == MissionStatus.ARCHIVED)
        .group_by(Mission.id)
    )
    return stmt, {"quest_count": quest_count, "avg_satisfaction": avg_satisfaction}


def _archive_mission_row(mission: Mission, quest_count, avg_satisfaction) -> dict:
    return dict(
        id=mission.id,
        title=mission.title,
        objective=mission.objective,
        archived_at=mission.archived_at,
        created_at=mission.created_at,
        updated_at=mission.updated_at,
        quest_count=quest_count or 0,
        avg_satisfaction=float(avg_satisfaction) if avg_satisfaction is not None else None,
    )


def archived_missions(db: Session, user_id: str, filters: MissionArchiveFilters) -> MissionArchivePage:
    stmt, aggregates = _archived_missions_stmt(user_id)
    conds = []

    if filters.search:
        term = f"%{filters.search}%"
        conds.append(or_(Mission.title.ilike(term), Mission.objective.ilike(term)))
    if filters.archived_start_date:
        conds.append(Mission.archived_at >= filters.archived_start_date)
    if filters.archived_end_date:
        conds.append(Mission.archived_at <= filters.archived_end_date)

    total = db.scalar(
        select(func.count(Mission.id)).where(
            Mission.user_id == user_id, Mission.status == MissionStatus.ARCHIVED, *conds
        )
    ) or 0
    if conds:
        stmt = stmt.where(*conds)

    column = aggregates.get(filters.sort_by)
    if column is None:
        column = getattr(Mission, filters.sort_by)
    rows = db.execute(
        stmt.order_by(_direction(filters.sort_order)(column), Mission.id)
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    ).all()

    data = [ArchiveMission(**_archive_mission_row(m, n, avg)) for m, n, avg, _ in rows]
    return MissionArchivePage(data=data, pagination=_pagination(filters.page, filters.page_size, total))


def missions_with_archived_quests(db: Session, user_id: str, search: Optional[str] = None) -> List[MissionOption]:
    stmt = (
        select(Mission.id, Mission.title)
        .join(Quest, and_(
            Quest.mission_id == Mission.id,
            Quest.user_id == user_id,
            Quest.status.in_(DONE_STATUSES),
        ))
        .where(Mission.user_id == user_id)
        .distinct()
        .order_by(Mission.title)
    )
    if search:
        stmt = stmt.where(Mission.title.ilike(f"%{search}%"))
    return [MissionOption(id=i, title=t) for i, t in db.execute(stmt).all()]


def archived_mission_details(db: Session, user_id: str, mission_id: int) -> ArchiveMissionDetails:
    stmt, _ = _archived_missions_stmt(user_id)
    row = db.execute(stmt.where(Mission.id == mission_id)).first()
    if row is None:
        raise NotFoundError("Mission", {"mission_id": mission_id})
    mission, n, avg, total_time = row
    return ArchiveMissionDetails(
        **_archive_mission_row(mission, n, avg),
        after_action_report=mission.after_action_report,
        total_time=total_time or 0,
    )
