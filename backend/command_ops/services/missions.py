# backend/command_ops/services/missions.py
"""
Mission reads and writes.

Archival and deletion touch the mission row and its quests together; both run
inside one ``transaction`` so a failure on the mission row undoes the quest
changes as well.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, delete, func, case, and_
from sqlalchemy.orm import Session

from command_ops.db import transaction
from command_ops.errors import AuthorizationError, BusinessLogicError, NotFoundError
from command_ops.models.mission import Mission, MissionStatus
from command_ops.models.quest import Quest, QuestStatus, DONE_STATUSES
from command_ops.schemas.mission import (
    MissionArchiveIn,
    MissionCreate,
    MissionOption,
    MissionOut,
    MissionProgressOut,
    MissionStatsOut,
    MissionUpdate,
)

log = logging.getLogger(__name__)

FILTER_OPTIONS_LIMIT = 50
SEARCH_LIMIT = 20
SEARCH_MIN_LENGTH = 2


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _with_counts(user_id: str):
    total = func.count(Quest.id)
    completed = func.count(case((Quest.status.in_(DONE_STATUSES), Quest.id)))
    return (
        select(Mission, total.label("total"), completed.label("completed"))
        .outerjoin(Quest, and_(Quest.mission_id == Mission.id, Quest.user_id == user_id))
        .where(Mission.user_id == user_id)
        .group_by(Mission.id)
    )


def mission_out(mission: Mission, total: int = 0, completed: int = 0) -> MissionOut:
    out = MissionOut.model_validate(mission)
    out.total_quest_count = total or 0
    out.completed_quest_count = completed or 0
    return out


def get_mission(db: Session, user_id: str, mission_id: int) -> Mission:
    mission = db.scalar(
        select(Mission).where(Mission.id == mission_id, Mission.user_id == user_id)
    )
    if not mission:
        raise NotFoundError("Mission", {"mission_id": mission_id})
    return mission


def _pending_quests(db: Session, user_id: str, mission_id: int) -> int:
    return db.scalar(
        select(func.count(Quest.id)).where(
            Quest.mission_id == mission_id,
            Quest.user_id == user_id,
            Quest.status.not_in(DONE_STATUSES),
        )
    ) or 0


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------
def list_missions(db: Session, user_id: str, status: Optional[MissionStatus] = None) -> List[MissionOut]:
    stmt = _with_counts(user_id)
    if status is not None:
        stmt = stmt.where(Mission.status == status)
    if status == MissionStatus.ARCHIVED:
        stmt = stmt.order_by(Mission.updated_at.desc())
    else:
        stmt = stmt.order_by(Mission.created_at, Mission.id)
    return [mission_out(m, total, done) for m, total, done in db.execute(stmt).all()]


def get_mission_with_counts(db: Session, user_id: str, mission_id: int) -> MissionOut:
    row = db.execute(_with_counts(user_id).where(Mission.id == mission_id)).first()
    if row is None:
        raise NotFoundError("Mission", {"mission_id": mission_id})
    mission, total, done = row
    return mission_out(mission, total, done)


def mission_stats(db: Session, user_id: str) -> MissionStatsOut:
    rows = db.execute(
        select(Mission.status, func.count(Mission.id))
        .where(Mission.user_id == user_id)
        .group_by(Mission.status)
    ).all()
    counts = {MissionStatus(s): n for s, n in rows}
    active = counts.get(MissionStatus.ACTIVE, 0)
    archived = counts.get(MissionStatus.ARCHIVED, 0)
    return MissionStatsOut(active_missions=active, archived_missions=archived, total_missions=active + archived)


def filter_options(db: Session, user_id: str) -> List[MissionOption]:
    rows = db.execute(
        select(Mission.id, Mission.title)
        .where(Mission.user_id == user_id)
        .order_by(Mission.updated_at.desc())
        .limit(FILTER_OPTIONS_LIMIT)
    ).all()
    return [MissionOption(id=i, title=t) for i, t in rows]


def search_missions(db: Session, user_id: str, query: str) -> List[MissionOption]:
    query = (query or "").strip()
    if len(query) < SEARCH_MIN_LENGTH:
        return []
    rows = db.execute(
        select(Mission.id, Mission.title)
        .where(Mission.user_id == user_id, Mission.title.ilike(f"%{query}%"))
        .order_by(Mission.updated_at.desc())
        .limit(SEARCH_LIMIT)
    ).all()
    return [MissionOption(id=i, title=t) for i, t in rows]


def mission_progress(db: Session, user_id: str, mission_id: int) -> MissionProgressOut:
    get_mission(db, user_id, mission_id)

    def _count(cond):
        return func.count(case((cond, Quest.id)))

    row = db.execute(
        select(
            func.count(Quest.id),
            _count(Quest.status == QuestStatus.COMPLETED),
            _count(Quest.status == QuestStatus.ACTIVE),
            _count(Quest.status == QuestStatus.PLANNING),
            _count(Quest.is_critical.is_(True)),
            _count(and_(Quest.is_critical.is_(True), Quest.status == QuestStatus.COMPLETED)),
        ).where(Quest.mission_id == mission_id, Quest.user_id == user_id)
    ).one()
    total, completed, active, planning, critical, critical_completed = (n or 0 for n in row)

    return MissionProgressOut(
        mission_id=mission_id,
        total=total,
        completed=completed,
        active=active,
        planning=planning,
        critical=critical,
        critical_completed=critical_completed,
        percentage=round(100 * completed / total) if total else 0,
    )


# ----------------------------------------------------------------------
# Writes
# ----------------------------------------------------------------------
def create_mission(db: Session, user_id: str, payload: MissionCreate) -> MissionOut:
    now = datetime.now()
    mission = Mission(
        user_id=user_id,
        title=payload.title,
        objective=payload.objective,
        status=MissionStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )
    with transaction(db):
        db.add(mission)
        db.flush()
    return mission_out(mission)


def update_mission(db: Session, user_id: str, mission_id: int, payload: MissionUpdate) -> MissionOut:
    mission = get_mission(db, user_id, mission_id)
    changes = payload.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] is None:
        del changes["title"]
    changes["updated_at"] = datetime.now()

    with transaction(db):
        res = db.execute(
            update(Mission)
            .where(Mission.id == mission_id, Mission.user_id == user_id)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise AuthorizationError({"mission_id": mission_id})
    db.refresh(mission)
    return get_mission_with_counts(db, user_id, mission_id)


def archive_mission(
    db: Session,
    user_id: str,
    mission_id: int,
    payload: MissionArchiveIn,
    cache=None,
) -> MissionOut:
    mission = get_mission(db, user_id, mission_id)
    if mission.status == MissionStatus.ARCHIVED:
        raise BusinessLogicError("Mission is already archived", {"mission_id": mission_id})

    pending = _pending_quests(db, user_id, mission_id)
    if pending:
        raise BusinessLogicError(
            f"Cannot archive mission with {pending} incomplete quest(s). Complete them first.",
            {"mission_id": mission_id, "pending": pending},
        )

    now = datetime.now()
    with transaction(db):
        db.execute(
            update(Quest)
            .where(
                Quest.mission_id == mission_id,
                Quest.user_id == user_id,
                Quest.status != QuestStatus.ARCHIVED,
            )
            .values(status=QuestStatus.ARCHIVED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        res = db.execute(
            update(Mission)
            .where(
                Mission.id == mission_id,
                Mission.user_id == user_id,
                Mission.status == MissionStatus.ACTIVE,
            )
            .values(
                status=MissionStatus.ARCHIVED,
                archived_at=now,
                after_action_report=payload.after_action_report,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise AuthorizationError({"mission_id": mission_id})

    log.info("mission archived user=%s mission=%s", user_id, mission_id)
    if cache is not None:
        cache.invalidate(user_id)
    db.refresh(mission)
    return get_mission_with_counts(db, user_id, mission_id)


def delete_mission(
    db: Session,
    user_id: str,
    mission_id: int,
    delete_quests: bool = False,
    cache=None,
) -> None:
    get_mission(db, user_id, mission_id)

    now = datetime.now()
    with transaction(db):
        owned = and_(Quest.mission_id == mission_id, Quest.user_id == user_id)
        if delete_quests:
            db.execute(delete(Quest).where(owned).execution_options(synchronize_session=False))
        else:
            db.execute(
                update(Quest)
                .where(owned)
                .values(mission_id=None, updated_at=now)
                .execution_options(synchronize_session=False)
            )
        res = db.execute(
            delete(Mission)
            .where(Mission.id == mission_id, Mission.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise AuthorizationError({"mission_id": mission_id})

    log.info("mission deleted user=%s mission=%s delete_quests=%s", user_id, mission_id, delete_quests)
    if cache is not None:
        cache.invalidate(user_id)


def archive_mission_quests(db: Session, user_id: str, mission_id: int, cache=None) -> int:
    """Archive every not-yet-archived quest under the mission; returns how many moved."""
    get_mission(db, user_id, mission_id)
    with transaction(db):
        res = db.execute(
            update(Quest)
            .where(
                Quest.mission_id == mission_id,
                Quest.user_id == user_id,
                Quest.status != QuestStatus.ARCHIVED,
            )
            .values(status=QuestStatus.ARCHIVED, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )
    if cache is not None:
        cache.invalidate(user_id)
    return res.rowcount
