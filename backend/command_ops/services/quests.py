# backend/command_ops/services/quests.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import Session, aliased

from command_ops.db import transaction
from command_ops.errors import AuthorizationError, NotFoundError
from command_ops.models.mission import Mission
from command_ops.models.quest import Quest, QuestStatus
from command_ops.models.user import User
from command_ops.schemas.quest import (
    QuestActivateIn,
    QuestCompleteIn,
    QuestCreate,
    QuestOut,
    QuestStatsOut,
    QuestUpdate,
)
from command_ops.services.admission import admit, admit_status_change
from command_ops.services.priority import priority_label, quest_priority, sort_by_priority
from command_ops.services.transitions import transition_values

log = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def quest_out(quest: Quest, now: Optional[datetime] = None) -> QuestOut:
    out = QuestOut.model_validate(quest)
    out.priority = quest_priority(quest, now)
    out.priority_label = priority_label(out.priority)
    return out


def get_quest(db: Session, user_id: str, quest_id: int) -> Quest:
    quest = db.scalar(select(Quest).where(Quest.id == quest_id, Quest.user_id == user_id))
    if not quest:
        raise NotFoundError("Quest", {"quest_id": quest_id})
    return quest


def count_active(db: Session, user_id: str) -> int:
    return db.scalar(
        select(func.count(Quest.id)).where(
            Quest.user_id == user_id, Quest.status == QuestStatus.ACTIVE
        )
    ) or 0


def _ensure_mission_owned(db: Session, user_id: str, mission_id: Optional[int]) -> None:
    if mission_id is None:
        return
    found = db.scalar(
        select(Mission.id).where(Mission.id == mission_id, Mission.user_id == user_id)
    )
    if not found:
        raise NotFoundError("Mission", {"mission_id": mission_id})


def _lock_owner(db: Session, user_id: str) -> None:
    """Row-lock the owner so activations for one user run one at a time."""
    db.execute(select(User.id).where(User.id == user_id).with_for_update())


def _guarded_activate(
    db: Session,
    user_id: str,
    quest: Quest,
    values: dict,
    ceiling: int,
    recheck: Callable[[int], object],
) -> None:
    """
    Move ``quest`` to ACTIVE only while the user's ACTIVE count is below
    ``ceiling``.

    Callers hold the owner row lock from ``_lock_owner`` in the same
    transaction; under READ COMMITTED the count subquery alone takes no
    locks, and two activations of different rows would both see room.
    """
    other = aliased(Quest)
    active_now = (
        select(func.count(other.id))
        .where(other.user_id == user_id, other.status == QuestStatus.ACTIVE)
        .scalar_subquery()
    )
    res = db.execute(
        update(Quest)
        .where(
            Quest.id == quest.id,
            Quest.user_id == user_id,
            Quest.status == quest.status,
            active_now < ceiling,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        # lost a race: either the cap filled up meanwhile, or the row changed hands
        recheck(count_active(db, user_id))
        raise AuthorizationError({"quest_id": quest.id})


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------
def list_quests(
    db: Session,
    user_id: str,
    status: Optional[QuestStatus] = None,
    mission_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[QuestOut]:
    now = now or datetime.now()
    stmt = select(Quest).where(Quest.user_id == user_id)
    if mission_id is not None:
        stmt = stmt.where(Quest.mission_id == mission_id)

    if status is None:
        # kanban board: everything not yet archived
        rows = db.scalars(stmt.where(Quest.status != QuestStatus.ARCHIVED)).all()
        rows = sort_by_priority(rows, now)
    elif status == QuestStatus.COMPLETED:
        rows = db.scalars(
            stmt.where(Quest.status == status).order_by(Quest.completed_at.desc())
        ).all()
    elif status == QuestStatus.ARCHIVED:
        rows = db.scalars(
            stmt.where(Quest.status == status).order_by(Quest.updated_at.desc())
        ).all()
    else:
        rows = sort_by_priority(db.scalars(stmt.where(Quest.status == status)).all(), now)

    return [quest_out(q, now) for q in rows]


def quest_stats(db: Session, user_id: str) -> QuestStatsOut:
    rows = db.execute(
        select(Quest.status, func.count(Quest.id))
        .where(Quest.user_id == user_id)
        .group_by(Quest.status)
    ).all()
    counts = {QuestStatus(s): n for s, n in rows}
    return QuestStatsOut(
        active_count=counts.get(QuestStatus.ACTIVE, 0),
        completed_count=counts.get(QuestStatus.COMPLETED, 0),
        planning_count=counts.get(QuestStatus.PLANNING, 0),
        archived_count=counts.get(QuestStatus.ARCHIVED, 0),
        total_count=sum(counts.values()),
    )


# ----------------------------------------------------------------------
# Writes
# ----------------------------------------------------------------------
def create_quest(db: Session, user_id: str, payload: QuestCreate) -> Quest:
    _ensure_mission_owned(db, user_id, payload.mission_id)
    now = datetime.now()
    quest = Quest(
        user_id=user_id,
        mission_id=payload.mission_id,
        title=payload.title,
        description=payload.description,
        is_critical=payload.is_critical,
        deadline=payload.deadline,
        estimated_time=payload.estimated_time,
        status=QuestStatus.PLANNING,
        created_at=now,
        updated_at=now,
    )
    with transaction(db):
        db.add(quest)
        db.flush()
    return quest


def update_quest(db: Session, user_id: str, quest_id: int, payload: QuestUpdate) -> Quest:
    quest = get_quest(db, user_id, quest_id)
    changes = payload.model_dump(exclude_unset=True)
    # non-nullable columns: an explicit null means "leave as is"
    for key in ("title", "is_critical"):
        if key in changes and changes[key] is None:
            del changes[key]
    if "mission_id" in changes:
        _ensure_mission_owned(db, user_id, changes["mission_id"])

    changes["updated_at"] = datetime.now()
    with transaction(db):
        res = db.execute(
            update(Quest)
            .where(Quest.id == quest_id, Quest.user_id == user_id)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise AuthorizationError({"quest_id": quest_id})
    db.refresh(quest)
    return quest


def delete_quest(db: Session, user_id: str, quest_id: int, cache=None) -> None:
    get_quest(db, user_id, quest_id)
    with transaction(db):
        res = db.execute(
            delete(Quest)
            .where(Quest.id == quest_id, Quest.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise AuthorizationError({"quest_id": quest_id})
    if cache is not None:
        cache.invalidate(user_id)


def activate_quest(
    db: Session,
    user_id: str,
    quest_id: int,
    payload: QuestActivateIn,
    cache=None,
) -> dict:
    quest = get_quest(db, user_id, quest_id)
    before = quest.status
    values = transition_values(quest, QuestStatus.ACTIVE)
    if payload.first_tactical_step:
        values["first_tactical_step"] = payload.first_tactical_step
    if payload.estimated_time:
        values["estimated_time"] = payload.estimated_time

    with transaction(db):
        _lock_owner(db, user_id)
        decision = admit(count_active(db, user_id), emergency=payload.emergency)
        _guarded_activate(
            db, user_id, quest, values,
            ceiling=decision.ceiling,
            recheck=lambda n: admit(n, emergency=payload.emergency),
        )
    db.refresh(quest)

    if decision.is_emergency_deploy:
        log.warning(
            "emergency deploy user=%s quest=%s active=%s", user_id, quest.id, decision.active_count
        )
    if cache is not None:
        cache.record_transition(user_id, before, QuestStatus.ACTIVE)

    return {
        "quest": quest_out(quest),
        "is_emergency_deploy": decision.is_emergency_deploy,
        "active_count": decision.active_count,
    }


def complete_quest(
    db: Session,
    user_id: str,
    quest_id: int,
    payload: QuestCompleteIn,
    cache=None,
) -> Quest:
    quest = get_quest(db, user_id, quest_id)
    before = quest.status
    values = transition_values(quest, QuestStatus.COMPLETED)
    for key, value in payload.model_dump().items():
        if value is not None:
            values[key] = value

    with transaction(db):
        res = db.execute(
            update(Quest)
            .where(Quest.id == quest_id, Quest.user_id == user_id, Quest.status == before)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise AuthorizationError({"quest_id": quest_id})
    db.refresh(quest)

    if cache is not None:
        cache.record_transition(user_id, before, QuestStatus.COMPLETED)
    return quest


def set_quest_status(
    db: Session,
    user_id: str,
    quest_id: int,
    target: QuestStatus,
    cache=None,
) -> Quest:
    quest = get_quest(db, user_id, quest_id)
    before = quest.status
    values = transition_values(quest, target)

    with transaction(db):
        if target == QuestStatus.ACTIVE:
            _lock_owner(db, user_id)
            decision = admit_status_change(count_active(db, user_id))
            _guarded_activate(
                db, user_id, quest, values,
                ceiling=decision.ceiling,
                recheck=admit_status_change,
            )
        else:
            res = db.execute(
                update(Quest)
                .where(Quest.id == quest_id, Quest.user_id == user_id, Quest.status == before)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount == 0:
                raise AuthorizationError({"quest_id": quest_id})
    db.refresh(quest)

    if cache is not None:
        cache.record_transition(user_id, before, target)
    return quest
