# backend/command_ops/routers/feedback.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from command_ops.db import get_db, transaction
from command_ops.models.feedback import Feedback
from command_ops.rate_limit import rate_limited
from command_ops.schemas.feedback import FeedbackCreate, FeedbackOut

router = APIRouter(prefix="/feedback", tags=["feedback"])
log = logging.getLogger(__name__)


@router.post("", response_model=FeedbackOut, status_code=201)
def submit_feedback(
    payload: FeedbackCreate,
    user_id: str = Depends(rate_limited("feedback_submit")),
    db: Session = Depends(get_db),
):
    row = Feedback(user_id=user_id, message=payload.message)
    with transaction(db):
        db.add(row)
        db.flush()
    log.info("feedback received user=%s id=%s", user_id, row.id)
    return row
