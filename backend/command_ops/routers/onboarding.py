# backend/command_ops/routers/onboarding.py
from fastapi import APIRouter, Depends
from sqlalchemy import update
from sqlalchemy.orm import Session

from command_ops.db import get_db, transaction
from command_ops.errors import AuthenticationError
from command_ops.models.user import User
from command_ops.rate_limit import rate_limited
from command_ops.schemas.feedback import OnboardingIn, OnboardingOut

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.get("", response_model=OnboardingOut)
def onboarding_status(user_id: str = Depends(rate_limited("onboarding")), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError({"reason": "unknown user"})
    return OnboardingOut(onboarding_completed=user.onboarding_completed)


@router.post("", response_model=OnboardingOut)
def set_onboarding(
    payload: OnboardingIn,
    user_id: str = Depends(rate_limited("onboarding")),
    db: Session = Depends(get_db),
):
    with transaction(db):
        res = db.execute(
            update(User).where(User.id == user_id).values(onboarding_completed=payload.completed)
        )
        if res.rowcount == 0:
            raise AuthenticationError({"reason": "unknown user"})
    return OnboardingOut(onboarding_completed=payload.completed)
