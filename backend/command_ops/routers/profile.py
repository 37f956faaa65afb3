# backend/command_ops/routers/profile.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from command_ops.db import get_db
from command_ops.errors import AuthenticationError
from command_ops.models.user import User
from command_ops.rate_limit import rate_limited
from command_ops.schemas.user import ProfileOut

router = APIRouter(prefix="/me", tags=["profile"])


@router.get("", response_model=ProfileOut)
def read_profile(user_id: str = Depends(rate_limited("profile_read")), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError({"reason": "unknown user"})
    return user
