# backend/command_ops/auth.py
"""
Session-token authentication.

Tokens are issued by the sign-in provider and land in ``auth_sessions``; this
module only checks that the presented bearer token maps to a live session.
"""
from datetime import datetime
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.orm import Session

from command_ops.db import get_db
from command_ops.errors import AuthenticationError
from command_ops.models.user import AuthSession


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_user_id(db: Session, token: Optional[str], now: Optional[datetime] = None) -> str:
    if not token:
        raise AuthenticationError({"reason": "missing token"})
    now = now or datetime.now()
    user_id = db.scalar(
        select(AuthSession.user_id).where(AuthSession.token == token, AuthSession.expires_at > now)
    )
    if not user_id:
        raise AuthenticationError({"reason": "invalid or expired session"})
    return user_id


def require_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> str:
    """FastAPI dependency: the caller's user id, or 401."""
    return resolve_user_id(db, _bearer_token(authorization))

