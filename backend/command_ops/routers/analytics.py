# backend/command_ops/routers/analytics.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from command_ops.db import get_db
from command_ops.rate_limit import rate_limited
from command_ops.schemas.analytics import AnalyticsOut
from command_ops.services.analytics import AnalyticsCache, get_analytics_cache, load_analytics

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsOut)
def get_analytics(
    user_id: str = Depends(rate_limited("calculate_analytics")),
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
):
    return cache.get_or_compute(user_id, lambda: load_analytics(db, user_id))
