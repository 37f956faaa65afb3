# backend/command_ops/schemas/analytics.py
from pydantic import BaseModel, Field


class AnalyticsOut(BaseModel):
    operational_load: float = Field(..., ge=0, le=1)
    weekly_momentum: int
    success_rate: int
    estimate_accuracy: int
