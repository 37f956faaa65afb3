# backend/command_ops/schemas/feedback.py
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from command_ops.schemas.common import clean_text


class FeedbackCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=10000)

    @field_validator("message", mode="before")
    @classmethod
    def _clean_message(cls, v):
        return clean_text(v)


class FeedbackOut(BaseModel):
    id: int
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OnboardingOut(BaseModel):
    onboarding_completed: bool


class OnboardingIn(BaseModel):
    completed: bool = True
