# backend/command_ops/schemas/user.py
from pydantic import BaseModel
from pydantic.config import ConfigDict


class ProfileOut(BaseModel):
    id: str
    name: str
    email: str
    onboarding_completed: bool

    model_config = ConfigDict(from_attributes=True)
