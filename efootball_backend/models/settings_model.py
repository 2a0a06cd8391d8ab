# settings_model.py
# League-wide settings persisted next to the entity files (registration gating).

from typing import Optional
from sqlmodel import SQLModel, Field


class LeagueSettings(SQLModel):
    registration_token: str = Field(min_length=1)
    allow_registration: bool = True


class LeagueSettingsUpdate(SQLModel):
    registration_token: Optional[str] = None
    allow_registration: Optional[bool] = None
