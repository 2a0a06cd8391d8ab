# match_model.py
# Defines the Match model (fixtures and their results) and the result tuple used by standings.

from enum import Enum
from typing import Optional
import datetime
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class Match(SQLModel):
    """
    Represents a fixture between two teams on a given matchday.
    Teams are referenced by display name, resolved through TeamResolver.
    Scores are present only once the match is completed.
    """
    id: Optional[int] = Field(default=None)

    home_team: str
    away_team: str

    # Scheduling
    date: datetime.date
    time: str = Field(default="20:00")                     # Kickoff, "HH:MM"
    matchday: int = Field(ge=1)

    # Result
    status: MatchStatus = Field(default=MatchStatus.SCHEDULED)
    home_score: Optional[int] = Field(default=None, ge=0)
    away_score: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    screenshot: Optional[str] = None                        # Evidence reference
    submitted_at: Optional[str] = None
    result_id: Optional[int] = None                         # Approved result that set the score

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    def result(self) -> "MatchResult":
        """The stored outcome of a completed match as a result tuple."""
        return MatchResult(
            home_team=self.home_team,
            away_team=self.away_team,
            home_score=self.home_score or 0,
            away_score=self.away_score or 0,
        )


class MatchResult(SQLModel):
    """A (home, away, score) tuple, the unit applied to and reverted from team aggregates."""
    home_team: str
    away_team: str
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)


class MatchCreate(BaseModel):
    """Payload for a manually created fixture."""
    home_team: str
    away_team: str
    date: datetime.date
    time: str = PydanticField(default="20:00", pattern=r"^\d{2}:\d{2}$")
    matchday: int = PydanticField(default=1, ge=1)
