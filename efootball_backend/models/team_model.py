# team_model.py
# Defines the Team model: a league participant plus its stored aggregate stats.

from typing import Optional
from sqlmodel import SQLModel, Field


class Team(SQLModel):
    """
    A team in the league.
    The stats fields are running aggregates maintained by result approval;
    they can always be rebuilt by replaying completed matches.
    """
    id: Optional[int] = Field(default=None)
    name: str = Field(min_length=1)                       # Unique display name
    owner_user_id: Optional[int] = None                   # User that registered the team
    whatsapp: Optional[str] = None                        # Contact number shown next to the name

    # Aggregates
    played: int = Field(default=0, ge=0)
    won: int = Field(default=0, ge=0)
    drawn: int = Field(default=0, ge=0)
    lost: int = Field(default=0, ge=0)
    goals_for: int = Field(default=0, ge=0)
    goals_against: int = Field(default=0, ge=0)

    @property
    def points(self) -> int:
        return self.won * 3 + self.drawn

    @property
    def goal_diff(self) -> int:
        return self.goals_for - self.goals_against

    def stats(self) -> dict:
        """Aggregate fields only (used for comparisons and resets)."""
        return {
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
        }


ZERO_STATS = {
    "played": 0,
    "won": 0,
    "drawn": 0,
    "lost": 0,
    "goals_for": 0,
    "goals_against": 0,
}


class TeamUpdate(SQLModel):
    """Editable team fields (aggregates are owned by the result workflow)."""
    name: Optional[str] = Field(default=None, min_length=2)
    whatsapp: Optional[str] = None
