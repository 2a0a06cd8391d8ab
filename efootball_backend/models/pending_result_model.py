# pending_result_model.py
# Defines PendingResult: a submitted match outcome waiting for admin approval.

from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field


class ResultStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Submitter(SQLModel):
    """Snapshot of the user that submitted a result."""
    id: int
    username: str
    team_name: Optional[str] = None
    role: str = "user"


class PendingResult(SQLModel):
    """
    A result submitted against a scheduled match.
    Only results with status "pending" are part of the active pending set;
    approved/rejected ones are kept as history (see KEEP_RESOLVED_RESULTS).
    """
    id: Optional[int] = Field(default=None)
    match_id: int

    # Copied from the match at submission time
    home_team: str
    away_team: str

    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)

    submitted_at: str
    submitted_by: Optional[Submitter] = None
    status: ResultStatus = Field(default=ResultStatus.PENDING)
    resolved_at: Optional[str] = None

    screenshot: Optional[str] = None                        # Evidence reference
    notes: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == ResultStatus.PENDING
