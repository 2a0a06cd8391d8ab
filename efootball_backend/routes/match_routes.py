# match_routes.py
# Schedule and fixture routes: listing, generation, manual fixtures, admin result entry.

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from efootball_backend.core.auth import get_admin_user
from efootball_backend.core.database import JsonEntityStore, MATCH, TEAM, get_store
from efootball_backend.core.dependencies import get_evidence_store, get_lifecycle
from efootball_backend.core.errors import MatchNotFound
from efootball_backend.models import Match, MatchCreate, User
from efootball_backend.services.evidence import EvidenceStore, EvidenceUpload
from efootball_backend.services.generate_fixtures import (
    build_double_round_robin,
    clear_season,
    create_match,
    group_by_matchday,
    regenerate_schedule,
)
from efootball_backend.services.result_lifecycle import ResultLifecycle

router = APIRouter()


class ScheduleRequest(BaseModel):
    start_date: date
    matches_per_matchday: int = Field(default=2, ge=1)
    interval_days: int = Field(default=7, ge=0)
    kickoff_time: str = Field(default="20:00", pattern=r"^\d{2}:\d{2}$")


class ResultEntry(BaseModel):
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)
    notes: Optional[str] = None
    screenshot: Optional[EvidenceUpload] = None


# =========================================
# FIXTURE LIST
# =========================================
@router.get("/", response_model=List[Match])
def list_matches(store: JsonEntityStore = Depends(get_store)):
    """All fixtures ordered by matchday, then kickoff."""
    return sorted(store.list(MATCH), key=lambda m: (m.matchday, m.date, m.time, m.id))


@router.get("/matchdays")
def list_matchdays(store: JsonEntityStore = Depends(get_store)):
    """Fixtures grouped per matchday (the schedule view)."""
    return group_by_matchday(store.list(MATCH))


@router.get("/evidence/{reference}")
def get_evidence(reference: str, evidence: EvidenceStore = Depends(get_evidence_store)):
    return FileResponse(evidence.path_for(reference))


@router.get("/{match_id}", response_model=Match)
def get_match(match_id: int, store: JsonEntityStore = Depends(get_store)):
    match = store.get(MATCH, match_id)
    if not match:
        raise MatchNotFound(match_id)
    return match


# =========================================
# SCHEDULE MANAGEMENT (admin)
# =========================================
@router.post("/", response_model=Match)
def add_match(data: MatchCreate, store: JsonEntityStore = Depends(get_store), admin: User = Depends(get_admin_user)):
    return create_match(store, data)


@router.post("/schedule/preview", response_model=List[Match])
def preview_schedule(data: ScheduleRequest, store: JsonEntityStore = Depends(get_store),
                     admin: User = Depends(get_admin_user)):
    """The double round-robin that /schedule would create, without saving it."""
    return build_double_round_robin(
        store.list(TEAM), data.start_date, data.matches_per_matchday, data.interval_days, data.kickoff_time,
    )


@router.post("/schedule")
def generate_schedule(data: ScheduleRequest, store: JsonEntityStore = Depends(get_store),
                      admin: User = Depends(get_admin_user)):
    """
    Replaces every existing fixture with a new double round-robin.
    Team stats are left as they are.
    """
    created = regenerate_schedule(
        store, data.start_date, data.matches_per_matchday, data.interval_days, data.kickoff_time,
    )
    return {
        "message": f"✅ Schedule generated ({len(created)} matches)",
        "total_matches": len(created),
        "matchdays": created[-1].matchday if created else 0,
    }


@router.delete("/")
def clear_matches(store: JsonEntityStore = Depends(get_store), admin: User = Depends(get_admin_user)):
    """Deletes all fixtures and pending results and resets team stats."""
    return clear_season(store)


@router.delete("/{match_id}")
def delete_match(
    match_id: int,
    admin: User = Depends(get_admin_user),
    lifecycle: ResultLifecycle = Depends(get_lifecycle),
):
    """Deletes one fixture, reverting its score and dropping its pending results."""
    return lifecycle.delete_match(admin, match_id)


# =========================================
# ADMIN RESULT ENTRY / EDIT
# =========================================
@router.put("/{match_id}/result", response_model=Match)
def set_match_result(
    match_id: int,
    data: ResultEntry,
    admin: User = Depends(get_admin_user),
    lifecycle: ResultLifecycle = Depends(get_lifecycle),
):
    """
    Completes a scheduled match directly, or edits the score of a completed one
    (the old score is reverted from both teams before the new one is applied).
    """
    return lifecycle.record_result(
        admin, match_id, data.home_score, data.away_score, notes=data.notes, evidence=data.screenshot,
    )
