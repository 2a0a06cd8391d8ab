# result_routes.py
# Result submission and the admin approval queue.

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from efootball_backend.core.auth import get_current_user
from efootball_backend.core.dependencies import get_lifecycle
from efootball_backend.models import PendingResult, User
from efootball_backend.services.evidence import EvidenceUpload
from efootball_backend.services.result_lifecycle import ResultLifecycle

router = APIRouter()


class ResultSubmission(BaseModel):
    match_id: int
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)
    notes: Optional[str] = None
    screenshot: Optional[EvidenceUpload] = None


class PendingResultEdit(BaseModel):
    home_score: Optional[int] = Field(default=None, ge=0)
    away_score: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    screenshot: Optional[EvidenceUpload] = None


# =========================================
# SUBMIT A RESULT
# =========================================
@router.post("/", response_model=PendingResult)
def submit_result(
    data: ResultSubmission,
    user: User = Depends(get_current_user),
    lifecycle: ResultLifecycle = Depends(get_lifecycle),
):
    """
    Any logged-in user can submit a score for a scheduled match.
    - Regular users: the result waits for admin approval
    - Admins: approved immediately (unless AUTO_APPROVE_PRIVILEGED is off)
    """
    return lifecycle.submit(
        user, data.match_id, data.home_score, data.away_score, notes=data.notes, evidence=data.screenshot,
    )


# =========================================
# PENDING QUEUE
# =========================================
@router.get("/pending", response_model=List[PendingResult])
def list_pending_results(
    user: User = Depends(get_current_user),
    lifecycle: ResultLifecycle = Depends(get_lifecycle),
):
    return lifecycle.list_pending(user)


@router.get("/mine", response_model=List[PendingResult])
def list_my_pending_results(
    user: User = Depends(get_current_user),
    lifecycle: ResultLifecycle = Depends(get_lifecycle),
):
    return lifecycle.list_pending(user, mine=True)


# =========================================
# APPROVE / REJECT (admin)
# =========================================
@router.post("/{result_id}/approve", response_model=PendingResult)
def approve_result(
    result_id: int,
    user: User = Depends(get_current_user),
    lifecycle: ResultLifecycle = Depends(get_lifecycle),
):
    return lifecycle.approve(user, result_id)


@router.post("/{result_id}/reject", response_model=PendingResult)
def reject_result(
    result_id: int,
    user: User = Depends(get_current_user),
    lifecycle: ResultLifecycle = Depends(get_lifecycle),
):
    return lifecycle.reject(user, result_id)


# =========================================
# EDIT OWN PENDING RESULT
# =========================================
@router.put("/{result_id}", response_model=PendingResult)
def edit_pending_result(
    result_id: int,
    data: PendingResultEdit,
    user: User = Depends(get_current_user),
    lifecycle: ResultLifecycle = Depends(get_lifecycle),
):
    return lifecycle.edit_pending(
        user, result_id,
        home_score=data.home_score,
        away_score=data.away_score,
        notes=data.notes,
        evidence=data.screenshot,
    )
