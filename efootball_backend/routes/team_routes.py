from typing import List

from fastapi import APIRouter, Depends, HTTPException

from efootball_backend.core.auth import get_accounts, get_current_user
from efootball_backend.models import Team, TeamUpdate, User
from efootball_backend.services.accounts import AccountService

router = APIRouter()


# === LIST TEAMS ===

@router.get("/", response_model=List[Team])
def list_teams(accounts: AccountService = Depends(get_accounts)):
    return sorted(accounts.list_teams(), key=lambda t: t.name.lower())


# === SINGLE TEAM ===

@router.get("/{team_id}", response_model=Team)
def get_team(team_id: int, accounts: AccountService = Depends(get_accounts)):
    return accounts.get_team(team_id)


# === UPDATE TEAM ===

@router.put("/{team_id}", response_model=Team)
def update_team(
    team_id: int,
    data: TeamUpdate,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    """
    Rename a team or change its contact number.
    Allowed for admins and for the team's owner. Renames are propagated
    to every fixture and pending result that refers to the old name.
    """
    team = accounts.get_team(team_id)
    if not user.is_admin and team.owner_user_id != user.id:
        raise HTTPException(status_code=403, detail="You can only edit your own team.")
    return accounts.update_team(team_id, data)
