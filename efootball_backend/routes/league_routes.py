from fastapi import APIRouter, Depends

from efootball_backend.core.auth import get_admin_user
from efootball_backend.core.dependencies import get_standings_service
from efootball_backend.models import User
from efootball_backend.services.standings import StandingsService, StandingsTable

router = APIRouter()


# =========================================
# GET LEAGUE STANDINGS
# =========================================
@router.get("/standings", response_model=StandingsTable)
def get_standings(service: StandingsService = Depends(get_standings_service)):
    """
    Current league table, always recomputed from completed matches.
    Matches with unresolvable team names are listed under skipped_matches.
    """
    return service.standings()


# =========================================
# STORED AGGREGATE CONSISTENCY
# =========================================
@router.get("/standings/stale")
def get_stale_teams(
    service: StandingsService = Depends(get_standings_service),
    admin: User = Depends(get_admin_user),
):
    """Teams whose stored stats disagree with the recomputed table."""
    stale = service.find_stale_teams()
    return {"stale_count": len(stale), "teams": stale}


@router.post("/standings/resync")
def resync_standings(
    service: StandingsService = Depends(get_standings_service),
    admin: User = Depends(get_admin_user),
):
    """Rewrites stored team stats from completed matches."""
    fixed = service.resync()
    return {"message": f"✅ Resynced {len(fixed)} team(s)", "teams": fixed}
