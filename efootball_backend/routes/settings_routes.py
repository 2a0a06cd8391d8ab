from fastapi import APIRouter, Depends

from efootball_backend.core.auth import get_accounts, get_admin_user
from efootball_backend.models import LeagueSettings, LeagueSettingsUpdate, User
from efootball_backend.services.accounts import AccountService

router = APIRouter()


@router.get("/", response_model=LeagueSettings)
def get_settings(admin: User = Depends(get_admin_user), accounts: AccountService = Depends(get_accounts)):
    return accounts.get_settings()


@router.put("/", response_model=LeagueSettings)
def update_settings(
    data: LeagueSettingsUpdate,
    admin: User = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    """Change the registration token or open/close self-registration."""
    return accounts.update_settings(data)
