# user_routes.py
# Admin user management. Every user owns exactly one team.

from typing import List

from fastapi import APIRouter, Depends

from efootball_backend.core.auth import get_accounts, get_admin_user, get_current_user
from efootball_backend.core.database import USER
from efootball_backend.models import User, UserCreate, UserRead, UserUpdate
from efootball_backend.services.accounts import AccountService

router = APIRouter()


@router.get("/me", response_model=UserRead)
def get_me(user: User = Depends(get_current_user)):
    return user


@router.get("/", response_model=List[UserRead])
def list_users(admin: User = Depends(get_admin_user), accounts: AccountService = Depends(get_accounts)):
    return accounts.store.list(USER)


@router.post("/", response_model=UserRead)
def create_user(
    data: UserCreate,
    admin: User = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    """Admin-created accounts skip the registration token and may be admins."""
    return accounts.create_user(data)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    data: UserUpdate,
    admin: User = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.update_user(user_id, data)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    admin: User = Depends(get_admin_user),
    accounts: AccountService = Depends(get_accounts),
):
    """
    Deletes the user, their team and every fixture or pending result involving that team.
    Stored stats of the remaining teams are not touched; run /leagues/standings/resync if needed.
    """
    return accounts.delete_user(user_id)
