# auth.py
# Actor identification and the /auth routes (register, login, registration token check).
# There are no sessions or tokens: the client sends the logged-in user's id in X-User-Id.

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from efootball_backend.core.database import JsonEntityStore, USER, get_store
from efootball_backend.models import User, UserLogin, UserRead, UserRegister
from efootball_backend.services.accounts import AccountService

router = APIRouter()


# === ACTOR DEPENDENCIES ===

def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    store: JsonEntityStore = Depends(get_store),
) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Login required (missing X-User-Id header).")
    user = store.get(USER, x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user.")
    return user


def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required.")
    return user


def get_accounts(store: JsonEntityStore = Depends(get_store)) -> AccountService:
    return AccountService(store)


# === REGISTER ===

@router.post("/register", response_model=UserRead)
def register_user(data: UserRegister, accounts: AccountService = Depends(get_accounts)):
    """Self-registration with the league's registration token. Creates the user's team too."""
    return accounts.register(data)


# === LOGIN ===

@router.post("/login", response_model=UserRead)
def login_user(data: UserLogin, accounts: AccountService = Depends(get_accounts)):
    return accounts.authenticate(data.username, data.password)


# === TOKEN CHECK ===

class TokenCheck(BaseModel):
    token: str


@router.post("/validate-token")
def validate_token(data: TokenCheck, accounts: AccountService = Depends(get_accounts)):
    accounts.validate_token(data.token)
    return {"valid": True}
