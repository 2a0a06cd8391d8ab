from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class User(SQLModel):
    """A league account. Every account owns exactly one team."""
    id: Optional[int] = Field(default=None)
    username: str = Field(min_length=3)
    password_hash: str
    team_name: Optional[str] = None
    role: UserRole = Field(default=UserRole.USER)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserRead(SQLModel):
    """Public view of a user (no password hash)."""
    id: int
    username: str
    team_name: Optional[str] = None
    role: UserRole
    created_at: datetime


# === Request schemas ===

class UserCreate(BaseModel):
    username: str = PydanticField(min_length=3)
    password: str = PydanticField(min_length=6)
    team_name: str = PydanticField(min_length=2)
    role: UserRole = UserRole.USER
    whatsapp: Optional[str] = None


class UserRegister(UserCreate):
    registration_token: str


class UserLogin(BaseModel):
    username: str
    password: str


class UserUpdate(BaseModel):
    username: Optional[str] = PydanticField(default=None, min_length=3)
    password: Optional[str] = PydanticField(default=None, min_length=6)
    team_name: Optional[str] = PydanticField(default=None, min_length=2)
    role: Optional[UserRole] = None
