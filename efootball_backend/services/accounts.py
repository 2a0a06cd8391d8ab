# accounts.py
# Users, the team each user owns, registration gating and team renames.

import logging
from typing import List, Optional

from passlib.context import CryptContext

from efootball_backend.core.config import settings
from efootball_backend.core.database import JsonEntityStore, MATCH, PENDING_RESULT, TEAM, USER
from efootball_backend.core.errors import (
    InvalidRegistrationToken,
    InvalidState,
    StorageError,
    TeamNotFound,
    Unauthorized,
    UserNotFound,
    ValidationFailed,
)
from efootball_backend.core.name_resolution import TeamResolver
from efootball_backend.models import (
    LeagueSettings,
    LeagueSettingsUpdate,
    Team,
    TeamUpdate,
    User,
    UserCreate,
    UserRegister,
    UserRole,
    UserUpdate,
)

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AccountService:
    def __init__(self, store: JsonEntityStore):
        self.store = store

    # ---------------------------------------------
    # Lookups
    # ---------------------------------------------
    def get_user(self, user_id: int) -> User:
        user = self.store.get(USER, user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    def get_team(self, team_id: int) -> Team:
        team = self.store.get(TEAM, team_id)
        if team is None:
            raise TeamNotFound(team_id)
        return team

    def team_of(self, user: User) -> Optional[Team]:
        teams = self.store.list(TEAM, where=lambda t: t.owner_user_id == user.id)
        return teams[0] if teams else None

    def _check_username_free(self, username: str, except_id: Optional[int] = None) -> None:
        taken = self.store.list(USER, where=lambda u: u.username == username and u.id != except_id)
        if taken:
            raise ValidationFailed(f"Username '{username}' is already taken.")

    def _check_team_name_free(self, name: str, except_id: Optional[int] = None) -> None:
        taken = self.store.list(TEAM, where=lambda t: t.name == name and t.id != except_id)
        if taken:
            raise ValidationFailed(f"Team name '{name}' is already taken.")

    # ---------------------------------------------
    # Users
    # ---------------------------------------------
    def create_user(self, data: UserCreate) -> User:
        """Creates the account and the team it owns."""
        self._check_username_free(data.username)
        self._check_team_name_free(data.team_name)

        user = self.store.create(USER, User(
            username=data.username,
            password_hash=pwd_context.hash(data.password),
            team_name=data.team_name,
            role=data.role,
        ))
        try:
            self.store.create(TEAM, Team(name=data.team_name, owner_user_id=user.id, whatsapp=data.whatsapp))
        except StorageError:
            # No team, no account
            self.store.delete(USER, user.id)
            raise

        logger.info(f"User '{user.username}' created with team '{data.team_name}' ({user.role.value})")
        return user

    def register(self, data: UserRegister) -> User:
        """Self-service registration, gated by the league settings."""
        self.validate_token(data.registration_token)
        return self.create_user(UserCreate(
            username=data.username,
            password=data.password,
            team_name=data.team_name,
            role=UserRole.USER,
            whatsapp=data.whatsapp,
        ))

    def validate_token(self, token: str) -> bool:
        league_settings = self.get_settings()
        if not league_settings.allow_registration:
            raise Unauthorized("Registration is currently closed.")
        if token != league_settings.registration_token:
            raise InvalidRegistrationToken("Invalid registration token.")
        return True

    def authenticate(self, username: str, password: str) -> User:
        users = self.store.list(USER, where=lambda u: u.username == username)
        if not users or not pwd_context.verify(password, users[0].password_hash):
            raise Unauthorized("Invalid credentials.")
        return users[0]

    def update_user(self, user_id: int, data: UserUpdate) -> User:
        user = self.get_user(user_id)
        patch = {}

        if data.username and data.username != user.username:
            self._check_username_free(data.username, except_id=user.id)
            patch["username"] = data.username
        if data.password:
            patch["password_hash"] = pwd_context.hash(data.password)
        if data.role and data.role != user.role:
            patch["role"] = data.role

        if data.team_name and data.team_name != user.team_name:
            team = self.team_of(user)
            if team is not None:
                # rename_team keeps user.team_name in sync
                self.rename_team(team.id, data.team_name)
            else:
                patch["team_name"] = data.team_name

        if patch:
            user = self.store.update(USER, user.id, patch)
        return self.get_user(user.id)

    def delete_user(self, user_id: int) -> dict:
        """
        Deletes a user together with their team and every match and pending
        result that references that team.
        """
        user = self.get_user(user_id)
        if user.username == settings.DEFAULT_ADMIN_USERNAME:
            raise InvalidState("The default admin account cannot be deleted.")

        summary = {"user": user.username, "team": None, "matches_deleted": 0, "results_deleted": 0}
        team = self.team_of(user)
        if team is not None:
            resolver = TeamResolver(self.store.list(TEAM))

            def involves(entity) -> bool:
                return resolver.references(entity.home_team, team) or resolver.references(entity.away_team, team)

            matches = self.store.delete_where(MATCH, involves)
            results = self.store.delete_where(PENDING_RESULT, involves)
            self.store.delete(TEAM, team.id)
            summary.update(team=team.name, matches_deleted=len(matches), results_deleted=len(results))

        self.store.delete(USER, user.id)
        logger.info(
            f"User '{user.username}' deleted (team: {summary['team']}, "
            f"{summary['matches_deleted']} matches, {summary['results_deleted']} results)"
        )
        return summary

    # ---------------------------------------------
    # Teams
    # ---------------------------------------------
    def update_team(self, team_id: int, data: TeamUpdate) -> Team:
        team = self.get_team(team_id)
        if data.name and data.name != team.name:
            team = self.rename_team(team_id, data.name)
        if data.whatsapp is not None:
            team = self.store.update(TEAM, team_id, {"whatsapp": data.whatsapp})
        return team

    def rename_team(self, team_id: int, new_name: str) -> Team:
        """
        Renames a team and rewrites the name references held by matches,
        pending results and the owning user.
        """
        new_name = new_name.strip()
        if len(new_name) < 2:
            raise ValidationFailed("Team name must be at least 2 characters.")
        team = self.get_team(team_id)
        if new_name == team.name:
            return team
        self._check_team_name_free(new_name, except_id=team.id)

        # Resolve references against the old name before it changes
        resolver = TeamResolver(self.store.list(TEAM))
        renamed = 0
        for kind in (MATCH, PENDING_RESULT):
            for entity in self.store.list(kind):
                patch = {}
                if resolver.references(entity.home_team, team):
                    patch["home_team"] = new_name
                if resolver.references(entity.away_team, team):
                    patch["away_team"] = new_name
                if patch:
                    self.store.update(kind, entity.id, patch)
                    renamed += 1

        updated = self.store.update(TEAM, team.id, {"name": new_name})
        if team.owner_user_id is not None and self.store.get(USER, team.owner_user_id) is not None:
            self.store.update(USER, team.owner_user_id, {"team_name": new_name})

        logger.info(f"Team '{team.name}' renamed to '{new_name}' ({renamed} references updated)")
        return updated

    def list_teams(self) -> List[Team]:
        return self.store.list(TEAM)

    # ---------------------------------------------
    # Settings
    # ---------------------------------------------
    def get_settings(self) -> LeagueSettings:
        return self.store.read_settings() or LeagueSettings(
            registration_token=settings.DEFAULT_REGISTRATION_TOKEN,
            allow_registration=True,
        )

    def update_settings(self, data: LeagueSettingsUpdate) -> LeagueSettings:
        current = self.get_settings()
        updated = current.model_copy(update={
            key: value for key, value in data.model_dump().items() if value is not None
        })
        if not updated.registration_token:
            raise ValidationFailed("A registration token is required.")
        return self.store.write_settings(updated)
