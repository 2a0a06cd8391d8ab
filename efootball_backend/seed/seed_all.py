# seed_all.py
# Makes sure a fresh data directory is usable: league settings and the default admin account.

import logging

from efootball_backend.core.config import settings
from efootball_backend.core.database import JsonEntityStore, USER
from efootball_backend.models import LeagueSettings, UserCreate, UserRole
from efootball_backend.services.accounts import AccountService

logger = logging.getLogger(__name__)


def seed_settings(store: JsonEntityStore) -> None:
    if store.read_settings() is None:
        store.write_settings(LeagueSettings(
            registration_token=settings.DEFAULT_REGISTRATION_TOKEN,
            allow_registration=True,
        ))
        logger.info("🌱 Default league settings written")


def seed_admin(store: JsonEntityStore) -> None:
    existing = store.list(USER, where=lambda u: u.username == settings.DEFAULT_ADMIN_USERNAME)
    if existing:
        return
    AccountService(store).create_user(UserCreate(
        username=settings.DEFAULT_ADMIN_USERNAME,
        password=settings.DEFAULT_ADMIN_PASSWORD,
        team_name=settings.DEFAULT_ADMIN_TEAM,
        role=UserRole.ADMIN,
    ))
    logger.info(f"🌱 Default admin account '{settings.DEFAULT_ADMIN_USERNAME}' created")


def seed_all(store: JsonEntityStore) -> None:
    logger.info("➡️  Seeding league settings...")
    seed_settings(store)

    logger.info("➡️  Seeding admin account...")
    seed_admin(store)

    logger.info("✅ Seeding complete.")
