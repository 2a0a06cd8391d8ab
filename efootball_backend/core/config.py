import os
from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================
# Global configuration for the league backend
# =====================================

BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    """Application settings, read from the environment or a local .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # App
    APP_NAME: str = "E-Football League API"
    APP_VERSION: str = "1.0.0"

    # TEST_MODE:
    # When True, testing features are enabled.
    # Example uses:
    #   - Seeded admin account keeps the default password
    #   - Debug-level logging
    TEST_MODE: bool = False

    # Storage (one JSON file per entity kind)
    DATA_DIR: str = os.path.join(BASE_DIR, "database")
    EVIDENCE_DIR: str = ""
    STORE_LOCK_TIMEOUT: float = 10.0
    MAX_EVIDENCE_BYTES: int = 30 * 1024 * 1024

    # Result workflow policies
    AUTO_APPROVE_PRIVILEGED: bool = True
    ALLOW_MULTIPLE_PENDING_PER_MATCH: bool = True
    KEEP_RESOLVED_RESULTS: bool = True

    # Registration / seeding
    DEFAULT_REGISTRATION_TOKEN: str = "123456"
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_ADMIN_TEAM: str = "Admin FC"

    # Logging
    LOG_LEVEL: str = "INFO"

    @cached_property
    def evidence_dir(self) -> str:
        """Evidence files live next to the entity files unless configured."""
        return self.EVIDENCE_DIR or os.path.join(self.DATA_DIR, "evidence")


settings = Settings()
