"""Logging setup for the league backend."""
import logging
import sys

from efootball_backend.core.config import settings


def setup_logging():
    """Configures the root logger once at startup."""

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    level = logging.DEBUG if settings.TEST_MODE else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Keep third-party noise down
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("filelock").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured")

    return logger
