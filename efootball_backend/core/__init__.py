"""Core modules - configuration, storage, errors, name resolution"""
from efootball_backend.core.config import settings
from efootball_backend.core.logging_config import setup_logging
