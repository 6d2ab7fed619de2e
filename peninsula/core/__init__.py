"""Core app configuration, database and security."""

from peninsula.core.config import get_settings, settings
from peninsula.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
