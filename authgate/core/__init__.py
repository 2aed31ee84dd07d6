# authgate Core Module
from .config import AuthConfig, Settings, get_settings, settings
from .database import Base, check_db_connection, create_engine, create_session_maker, get_db
from .logging import get_logger, setup_logging

__all__ = [
    "AuthConfig",
    "Settings",
    "settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "Base",
    "create_engine",
    "create_session_maker",
    "get_db",
    "check_db_connection",
]
