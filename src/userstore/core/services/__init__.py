"""Core services exports."""

from .database.db_session import DbSessionService
from .user_import import ImportSummary, import_users
from .user_service import UserService

__all__ = [
    "DbSessionService",
    "ImportSummary",
    "UserService",
    "import_users",
]
