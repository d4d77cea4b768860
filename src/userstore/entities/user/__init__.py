"""User entity module.

This module contains all User-related classes organized by responsibility:
- User: Domain entity returned to callers
- UserTable: Database persistence model
- UserRepository: Data access layer
"""

from .entity import Gender, User, UserData
from .repository import Page, UserFilters, UserRepository, UserStats
from .table import UserTable

__all__ = [
    "Gender",
    "Page",
    "User",
    "UserData",
    "UserFilters",
    "UserRepository",
    "UserStats",
    "UserTable",
]
