"""Entities organized by business concept.

Each entity package colocates its domain model (entity.py), its database
model (table.py) and its data access layer (repository.py).
"""

from .user import User, UserRepository, UserTable

__all__ = [
    "User",
    "UserTable",
    "UserRepository",
]
