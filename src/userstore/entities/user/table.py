"""User database table model."""

from sqlalchemy import CheckConstraint
from sqlmodel import Field

from src.userstore.entities.core._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users.

    This represents how the User entity is stored in the database.
    It's separate from the domain entity to maintain clean architecture
    while keeping related code together.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "gender IN ('male', 'female', 'other')", name="ck_users_gender"
        ),
        CheckConstraint("age >= 0 AND age <= 150", name="ck_users_age"),
    )

    name: str = Field(max_length=255, nullable=False)
    email: str = Field(max_length=255, nullable=False, unique=True, index=True)
    phone: str = Field(max_length=50, nullable=False)
    city: str = Field(max_length=255, nullable=False, index=True)
    gender: str = Field(max_length=16, nullable=False, index=True)
    age: int = Field(nullable=False)
