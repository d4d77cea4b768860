"""User domain entity."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.userstore.entities.core._base import Entity


class Gender(str, Enum):
    """Accepted values for a user's gender."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


MIN_AGE = 0
MAX_AGE = 150


class UserData(BaseModel):
    """Normalized, validated user fields ready to be persisted.

    Produced by the validator; every mutable column of the users table.
    """

    name: str
    email: str
    phone: str
    city: str
    gender: Gender
    age: int = Field(ge=MIN_AGE, le=MAX_AGE)


class User(Entity):
    """User entity representing a persisted record.

    This is the domain model returned by the repository. It inherits from
    Entity to get the identifier and timestamps.
    """

    name: str = Field(description="Full name")
    email: str = Field(description="Lower-cased email address, unique")
    phone: str = Field(description="Phone number")
    city: str = Field(description="City of residence")
    gender: Gender = Field(description="Gender")
    age: int = Field(ge=MIN_AGE, le=MAX_AGE, description="Age in years")

    def __eq__(self, other: Any) -> bool:
        """Compare users by business attributes, ignoring timestamps."""
        if not isinstance(other, User):
            return False

        return (
            self.id == other.id
            and self.name == other.name
            and self.email == other.email
            and self.phone == other.phone
            and self.city == other.city
            and self.gender == other.gender
            and self.age == other.age
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.id,
            self.name,
            self.email,
            self.phone,
            self.city,
            self.gender,
            self.age,
        ))
