"""Validation and normalization of submitted user records.

``UserPayload`` parses a raw body: text is trimmed, email and gender are
lower-cased and age must be a whole number in range. ``normalize_user``
turns pydantic's error list into the API's messages so a caller sees every
problem with a payload at once.
"""

import re
from collections.abc import Mapping
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic import ValidationError as PayloadError
from pydantic_core import PydanticCustomError

from src.userstore.core.errors import ValidationError
from src.userstore.entities.user.entity import MAX_AGE, MIN_AGE, UserData

REQUIRED_FIELDS = ("name", "email", "phone", "city", "gender", "age")
TEXT_FIELDS = ("name", "email", "phone", "city", "gender")

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

EMAIL_MESSAGE = "Invalid email format"
AGE_MESSAGE = f"Age must be a valid number between {MIN_AGE} and {MAX_AGE}"
GENDER_MESSAGE = "Gender must be male, female, or other"
OBJECT_MESSAGE = "Request body must be a JSON object"

# Reported after the presence checks, in this order
RULE_MESSAGES = {"email": EMAIL_MESSAGE, "age": AGE_MESSAGE, "gender": GENDER_MESSAGE}
PRESENCE_ERRORS = ("missing", "required", "not_text")


def is_valid_email(email: str) -> bool:
    """Simple syntactic check: ``local@domain.tld`` without whitespace."""
    return re.match(EMAIL_PATTERN, email) is not None


def _required(field_name: str) -> PydanticCustomError:
    return PydanticCustomError("required", "{field} is required", {"field": field_name})


class UserPayload(UserData):
    """A submitted user record, cleaned up while it is parsed."""

    email: str = Field(pattern=EMAIL_PATTERN)

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def clean_text(cls, value: Any, info: ValidationInfo) -> str:
        if value is None:
            raise _required(info.field_name)
        if isinstance(value, bool):
            value = str(value).lower()
        elif isinstance(value, (int, float)):
            value = str(value)
        elif not isinstance(value, str):
            raise PydanticCustomError(
                "not_text", "{field} must be a string", {"field": info.field_name}
            )

        value = value.strip()
        if not value:
            raise _required(info.field_name)
        if info.field_name in ("email", "gender"):
            return value.lower()
        return value

    @field_validator("age", mode="before")
    @classmethod
    def clean_age(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise _required("age")
        # bool is an int subclass and would otherwise pass as 0 or 1
        if isinstance(value, bool):
            raise PydanticCustomError("age", AGE_MESSAGE)
        if isinstance(value, str):
            return value.strip()
        return value


def error_messages(error: PayloadError) -> list[str]:
    """Map pydantic errors to one message per field, presence failures first."""
    presence: dict[str, str] = {}
    rules: dict[str, str] = {}
    for detail in error.errors():
        field_name = detail["loc"][0] if detail["loc"] else None
        if field_name not in REQUIRED_FIELDS or field_name in presence or field_name in rules:
            continue
        kind = detail["type"]
        if kind == "not_text":
            presence[field_name] = f"{field_name} must be a string"
        elif kind in PRESENCE_ERRORS:
            presence[field_name] = f"{field_name} is required"
        else:
            rules[field_name] = RULE_MESSAGES.get(field_name, detail["msg"])

    messages = [presence[name] for name in REQUIRED_FIELDS if name in presence]
    messages.extend(rules[name] for name in RULE_MESSAGES if name in rules)
    messages.extend(
        message for name, message in rules.items() if name not in RULE_MESSAGES
    )
    return messages


def normalize_user(payload: Any) -> UserData:
    """Validate ``payload`` and return the normalized record.

    Raises:
        ValidationError: with every rule violation, in rule order.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError([OBJECT_MESSAGE])

    try:
        parsed = UserPayload.model_validate(dict(payload))
    except PayloadError as e:
        raise ValidationError(error_messages(e)) from e
    return UserData.model_validate(parsed.model_dump())
