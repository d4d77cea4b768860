"""Unit tests for user payload validation and normalization."""

import pytest

from src.userstore.core.errors import ValidationError
from src.userstore.core.validation import (
    AGE_MESSAGE,
    GENDER_MESSAGE,
    OBJECT_MESSAGE,
    UserPayload,
    is_valid_email,
    normalize_user,
)
from src.userstore.entities.user import Gender, UserData


def errors_for(payload) -> list[str]:
    with pytest.raises(ValidationError) as exc_info:
        normalize_user(payload)
    return exc_info.value.errors


class TestNormalizeUser:
    """Field rules, error collection and normalization."""

    def test_valid_payload_is_normalized(self, user_payload):
        data = normalize_user(
            user_payload(
                name="  Ann  ",
                email=" Ann@X.com ",
                city=" NYC ",
                gender="FEMALE",
                age="29",
            )
        )

        assert type(data) is UserData
        assert data.name == "Ann"
        assert data.email == "ann@x.com"
        assert data.city == "NYC"
        assert data.gender is Gender.FEMALE
        assert data.age == 29

    @pytest.mark.parametrize(
        ("age", "expected"), [(0, 0), (150, 150), ("0", 0), ("150", 150), (" 42 ", 42), (42.0, 42)]
    )
    def test_age_boundaries_accepted(self, user_payload, age, expected):
        assert normalize_user(user_payload(age=age)).age == expected

    @pytest.mark.parametrize(
        "age",
        [-1, 151, "abc", 29.5, True, float("nan"), float("inf"), 10**400, -(10**400), [30]],
    )
    def test_age_out_of_range_or_not_a_number_rejected(self, user_payload, age):
        assert errors_for(user_payload(age=age)) == [AGE_MESSAGE]

    @pytest.mark.parametrize("gender", ["MALE", "Female", " other "])
    def test_gender_is_case_insensitive(self, user_payload, gender):
        data = normalize_user(user_payload(gender=gender))
        assert data.gender.value == gender.strip().lower()

    @pytest.mark.parametrize("gender", ["unknown", 3])
    def test_unknown_gender_rejected(self, user_payload, gender):
        assert errors_for(user_payload(gender=gender)) == [GENDER_MESSAGE]

    @pytest.mark.parametrize(
        "email", ["plainaddress", "a@b", "a b@c.com", "@x.com", "a@.com "]
    )
    def test_invalid_email_rejected(self, user_payload, email):
        assert errors_for(user_payload(email=email)) == ["Invalid email format"]

    def test_missing_and_blank_fields_reported(self, user_payload):
        payload = user_payload(name="   ", phone=None)
        del payload["city"]

        assert errors_for(payload) == [
            "name is required",
            "phone is required",
            "city is required",
        ]

    def test_blank_age_is_required_not_invalid(self, user_payload):
        assert errors_for(user_payload(age="  ")) == ["age is required"]

    def test_all_errors_collected_in_rule_order(self):
        errors = errors_for(
            {"name": "", "email": "nope", "phone": "1", "city": "X", "gender": "x", "age": 200}
        )

        assert errors == [
            "name is required",
            "Invalid email format",
            AGE_MESSAGE,
            GENDER_MESSAGE,
        ]

    def test_empty_payload_lists_every_required_field(self):
        assert errors_for({}) == [
            "name is required",
            "email is required",
            "phone is required",
            "city is required",
            "gender is required",
            "age is required",
        ]

    def test_container_in_string_field_rejected(self, user_payload):
        assert errors_for(user_payload(name=["John"])) == ["name must be a string"]

    def test_numeric_phone_is_rendered_as_text(self, user_payload):
        assert normalize_user(user_payload(phone=5550100)).phone == "5550100"

    def test_unknown_keys_are_ignored(self, user_payload):
        data = normalize_user(user_payload(id=99, createdAt="yesterday"))
        assert "id" not in data.model_dump()

    @pytest.mark.parametrize("payload", [["not", "an", "object"], None, "text"])
    def test_non_object_payload_rejected(self, payload):
        assert errors_for(payload) == [OBJECT_MESSAGE]

    def test_raises_with_all_errors(self, user_payload):
        with pytest.raises(ValidationError) as exc_info:
            normalize_user(user_payload(gender="unknown", age=-1))

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Validation failed"
        assert exc_info.value.errors == [AGE_MESSAGE, GENDER_MESSAGE]


def test_payload_model_cleans_fields(user_payload):
    payload = UserPayload.model_validate(user_payload(email=" A@B.CO ", gender=" Other "))
    assert payload.email == "a@b.co"
    assert payload.gender is Gender.OTHER


def test_is_valid_email():
    assert is_valid_email("john@example.com")
    assert not is_valid_email("john@example")
