"""Tests for field validators."""
import base64

import pytest

from polygram.domain.common.errors import ValidationError
from polygram.domain.common.validation import (
    parse_data_url_image,
    validate_email,
    validate_name,
    validate_password,
    validate_string_list,
    validate_username,
)


@pytest.mark.parametrize("value", ["abc", "UPPER", "has space", "x" * 16])
def test_invalid_usernames(value):
    with pytest.raises(ValidationError):
        validate_username(value, required=True)


def test_valid_username():
    validate_username("good_name-1", required=True)


@pytest.mark.parametrize(
    "value, message",
    [
        ("short1!", "password should contain at least 8 characters"),
        ("12345678!", "password must contain at least one letter"),
        ("password!", "password must contain at least one digit"),
        ("password1", "password must contain at least one special character"),
    ],
)
def test_password_rules(value, message):
    with pytest.raises(ValidationError) as exc:
        validate_password(value, required=True)
    assert exc.value.message == message


def test_optional_fields_accept_empty():
    validate_name(None, "first_name")
    validate_email("", "email")


def test_required_field_cannot_be_empty():
    with pytest.raises(ValidationError) as exc:
        validate_email(None, "email", required=True)
    assert exc.value.message == "email field cannot be empty"
    assert exc.value.field == "email"


def test_invalid_name():
    with pytest.raises(ValidationError):
        validate_name("R2D2", "first_name", required=True)


def test_string_list_bounds():
    with pytest.raises(ValidationError) as exc:
        validate_string_list(["a", "b", "c"], 1, 30, "options", 2, 2)
    assert exc.value.message == "options must not have more than 2 entries"

    with pytest.raises(ValidationError):
        validate_string_list("not-a-list", 1, 30, "options")


def test_data_url_image():
    data = bytes(100)
    content_type, decoded = parse_data_url_image(
        "data:image/jpeg;base64," + base64.b64encode(data).decode(), 10, 1000
    )
    assert content_type == "image/jpeg"
    assert decoded == data

    with pytest.raises(ValidationError):
        parse_data_url_image("data:image/png;base64," + base64.b64encode(data).decode(), 500, 1000)
    with pytest.raises(ValidationError):
        parse_data_url_image("data:image/png;base64,@@@@", 1, 1000)
