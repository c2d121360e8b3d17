"""Field validators used by domain services before any write.

Each validator raises ``ValidationError`` naming the field and the violated
constraint. Optional fields pass when the value is ``None`` or ``""``.
"""
import base64
import re
from typing import Optional, Sequence

from polygram.domain.common.errors import ValidationError
from polygram.domain.common.types import is_valid_id

_NAME_RE = re.compile(r"^[a-zA-Z]+(([',. -][a-zA-Z ])?[a-zA-Z]*)*$")
_USERNAME_RE = re.compile(r"^[a-z0-9_-]*$")
_EMAIL_RE = re.compile(r"[^@ \t\r\n]+@[^@ \t\r\n]+\.[^@ \t\r\n]+")
_URL_RE = re.compile(
    r"^(https?://)?(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"([-a-zA-Z0-9()!@:%_+.~#?&/=]*)$"
)
_SPECIAL_RE = re.compile(r"[#?!@$ %^&*-]")
_IMAGE_TYPES = ("image/png", "image/jpeg", "image/jpg")


def validate_string(
    value: Optional[str],
    min_length: int,
    max_length: int,
    field: str,
    required: bool = False,
) -> None:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} field cannot be empty", field=field)
        return
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be of type string", field=field)
    if len(value) < min_length:
        raise ValidationError(f"{field} should contain at least {min_length} characters", field=field)
    if len(value) > max_length:
        raise ValidationError(f"{field} must not exceed the {max_length} character limit", field=field)


def validate_string_list(
    values: Optional[Sequence[str]],
    min_length: int,
    max_length: int,
    field: str,
    min_items: Optional[int] = None,
    max_items: Optional[int] = None,
    required: bool = False,
) -> None:
    if values is None:
        if required:
            raise ValidationError(f"{field} field cannot be empty", field=field)
        return
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field} must be of type array", field=field)
    if max_items is not None and len(values) > max_items:
        raise ValidationError(f"{field} must not have more than {max_items} entries", field=field)
    if min_items is not None and len(values) < min_items:
        raise ValidationError(f"{field} must have minimum {min_items} entries", field=field)
    for value in values:
        validate_string(value, min_length, max_length, f"Each value in {field}", required=True)


def validate_id(value: Optional[str], field: str = "id", required: bool = False) -> None:
    if value is None:
        if required:
            raise ValidationError(f"{field} field cannot be empty", field=field)
        return
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {field}", field=field)


def validate_name(value: Optional[str], field: str = "name", required: bool = False) -> None:
    validate_string(value, 3, 30, field, required)
    if value and not _NAME_RE.match(value):
        raise ValidationError(f"Invalid {field}", field=field)


def validate_username(value: Optional[str], field: str = "username", required: bool = False) -> None:
    validate_string(value, 4, 15, field, required)
    if value and not _USERNAME_RE.match(value):
        raise ValidationError(
            "User name must only contain small letters, numbers, underscore( _ ) and hyphen( - )",
            field=field,
        )


def validate_email(value: Optional[str], field: str = "email", required: bool = False) -> None:
    validate_string(value, 5, 50, field, required)
    if value and not _EMAIL_RE.search(value):
        raise ValidationError(f"Invalid {field}", field=field)


def validate_password(value: Optional[str], field: str = "password", required: bool = False) -> None:
    validate_string(value, 8, 50, field, required)
    if not value:
        return
    if not re.search(r"[a-z]", value, re.IGNORECASE):
        raise ValidationError(f"{field} must contain at least one letter", field=field)
    if not re.search(r"[0-9]", value):
        raise ValidationError(f"{field} must contain at least one digit", field=field)
    if not _SPECIAL_RE.search(value):
        raise ValidationError(f"{field} must contain at least one special character", field=field)


def validate_url(value: Optional[str], field: str = "url", required: bool = False) -> None:
    validate_string(value, 3, 2048, field, required)
    if value and not _URL_RE.match(value):
        raise ValidationError(f"Invalid {field}", field=field)


def parse_data_url_image(
    value: Optional[str], min_size: int, max_size: int, field: str = "image"
) -> tuple[str, bytes]:
    """Validate a ``data:image/...;base64,`` string and return (content_type, bytes)."""
    validate_string(value, 1, 2**31, field, required=True)
    meta, sep, payload = value.partition(",")
    content_type = meta[meta.find(":") + 1:meta.find(";")] if ";" in meta else ""
    if not sep or content_type not in _IMAGE_TYPES:
        raise ValidationError(f"{field} only supports png,jpeg & jpg", field=field)
    try:
        data = base64.b64decode(payload, validate=True)
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid {field}", field=field)
    if len(data) < min_size:
        raise ValidationError(f"{field} should not be smaller than {min_size / 1024}KB", field=field)
    if len(data) > max_size:
        raise ValidationError(f"{field} should not be larger than {max_size / 1024}KB", field=field)
    return content_type, data
