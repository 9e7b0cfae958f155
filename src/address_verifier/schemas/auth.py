"""Authentication and session Pydantic v2 schemas.

Defines signup/login form inputs (with their user-facing messages), the
session payload kept in the key-value store, and auth form responses.
"""

import re
from typing import Annotated, Any

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from address_verifier.schemas.common import FormErrors

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 32
PASSWORD_SPECIAL_CHARACTERS = "@!#$%^&*_+=?-"
USER_NAME_MIN_LENGTH = 2
USER_NAME_MAX_LENGTH = 50

_SPECIALS = "".join(f"\\{c}" for c in PASSWORD_SPECIAL_CHARACTERS)
PASSWORD_PATTERN = re.compile(
    rf"^(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])(?=.*[{_SPECIALS}])[A-Za-z0-9{_SPECIALS}]{{{PASSWORD_MIN_LENGTH},}}$"
)

INVALID_EMAIL_MESSAGE = "Invalid email address"
PASSWORD_REQUIRED_MESSAGE = "Password is required"
PASSWORD_TOO_SHORT_MESSAGE = f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
PASSWORD_TOO_LONG_MESSAGE = f"Password must be at most {PASSWORD_MAX_LENGTH} characters long"
PASSWORD_COMPLEXITY_MESSAGE = (
    "Password must include uppercase letters, lowercase letters, numbers, and special characters."
)
PASSWORD_CONFIRM_REQUIRED_MESSAGE = "Please confirm your password."
PASSWORD_MISMATCH_MESSAGE = "Passwords do not match."
NAME_REQUIRED_MESSAGE = "Name is required"
NAME_TOO_SHORT_MESSAGE = f"Name must be at least {USER_NAME_MIN_LENGTH} characters long"
NAME_TOO_LONG_MESSAGE = f"Name must be at most {USER_NAME_MAX_LENGTH} characters long"


def _check_email(v: Any) -> str:
    if not isinstance(v, str):
        raise PydanticCustomError("email", INVALID_EMAIL_MESSAGE)
    value = v.strip().lower()
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise PydanticCustomError("email", INVALID_EMAIL_MESSAGE) from e
    return value


def _check_password(v: Any) -> str:
    if not isinstance(v, str):
        raise PydanticCustomError("password", PASSWORD_REQUIRED_MESSAGE)
    if len(v) < PASSWORD_MIN_LENGTH:
        raise PydanticCustomError("password", PASSWORD_TOO_SHORT_MESSAGE)
    if not PASSWORD_PATTERN.fullmatch(v):
        raise PydanticCustomError("password", PASSWORD_COMPLEXITY_MESSAGE)
    if len(v) > PASSWORD_MAX_LENGTH:
        raise PydanticCustomError("password", PASSWORD_TOO_LONG_MESSAGE)
    return v


EmailField = Annotated[str, BeforeValidator(_check_email)]
PasswordField = Annotated[str, BeforeValidator(_check_password)]


class LoginRequest(BaseModel):
    """Login form input."""

    email: EmailField
    password: PasswordField


class SignupRequest(BaseModel):
    """Signup form input; ``passwordConfirm`` must equal ``password``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: EmailField
    password: PasswordField
    password_confirm: str = Field(alias="passwordConfirm")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise PydanticCustomError("name", NAME_REQUIRED_MESSAGE)
        value = v.strip()
        if len(value) < USER_NAME_MIN_LENGTH:
            raise PydanticCustomError("name", NAME_TOO_SHORT_MESSAGE)
        if len(value) > USER_NAME_MAX_LENGTH:
            raise PydanticCustomError("name", NAME_TOO_LONG_MESSAGE)
        return value

    @field_validator("password_confirm", mode="before")
    @classmethod
    def _validate_password_confirm(cls, v: Any, info: ValidationInfo) -> str:
        if not isinstance(v, str):
            raise PydanticCustomError("password_confirm", PASSWORD_CONFIRM_REQUIRED_MESSAGE)
        # Only compare once the password itself is valid
        password = info.data.get("password")
        if password is not None and v != password:
            raise PydanticCustomError("password_confirm", PASSWORD_MISMATCH_MESSAGE)
        return v


class UserSession(BaseModel):
    """Session payload stored in the key-value store and returned by the auth gate."""

    model_config = ConfigDict(strict=True)

    id: str
    name: str


class AuthFormData(BaseModel):
    """Echo of submitted form values (never includes passwords)."""

    name: str | None = None
    email: str | None = None


class AuthFormResponse(BaseModel):
    """Failed signup/login response: submitted values plus flattened errors."""

    data: AuthFormData
    error: FormErrors
