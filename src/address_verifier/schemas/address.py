"""Address verification Pydantic v2 schemas.

Defines the verification input (with the exact user-facing validation
messages) and the query-style response envelope.
"""

import enum
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

from address_verifier.schemas.common import flatten_validation_error

POSTCODE_PATTERN = re.compile(r"[0-9]{4}")
SUBURB_PATTERN = re.compile(r"^[a-zA-Z0-9\s'\-.]+$")
SUBURB_MAX_LENGTH = 100

POSTCODE_MESSAGE = "Postcode must be exactly 4 digits"
SUBURB_REQUIRED_MESSAGE = "Suburb is required"
SUBURB_TOO_LONG_MESSAGE = f"Suburb must be less than {SUBURB_MAX_LENGTH} characters"
SUBURB_CHARACTERS_MESSAGE = (
    "Suburb can only contain letters, numbers, spaces, apostrophes, hyphens, and periods"
)
STATE_MESSAGE = "State is required"
INVALID_INPUT_MESSAGE = "Invalid input"

# Field order decides which message is reported when several fields are invalid
_FIELD_PRIORITY = ("postcode", "suburb", "state")


class AustralianState(enum.StrEnum):
    """Australian state and territory codes."""

    NSW = "NSW"
    VIC = "VIC"
    QLD = "QLD"
    SA = "SA"
    WA = "WA"
    TAS = "TAS"
    NT = "NT"
    ACT = "ACT"


class ValidateAddressInput(BaseModel):
    """Postcode, suburb and state submitted for verification.

    Postcode and suburb are trimmed before validation; state must be one of
    the eight codes exactly.
    """

    model_config = ConfigDict(frozen=True)

    postcode: str
    suburb: str
    state: AustralianState

    @model_validator(mode="before")
    @classmethod
    def _fill_missing_fields(cls, data: Any) -> Any:
        # Missing fields report their own message instead of "Field required"
        if isinstance(data, dict):
            return {"postcode": None, "suburb": None, "state": None, **data}
        return data

    @field_validator("postcode", mode="before")
    @classmethod
    def _validate_postcode(cls, v: Any) -> str:
        if not isinstance(v, str) or not POSTCODE_PATTERN.fullmatch(v.strip()):
            raise PydanticCustomError("postcode", POSTCODE_MESSAGE)
        return v.strip()

    @field_validator("suburb", mode="before")
    @classmethod
    def _validate_suburb(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise PydanticCustomError("suburb", SUBURB_REQUIRED_MESSAGE)
        value = v.strip()
        if not value:
            raise PydanticCustomError("suburb", SUBURB_REQUIRED_MESSAGE)
        if len(value) > SUBURB_MAX_LENGTH:
            raise PydanticCustomError("suburb", SUBURB_TOO_LONG_MESSAGE)
        if not SUBURB_PATTERN.match(value):
            raise PydanticCustomError("suburb", SUBURB_CHARACTERS_MESSAGE)
        return value

    @field_validator("state", mode="before")
    @classmethod
    def _validate_state(cls, v: Any) -> str:
        if not isinstance(v, str) or v not in AustralianState.__members__:
            raise PydanticCustomError("state", STATE_MESSAGE)
        return v


def first_input_error(exc: ValidationError) -> str:
    """Pick the message to report for an invalid verification input.

    Checks postcode, then suburb, then state; falls back to a generic message.
    """
    field_errors = flatten_validation_error(exc).field_errors
    for field in _FIELD_PRIORITY:
        messages = field_errors.get(field)
        if messages:
            return messages[0]
    return INVALID_INPUT_MESSAGE


class ValidateAddressResult(BaseModel):
    """Verification outcome returned to the caller."""

    success: bool
    message: str
    latitude: float | None = None
    longitude: float | None = None


class ValidateAddressData(BaseModel):
    """``data`` member of the query-style response envelope."""

    validate_address: ValidateAddressResult = Field(serialization_alias="validateAddress")


class ValidateAddressResponse(BaseModel):
    """Response envelope: ``{"data": {"validateAddress": {...}}}``."""

    data: ValidateAddressData

    @classmethod
    def build(
        cls,
        *,
        success: bool,
        message: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> "ValidateAddressResponse":
        result = ValidateAddressResult(success=success, message=message, latitude=latitude, longitude=longitude)
        return cls(data=ValidateAddressData(validate_address=result))
