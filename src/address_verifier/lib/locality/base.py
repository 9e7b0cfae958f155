"""Locality model and the abstract lookup client interface."""

import math
from abc import ABC, abstractmethod
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def coerce_coordinate(value: Any) -> float | None:
    """Coerce a provider coordinate (number or numeric string) to float.

    Absent, blank, non-numeric and non-finite values become None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class Locality(BaseModel):
    """A provider-supplied suburb/place within a postcode and state.

    The provider names the suburb under either ``location`` or ``suburb``;
    both are read into ``suburb_name`` (``location`` wins when both appear),
    so callers never branch on the raw field name.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    suburb_name: str = Field(validation_alias=AliasChoices("location", "suburb", "suburb_name"))
    state: str = ""
    postcode: str | None = None
    category: str | None = None
    id: int | str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinates(cls, v: Any) -> float | None:
        return coerce_coordinate(v)

    @field_validator("postcode", mode="before")
    @classmethod
    def _postcode_as_text(cls, v: Any) -> str | None:
        if v is None:
            return None
        return str(v)


class LocalityLookupError(Exception):
    """Raised when the locality provider cannot be reached or returns an unusable response.

    Distinguishes provider failures (timeout, HTTP error, malformed body)
    from a successful lookup with no localities (which returns an empty list).

    Args:
        message: Human-readable error description (never shown to callers).
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class BaseLocalityClient(ABC):
    """Abstract locality lookup interface."""

    @abstractmethod
    async def lookup(self, postcode: str, state: str) -> list[Locality]:
        """Return the provider's localities for ``postcode`` within ``state``.

        Args:
            postcode: Four-digit postcode.
            state: Australian state or territory code.

        Returns:
            Localities in provider order; empty when the provider has none.

        Raises:
            LocalityLookupError: On transport or response-format errors.
        """
