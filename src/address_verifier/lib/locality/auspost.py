"""Australia Post postcode search client.

Queries the provider's postcode search endpoint with a bearer token and
normalizes its ``localities.locality`` payload, which arrives as absent, a
single object, or a list.
"""

from typing import Any

import httpx
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from address_verifier.lib.locality.base import BaseLocalityClient, Locality, LocalityLookupError

DEFAULT_TIMEOUT = 10.0

_LOCALITY_LIST = TypeAdapter(list[Locality])


def extract_locality_records(data: Any) -> list[Any]:
    """Pull the raw locality records out of a provider response body.

    Args:
        data: Decoded JSON body.

    Returns:
        The records as a list (possibly empty).

    Raises:
        LocalityLookupError: If the body is not a JSON object.
    """
    if not isinstance(data, dict):
        msg = "Response body is not a JSON object"
        raise LocalityLookupError(msg)
    localities = data.get("localities")
    # The provider sends an empty string (or nothing) when there are no results
    if not isinstance(localities, dict):
        return []
    records = localities.get("locality")
    if not records:
        return []
    if isinstance(records, list):
        return records
    return [records]


class AusPostLocalityClient(BaseLocalityClient):
    """Locality lookup against the Australia Post postcode search API."""

    def __init__(self, base_url: str, api_key: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout

    async def lookup(self, postcode: str, state: str) -> list[Locality]:
        params = {"q": postcode, "state": state}
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._base_url, params=params, headers=headers)
                response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning("Locality lookup timed out")
            raise LocalityLookupError("Locality lookup timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Locality provider HTTP error {e.response.status_code}")
            raise LocalityLookupError(
                f"Provider returned HTTP {e.response.status_code}", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Locality provider transport error: {type(e).__name__}")
            raise LocalityLookupError("Connection to locality provider failed") from e
        except ValueError as e:
            logger.warning("Locality provider returned a non-JSON body")
            raise LocalityLookupError("Provider response is not valid JSON") from e

        return self._parse_response(data)

    def _parse_response(self, data: Any) -> list[Locality]:
        """Parse a provider response into Locality models, preserving order."""
        records = extract_locality_records(data)
        try:
            return _LOCALITY_LIST.validate_python(records)
        except ValidationError as e:
            logger.warning(f"Failed to parse locality response: {e.error_count()} invalid field(s)")
            raise LocalityLookupError("Failed to parse locality response") from e
