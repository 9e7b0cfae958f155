"""Address reconciliation: decide whether a postcode/suburb/state triple is valid.

Pure functions only; the provider's localities and the validated input fully
determine the result.  Checks run in a fixed order so the caller gets the
most specific message the data supports:

1. the postcode has localities in the state,
2. one of them is named like the suburb,
3. that locality is in the requested state.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from address_verifier.lib.locality.base import Locality
from address_verifier.lib.verifier import messages
from address_verifier.schemas.address import ValidateAddressInput


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of reconciling an input against provider localities."""

    success: bool
    message: str
    status: int
    latitude: float | None = None
    longitude: float | None = None


def _normalize(value: str) -> str:
    return value.strip().lower()


def find_matching_locality(localities: Sequence[Locality], suburb: str) -> Locality | None:
    """Return the first locality whose name matches ``suburb``.

    Comparison ignores case and surrounding whitespace; provider order is kept.
    """
    wanted = _normalize(suburb)
    for locality in localities:
        if _normalize(locality.suburb_name) == wanted:
            return locality
    return None


def is_locality_in_state(locality: Locality, state: str) -> bool:
    return _normalize(locality.state) == _normalize(state)


def validate_address_data(localities: Sequence[Locality], user_input: ValidateAddressInput) -> ValidationResult:
    """Reconcile provider localities with the submitted address.

    Args:
        localities: Localities returned for the postcode and state, in provider order.
        user_input: The validated verification input.

    Returns:
        ValidationResult with status 200 on success, 400 on any mismatch.
    """
    postcode, suburb, state = user_input.postcode, user_input.suburb, str(user_input.state)

    if not localities:
        return ValidationResult(
            success=False,
            message=messages.no_results_for_postcode(postcode, state),
            status=400,
        )

    matched = find_matching_locality(localities, suburb)
    if matched is None:
        return ValidationResult(
            success=False,
            message=messages.postcode_suburb_mismatch(postcode, suburb),
            status=400,
        )

    if not is_locality_in_state(matched, state):
        return ValidationResult(
            success=False,
            message=messages.suburb_state_mismatch(suburb, state),
            status=400,
        )

    return ValidationResult(
        success=True,
        message=messages.SUCCESS,
        status=200,
        latitude=matched.latitude,
        longitude=matched.longitude,
    )
