"""Address reconciliation library.

Public API:
    - validate_address_data: Reconcile localities with a verification input
    - ValidationResult: Reconciliation outcome
    - find_matching_locality: First case/whitespace-insensitive suburb match
"""

from address_verifier.lib.verifier.validator import (
    ValidationResult,
    find_matching_locality,
    is_locality_in_state,
    validate_address_data,
)

__all__ = [
    "ValidationResult",
    "find_matching_locality",
    "is_locality_in_state",
    "validate_address_data",
]
