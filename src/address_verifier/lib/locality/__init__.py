"""Locality lookup library: provider client and locality model.

Public API:
    - Locality: Provider locality record with aliased suburb name
    - BaseLocalityClient: Abstract lookup interface
    - AusPostLocalityClient: Australia Post postcode search client
    - LocalityLookupError: Transport/format failure of a lookup
    - coerce_coordinate: Number-or-numeric-string to float coercion
"""

from address_verifier.lib.locality.auspost import AusPostLocalityClient, extract_locality_records
from address_verifier.lib.locality.base import (
    BaseLocalityClient,
    Locality,
    LocalityLookupError,
    coerce_coordinate,
)

__all__ = [
    "AusPostLocalityClient",
    "BaseLocalityClient",
    "Locality",
    "LocalityLookupError",
    "coerce_coordinate",
    "extract_locality_records",
]
