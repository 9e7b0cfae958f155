"""Address verification service for Australian postcode, suburb, and state triples."""

__version__ = "0.1.0"
