"""User-facing verification messages."""

UNAUTHORIZED = "Unauthorized"
INVALID_INPUT = "Invalid input"
SERVER_ERROR = "Internal server error. Please try again later."
TOO_MANY_REQUESTS = "Too many requests. Please try again later."
SUCCESS = "The postcode, suburb, and state input are valid."


def no_results_for_postcode(postcode: str, state: str) -> str:
    return f"No results found for postcode {postcode} in state {state}."


def postcode_suburb_mismatch(postcode: str, suburb: str) -> str:
    return f"The postcode {postcode} does not match the suburb {suburb}."


def suburb_state_mismatch(suburb: str, state: str) -> str:
    return f"The suburb {suburb} does not exist in the state ({state})."
