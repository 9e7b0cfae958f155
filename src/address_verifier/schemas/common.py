"""Common Pydantic v2 schemas shared across the API.

Provides pagination, error response, form-error flattening and other shared schemas.
"""

from pydantic import BaseModel, Field, ValidationError


class PaginationParams(BaseModel):
    """Query parameters for paginated endpoints."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")


class PaginationMeta(BaseModel):
    """Pagination metadata included in paginated responses."""

    total: int = Field(description="Total number of items")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Items per page")
    total_pages: int = Field(description="Total number of pages")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error message")


class FormErrors(BaseModel):
    """Flattened validation errors: form-level messages plus per-field messages."""

    form_errors: list[str] = Field(default_factory=list)
    field_errors: dict[str, list[str]] = Field(default_factory=dict)


def flatten_validation_error(exc: ValidationError) -> FormErrors:
    """Flatten a pydantic ValidationError into form-level and per-field messages.

    Errors located on a field are grouped under the top-level field name in
    the order pydantic reported them; errors with no location (for example a
    non-object payload) become form errors.

    Args:
        exc: The validation error to flatten.

    Returns:
        FormErrors with messages grouped by field.
    """
    flattened = FormErrors()
    for error in exc.errors():
        loc = error.get("loc") or ()
        message = error.get("msg", "Invalid input")
        if loc:
            flattened.field_errors.setdefault(str(loc[0]), []).append(message)
        else:
            flattened.form_errors.append(message)
    return flattened
