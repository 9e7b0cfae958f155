"""Address verification CLI command."""

import asyncio

import typer


def verify(
    postcode: str = typer.Argument(..., help="4-digit postcode"),
    suburb: str = typer.Argument(..., help="Suburb name"),
    state: str = typer.Argument(..., help="State or territory code (e.g. NSW)"),
) -> None:
    """Check a postcode, suburb and state against the locality provider."""
    asyncio.run(_verify(postcode, suburb, state))


async def _verify(postcode: str, suburb: str, state: str) -> None:
    """Run input validation, the provider lookup and reconciliation; no session or audit log."""
    from pydantic import ValidationError

    from address_verifier.core.config import get_settings
    from address_verifier.lib.locality import AusPostLocalityClient, LocalityLookupError
    from address_verifier.lib.verifier import validate_address_data
    from address_verifier.schemas.address import ValidateAddressInput, first_input_error

    try:
        address = ValidateAddressInput.model_validate({"postcode": postcode, "suburb": suburb, "state": state})
    except ValidationError as e:
        typer.echo(f"Error: {first_input_error(e)}", err=True)
        raise typer.Exit(code=2) from e

    settings = get_settings()
    client = AusPostLocalityClient(
        settings.locality_api_url,
        settings.locality_api_key,
        timeout=settings.locality_api_timeout,
    )
    try:
        localities = await client.lookup(address.postcode, str(address.state))
    except LocalityLookupError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e

    result = validate_address_data(localities, address)
    typer.echo(result.message)
    if result.latitude is not None and result.longitude is not None:
        typer.echo(f"Coordinates: {result.latitude}, {result.longitude}")
    if not result.success:
        raise typer.Exit(code=1)
