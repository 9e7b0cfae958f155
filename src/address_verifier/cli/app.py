"""Typer CLI root application: serve, verify and database commands."""

import typer

from address_verifier.core.config import get_settings
from address_verifier.core.logging import setup_logging

app = typer.Typer(name="address-verifier", help="Australian address verification service CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "address_verifier.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from address_verifier.cli.db_cmd import db_app
    from address_verifier.cli.verify_cmd import verify

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.command("verify")(verify)


_register_subcommands()
