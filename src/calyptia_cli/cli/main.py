"""Calyptia CLI - manage Calyptia Cloud projects and core instances."""

from typing import Optional

import typer

from calyptia_cli.cli.common import CliState, build_settings, configure_logging
from calyptia_cli.cli.config import config_app
from calyptia_cli.cli.create import create_app
from calyptia_cli.cli.delete import delete_app
from calyptia_cli.cli.get import get_app
from calyptia_cli.cli.update import update_app

app = typer.Typer(
    name="calyptia",
    help="Calyptia Cloud CLI",
    no_args_is_help=True,
)

# Add command groups
app.add_typer(get_app, name="get")
app.add_typer(create_app, name="create")
app.add_typer(update_app, name="update")
app.add_typer(delete_app, name="delete")
app.add_typer(config_app, name="config")


@app.callback()
def callback(
    ctx: typer.Context,
    cloud_url: Optional[str] = typer.Option(
        None, "--cloud-url", help="Calyptia Cloud API URL (env: CALYPTIA_CLOUD_URL)"
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Project token (env: CALYPTIA_CLOUD_TOKEN)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Calyptia Cloud CLI."""
    configure_logging(verbose)
    ctx.obj = CliState(settings=build_settings(cloud_url, token), verbose=verbose)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
