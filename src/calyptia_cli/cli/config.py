"""Config commands: inspect the configured project token."""

import typer

from calyptia_cli.cli.common import console, err_console, get_settings
from calyptia_cli.config import decode_token
from calyptia_cli.errors import ConfigError

config_app = typer.Typer(help="Inspect the CLI configuration")


def _current_token(ctx: typer.Context) -> str:
    token = get_settings(ctx).cloud_token.strip()
    if not token:
        err_console.print("[red]Error:[/red] project token not set", highlight=False)
        raise typer.Exit(1)
    return token


@config_app.command("current_token")
def current_token(ctx: typer.Context) -> None:
    """Print the project token in use."""
    console.print(_current_token(ctx), highlight=False)


@config_app.command("current_project")
def current_project(ctx: typer.Context) -> None:
    """Print the project ID decoded from the project token."""
    try:
        project_id = decode_token(_current_token(ctx))
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(1)
    console.print(project_id, highlight=False)
