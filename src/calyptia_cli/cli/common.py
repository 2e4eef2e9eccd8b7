"""Shared helpers for CLI commands.

Per project patterns:
- asyncio.run() to execute async cloud operations in sync CLI commands
- Library errors (CalyptiaError) become a red message on stderr and exit code 1
"""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler

from calyptia_cli.config import Settings
from calyptia_cli.errors import CalyptiaError

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


@dataclass
class CliState:
    """Global options, stored on the root context by the main callback."""

    settings: Settings
    verbose: bool = False


def build_settings(cloud_url: Optional[str] = None, token: Optional[str] = None) -> Settings:
    """Load settings from env/.env, with command-line values taking precedence."""
    overrides: dict[str, str] = {}
    if cloud_url:
        overrides["cloud_url"] = cloud_url
    if token:
        overrides["cloud_token"] = token
    return Settings(**overrides)


def get_settings(ctx: typer.Context) -> Settings:
    """
    Settings for the current invocation.

    During shell completion the root callback does not run, so global
    options are read from the root context parameters instead.
    """
    root = ctx.find_root()
    if isinstance(root.obj, CliState):
        return root.obj.settings
    return build_settings(root.params.get("cloud_url"), root.params.get("token"))


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, turning CalyptiaError into exit code 1."""
    try:
        return asyncio.run(coro)
    except CalyptiaError as e:
        err_console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(1)


def confirm(question: str, assume_yes: bool) -> bool:
    """Ask for confirmation unless --yes was given. Prints 'Aborted' on refusal."""
    if assume_yes:
        return True
    if typer.confirm(question, default=False):
        return True
    console.print("Aborted")
    return False
